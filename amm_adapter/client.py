"""
AmmClient - Unified entry point for AMM operations

Wires the web3 connection, signer, contract gateway and the functional
modules (wallet, market, swap, add_liquidity, remove_liquidity, intents).
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from web3 import Web3

from .infra import (
    AccountState,
    EVMSigner,
    Notifier,
    OperationMailbox,
    create_web3,
)
from .protocols.uniswap_v2 import ContractGateway
from .types import TokenRegistry
from .config import config as global_config

logger = logging.getLogger(__name__)


class AmmClient:
    """
    Uniswap-V2 style AMM client

    Provides access to AMM operations through functional modules:
    - wallet: Balances, token registry, WETH wrap/unwrap
    - market: Pool directory
    - swap / add_liquidity / remove_liquidity: Operation screens
    - intents: Natural-language command resolution

    Usage:
        from amm_adapter import AmmClient, EVMSigner

        client = AmmClient(signer=EVMSigner.from_env())

        pools = client.market.list_pools()
        client.market.select(pools[0], Operation.SWAP)
        client.swap.load_pending()
        client.swap.set_amount_in("1")
        client.swap.execute()

        pending = client.intents.resolve_pending("swap 10 WETH for TEST", client.registry)
        client.mailbox.post(pending)
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        signer: Optional[EVMSigner] = None,
        web3: Optional[Web3] = None,
        account_state: Optional[AccountState] = None,
        notifier: Optional[Notifier] = None,
        router_address: Optional[str] = None,
        factory_address: Optional[str] = None,
        weth_address: Optional[str] = None,
    ):
        """
        Initialize AmmClient

        Args:
            rpc_url: JSON-RPC endpoint (default: AMM_RPC_URL)
            signer: Optional signer; without one the client is read-only
            web3: Pre-built Web3 instance (overrides rpc_url)
            account_state: Shared account holder (a fresh one by default)
            notifier: Notification sink for operation outcomes
            router_address / factory_address / weth_address: Deployment overrides
        """
        self._web3 = web3 or create_web3(
            rpc_url or global_config.chain.rpc_url,
            timeout=global_config.chain.timeout,
        )
        self._gateway = ContractGateway(
            self._web3,
            signer,
            router_address=router_address,
            factory_address=factory_address,
            weth_address=weth_address,
        )
        self._account_state = account_state or AccountState()
        if signer is not None:
            self._account_state.set(signer.address)
        self._notifier = notifier or Notifier()
        self._mailbox = OperationMailbox()
        self._registry: Optional[TokenRegistry] = None

        # Lazy-loaded modules
        self._wallet: Optional["WalletModule"] = None
        self._market: Optional["MarketModule"] = None
        self._swap: Optional["SwapModule"] = None
        self._add_liquidity: Optional["AddLiquidityModule"] = None
        self._remove_liquidity: Optional["RemoveLiquidityModule"] = None
        self._intents: Optional["IntentResolver"] = None

    @property
    def web3(self) -> Web3:
        return self._web3

    @property
    def gateway(self) -> ContractGateway:
        """Access to contract gateway"""
        return self._gateway

    @property
    def account_state(self) -> AccountState:
        return self._account_state

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def mailbox(self) -> OperationMailbox:
        """Handoff channel between the directory / intents and the operation screens"""
        return self._mailbox

    @property
    def address(self) -> Optional[str]:
        """Connected account"""
        return self._account_state.current

    def connect(self, signer: EVMSigner) -> None:
        """Switch to ``signer``; every screen drops state tied to the previous account"""
        self._gateway.set_signer(signer)
        self._account_state.set(signer.address)

    def disconnect(self) -> None:
        self._gateway.set_signer(None)
        self._account_state.clear()

    @property
    def registry(self) -> TokenRegistry:
        """Configured tokens, read on first use"""
        if self._registry is None:
            self._registry = self.wallet.token_registry()
        return self._registry

    @property
    def wallet(self) -> "WalletModule":
        """
        Wallet module

        Provides:
        - balance(token): ERC20 balance
        - native_balance(): ETH balance
        - token_registry(): Configured tokens
        - wrap(amount) / unwrap(amount): WETH
        """
        if self._wallet is None:
            from .modules.wallet import WalletModule
            self._wallet = WalletModule(self._gateway, self._account_state)
        return self._wallet

    @property
    def market(self) -> "MarketModule":
        """
        Pool directory

        Provides:
        - list_pools(): All factory pairs
        - pool(address) / find_pool(a, b): Single pair
        - select(pool, operation): Hand a pool to an operation screen
        """
        if self._market is None:
            from .modules.market import MarketModule
            self._market = MarketModule(self._gateway, self._mailbox)
        return self._market

    @property
    def swap(self) -> "SwapModule":
        if self._swap is None:
            from .modules.swap import SwapModule
            self._swap = SwapModule(self._gateway, self._account_state, self._notifier, self._mailbox)
        return self._swap

    @property
    def add_liquidity(self) -> "AddLiquidityModule":
        if self._add_liquidity is None:
            from .modules.liquidity import AddLiquidityModule
            self._add_liquidity = AddLiquidityModule(self._gateway, self._account_state, self._notifier, self._mailbox)
        return self._add_liquidity

    @property
    def remove_liquidity(self) -> "RemoveLiquidityModule":
        if self._remove_liquidity is None:
            from .modules.liquidity import RemoveLiquidityModule
            self._remove_liquidity = RemoveLiquidityModule(
                self._gateway, self._account_state, self._notifier, self._mailbox
            )
        return self._remove_liquidity

    @property
    def intents(self) -> "IntentResolver":
        """
        Natural-language resolver (needs OPENAI_API_KEY)

        Provides:
        - resolve(text, registry): Intent
        - resolve_pending(text, registry): PendingOperation for the mailbox
        """
        if self._intents is None:
            from .protocols.nlp import CompletionAPI, IntentResolver
            self._intents = IntentResolver(CompletionAPI())
        return self._intents

    def close(self):
        """Release module subscriptions and HTTP clients"""
        for module in (self._swap, self._add_liquidity, self._remove_liquidity):
            if module is not None:
                module.close()
        if self._intents is not None:
            self._intents.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        address = self.address[:10] + "..." if self.address else None
        return f"AmmClient(address={address})"


# Type hints for modules (resolved at runtime)
if TYPE_CHECKING:
    from .modules.wallet import WalletModule
    from .modules.market import MarketModule
    from .modules.swap import SwapModule
    from .modules.liquidity import AddLiquidityModule, RemoveLiquidityModule
    from .protocols.nlp import IntentResolver
