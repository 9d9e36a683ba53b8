"""
Wallet Module

Balances of the connected account, the configured token registry, and
wrapping/unwrapping of the native coin through WETH.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ..types.common import Token, TokenRegistry
from ..types.result import TxResult
from ..types.units import from_base_units, to_base_units
from ..infra.account import AccountState
from ..infra.tracing import failed_result
from ..protocols.uniswap_v2.api import ZERO_ADDRESS
from ..protocols.uniswap_v2.gateway import ContractGateway
from ..errors import AmmAdapterError, InsufficientFunds, InvalidInput, SignerError
from ..config import config

logger = logging.getLogger(__name__)


class WalletModule:
    """
    Wallet operations module

    Provides:
    - Native and ERC20 balance queries
    - Token registry from the configured addresses
    - WETH wrap / unwrap

    Usage:
        registry = client.wallet.token_registry()
        weth = client.wallet.balance(registry.weth.address)
        client.wallet.wrap("0.5")
    """

    def __init__(self, gateway: ContractGateway, account_state: AccountState):
        self._gateway = gateway
        self._account_state = account_state

    @property
    def address(self) -> Optional[str]:
        """Connected account"""
        return self._account_state.current

    def _require_account(self) -> str:
        address = self._account_state.current
        if address is None:
            raise SignerError.not_configured()
        return address

    def native_balance_wei(self, owner: Optional[str] = None) -> int:
        return self._gateway.web3.eth.get_balance(owner or self._require_account())

    def native_balance(self, owner: Optional[str] = None) -> Decimal:
        """Native coin balance in ether"""
        return Decimal(from_base_units(self.native_balance_wei(owner)))

    def balance_raw(self, token_address: str, owner: Optional[str] = None) -> int:
        """ERC20 balance in base units"""
        return self._gateway.token(token_address).balance_of(owner or self._require_account())

    def balance(self, token_address: str, owner: Optional[str] = None) -> Decimal:
        """ERC20 balance in token units"""
        token = self._gateway.token(token_address)
        raw = token.balance_of(owner or self._require_account())
        return Decimal(from_base_units(raw, token.decimals()))

    def token_info(self, token_address: str) -> Token:
        """Symbol and decimals read from the token contract"""
        contract = self._gateway.token(token_address)
        return Token(token_address, contract.symbol(), contract.decimals())

    def token_registry(self, addresses: Optional[Iterable[str]] = None) -> TokenRegistry:
        """
        Registry of the configured tokens (WETH first)

        Zero addresses and tokens whose metadata cannot be read are skipped.

        Args:
            addresses: Token addresses (default: config.contracts.token_addresses)
        """
        candidates = list(addresses) if addresses is not None else config.contracts.token_addresses
        tokens: List[Token] = []
        for address in candidates:
            if not address or address.lower() == ZERO_ADDRESS.lower():
                continue
            try:
                tokens.append(self.token_info(address))
            except AmmAdapterError as e:
                logger.warning(f"Skipping token {address}: {e}")
        return TokenRegistry.from_tokens(tokens, weth_address=self._gateway.weth_address)

    def balances(self, registry: TokenRegistry) -> Dict[str, Decimal]:
        """Balances keyed by symbol; unreadable entries are left out"""
        owner = self._require_account()
        result: Dict[str, Decimal] = {}
        for token in registry:
            try:
                raw = self._gateway.token(token.address).balance_of(owner)
            except AmmAdapterError as e:
                logger.warning(f"Balance of {token.symbol} unavailable: {e}")
                continue
            result[token.symbol] = Decimal(from_base_units(raw, token.decimals))
        return result

    # =========================================================================
    # WETH
    # =========================================================================

    def wrap(self, amount: str) -> TxResult:
        """Deposit ``amount`` ether into WETH"""
        try:
            value = self._positive(amount)
            available = self.native_balance_wei()
            if available < value:
                raise InsufficientFunds.token_balance("ETH", value, available)
            tx = self._gateway.weth.build_deposit(value, self._gateway.tx_params(config.evm.approve_gas_limit))
            logger.info(f"Wrapping {amount} ETH")
            return self._gateway.send(tx, "wrap")
        except AmmAdapterError as e:
            return failed_result(e, "wrap")

    def unwrap(self, amount: str) -> TxResult:
        """Withdraw ``amount`` WETH back to ether"""
        try:
            value = self._positive(amount)
            available = self._gateway.weth.balance_of(self._require_account())
            if available < value:
                raise InsufficientFunds.token_balance("WETH", value, available)
            tx = self._gateway.weth.build_withdraw(value, self._gateway.tx_params(config.evm.approve_gas_limit))
            logger.info(f"Unwrapping {amount} WETH")
            return self._gateway.send(tx, "unwrap")
        except AmmAdapterError as e:
            return failed_result(e, "unwrap")

    @staticmethod
    def _positive(amount: str) -> int:
        value = to_base_units(amount)
        if value <= 0:
            raise InvalidInput.non_positive("amount", amount)
        return value
