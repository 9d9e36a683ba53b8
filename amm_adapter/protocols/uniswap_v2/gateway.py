"""
Contract Gateway

Single entry point for on-chain reads and writes: hands out typed
contract roles and sends transactions through the EVM signer.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

from web3 import Web3

from ...types.result import TxResult
from ...infra.evm_signer import EVMSigner
from ...infra.tracing import classify_error
from ...errors import ConfigurationError, ContractCallFailed, SignerError
from ...config import config as global_config
from .contracts import (
    TokenContract,
    WethContract,
    PairContract,
    FactoryContract,
    RouterContract,
)

logger = logging.getLogger(__name__)


class ContractGateway:
    """
    Typed access to the AMM deployment

    Usage:
        gateway = ContractGateway(web3, signer, router_address=..., factory_address=..., weth_address=...)
        reserves = gateway.pair(pair_address).get_reserves()
        tx = gateway.router.build_swap_exact_tokens_for_tokens(..., tx_params=gateway.tx_params(300_000))
        result = gateway.send(tx, "swap")
    """

    def __init__(
        self,
        web3: Web3,
        signer: Optional[EVMSigner] = None,
        router_address: Optional[str] = None,
        factory_address: Optional[str] = None,
        weth_address: Optional[str] = None,
    ):
        self._web3 = web3
        self._signer = signer
        self._router_address = router_address if router_address is not None else global_config.contracts.router
        self._factory_address = factory_address if factory_address is not None else global_config.contracts.factory
        self._weth_address = weth_address if weth_address is not None else global_config.contracts.weth

        self._lock = threading.Lock()
        self._tokens: Dict[str, TokenContract] = {}
        self._pairs: Dict[str, PairContract] = {}
        self._router: Optional[RouterContract] = None
        self._factory: Optional[FactoryContract] = None
        self._weth: Optional[WethContract] = None

    @property
    def web3(self) -> Web3:
        return self._web3

    @property
    def signer(self) -> Optional[EVMSigner]:
        return self._signer

    def set_signer(self, signer: Optional[EVMSigner]) -> None:
        self._signer = signer

    @property
    def sender(self) -> str:
        """Address transactions are sent from"""
        if self._signer is None:
            raise SignerError.not_configured()
        return self._signer.address

    # =========================================================================
    # Contract roles
    # =========================================================================

    @property
    def router_address(self) -> str:
        if not self._router_address:
            raise ConfigurationError.missing("ROUTER_ADDRESS")
        return self._router_address

    @property
    def router(self) -> RouterContract:
        if self._router is None:
            self._router = RouterContract(self._web3, self.router_address)
        return self._router

    @property
    def factory(self) -> FactoryContract:
        if self._factory is None:
            if not self._factory_address:
                raise ConfigurationError.missing("FACTORY_ADDRESS")
            self._factory = FactoryContract(self._web3, self._factory_address)
        return self._factory

    @property
    def weth_address(self) -> Optional[str]:
        return self._weth_address or None

    @property
    def weth(self) -> WethContract:
        if self._weth is None:
            if not self._weth_address:
                raise ConfigurationError.missing("WETH_ADDRESS")
            self._weth = WethContract(self._web3, self._weth_address)
        return self._weth

    def token(self, address: str) -> TokenContract:
        key = address.lower()
        with self._lock:
            if key not in self._tokens:
                self._tokens[key] = TokenContract(self._web3, address)
            return self._tokens[key]

    def pair(self, address: str) -> PairContract:
        key = address.lower()
        with self._lock:
            if key not in self._pairs:
                self._pairs[key] = PairContract(self._web3, address)
            return self._pairs[key]

    # =========================================================================
    # Transactions
    # =========================================================================

    def deadline(self) -> int:
        """Unix deadline for a transaction submitted now"""
        return int(time.time()) + global_config.evm.tx_deadline_seconds

    def tx_params(self, gas: int) -> Dict[str, Any]:
        """Base parameters for build_transaction"""
        return {"from": self.sender, "gas": gas}

    def send(self, tx: Dict[str, Any], label: str) -> TxResult:
        """
        Sign and send ``tx``, waiting for one confirmation

        Args:
            tx: Unsigned transaction from a contract role's build_* method
            label: Operation name for logs and error messages

        Returns:
            TxResult; a mined-but-reverted transaction is a failed result

        Raises:
            SignerError: no signer configured
            ContractCallFailed: gas pricing data could not be read
        """
        if self._signer is None:
            raise SignerError.not_configured()

        self._add_gas_price(tx)
        logger.info(f"Sending {label} from {self._signer.address[:10]}...")

        result = self._signer.sign_and_send(
            self._web3,
            tx,
            wait_for_receipt=True,
            timeout=global_config.evm.confirmation_timeout,
        )
        return self._result_to_tx_result(result, label)

    def _add_gas_price(self, tx: Dict[str, Any]) -> None:
        """EIP-1559 fees: twice the base fee plus the configured priority fee"""
        try:
            latest_block = self._web3.eth.get_block("latest")
        except Exception as e:
            raise ContractCallFailed.read("node", "getBlock", e) from e
        base_fee = latest_block.get("baseFeePerGas", 0)
        max_priority_fee = Web3.to_wei(global_config.evm.priority_fee_gwei, "gwei")
        tx["maxFeePerGas"] = int(base_fee * 2) + max_priority_fee
        tx["maxPriorityFeePerGas"] = max_priority_fee
        # build_transaction may have filled a legacy price
        tx.pop("gasPrice", None)

    def _result_to_tx_result(self, result: Dict[str, Any], label: str) -> TxResult:
        if result["status"] == "success":
            return TxResult.success(
                tx_hash=result["tx_hash"],
                block_number=result.get("block_number"),
                gas_used=result.get("gas_used"),
            )

        error = result.get("error") or f"{label} transaction reverted"
        is_recoverable, _, error_code = classify_error(error)
        return TxResult.failed(
            error=error,
            tx_hash=result.get("tx_hash"),
            recoverable=is_recoverable,
            error_code=error_code.value if error_code else None,
            block_number=result.get("block_number"),
            gas_used=result.get("gas_used"),
        )
