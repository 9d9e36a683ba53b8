"""
EVM Transaction Signer using web3.py

Local private-key signing for the AMM contracts, with a thread-safe nonce
manager so an approval and the operation that follows it never collide.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional, Dict, Any, Set

from web3 import Web3, HTTPProvider
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..config import config
from ..errors import SignerError

logger = logging.getLogger(__name__)

# Errors raised before the transaction reached the mempool; the nonce is reusable
_PRE_SEND_ERRORS = (
    "nonce too low",
    "replacement transaction",
    "insufficient funds",
    "gas too low",
    "invalid sender",
)


class NonceManager:
    """
    Thread-safe nonce manager for EVM transactions.

    Usage:
        nonce = nonce_mgr.get_nonce(web3, address)
        # ... send transaction ...
        nonce_mgr.confirm_nonce(address, nonce)  # On success
        nonce_mgr.release_nonce(address, nonce)  # On failure before broadcast
    """

    def __init__(self):
        self._lock = threading.Lock()
        # {address: next_nonce}
        self._pending_nonces: Dict[str, int] = {}
        # {address: nonces sent but not yet confirmed}
        self._in_flight: Dict[str, Set[int]] = {}

    def get_nonce(self, web3: Web3, address: str) -> int:
        """Next available nonce, the higher of chain-pending and locally tracked"""
        key = address.lower()

        with self._lock:
            chain_nonce = web3.eth.get_transaction_count(Web3.to_checksum_address(address), "pending")
            tracked_nonce = self._pending_nonces.get(key, chain_nonce)
            next_nonce = max(chain_nonce, tracked_nonce)

            self._pending_nonces[key] = next_nonce + 1
            self._in_flight.setdefault(key, set()).add(next_nonce)

            logger.debug(
                f"NonceManager: address={key[:10]}... "
                f"chain={chain_nonce} tracked={tracked_nonce} assigned={next_nonce}"
            )
            return next_nonce

    def confirm_nonce(self, address: str, nonce: int) -> None:
        with self._lock:
            self._in_flight.get(address.lower(), set()).discard(nonce)

    def release_nonce(self, address: str, nonce: int) -> None:
        """Give back a nonce whose transaction never left this process"""
        key = address.lower()

        with self._lock:
            self._in_flight.get(key, set()).discard(nonce)
            if nonce == self._pending_nonces.get(key, 0) - 1:
                self._pending_nonces[key] = nonce
                logger.debug(f"NonceManager: released nonce {nonce} for {key[:10]}...")

    def reset(self, address: Optional[str] = None) -> None:
        """Forget tracked nonces so the next call re-syncs with the chain"""
        with self._lock:
            if address:
                self._pending_nonces.pop(address.lower(), None)
                self._in_flight.pop(address.lower(), None)
            else:
                self._pending_nonces.clear()
                self._in_flight.clear()


# Shared across all EVMSigner instances
_nonce_manager = NonceManager()


def get_nonce_manager() -> NonceManager:
    return _nonce_manager


class EVMSigner:
    """
    Local EVM signer

    Usage:
        signer = EVMSigner.from_private_key("0x...")
        signer = EVMSigner.from_env()
        result = signer.sign_and_send(web3, tx_dict)
    """

    def __init__(self, account: LocalAccount, nonce_manager: Optional[NonceManager] = None):
        self._account = account
        self._nonces = nonce_manager or _nonce_manager

    @property
    def address(self) -> str:
        """Checksummed wallet address"""
        return self._account.address

    def sign_and_send(
        self,
        web3: Web3,
        tx_dict: Dict[str, Any],
        wait_for_receipt: bool = True,
        timeout: int = 120,
    ) -> Dict[str, Any]:
        """
        Sign, broadcast and optionally wait for one receipt

        Returns:
            Dict with status ("success" | "failed" | "pending"), tx_hash and,
            once mined, block_number and gas_used. Failures carry "error".
        """
        nonce = None
        nonce_from_manager = False

        try:
            if "nonce" not in tx_dict:
                nonce = self._nonces.get_nonce(web3, self.address)
                tx_dict["nonce"] = nonce
                nonce_from_manager = True
            else:
                nonce = tx_dict["nonce"]

            if "chainId" not in tx_dict:
                tx_dict["chainId"] = config.chain.chain_id or web3.eth.chain_id

            signed = self._account.sign_transaction(tx_dict)
            tx_hash = web3.eth.send_raw_transaction(signed.raw_transaction)

            if nonce_from_manager:
                self._nonces.confirm_nonce(self.address, nonce)

            if not wait_for_receipt:
                return {"status": "pending", "tx_hash": tx_hash.hex()}

            receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
            return {
                "status": "success" if receipt["status"] == 1 else "failed",
                "tx_hash": tx_hash.hex(),
                "block_number": receipt["blockNumber"],
                "gas_used": receipt["gasUsed"],
            }

        except Exception as e:
            error_str = str(e).lower()
            if nonce_from_manager and any(keyword in error_str for keyword in _PRE_SEND_ERRORS):
                self._nonces.release_nonce(self.address, nonce)

            logger.error(f"Transaction failed: {e}")
            return {
                "status": "failed",
                "error": str(e),
                "tx_hash": None,
            }

    @classmethod
    def from_private_key(cls, private_key: str) -> "EVMSigner":
        """Create signer from a hex private key (with or without 0x prefix)"""
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        try:
            account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise SignerError.failed(f"invalid private key: {e}") from e
        return cls(account)

    @classmethod
    def from_env(cls, env_var: str = "EVM_PRIVATE_KEY") -> "EVMSigner":
        private_key = os.getenv(env_var, "")
        if not private_key:
            raise SignerError.not_configured()
        return cls.from_private_key(private_key)

    @classmethod
    def from_keystore(cls, keystore_path: str, password: str) -> "EVMSigner":
        """Create signer from an encrypted keystore JSON file"""
        with open(keystore_path, "r") as f:
            keystore = f.read()
        private_key = Account.decrypt(keystore, password)
        return cls(Account.from_key(private_key))

    def __repr__(self) -> str:
        return f"EVMSigner(address={self.address})"


def create_web3(
    rpc_url: str,
    timeout: int = 30,
) -> Web3:
    """Web3 instance over HTTP with a request timeout"""
    provider = HTTPProvider(
        rpc_url,
        request_kwargs={"timeout": timeout},
    )
    return Web3(provider)


def create_evm_signer(
    private_key: Optional[str] = None,
    keystore_path: Optional[str] = None,
    keystore_password: Optional[str] = None,
) -> EVMSigner:
    """
    Create EVM signer

    Priority:
    1. private_key
    2. keystore_path + keystore_password
    3. EVM_PRIVATE_KEY environment variable

    Raises:
        SignerError: If no signer configuration found
    """
    if private_key is not None:
        return EVMSigner.from_private_key(private_key)

    if keystore_path is not None and keystore_password is not None:
        return EVMSigner.from_keystore(keystore_path, keystore_password)

    return EVMSigner.from_env()
