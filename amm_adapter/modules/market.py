"""
Market Module

Pool directory: enumerates factory pairs and hands a selected pool to the
swap / deposit / redeem screens.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..types.pool import Pool
from ..types.intent import Operation, PendingOperation
from ..infra.handoff import OperationMailbox
from ..protocols.uniswap_v2.gateway import ContractGateway
from ..errors import AmmAdapterError
from ..config import config

logger = logging.getLogger(__name__)


class MarketModule:
    """
    Pool directory

    Provides:
    - Pool enumeration from the factory
    - Single pool queries
    - Selection handoff to the operation screens

    Usage:
        pools = client.market.list_pools()
        client.market.select(pools[0], Operation.SWAP)
        client.swap.load_pending()
    """

    def __init__(
        self,
        gateway: ContractGateway,
        mailbox: Optional[OperationMailbox] = None,
        workers: Optional[int] = None,
    ):
        """
        Args:
            gateway: Contract gateway
            mailbox: Handoff channel used by select()
            workers: Max concurrent pair fetches (default from config)
        """
        self._gateway = gateway
        self._mailbox = mailbox
        self._workers = max(1, workers or config.market.pool_fetch_workers)

    def pool_count(self) -> int:
        """Number of pairs the factory has created"""
        return self._gateway.factory.all_pairs_length()

    def pool(self, address: str) -> Pool:
        """
        Fetch one pair: tokens, symbols and reserves

        Raises:
            ContractCallFailed: Any read failed
        """
        pair = self._gateway.pair(address)
        token0 = pair.token0()
        token1 = pair.token1()
        symbol0 = self._gateway.token(token0).symbol()
        symbol1 = self._gateway.token(token1).symbol()
        reserve0, reserve1 = pair.get_reserves()
        return Pool(
            address=address,
            token0=token0,
            token1=token1,
            token0_symbol=symbol0,
            token1_symbol=symbol1,
            reserve0=reserve0,
            reserve1=reserve1,
        )

    def _fetch(self, index: int) -> Optional[Pool]:
        try:
            address = self._gateway.factory.all_pairs(index)
            return self.pool(address)
        except AmmAdapterError as e:
            logger.warning(f"Skipping pair #{index}: {e}")
            return None

    def list_pools(self) -> List[Pool]:
        """
        Fresh snapshot of every pair, in factory index order

        Pairs that fail to load are logged and left out.

        Raises:
            ContractCallFailed: The pair count could not be read
        """
        count = self.pool_count()
        if count == 0:
            return []

        logger.debug(f"Fetching {count} pairs with {min(self._workers, count)} workers")
        with ThreadPoolExecutor(max_workers=min(self._workers, count)) as executor:
            results = list(executor.map(self._fetch, range(count)))

        pools = [pool for pool in results if pool is not None]
        if len(pools) < count:
            logger.info(f"Loaded {len(pools)}/{count} pairs")
        return pools

    def find_pool(self, token_a: str, token_b: str) -> Optional[Pool]:
        """Pool for a token pair, None when the factory has no such pair"""
        address = self._gateway.factory.get_pair(token_a, token_b)
        if address is None:
            return None
        return self.pool(address)

    def select(self, pool: Pool, operation: Operation) -> PendingOperation:
        """Post ``pool`` to the handoff mailbox for the ``operation`` screen"""
        pending = PendingOperation.from_pool(pool, operation)
        if self._mailbox is not None:
            self._mailbox.post(pending)
        logger.info(f"Selected {pool.pair_name} for {operation.value}")
        return pending
