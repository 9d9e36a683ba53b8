"""
Connected account state and stale-response guarding

AccountState is the single owner of "which account is connected".
Components subscribe to changes instead of caching the address, and every
change bumps an epoch so in-flight reads started for the old account can
be recognised and dropped.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Hashable, Iterator, List, Optional, Tuple

from ..errors import StaleResponse

logger = logging.getLogger(__name__)

AccountListener = Callable[[Optional[str]], None]


class AccountState:
    """
    Observable holder of the connected account address

    Usage:
        state = AccountState()
        unsubscribe = state.subscribe(lambda addr: print("now", addr))
        state.set("0xabc...")
        unsubscribe()
    """

    def __init__(self, address: Optional[str] = None):
        self._lock = threading.Lock()
        self._address = address
        self._epoch = 0
        self._listeners: List[AccountListener] = []

    @property
    def current(self) -> Optional[str]:
        return self._address

    @property
    def epoch(self) -> int:
        """Incremented on every account change"""
        return self._epoch

    @property
    def is_connected(self) -> bool:
        return self._address is not None

    def set(self, address: Optional[str]) -> None:
        """Switch account; listeners run only when the address actually changes"""
        with self._lock:
            old = self._address
            if (old or "").lower() == (address or "").lower():
                return
            self._address = address
            self._epoch += 1
            listeners = list(self._listeners)

        logger.info(f"Account changed: {old} -> {address}")
        for listener in listeners:
            try:
                listener(address)
            except Exception:
                logger.exception(f"Account listener {listener!r} failed")

    def clear(self) -> None:
        self.set(None)

    def subscribe(self, listener: AccountListener) -> Callable[[], None]:
        """Register a listener; returns the function that unregisters it"""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


_account_state = AccountState()


def get_account_state() -> AccountState:
    """Process-wide account state"""
    return _account_state


@dataclass(frozen=True)
class Ticket:
    """Identity of one refresh: account epoch, input generation and input snapshot"""
    epoch: int
    generation: int
    snapshot: Tuple[Hashable, ...]


class RelevanceGuard:
    """
    Drops remote results whose inputs changed while they were in flight

    Usage:
        ticket = guard.issue(self._snapshot())
        reserves = pair.get_reserves()           # slow remote read
        with guard.commit(ticket, self._snapshot()):
            self._reserves = reserves            # only if still relevant
    """

    def __init__(self, account_state: AccountState, label: str = "response"):
        self._account_state = account_state
        self._label = label
        self._lock = threading.RLock()
        self._generation = 0

    def issue(self, snapshot: Tuple[Hashable, ...] = ()) -> Ticket:
        with self._lock:
            return Ticket(self._account_state.epoch, self._generation, tuple(snapshot))

    def invalidate(self) -> None:
        """Mark every outstanding ticket stale (call on any input change)"""
        with self._lock:
            self._generation += 1

    def is_current(self, ticket: Ticket, snapshot: Optional[Tuple[Hashable, ...]] = None) -> bool:
        with self._lock:
            if ticket.epoch != self._account_state.epoch:
                return False
            if ticket.generation != self._generation:
                return False
            return snapshot is None or tuple(snapshot) == ticket.snapshot

    @contextmanager
    def commit(self, ticket: Ticket, snapshot: Optional[Tuple[Hashable, ...]] = None) -> Iterator[None]:
        """
        Hold the guard while committing; raises StaleResponse if the ticket is outdated
        """
        with self._lock:
            if not self.is_current(ticket, snapshot):
                raise StaleResponse(self._label)
            yield
