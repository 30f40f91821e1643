from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ManifestReloader(Generic[T]):
    """Coalesces overlapping manifest loads: the latest request wins.

    Each load takes a ticket with `begin()`. When its raw manifest arrives it is handed to
    `complete()`, which applies it only if no newer ticket was issued in the meantime.
    Results of superseded loads are discarded on arrival.
    """

    def __init__(self, *, apply: Callable[[object], T]) -> None:
        self._apply = apply
        self._latest = 0
        self._lock = threading.Lock()

    @property
    def latest_ticket(self) -> int:
        return self._latest

    def begin(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest

    def complete(self, ticket: int, raw: object) -> T | None:
        """Apply `raw` if `ticket` is still the latest; returns the apply result or None."""

        with self._lock:
            if ticket != self._latest:
                logger.info("Discarding stale manifest load #%d (latest is #%d)", ticket, self._latest)
                return None
            return self._apply(raw)

    async def reload(self, fetch: Callable[[], Awaitable[object]]) -> T | None:
        ticket = self.begin()
        try:
            raw = await fetch()
        except Exception:
            if not self.is_current(ticket):
                logger.info("Ignoring failure of stale manifest load #%d", ticket)
                return None
            raise
        return self.complete(ticket, raw)
