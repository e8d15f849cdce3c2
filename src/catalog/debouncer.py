"""
Search-as-you-type with a debounce window.

Each keystroke invalidates the previously scheduled search and schedules a
new one; only a keystroke followed by a quiet window reaches the network.
Searches that have already been sent are not cancelled. Instead each one is
numbered when it is issued, and a response is applied to the catalog only
if no newer search has been issued since. A slow answer to "ab" can never
overwrite the answer to "abc".
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Set

from api.errors import StorefrontError
from api.models import Product
from cart.events import CatalogChanged, Emit, Notice, ignore
from catalog.store import ProductCatalogStore
from utils.logger import get_logger

_logger = get_logger(__name__)

SearchFn = Callable[[str], Awaitable[List[Product]]]


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    """Anything with ``call_later``; the running asyncio loop by default."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class DebounceToken:
    """
    Owned handle on one scheduled search. Cancelling it before the window
    elapses stops the search from being sent. ``seq`` is assigned once the
    search is actually issued.
    """

    def __init__(self, text: str):
        self.text = text
        self.seq: Optional[int] = None
        self.cancelled = False
        self._timer: Optional[TimerHandle] = None

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    @property
    def fired(self) -> bool:
        return self.seq is not None

    def __repr__(self) -> str:
        return f"DebounceToken(text={self.text!r}, seq={self.seq}, cancelled={self.cancelled})"


class SearchDebouncer:
    def __init__(
        self,
        search: SearchFn,
        catalog: ProductCatalogStore,
        delay: float = 0.5,
        emit: Emit = ignore,
        scheduler: Optional[Scheduler] = None,
    ):
        self._search = search
        self._catalog = catalog
        self.delay = delay
        self.emit = emit
        self._scheduler = scheduler
        self._token: Optional[DebounceToken] = None
        self._issued = 0
        self._in_flight: Set[asyncio.Task] = set()
        self.discarded = 0

    @property
    def latest_seq(self) -> int:
        return self._issued

    @property
    def pending(self) -> Optional[DebounceToken]:
        """The scheduled search that has not fired yet, if any."""
        token = self._token
        if token is None or token.cancelled or token.fired:
            return None
        return token

    def issue(self) -> int:
        """
        Number a catalog write. Searches call this when they fire; a full
        catalog reload calls it too so it is ordered against searches.
        """
        self._issued += 1
        return self._issued

    def is_latest(self, seq: int) -> bool:
        return seq == self._issued

    def on_input(self, text: str) -> DebounceToken:
        if self._token is not None:
            self._token.cancel()

        scheduler = self._scheduler or asyncio.get_running_loop()
        token = DebounceToken(text)
        token._timer = scheduler.call_later(self.delay, partial(self._fire, token))
        self._token = token
        return token

    def cancel(self) -> None:
        """Drop the scheduled search and ignore any response still in flight."""
        if self._token is not None:
            self._token.cancel()
            self._token = None
        # bumping the counter makes every outstanding response stale
        self._issued += 1

    async def drain(self) -> None:
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def _fire(self, token: DebounceToken) -> None:
        if token.cancelled:
            return
        token.seq = self.issue()
        _logger.debug(f"Search #{token.seq} issued for {token.text!r}")

        task = asyncio.get_running_loop().create_task(self._run(token.seq, token.text))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run(self, seq: int, text: str) -> None:
        try:
            products = await self._search(text)
        except StorefrontError as e:
            if not self.is_latest(seq):
                _logger.debug(f"Search #{seq} failed but is stale, ignoring")
                return
            _logger.warning(f"Search #{seq} for {text!r} failed: {e.message}")
            self.emit(Notice.from_error(e))
            return

        if not self.is_latest(seq):
            self.discarded += 1
            _logger.debug(f"Discarding stale response #{seq}, latest is #{self._issued}")
            return

        self._catalog.replace(products, query=text)
        self.emit(CatalogChanged(text))
