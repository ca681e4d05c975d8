"""
Debounced location auto-complete.

Each keystroke restarts a debounce timer. When the timer fires a lookup is
issued and tagged with a sequence number; only the response to the most
recently issued lookup is allowed to update the suggestions, so a slow
response for an older prefix can never overwrite a newer list.

All timers and lookups are tasks owned by the resolver instance and are
cancelled by clear() and close().
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence, Set

from .models import LocationSuggestion
from .utils import clean_text

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Awaitable[Sequence[LocationSuggestion]]]

DEFAULT_DEBOUNCE = 0.5
DEFAULT_TIMEOUT = 10.0


class ResolverState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    FETCHING = "fetching"
    RESOLVED = "resolved"
    FAILED = "failed"


class LocationResolver:
    """Turns free text into a selected location id via remote suggestions."""

    def __init__(
        self,
        lookup: Lookup,
        debounce: float = DEFAULT_DEBOUNCE,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        on_select: Optional[Callable[[str], None]] = None,
    ):
        self._lookup = lookup
        self.debounce = debounce
        self.timeout = timeout
        self.on_select = on_select

        self.state = ResolverState.IDLE
        self.text = ""
        self.suggestions: List[LocationSuggestion] = []
        self.generation = 0

        self._seq = 0
        self._timer: Optional[asyncio.Task] = None
        self._latest: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self.fetch_count = 0

    @property
    def busy(self) -> bool:
        return self.state == ResolverState.FETCHING

    def on_input(self, text: str) -> None:
        """Record a keystroke and restart the debounce timer."""
        self.generation += 1
        self.text = text or ""
        self._cancel_timer()
        if not clean_text(self.text):
            self._reset(keep_text=True)
            return
        self.state = ResolverState.DEBOUNCING
        self._timer = asyncio.get_running_loop().create_task(self._debounced(self.text))

    async def _debounced(self, text: str) -> None:
        await asyncio.sleep(self.debounce)
        self._timer = None
        self._issue(text)

    def _issue(self, text: str) -> None:
        self._seq += 1
        self.fetch_count += 1
        self.state = ResolverState.FETCHING
        task = asyncio.get_running_loop().create_task(self._fetch(self._seq, clean_text(text)))
        self._latest = task
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _fetch(self, seq: int, term: str) -> None:
        try:
            if self.timeout:
                results = await asyncio.wait_for(self._lookup(term), self.timeout)
            else:
                results = await self._lookup(term)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if seq != self._seq:
                logger.debug(f"Ignoring failure of stale lookup #{seq} for {term!r}")
                return
            logger.warning(f"Location lookup failed for {term!r}: {e}")
            self.suggestions = []
            if self.state == ResolverState.FETCHING:
                self.state = ResolverState.FAILED
            return

        if seq != self._seq:
            logger.debug(f"Discarding stale lookup #{seq} for {term!r} (latest is #{self._seq})")
            return
        self.suggestions = list(results or [])
        # a newer keystroke may already be debouncing
        if self.state == ResolverState.FETCHING:
            self.state = ResolverState.RESOLVED

    def select(self, suggestion: LocationSuggestion) -> str:
        """Accept a suggestion; the only way free text becomes a location id."""
        self._cancel_timer()
        # A lookup still in flight must not repopulate the list
        self._seq += 1
        self.generation += 1
        self.suggestions = []
        self.text = suggestion.display_name
        self.state = ResolverState.IDLE
        if self.on_select is not None:
            self.on_select(suggestion.id)
        return suggestion.id

    def find(self, suggestion_id: str) -> Optional[LocationSuggestion]:
        for s in self.suggestions:
            if s.id == suggestion_id:
                return s
        return None

    def clear(self) -> None:
        """Explicit clear action: drop text, timers, lookups and suggestions."""
        self.generation += 1
        self._cancel_timer()
        self._cancel_inflight()
        self._reset(keep_text=False)

    async def settle(self) -> List[LocationSuggestion]:
        """Wait for the pending timer and the latest lookup, then return suggestions."""
        while True:
            timer = self._timer
            if timer is not None and not timer.done():
                await asyncio.wait({timer})
                continue
            latest = self._latest
            if latest is not None and not latest.done():
                await asyncio.wait({latest})
                continue
            return self.suggestions

    def close(self) -> None:
        self._cancel_timer()
        self._cancel_inflight()
        self.state = ResolverState.IDLE

    def _reset(self, keep_text: bool) -> None:
        self._seq += 1
        if not keep_text:
            self.text = ""
        self.suggestions = []
        self.state = ResolverState.IDLE

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_inflight(self) -> None:
        for task in list(self._inflight):
            task.cancel()
        self._inflight.clear()
        self._latest = None
