"""
Live search pages.

Every rendered /search page gets its own SearchOrchestrator, hydrated from
the page URL and addressed by an opaque page id embedded in the HTML. The
registry keeps a bounded number of pages and closes the ones it evicts.
"""
import logging
import uuid
from collections import OrderedDict
from typing import Any, List, Mapping, Optional, Sequence
from urllib.parse import urlsplit

from realty.location import Lookup
from realty.orchestrator import SearchOrchestrator
from realty.presenter import ImageSlot, ListingView
from realty.urlsync import NavigationError

logger = logging.getLogger(__name__)


class RedirectNavigator:
    """Records the target URL so the route can answer with an HX-Redirect."""

    def __init__(self, allowed_paths: Sequence[str] = ("/search",), max_length: int = 2000):
        self.allowed_paths = tuple(allowed_paths)
        self.max_length = max_length
        self.location: Optional[str] = None

    async def push(self, url: str) -> None:
        path = urlsplit(url).path
        if path not in self.allowed_paths:
            raise NavigationError(f"Unknown route: {path}")
        if len(url) > self.max_length:
            raise NavigationError(f"URL exceeds {self.max_length} characters")
        self.location = url

    def take(self) -> Optional[str]:
        location, self.location = self.location, None
        return location


class SearchPage:
    """State of one rendered search page."""

    def __init__(self, page_id: str, orchestrator: SearchOrchestrator, navigator: RedirectNavigator):
        self.page_id = page_id
        self.orchestrator = orchestrator
        self.navigator = navigator
        self.slots: List[ImageSlot] = []

    def bind_cards(self, views: Sequence[ListingView]) -> List[ImageSlot]:
        """Bind result cards to image slots, reusing slots by position."""
        while len(self.slots) < len(views):
            self.slots.append(ImageSlot())
        for slot, view in zip(self.slots, views):
            slot.bind(view.external_id, view.cover_photo_url)
        return self.slots[:len(views)]

    def slot_for(self, index: int, external_id: str) -> Optional[ImageSlot]:
        """The slot at `index`, if it still shows `external_id`."""
        if not 0 <= index < len(self.slots):
            return None
        slot = self.slots[index]
        return slot if slot.external_id == external_id else None

    def close(self) -> None:
        self.orchestrator.close()


class PageRegistry:
    """Bounded, insertion-ordered store of live search pages."""

    def __init__(self, max_pages: int = 256):
        self.max_pages = max_pages
        self._pages: "OrderedDict[str, SearchPage]" = OrderedDict()

    def create(
        self,
        query: Mapping[str, Any],
        lookup: Lookup,
        debounce: float = 0.5,
        timeout: Optional[float] = 10.0,
        max_url_length: int = 2000,
    ) -> SearchPage:
        navigator = RedirectNavigator(max_length=max_url_length)
        orchestrator = SearchOrchestrator.from_query(
            query,
            lookup=lookup,
            navigator=navigator,
            debounce=debounce,
            timeout=timeout,
        )
        page = SearchPage(uuid.uuid4().hex, orchestrator, navigator)
        self._pages[page.page_id] = page

        while len(self._pages) > self.max_pages:
            _, evicted = self._pages.popitem(last=False)
            logger.debug(f"Evicting search page {evicted.page_id}")
            evicted.close()
        return page

    def get(self, page_id: str) -> Optional[SearchPage]:
        page = self._pages.get(page_id)
        if page is not None:
            self._pages.move_to_end(page_id)
        return page

    def discard(self, page_id: str) -> None:
        page = self._pages.pop(page_id, None)
        if page is not None:
            page.close()

    def close_all(self) -> None:
        for page in self._pages.values():
            page.close()
        self._pages.clear()

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, page_id: str) -> bool:
        return page_id in self._pages
