"""
Search orchestration: one coordinator per search page.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .filters import FilterStore
from .location import DEFAULT_DEBOUNCE, DEFAULT_TIMEOUT, LocationResolver, Lookup
from .models import FilterState
from .urlsync import NavigationError, Navigator, UrlSync

logger = logging.getLogger(__name__)

TOAST_DURATION_MS = 3000


@dataclass
class Notification:
    """Transient, closable message shown to the user."""

    status: str
    title: str
    description: str
    duration: int = TOAST_DURATION_MS
    is_closable: bool = True


@dataclass
class SubmitResult:
    ok: bool
    url: Optional[str] = None
    error: Optional[str] = None


class Overlay:
    """Open/closed state of a transient panel such as the mobile filter drawer."""

    def __init__(self):
        self.is_open = False

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False


@dataclass
class SearchOrchestrator:
    """Wires the filter store to location lookup and URL navigation."""

    store: FilterStore
    urlsync: UrlSync
    location: LocationResolver
    query: Dict[str, Any] = field(default_factory=dict)
    overlay: Overlay = field(default_factory=Overlay)
    notifications: List[Notification] = field(default_factory=list)

    def __post_init__(self):
        self.location.on_select = self.store.select_location

    @classmethod
    def from_query(
        cls,
        query: Mapping[str, Any],
        lookup: Lookup,
        navigator: Optional[Navigator] = None,
        path: str = "/search",
        debounce: float = DEFAULT_DEBOUNCE,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> "SearchOrchestrator":
        """Hydrate a new coordinator from the query string of a freshly loaded page."""
        urlsync = UrlSync(navigator, path=path)
        return cls(
            store=FilterStore(urlsync.hydrate(query)),
            urlsync=urlsync,
            location=LocationResolver(lookup, debounce=debounce, timeout=timeout),
            query=dict(query),
        )

    @property
    def filters(self) -> FilterState:
        return self.store.get()

    async def submit(self, from_overlay: bool = False) -> SubmitResult:
        """Navigate to the URL of the current filters and report the outcome."""
        snapshot = self.store.get()
        try:
            url = await self.urlsync.commit(snapshot, self.query)
        except NavigationError as e:
            logger.warning(f"Failed to apply filters: {e}")
            self.notify("error", "Error", "Failed to apply filters. Please try again.")
            return SubmitResult(ok=False, error=str(e))

        if from_overlay:
            self.overlay.close()
        self.notify("success", "Filters Applied", "Showing properties matching your criteria")
        return SubmitResult(ok=True, url=url)

    def notify(self, status: str, title: str, description: str) -> Notification:
        notification = Notification(status=status, title=title, description=description)
        self.notifications.append(notification)
        return notification

    def drain_notifications(self) -> List[Notification]:
        pending, self.notifications = self.notifications, []
        return pending

    def close(self) -> None:
        self.location.close()
        self.overlay.close()
