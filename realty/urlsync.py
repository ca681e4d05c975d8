"""
Query-string synchronization for the search filters.

hydrate() turns the query parameters of a freshly loaded page into a
FilterState; commit() serializes a state back into a URL and hands it to a
navigator. Parameters the filters do not own are carried over untouched.
"""
import logging
from typing import Any, Dict, Mapping, Optional, Protocol
from urllib.parse import urlencode

from .filters import (
    NUMERIC_BOUNDS,
    clamp,
    coerce_category,
    coerce_purpose,
    coerce_sort,
    normalize_prices,
)
from .models import DEFAULT_FILTERS, FilterState
from .utils import to_int

logger = logging.getLogger(__name__)

# FilterState field -> query parameter name
QUERY_PARAMS: Dict[str, str] = {
    "purpose": "purpose",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "rooms_min": "roomsMin",
    "baths_min": "bathsMin",
    "sort": "sort",
    "area_min": "areaMin",
    "category_external_id": "categoryExternalID",
    "location_external_ids": "locationExternalIDs",
}


class NavigationError(Exception):
    """Raised when a navigation to a new URL cannot be performed."""


class Navigator(Protocol):
    async def push(self, url: str) -> None:
        ...


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def state_to_query(state: FilterState) -> Dict[str, str]:
    """Serialize a state into flat string query parameters."""
    query = {
        "purpose": state.purpose.value,
        "minPrice": str(state.min_price),
        "maxPrice": str(state.max_price),
        "roomsMin": str(state.rooms_min),
        "bathsMin": str(state.baths_min),
        "sort": state.sort.value,
        "areaMin": str(state.area_min),
        "categoryExternalID": str(state.category_external_id),
    }
    if state.location_external_ids:
        query["locationExternalIDs"] = state.location_external_ids
    return query


class UrlSync:
    """Bidirectional adapter between filter state and the page URL."""

    def __init__(self, navigator: Optional[Navigator] = None, path: str = "/search"):
        self.navigator = navigator
        self.path = path

    def hydrate(self, query: Mapping[str, Any]) -> FilterState:
        """Build a FilterState from query parameters; bad or missing values use defaults."""
        values: Dict[str, Any] = {}
        for name, param in QUERY_PARAMS.items():
            raw = _first(query.get(param))
            if raw is None or raw == "":
                continue
            if name == "purpose":
                values[name] = coerce_purpose(raw)
            elif name == "sort":
                values[name] = coerce_sort(raw)
            elif name == "category_external_id":
                values[name] = coerce_category(raw)
            elif name == "location_external_ids":
                values[name] = str(raw)
            else:
                parsed = to_int(raw)
                if parsed is None:
                    logger.debug(f"Ignoring unparseable {param}={raw!r}")
                    continue
                values[name] = clamp(parsed, NUMERIC_BOUNDS[name])

        defaults = {name: getattr(DEFAULT_FILTERS, name) for name in QUERY_PARAMS}
        defaults.update(values)
        return normalize_prices(FilterState(**defaults))

    def build_query(self, state: FilterState, current_query: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Merge the state's parameters over the parameters it does not own."""
        owned = set(QUERY_PARAMS.values())
        merged: Dict[str, Any] = {
            k: v for k, v in (current_query or {}).items() if k not in owned
        }
        merged.update(state_to_query(state))
        return merged

    def target_url(self, state: FilterState, current_query: Optional[Mapping[str, Any]] = None) -> str:
        return f"{self.path}?{urlencode(self.build_query(state, current_query), doseq=True)}"

    async def commit(self, state: FilterState, current_query: Optional[Mapping[str, Any]] = None) -> str:
        """Navigate to the URL for `state`; raises NavigationError on failure."""
        url = self.target_url(state, current_query)
        if self.navigator is None:
            raise NavigationError("No navigator attached")
        try:
            await self.navigator.push(url)
        except NavigationError:
            raise
        except Exception as e:
            raise NavigationError(str(e)) from e
        logger.info(f"Navigated to {url}")
        return url
