"""
Filter state store for the property search form.

The store owns the live FilterState of one search page. Every mutation
returns a new frozen snapshot; values coming from form controls are coerced
and clamped here so that the rest of the controller only ever sees valid
state. Nothing in this module navigates or talks to the network.
"""
import logging
from dataclasses import replace
from typing import Any, List

from .models import (
    BATHS_MAX,
    CATEGORIES,
    DEFAULT_FILTERS,
    PRICE_CEILING,
    ROOMS_MAX,
    FilterState,
    Purpose,
    SortOrder,
)
from .utils import to_int

logger = logging.getLogger(__name__)

# Upper bound per numeric field; None means unbounded
NUMERIC_BOUNDS = {
    "min_price": PRICE_CEILING,
    "max_price": PRICE_CEILING,
    "rooms_min": ROOMS_MAX,
    "baths_min": BATHS_MAX,
    "area_min": None,
}


def clamp(value: int, upper) -> int:
    value = max(0, value)
    if upper is not None:
        value = min(value, upper)
    return value


def coerce_purpose(value: Any) -> Purpose:
    try:
        return Purpose(value)
    except ValueError:
        return DEFAULT_FILTERS.purpose


def coerce_sort(value: Any) -> SortOrder:
    try:
        return SortOrder(value)
    except ValueError:
        return DEFAULT_FILTERS.sort


def coerce_category(value: Any) -> int:
    parsed = to_int(value)
    if parsed is None or parsed <= 0:
        return DEFAULT_FILTERS.category_external_id
    return parsed


def normalize_prices(state: FilterState, anchor: str = "max_price") -> FilterState:
    """Restore min_price <= max_price by moving the bound that is not `anchor`."""
    if state.min_price <= state.max_price:
        return state
    if anchor == "min_price":
        return replace(state, max_price=state.min_price)
    return replace(state, min_price=state.max_price)


class FilterStore:
    """Owns the canonical filter values of one search context."""

    def __init__(self, initial: FilterState = DEFAULT_FILTERS):
        self._state = normalize_prices(initial)

    def get(self) -> FilterState:
        return self._state

    def set(self, name: str, value: Any) -> FilterState:
        """
        Set one field from raw control input and return the new state.

        Unparseable numbers fall back to 0 (category falls back to its
        default) and out-of-range numbers are clamped. When a price bound
        crosses the other one, the other bound is moved onto it.
        """
        if name not in NUMERIC_BOUNDS and name not in ("purpose", "sort", "category_external_id"):
            if name == "location_external_ids":
                raise ValueError("location can only be set from a selected suggestion")
            raise KeyError(name)

        if name == "purpose":
            new = replace(self._state, purpose=coerce_purpose(value))
        elif name == "sort":
            new = replace(self._state, sort=coerce_sort(value))
        elif name == "category_external_id":
            new = replace(self._state, category_external_id=coerce_category(value))
        else:
            parsed = to_int(value)
            if parsed is None:
                logger.debug(f"Unparseable value for {name}: {value!r}, using 0")
                parsed = 0
            new = replace(self._state, **{name: clamp(parsed, NUMERIC_BOUNDS[name])})
            new = normalize_prices(new, anchor=name)

        self._state = new
        return new

    def set_price_range(self, min_price: Any, max_price: Any) -> FilterState:
        """Set both price bounds at once, as a range slider does."""
        low = clamp(to_int(min_price) or 0, PRICE_CEILING)
        high = clamp(to_int(max_price) or 0, PRICE_CEILING)
        self._state = normalize_prices(replace(self._state, min_price=low, max_price=high))
        return self._state

    def select_location(self, external_id: str) -> FilterState:
        self._state = replace(self._state, location_external_ids=str(external_id or ""))
        return self._state

    def clear_location(self) -> FilterState:
        return self.select_location("")

    def reset(self) -> FilterState:
        self._state = DEFAULT_FILTERS
        return self._state

    def is_active(self) -> bool:
        """True when any field differs from its default. Display only."""
        return self._state != DEFAULT_FILTERS

    def active_labels(self) -> List[str]:
        """Human-readable chips for every non-default filter."""
        s = self._state
        labels = []
        if s.purpose != DEFAULT_FILTERS.purpose:
            labels.append("For Sale" if s.purpose == Purpose.FOR_SALE else "For Rent")
        if s.sort != DEFAULT_FILTERS.sort:
            labels.append(f"Sort: {SORT_LABELS[s.sort]}")
        if s.location_external_ids:
            labels.append("Location Selected")
        if s.min_price > 0:
            labels.append(f"Min Price: AED {s.min_price:,}")
        if s.max_price < PRICE_CEILING:
            labels.append(f"Max Price: AED {s.max_price:,}")
        if s.rooms_min > 0:
            labels.append(f"Min Beds: {s.rooms_min}+")
        if s.baths_min > 0:
            labels.append(f"Min Baths: {s.baths_min}+")
        if s.area_min > 0:
            labels.append(f"Min Area: {s.area_min:,} sqft")
        if s.category_external_id != DEFAULT_FILTERS.category_external_id:
            labels.append(CATEGORIES.get(s.category_external_id, f"Type {s.category_external_id}"))
        return labels


SORT_LABELS = {
    SortOrder.PRICE_DESC: "Price (High to Low)",
    SortOrder.PRICE_ASC: "Price (Low to High)",
    SortOrder.DATE_DESC: "Newest First",
}
