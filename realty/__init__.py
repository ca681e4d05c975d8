"""
Property search controller package.
"""
from .models import FilterState, ListingSummary, LocationSuggestion, PropertyDetail, Purpose, SortOrder
from .filters import FilterStore
from .urlsync import NavigationError, UrlSync
from .location import LocationResolver, ResolverState
from .presenter import ImageSlot, ImageState, ListingView, present_listing
from .orchestrator import SearchOrchestrator, SubmitResult
from .client import ListingsApiError, ListingsClient

__version__ = "1.0.0"

__all__ = [
    "FilterState",
    "ListingSummary",
    "LocationSuggestion",
    "PropertyDetail",
    "Purpose",
    "SortOrder",
    "FilterStore",
    "NavigationError",
    "UrlSync",
    "LocationResolver",
    "ResolverState",
    "ImageSlot",
    "ImageState",
    "ListingView",
    "present_listing",
    "SearchOrchestrator",
    "SubmitResult",
    "ListingsApiError",
    "ListingsClient",
]
