"""
Data models for the property search controller.
"""
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .utils import parse_timestamp, to_float, to_int


class Purpose(str, Enum):
    FOR_RENT = "for-rent"
    FOR_SALE = "for-sale"


class SortOrder(str, Enum):
    PRICE_DESC = "price-desc"
    PRICE_ASC = "price-asc"
    DATE_DESC = "date-desc"


PRICE_CEILING = 1_000_000
ROOMS_MAX = 6
BATHS_MAX = 5
DEFAULT_CATEGORY_ID = 4

# Property types offered by the search form
CATEGORIES: Dict[int, str] = {
    4: "Apartment",
    16: "Villa",
    3: "Townhouse",
}


@dataclass(frozen=True)
class FilterState:
    """Snapshot of every search filter field."""

    purpose: Purpose = Purpose.FOR_RENT
    min_price: int = 0
    max_price: int = PRICE_CEILING
    rooms_min: int = 0
    baths_min: int = 0
    area_min: int = 0
    category_external_id: int = DEFAULT_CATEGORY_ID
    sort: SortOrder = SortOrder.PRICE_DESC
    location_external_ids: str = ""

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


DEFAULT_FILTERS = FilterState()


@dataclass(frozen=True)
class LocationSuggestion:
    """A location returned by the auto-complete endpoint."""

    id: str
    display_name: str
    hierarchy: Tuple[str, ...] = ()

    @property
    def breadcrumb(self) -> str:
        return ", ".join(self.hierarchy)

    @classmethod
    def from_api(cls, hit: Dict[str, Any]) -> "LocationSuggestion":
        hierarchy = tuple(
            h.get("name", "") for h in (hit.get("hierarchy") or [])
            if isinstance(h, dict) and h.get("name")
        )
        return cls(
            id=str(hit.get("externalID") or hit.get("id") or ""),
            display_name=hit.get("name") or "",
            hierarchy=hierarchy,
        )


@dataclass
class Agency:
    name: str = ""
    logo_url: Optional[str] = None


@dataclass
class ListingSummary:
    """Represents a property listing as returned by the listings API."""

    external_id: str
    title: str = ""
    price: float = 0
    rent_frequency: Optional[str] = None
    rooms: int = 0
    baths: int = 0
    area: float = 0
    score: float = 0
    created_at: Optional[datetime] = None
    purpose: Optional[str] = None
    furnishing_status: Optional[str] = None
    is_verified: bool = False
    cover_photo_url: Optional[str] = None
    agency: Agency = field(default_factory=Agency)

    @classmethod
    def from_api(cls, hit: Dict[str, Any]) -> "ListingSummary":
        """Build a listing from an API hit, tolerating missing or malformed fields."""
        return cls(**_summary_kwargs(hit))


@dataclass
class PropertyDetail(ListingSummary):
    """Full property record used by the detail page."""

    description: str = ""
    type: str = ""
    amenities: List[str] = field(default_factory=list)
    photos: List[str] = field(default_factory=list)
    phone_number: str = ""
    contact_name: str = ""
    location: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PropertyDetail":
        amenities = []
        for group in data.get("amenities") or []:
            if not isinstance(group, dict):
                continue
            nested = group.get("amenities")
            if nested:
                amenities.extend(a.get("text", "") for a in nested if isinstance(a, dict) and a.get("text"))
            elif group.get("text"):
                amenities.append(group["text"])

        photos = [p.get("url") for p in data.get("photos") or [] if isinstance(p, dict) and p.get("url")]
        phone = data.get("phoneNumber") or {}
        if isinstance(phone, dict):
            phone = phone.get("mobile") or phone.get("phone") or ""

        return cls(
            **_summary_kwargs(data),
            description=data.get("description") or "",
            type=data.get("type") or "",
            amenities=amenities,
            photos=photos,
            phone_number=str(phone or ""),
            contact_name=data.get("contactName") or "",
            location=[l.get("name", "") for l in data.get("location") or [] if isinstance(l, dict) and l.get("name")],
        )

    @classmethod
    def unavailable(cls, external_id: str) -> "PropertyDetail":
        """Placeholder record shown when the detail request fails."""
        return cls(
            external_id=external_id,
            title="Property information unavailable",
            description="Property details could not be loaded at this time.",
        )


def _summary_kwargs(hit: Dict[str, Any]) -> Dict[str, Any]:
    cover = hit.get("coverPhoto") or {}
    agency = hit.get("agency") or {}
    if not isinstance(agency, dict):
        agency = {}
    logo = agency.get("logo") or {}
    return {
        "external_id": str(hit.get("externalID") or hit.get("id") or ""),
        "title": hit.get("title") or "",
        "price": to_float(hit.get("price")) or 0,
        "rent_frequency": hit.get("rentFrequency") or None,
        "rooms": to_int(hit.get("rooms")) or 0,
        "baths": to_int(hit.get("baths")) or 0,
        "area": to_float(hit.get("area")) or 0,
        "score": to_float(hit.get("score")) or 0,
        "created_at": parse_timestamp(hit.get("createdAt")),
        "purpose": hit.get("purpose") or None,
        "furnishing_status": hit.get("furnishingStatus") or None,
        "is_verified": bool(hit.get("isVerified")),
        "cover_photo_url": cover.get("url") if isinstance(cover, dict) else None,
        "agency": Agency(
            name=agency.get("name") or "",
            logo_url=logo.get("url") if isinstance(logo, dict) else None,
        ),
    }


@dataclass
class ListingPage:
    """One page of search results."""

    hits: List[ListingSummary] = field(default_factory=list)
    nb_hits: int = 0
    page: int = 0
    nb_pages: int = 0
