"""
Presentation state for listing cards.

present_listing() is a pure function of (listing, is_loading, now): derived
flags such as "new" depend on the clock, so the caller passes `now` on every
render instead of caching the result.

ImageSlot tracks the cover image of one card slot. It moves one way from
PENDING to LOADED or FALLBACK and starts over whenever a different listing
is bound to the slot.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from .models import ListingSummary, Purpose
from .utils import abbreviate

FEATURED_SCORE = 80
NEW_LISTING_WINDOW = timedelta(days=7)
DEFAULT_IMAGE = "/static/house.svg"


class ImageState(str, Enum):
    PENDING = "pending"
    LOADED = "loaded"
    FALLBACK = "fallback"


class Badge(str, Enum):
    VERIFIED = "Verified"
    FEATURED = "Featured"
    NEW = "New"
    RENT = "Rent"
    SALE = "Sale"


def is_featured(score: Optional[float]) -> bool:
    return (score or 0) > FEATURED_SCORE


def is_new(created_at: Optional[datetime], now: datetime) -> bool:
    """Listed within the last seven days; exactly seven days still counts."""
    if created_at is None:
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return now - created_at <= NEW_LISTING_WINDOW


def format_price(price: Optional[float], rent_frequency: Optional[str] = None, currency: str = "AED") -> str:
    """Price label such as "AED 1.25M/monthly"."""
    label = f"{currency} {abbreviate(price or 0)}"
    if rent_frequency:
        label += f"/{rent_frequency}"
    return label


def plural(count: int, word: str) -> str:
    return f"{count} {word}s" if count > 1 else f"{count} {word}"


def badges_for(listing: ListingSummary, featured: bool, new: bool) -> List[Badge]:
    badges = []
    if listing.is_verified:
        badges.append(Badge.VERIFIED)
    if featured:
        badges.append(Badge.FEATURED)
    if new:
        badges.append(Badge.NEW)
    if listing.purpose:
        badges.append(Badge.RENT if listing.purpose == Purpose.FOR_RENT.value else Badge.SALE)
    return badges


@dataclass
class ListingView:
    """What a card renders. A loading view carries no listing data."""

    is_loading: bool = False
    external_id: Optional[str] = None
    title: str = ""
    price_label: str = ""
    beds_label: str = ""
    baths_label: str = ""
    area_label: str = ""
    furnishing_status: Optional[str] = None
    agency_name: str = ""
    agency_logo_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    is_featured: bool = False
    is_new: bool = False
    badges: List[Badge] = field(default_factory=list)
    image_state: ImageState = ImageState.PENDING

    @classmethod
    def placeholder(cls) -> "ListingView":
        return cls(is_loading=True)


def present_listing(
    listing: Optional[ListingSummary],
    is_loading: bool,
    now: datetime,
    currency: str = "AED",
) -> ListingView:
    if is_loading or listing is None:
        return ListingView.placeholder()

    featured = is_featured(listing.score)
    new = is_new(listing.created_at, now)
    return ListingView(
        external_id=listing.external_id,
        title=listing.title,
        price_label=format_price(listing.price, listing.rent_frequency, currency),
        beds_label=plural(listing.rooms, "Bed"),
        baths_label=plural(listing.baths, "Bath"),
        area_label=f"{abbreviate(listing.area)} sqft",
        furnishing_status=listing.furnishing_status,
        agency_name=listing.agency.name or "Real Estate Agency",
        agency_logo_url=listing.agency.logo_url,
        cover_photo_url=listing.cover_photo_url,
        is_featured=featured,
        is_new=new,
        badges=badges_for(listing, featured, new),
        image_state=ImageState.PENDING if listing.cover_photo_url else ImageState.FALLBACK,
    )


class ImageSlot:
    """Image loading state of one card slot."""

    def __init__(self, fallback_src: str = DEFAULT_IMAGE):
        self.fallback_src = fallback_src
        self.external_id: Optional[str] = None
        self.cover_url: Optional[str] = None
        self.state = ImageState.PENDING

    def bind(self, external_id: str, cover_url: Optional[str]) -> ImageState:
        """Show a listing in this slot; a different listing starts over at PENDING."""
        if external_id != self.external_id:
            self.external_id = external_id
            self.state = ImageState.PENDING
        self.cover_url = cover_url
        if not cover_url and self.state == ImageState.PENDING:
            self.state = ImageState.FALLBACK
        return self.state

    def mark_loaded(self) -> ImageState:
        if self.state == ImageState.PENDING:
            self.state = ImageState.LOADED
        return self.state

    def mark_failed(self) -> ImageState:
        if self.state == ImageState.PENDING:
            self.state = ImageState.FALLBACK
        return self.state

    @property
    def is_fallback(self) -> bool:
        return self.state == ImageState.FALLBACK

    @property
    def ready(self) -> bool:
        """Whether layout treats the image as loaded (fallbacks included)."""
        return self.state != ImageState.PENDING

    @property
    def src(self) -> str:
        if self.is_fallback or not self.cover_url:
            return self.fallback_src
        return self.cover_url
