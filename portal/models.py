"""
Pydantic models for API response serialization.
"""
from typing import List, Optional

from pydantic import BaseModel

from realty.models import FilterState, LocationSuggestion, PropertyDetail
from realty.presenter import ListingView


class LocationOut(BaseModel):
    """Output model for a location suggestion."""
    id: str
    display_name: str
    hierarchy: List[str] = []
    breadcrumb: str = ""

    @classmethod
    def from_suggestion(cls, s: LocationSuggestion) -> "LocationOut":
        return cls(id=s.id, display_name=s.display_name, hierarchy=list(s.hierarchy), breadcrumb=s.breadcrumb)


class FiltersOut(BaseModel):
    """Output model for the filter state behind a result set."""
    purpose: str
    min_price: int
    max_price: int
    rooms_min: int
    baths_min: int
    area_min: int
    category_external_id: int
    sort: str
    location_external_ids: str = ""

    @classmethod
    def from_state(cls, state: FilterState) -> "FiltersOut":
        return cls(
            purpose=state.purpose.value,
            min_price=state.min_price,
            max_price=state.max_price,
            rooms_min=state.rooms_min,
            baths_min=state.baths_min,
            area_min=state.area_min,
            category_external_id=state.category_external_id,
            sort=state.sort.value,
            location_external_ids=state.location_external_ids,
        )


class ListingCardOut(BaseModel):
    """Output model for a presented listing card."""
    external_id: str
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
    badges: List[str] = []
    image_state: str = "pending"

    @classmethod
    def from_view(cls, view: ListingView) -> "ListingCardOut":
        return cls(
            external_id=view.external_id or "",
            title=view.title,
            price_label=view.price_label,
            beds_label=view.beds_label,
            baths_label=view.baths_label,
            area_label=view.area_label,
            furnishing_status=view.furnishing_status,
            agency_name=view.agency_name,
            agency_logo_url=view.agency_logo_url,
            cover_photo_url=view.cover_photo_url,
            is_featured=view.is_featured,
            is_new=view.is_new,
            badges=[b.value for b in view.badges],
            image_state=view.image_state.value,
        )


class ListingsResponse(BaseModel):
    """Response model for a page of presented listings."""
    total: int
    page: int
    pages: int
    filters: FiltersOut
    filters_active: bool
    items: List[ListingCardOut]


class PropertyDetailOut(BaseModel):
    """Output model for a property detail record."""
    card: ListingCardOut
    description: str = ""
    type: str = ""
    amenities: List[str] = []
    photos: List[str] = []
    contact_name: str = ""
    phone_number: str = ""
    location: List[str] = []

    @classmethod
    def from_detail(cls, detail: PropertyDetail, view: ListingView) -> "PropertyDetailOut":
        return cls(
            card=ListingCardOut.from_view(view),
            description=detail.description,
            type=detail.type,
            amenities=detail.amenities,
            photos=detail.photos,
            contact_name=detail.contact_name,
            phone_number=detail.phone_number,
            location=detail.location,
        )
