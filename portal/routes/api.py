"""
JSON API route handlers backed by the remote listings API.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from realty.client import ListingsApiError, ListingsClient, search_params
from realty.filters import FilterStore
from realty.presenter import present_listing
from realty.urlsync import UrlSync
from realty.utils import utc_now

from ..config import config
from ..dependencies import get_listings_client
from ..models import FiltersOut, ListingCardOut, ListingsResponse, LocationOut, PropertyDetailOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])


@router.get("/listings", response_model=ListingsResponse)
async def get_api_listings(
    request: Request,
    page: int = Query(0, ge=0),
    hits_per_page: int = Query(config.SEARCH_PAGE_SIZE, ge=1, le=100),
    client: ListingsClient = Depends(get_listings_client),
):
    """Presented listings for the filters carried in the query string."""
    state = UrlSync().hydrate(request.query_params)
    try:
        listing_page = await client.list_properties(
            search_params(state, config.DEFAULT_LOCATION_ID, page, hits_per_page)
        )
    except ListingsApiError as e:
        logger.error(f"Error fetching listings: {e}")
        raise HTTPException(status_code=502, detail="Listings service unavailable")

    now = utc_now()
    items = [ListingCardOut.from_view(present_listing(l, False, now, config.CURRENCY)) for l in listing_page.hits]
    return ListingsResponse(
        total=listing_page.nb_hits,
        page=page,
        pages=listing_page.nb_pages,
        filters=FiltersOut.from_state(state),
        filters_active=FilterStore(state).is_active(),
        items=items,
    )


@router.get("/locations", response_model=List[LocationOut])
async def get_api_locations(
    query: str = "",
    client: ListingsClient = Depends(get_listings_client),
):
    """Location suggestions for a free-text query."""
    if not query.strip():
        return []
    try:
        suggestions = await client.auto_complete(query.strip())
    except ListingsApiError as e:
        logger.warning(f"Location lookup for {query!r} failed: {e}")
        return []
    return [LocationOut.from_suggestion(s) for s in suggestions]


@router.get("/listings/{external_id}", response_model=PropertyDetailOut)
async def get_api_listing(external_id: str, client: ListingsClient = Depends(get_listings_client)):
    """Get a single property by its external id."""
    try:
        detail = await client.property_detail(external_id)
    except ListingsApiError as e:
        logger.error(f"Error fetching property {external_id}: {e}")
        raise HTTPException(status_code=502, detail="Listings service unavailable")
    view = present_listing(detail, False, utc_now(), config.CURRENCY)
    return PropertyDetailOut.from_detail(detail, view)
