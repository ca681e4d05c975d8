"""
Request dependencies shared by the route modules.
"""
from fastapi import HTTPException, Request

from realty.client import ListingsClient

from .sessions import PageRegistry, SearchPage


def get_listings_client(request: Request) -> ListingsClient:
    """Listings API client created in the application lifespan."""
    return request.app.state.listings_client


def get_page_registry(request: Request) -> PageRegistry:
    return request.app.state.page_registry


def lookup_page(registry: PageRegistry, page_id: str) -> SearchPage:
    page = registry.get(page_id)
    if page is None:
        raise HTTPException(status_code=404, detail="Search page expired, please reload")
    return page
