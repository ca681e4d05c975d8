"""
Async client for the remote listings API.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from .models import FilterState, ListingPage, ListingSummary, LocationSuggestion, PropertyDetail
from .urlsync import state_to_query
from .utils import to_int

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "realty-portal/1.0",
}


class ListingsApiError(Exception):
    """Transport, status or decoding failure talking to the listings API."""


def search_params(
    state: FilterState,
    default_location: str = "5002",
    page: int = 0,
    hits_per_page: int = 25,
) -> Dict[str, str]:
    """Translate filter state into /properties/list parameters."""
    params = state_to_query(state)
    params.setdefault("locationExternalIDs", default_location)
    params["page"] = str(page)
    params["hitsPerPage"] = str(hits_per_page)
    return params


class ListingsClient:
    """Thin wrapper around httpx.AsyncClient for the listings endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        api_host: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = dict(DEFAULT_HEADERS)
        if api_host:
            headers["x-rapidapi-host"] = api_host
        if api_key:
            headers["x-rapidapi-key"] = api_key
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        logger.debug(f"GET {path} {params}")
        try:
            resp = await self.client.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise ListingsApiError(f"GET {path} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ListingsApiError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise ListingsApiError(f"GET {path} returned invalid JSON") from e

    async def list_properties(self, params: Dict[str, Any]) -> ListingPage:
        data = await self._get_json("/properties/list", params)
        if not isinstance(data, dict):
            raise ListingsApiError("Unexpected /properties/list payload")
        hits = [ListingSummary.from_api(h) for h in data.get("hits") or [] if isinstance(h, dict)]
        return ListingPage(
            hits=hits,
            nb_hits=to_int(data.get("nbHits")) or len(hits),
            page=to_int(data.get("page")) or 0,
            nb_pages=to_int(data.get("nbPages")) or 0,
        )

    async def featured(self, purpose: str, location: str = "5002", count: int = 6) -> List[ListingSummary]:
        page = await self.list_properties({
            "locationExternalIDs": location,
            "purpose": purpose,
            "hitsPerPage": str(count),
        })
        return page.hits

    async def property_detail(self, external_id: str) -> PropertyDetail:
        data = await self._get_json("/properties/detail", {"externalID": external_id})
        if not isinstance(data, dict):
            raise ListingsApiError("Unexpected /properties/detail payload")
        return PropertyDetail.from_api(data)

    async def auto_complete(self, query: str, hits_per_page: int = 10) -> List[LocationSuggestion]:
        data = await self._get_json("/auto-complete", {"query": query, "hitsPerPage": str(hits_per_page)})
        if not isinstance(data, dict):
            raise ListingsApiError("Unexpected /auto-complete payload")
        return [LocationSuggestion.from_api(h) for h in data.get("hits") or [] if isinstance(h, dict)]

    async def close(self) -> None:
        await self.client.aclose()
