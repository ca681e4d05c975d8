"""
Tests for the listings API client using httpx.MockTransport.
"""
import asyncio

import httpx
import pytest

from realty.client import ListingsApiError, ListingsClient, search_params
from realty.models import FilterState, Purpose

LIST_PAYLOAD = {
    "hits": [
        {
            "externalID": "1001",
            "title": "Marina view apartment",
            "price": 85000,
            "rentFrequency": "yearly",
            "rooms": 2,
            "baths": 2,
            "area": 1100.5,
            "score": 92,
            "createdAt": 1717243200,
            "purpose": "for-rent",
            "isVerified": True,
            "coverPhoto": {"url": "https://img.example.com/1.jpg"},
            "agency": {"name": "Acme Realty", "logo": {"url": "https://img.example.com/logo.png"}},
        },
        {"externalID": "1002"},
        "garbage",
    ],
    "nbHits": 40,
    "page": 0,
    "nbPages": 2,
}

DETAIL_PAYLOAD = {
    "externalID": "1001",
    "title": "Marina view apartment",
    "description": "Bright and spacious",
    "type": "Apartment",
    "amenities": [
        {"text": "Building", "amenities": [{"text": "Gym"}, {"text": "Pool"}]},
        {"text": "Balcony"},
    ],
    "photos": [{"url": "https://img.example.com/1.jpg"}, {"url": "https://img.example.com/2.jpg"}],
    "phoneNumber": {"mobile": "+971 50 123 4567"},
    "contactName": "Sara",
    "location": [{"name": "UAE"}, {"name": "Dubai"}, {"name": "Dubai Marina"}],
}


def handler(request):
    if request.url.path == "/auto-complete":
        return httpx.Response(200, json={"hits": [
            {"externalID": "5003", "name": "Dubai Marina", "hierarchy": [{"name": "UAE"}, {"name": "Dubai"}]},
        ]})
    if request.url.path == "/properties/list":
        return httpx.Response(200, json=LIST_PAYLOAD)
    if request.url.path == "/properties/detail":
        return httpx.Response(200, json=DETAIL_PAYLOAD)
    return httpx.Response(404)


def run_with(handler_fn, call):
    async def scenario():
        client = ListingsClient(
            "https://api.example.com",
            api_key="secret",
            api_host="api.example.com",
            transport=httpx.MockTransport(handler_fn),
        )
        try:
            return await call(client)
        finally:
            await client.close()

    return asyncio.run(scenario())


def test_auto_complete_sends_query_and_headers():
    seen = []

    def recording(request):
        seen.append(request)
        return handler(request)

    suggestions = run_with(recording, lambda c: c.auto_complete("marina"))

    assert seen[0].url.params["query"] == "marina"
    assert seen[0].headers["x-rapidapi-key"] == "secret"
    assert seen[0].headers["x-rapidapi-host"] == "api.example.com"
    [s] = suggestions
    assert s.id == "5003"
    assert s.display_name == "Dubai Marina"
    assert s.breadcrumb == "UAE, Dubai"


def test_list_properties_parses_hits_leniently():
    page = run_with(handler, lambda c: c.list_properties({"purpose": "for-rent"}))

    assert page.nb_hits == 40
    assert page.nb_pages == 2
    assert [h.external_id for h in page.hits] == ["1001", "1002"]
    first = page.hits[0]
    assert first.is_verified
    assert first.agency.name == "Acme Realty"
    assert first.created_at.year == 2024
    assert page.hits[1].cover_photo_url is None


def test_property_detail():
    detail = run_with(handler, lambda c: c.property_detail("1001"))

    assert detail.amenities == ["Gym", "Pool", "Balcony"]
    assert len(detail.photos) == 2
    assert detail.phone_number == "+971 50 123 4567"
    assert detail.location == ["UAE", "Dubai", "Dubai Marina"]


def test_http_error_status_raises():
    with pytest.raises(ListingsApiError):
        run_with(lambda r: httpx.Response(500), lambda c: c.auto_complete("x"))


def test_invalid_json_raises():
    with pytest.raises(ListingsApiError):
        run_with(lambda r: httpx.Response(200, text="<html>"), lambda c: c.list_properties({}))


def test_transport_error_raises():
    def broken(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ListingsApiError):
        run_with(broken, lambda c: c.property_detail("1"))


def test_search_params_default_location_and_paging():
    params = search_params(FilterState(purpose=Purpose.FOR_SALE), page=2, hits_per_page=12)
    assert params["purpose"] == "for-sale"
    assert params["locationExternalIDs"] == "5002"
    assert params["page"] == "2"
    assert params["hitsPerPage"] == "12"

    params = search_params(FilterState(location_external_ids="5003"))
    assert params["locationExternalIDs"] == "5003"
