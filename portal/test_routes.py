"""
Tests for the portal routes using FastAPI's TestClient with a fake listings client.
"""
import asyncio
import html
import json
import re
from urllib.parse import quote

import httpx
import pytest
from fastapi.testclient import TestClient

from realty.client import ListingsApiError
from realty.models import ListingPage, ListingSummary, LocationSuggestion, PropertyDetail

from portal import render
from portal.config import config
from portal.dependencies import get_listings_client, get_page_registry
from portal.main import app
from portal.sessions import PageRegistry

HIT = {
    "externalID": "1001",
    "title": "Marina view apartment",
    "price": 85000,
    "rentFrequency": "yearly",
    "rooms": 2,
    "baths": 2,
    "area": 1100,
    "score": 92,
    "purpose": "for-rent",
    "isVerified": True,
    "coverPhoto": {"url": "https://img.example.com/1.jpg"},
    "agency": {"name": "Acme Realty"},
}


class FakeListingsClient:
    def __init__(self, fail=False):
        self.fail = fail
        self.searches = []
        self.lookups = []

    async def list_properties(self, params):
        self.searches.append(params)
        if self.fail:
            raise ListingsApiError("GET /properties/list returned 503")
        return ListingPage(hits=[ListingSummary.from_api(HIT)], nb_hits=30, page=0, nb_pages=2)

    async def featured(self, purpose, location="5002", count=6):
        if self.fail:
            raise ListingsApiError("GET /properties/list returned 503")
        return [ListingSummary.from_api({**HIT, "purpose": purpose})]

    async def property_detail(self, external_id):
        if self.fail:
            raise ListingsApiError("GET /properties/detail returned 503")
        return PropertyDetail.from_api({**HIT, "externalID": external_id, "description": "Bright",
                                        "photos": [{"url": "https://img.example.com/1.jpg"}]})

    async def auto_complete(self, query, hits_per_page=10):
        self.lookups.append(query)
        if self.fail:
            raise ListingsApiError("GET /auto-complete returned 503")
        return [LocationSuggestion("5003", "Dubai Marina", ("UAE", "Dubai"))]

    async def close(self):
        pass


@pytest.fixture
def fake_client():
    return FakeListingsClient()


@pytest.fixture
def registry():
    return PageRegistry(max_pages=8)


@pytest.fixture
def client(fake_client, registry, monkeypatch):
    monkeypatch.setattr(config, "LOCATION_DEBOUNCE_MS", 10)
    app.dependency_overrides[get_listings_client] = lambda: fake_client
    app.dependency_overrides[get_page_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def open_search(client, query=""):
    response = client.get(f"/search{query}")
    assert response.status_code == 200
    match = re.search(r'data-page-id="([0-9a-f]+)"', response.text)
    assert match
    return match.group(1)


def filter_form(**overrides):
    form = {
        "purpose": "for-rent",
        "categoryExternalID": "4",
        "sort": "price-desc",
        "minPrice": "0",
        "maxPrice": "1000000",
        "areaMin": "0",
        "roomsMin": "0",
        "bathsMin": "0",
    }
    form.update(overrides)
    return form


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_home_renders_featured_listings(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Featured Rental Properties" in response.text
    assert "Marina view apartment" in response.text


def test_home_survives_listings_outage(client, fake_client):
    fake_client.fail = True
    response = client.get("/")
    assert response.status_code == 200
    assert "No rentals to show right now." in response.text


def test_search_page_hydrates_filters(client, registry):
    page_id = open_search(client, "?purpose=for-sale&minPrice=200000")
    state = registry.get(page_id).orchestrator.filters
    assert state.purpose.value == "for-sale"
    assert state.min_price == 200000


def test_edit_and_submit_end_to_end(client, registry):
    page_id = open_search(client, "?purpose=for-sale&minPrice=200000")

    response = client.post(f"/ui/pages/{page_id}/filters",
                           data=filter_form(purpose="for-sale", minPrice="200000", maxPrice="150000"))
    assert response.status_code == 200
    state = registry.get(page_id).orchestrator.filters
    assert (state.min_price, state.max_price) == (150000, 150000)

    response = client.post(f"/ui/pages/{page_id}/submit")
    assert response.status_code == 200
    location = response.headers["HX-Redirect"]
    assert location.startswith("/search?")
    assert "minPrice=150000&maxPrice=150000" in location
    assert "flash" in response.cookies

    # the toast survives the redirect
    follow = client.get(location)
    assert "Filters Applied" in follow.text


def test_unknown_page_is_404(client):
    response = client.post("/ui/pages/deadbeef/filters", data=filter_form())
    assert response.status_code == 404
    assert response.json()["detail"] == "Search page expired, please reload"


def test_reset_clears_active_filters(client, registry):
    page_id = open_search(client, "?roomsMin=3&sort=price-asc")
    assert registry.get(page_id).orchestrator.store.is_active()

    response = client.post(f"/ui/pages/{page_id}/reset")
    assert response.status_code == 200
    assert "Active Filters:" not in response.text
    assert not registry.get(page_id).orchestrator.store.is_active()


def test_location_lookup_and_select(client, registry, fake_client):
    page_id = open_search(client)

    response = client.get(f"/ui/pages/{page_id}/location", params={"locationQuery": "Dubai"})
    assert response.status_code == 200
    assert "Dubai Marina" in response.text
    assert "UAE, Dubai" in response.text
    assert fake_client.lookups == ["Dubai"]

    response = client.post(f"/ui/pages/{page_id}/location/select", data={"suggestion_id": "5003"})
    assert response.status_code == 200
    orch = registry.get(page_id).orchestrator
    assert orch.filters.location_external_ids == "5003"
    assert orch.location.suggestions == []
    assert "Location Selected" in response.text


def test_location_lookup_failure_renders_empty_list(client, fake_client):
    page_id = open_search(client)
    fake_client.fail = True
    response = client.get(f"/ui/pages/{page_id}/location", params={"locationQuery": "Dubai"})
    assert response.status_code == 200
    assert response.text == ""


def test_superseded_keystroke_returns_no_content(fake_client, registry, monkeypatch):
    monkeypatch.setattr(config, "LOCATION_DEBOUNCE_MS", 50)
    app.dependency_overrides[get_listings_client] = lambda: fake_client
    app.dependency_overrides[get_page_registry] = lambda: registry

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            page = await ac.get("/search")
            page_id = re.search(r'data-page-id="([0-9a-f]+)"', page.text).group(1)
            url = f"/ui/pages/{page_id}/location"

            async def later():
                await asyncio.sleep(0.01)
                return await ac.get(url, params={"locationQuery": "Dubai"})

            return await asyncio.gather(ac.get(url, params={"locationQuery": "Dub"}), later())

    try:
        first, second = asyncio.run(scenario())
    finally:
        app.dependency_overrides.clear()

    assert first.status_code == 204
    assert second.status_code == 200
    assert "Dubai Marina" in second.text
    assert fake_client.lookups == ["Dubai"]


def test_keystrokes_inside_debounce_window_fetch_once(fake_client, registry, monkeypatch):
    monkeypatch.setattr(config, "LOCATION_DEBOUNCE_MS", 50)
    app.dependency_overrides[get_listings_client] = lambda: fake_client
    app.dependency_overrides[get_page_registry] = lambda: registry

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            page = await ac.get("/search")
            # each keystroke replaces the pending request instead of queueing behind it
            assert 'hx-sync="this:replace"' in page.text
            page_id = re.search(r'data-page-id="([0-9a-f]+)"', page.text).group(1)
            url = f"/ui/pages/{page_id}/location"

            async def keystroke(text, delay):
                await asyncio.sleep(delay)
                return await ac.get(url, params={"locationQuery": text})

            return await asyncio.gather(
                keystroke("a", 0), keystroke("ab", 0.01), keystroke("abc", 0.02)
            )

    try:
        responses = asyncio.run(scenario())
    finally:
        app.dependency_overrides.clear()

    assert [r.status_code for r in responses] == [204, 204, 200]
    assert fake_client.lookups == ["abc"]


def test_changing_both_prices_sets_the_range_at_once(client, registry, monkeypatch):
    page_id = open_search(client)
    store = registry.get(page_id).orchestrator.store
    ranges = []
    set_price_range = store.set_price_range

    def recording(low, high):
        ranges.append((low, high))
        return set_price_range(low, high)

    monkeypatch.setattr(store, "set_price_range", recording)
    client.post(f"/ui/pages/{page_id}/filters", data=filter_form(minPrice="300000", maxPrice="600000"))

    assert ranges == [("300000", "600000")]
    assert (store.get().min_price, store.get().max_price) == (300000, 600000)


def test_suggestion_ids_survive_attribute_quoting(client, registry):
    page_id = open_search(client)
    page = registry.get(page_id)
    page.orchestrator.location.suggestions = [LocationSuggestion('5"03', "Dubai Marina", ("UAE", "Dubai"))]

    fragment = render.suggestion_list(page)
    raw = re.search(r'hx-vals="([^"]*)"', fragment).group(1)
    assert json.loads(html.unescape(raw)) == {"suggestion_id": '5"03'}


def test_overlay_open_and_close(client, registry):
    page_id = open_search(client)
    response = client.post(f"/ui/pages/{page_id}/overlay/open")
    assert 'id="drawer"' in response.text
    assert registry.get(page_id).orchestrator.overlay.is_open

    response = client.post(f"/ui/pages/{page_id}/overlay/close")
    assert 'id="drawer"' not in response.text


def test_submit_from_overlay_closes_it(client, registry):
    page_id = open_search(client)
    client.post(f"/ui/pages/{page_id}/overlay/open")
    response = client.post(f"/ui/pages/{page_id}/submit", params={"from_overlay": "true"})
    assert "HX-Redirect" in response.headers
    assert not registry.get(page_id).orchestrator.overlay.is_open


def test_failed_navigation_shows_error_toast(client, registry, monkeypatch):
    page_id = open_search(client)
    page = registry.get(page_id)
    page.orchestrator.overlay.open()
    monkeypatch.setattr(page.navigator, "max_length", 10)

    response = client.post(f"/ui/pages/{page_id}/submit", params={"from_overlay": "true"})
    assert response.status_code == 200
    assert "HX-Redirect" not in response.headers
    assert "Failed to apply filters. Please try again." in response.text
    assert page.orchestrator.overlay.is_open


def test_results_fragment(client, registry, fake_client):
    page_id = open_search(client, "?purpose=for-rent&roomsMin=2&page=0")
    response = client.get(f"/ui/pages/{page_id}/results")
    assert response.status_code == 200
    assert "Marina view apartment" in response.text
    assert "AED 85K/yearly" in response.text
    assert "Total: 30" in response.text
    assert "page=1" in response.text

    params = fake_client.searches[-1]
    assert params["roomsMin"] == "2"
    assert params["locationExternalIDs"] == config.DEFAULT_LOCATION_ID
    assert params["hitsPerPage"] == str(config.SEARCH_PAGE_SIZE)


def test_result_cards_report_image_outcome(client, registry):
    page_id = open_search(client)
    response = client.get(f"/ui/pages/{page_id}/results")
    assert f"/ui/pages/{page_id}/image/0/loaded?listing=1001" in response.text
    assert f"/ui/pages/{page_id}/image/0/failed?listing=1001" in response.text
    slot = registry.get(page_id).slots[0]
    assert slot.state.value == "pending"

    response = client.post(f"/ui/pages/{page_id}/image/0/loaded", params={"listing": "1001"})
    assert response.json() == {"state": "loaded"}
    assert slot.state.value == "loaded"

    # transitions are one-way
    response = client.post(f"/ui/pages/{page_id}/image/0/failed", params={"listing": "1001"})
    assert response.json() == {"state": "loaded"}


def test_image_failure_switches_slot_to_fallback(client, registry):
    page_id = open_search(client)
    client.get(f"/ui/pages/{page_id}/results")
    response = client.post(f"/ui/pages/{page_id}/image/0/failed", params={"listing": "1001"})
    assert response.json() == {"state": "fallback"}
    assert registry.get(page_id).slots[0].is_fallback


def test_stale_image_report_is_ignored(client, registry):
    page_id = open_search(client)
    client.get(f"/ui/pages/{page_id}/results")

    assert client.post(f"/ui/pages/{page_id}/image/0/loaded", params={"listing": "9999"}).status_code == 204
    assert client.post(f"/ui/pages/{page_id}/image/5/loaded", params={"listing": "1001"}).status_code == 204
    assert client.post(f"/ui/pages/{page_id}/image/0/exploded", params={"listing": "1001"}).status_code == 404
    assert registry.get(page_id).slots[0].state.value == "pending"


def test_results_fragment_error(client, fake_client):
    page_id = open_search(client)
    fake_client.fail = True
    response = client.get(f"/ui/pages/{page_id}/results")
    assert response.status_code == 200
    assert "Error loading listings" in response.text


def test_property_page(client):
    response = client.get("/property/1001")
    assert response.status_code == 200
    assert "Marina view apartment" in response.text
    assert "Some images could not be loaded" not in response.text


def test_property_page_falls_back_when_unavailable(client, fake_client):
    fake_client.fail = True
    response = client.get("/property/1001")
    assert response.status_code == 200
    assert "Property information unavailable" in response.text
    assert "Some images could not be loaded" in response.text


def test_flash_cookie_is_rendered_once(client):
    cookie = quote("Filters Applied|Showing properties matching your criteria")
    response = client.get("/search", headers={"Cookie": f"flash={cookie}"})
    assert "Showing properties matching your criteria" in response.text


def test_api_listings(client):
    response = client.get("/api/listings", params={"purpose": "for-sale", "minPrice": "500", "maxPrice": "100"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 30
    assert body["filters"]["min_price"] == 100
    assert body["filters_active"] is True
    [item] = body["items"]
    assert item["external_id"] == "1001"
    assert item["is_featured"] is True
    assert "Verified" in item["badges"]


def test_api_listings_upstream_error(client, fake_client):
    fake_client.fail = True
    response = client.get("/api/listings")
    assert response.status_code == 502


def test_api_locations(client, fake_client):
    assert client.get("/api/locations", params={"query": " "}).json() == []
    [loc] = client.get("/api/locations", params={"query": "Dubai"}).json()
    assert loc["id"] == "5003"
    assert loc["breadcrumb"] == "UAE, Dubai"

    fake_client.fail = True
    assert client.get("/api/locations", params={"query": "Dubai"}).json() == []


def test_api_listing_detail(client, fake_client):
    response = client.get("/api/listings/1001")
    assert response.status_code == 200
    assert response.json()["card"]["external_id"] == "1001"

    fake_client.fail = True
    assert client.get("/api/listings/1001").status_code == 502
