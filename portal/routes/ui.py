"""
htmx fragment handlers that drive a live search page.
"""
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from realty.client import ListingsApiError, ListingsClient, search_params
from realty.presenter import present_listing
from realty.urlsync import QUERY_PARAMS, state_to_query
from realty.utils import to_int, utc_now

from .. import render
from ..config import config
from ..dependencies import get_listings_client, get_page_registry, lookup_page
from ..sessions import PageRegistry, SearchPage
from .pages import FLASH_COOKIE

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ui/pages/{page_id}", tags=["ui"])


def get_page(page_id: str, registry: PageRegistry = Depends(get_page_registry)) -> SearchPage:
    return lookup_page(registry, page_id)


def panel(page: SearchPage) -> HTMLResponse:
    return HTMLResponse(render.filter_panel(page))


@router.post('/filters', response_class=HTMLResponse)
async def update_filters(request: Request, page: SearchPage = Depends(get_page)):
    """Apply the form controls whose values differ from the current state."""
    form = await request.form()
    store = page.orchestrator.store
    current = state_to_query(store.get())
    changed = {
        name: form[param] for name, param in QUERY_PARAMS.items()
        if name != "location_external_ids" and param in form and form[param] != current.get(param)
    }
    if "min_price" in changed and "max_price" in changed:
        store.set_price_range(changed.pop("min_price"), changed.pop("max_price"))
    for name, raw in changed.items():
        store.set(name, raw)
    return panel(page)


@router.post('/reset', response_class=HTMLResponse)
async def reset_filters(page: SearchPage = Depends(get_page)):
    page.orchestrator.store.reset()
    page.orchestrator.location.clear()
    return panel(page)


@router.get('/location')
async def location_input(locationQuery: str = "", page: SearchPage = Depends(get_page)):
    """
    Feed one keystroke to the location resolver.

    The request waits for the debounce and lookup to settle. A request whose
    input has been superseded by a newer keystroke answers 204 so htmx leaves
    the suggestion list alone.
    """
    resolver = page.orchestrator.location
    resolver.on_input(locationQuery)
    ticket = resolver.generation
    await resolver.settle()
    if resolver.generation != ticket:
        return Response(status_code=204)
    return HTMLResponse(render.suggestion_list(page))


@router.post('/location/select', response_class=HTMLResponse)
async def select_location(request: Request, page: SearchPage = Depends(get_page)):
    form = await request.form()
    resolver = page.orchestrator.location
    suggestion = resolver.find(str(form.get("suggestion_id", "")))
    if suggestion is None:
        logger.debug(f"Ignoring selection of unknown suggestion on page {page.page_id}")
    else:
        resolver.select(suggestion)
    return panel(page)


@router.post('/location/clear', response_class=HTMLResponse)
async def clear_location(page: SearchPage = Depends(get_page)):
    page.orchestrator.location.clear()
    return panel(page)


@router.post('/overlay/open', response_class=HTMLResponse)
async def open_overlay(page: SearchPage = Depends(get_page)):
    page.orchestrator.overlay.open()
    return panel(page)


@router.post('/overlay/close', response_class=HTMLResponse)
async def close_overlay(page: SearchPage = Depends(get_page)):
    page.orchestrator.overlay.close()
    return panel(page)


@router.post('/submit', response_class=HTMLResponse)
async def submit(from_overlay: bool = False, page: SearchPage = Depends(get_page)):
    """Navigate to the filtered search URL, or report why that failed."""
    result = await page.orchestrator.submit(from_overlay=from_overlay)
    notifications = page.orchestrator.drain_notifications()

    if not result.ok:
        # the drawer stays open; show the error where the user is
        return HTMLResponse(render.toasts(notifications))

    location = page.navigator.take() or result.url
    response = HTMLResponse('', headers={"HX-Redirect": location})
    if notifications:
        note = notifications[-1]
        response.set_cookie(FLASH_COOKIE, quote(f"{note.title}|{note.description}"), max_age=60)
    return response


@router.post('/image/{index}/{outcome}')
async def report_image(index: int, outcome: str, listing: str = "", page: SearchPage = Depends(get_page)):
    """Record whether a result card's cover image loaded or fell back."""
    if outcome not in ("loaded", "failed"):
        raise HTTPException(status_code=404, detail="Unknown image outcome")
    slot = page.slot_for(index, listing)
    if slot is None:
        logger.debug(f"Ignoring stale image report for slot {index} on page {page.page_id}")
        return Response(status_code=204)
    state = slot.mark_loaded() if outcome == "loaded" else slot.mark_failed()
    return JSONResponse({"state": state.value})


@router.get('/results', response_class=HTMLResponse)
async def results(
    page: SearchPage = Depends(get_page),
    client: ListingsClient = Depends(get_listings_client),
):
    """Listing cards for the filters the page was loaded with."""
    orchestrator = page.orchestrator
    state = orchestrator.urlsync.hydrate(orchestrator.query)
    page_no = max(0, to_int(orchestrator.query.get("page")) or 0)

    try:
        listing_page = await client.list_properties(search_params(
            state,
            default_location=config.DEFAULT_LOCATION_ID,
            page=page_no,
            hits_per_page=config.SEARCH_PAGE_SIZE,
        ))
    except ListingsApiError as e:
        logger.error(f"Error loading results for page {page.page_id}: {e}")
        return HTMLResponse('<div id="results" class="text-red-600">Error loading listings</div>')

    now = utc_now()
    views = [present_listing(l, False, now, config.CURRENCY) for l in listing_page.hits]
    slots = page.bind_cards(views)

    def link(n):
        return orchestrator.urlsync.target_url(state, {**orchestrator.query, "page": str(n)})

    prev_link = link(page_no - 1) if page_no > 0 else None
    next_link = link(page_no + 1) if page_no + 1 < listing_page.nb_pages else None
    return HTMLResponse(render.results(
        views, slots, listing_page.nb_hits, page_no, listing_page.nb_pages, (prev_link, next_link),
        report_base=f"/ui/pages/{page.page_id}/image",
    ))
