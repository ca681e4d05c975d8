"""
Full-page route handlers: home, search and property detail.
"""
import logging
from urllib.parse import unquote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from realty.client import ListingsApiError, ListingsClient
from realty.models import PropertyDetail, Purpose
from realty.orchestrator import Notification
from realty.presenter import present_listing
from realty.utils import utc_now

from .. import render
from ..config import config
from ..dependencies import get_listings_client, get_page_registry
from ..sessions import PageRegistry

logger = logging.getLogger(__name__)
router = APIRouter(tags=["pages"])

FLASH_COOKIE = "flash"

RENT_BANNER_IMAGE = "https://bayut-production.s3.eu-central-1.amazonaws.com/image/145426814/33973352624c48628e41f2ec460faba4"
SALE_BANNER_IMAGE = "https://bayut-production.s3.eu-central-1.amazonaws.com/image/110993385/6a070e8e1bae4f7d8c1429bc303d2008"


def pop_flash(request: Request):
    """Notification left by a successful submit on the previous page."""
    raw = request.cookies.get(FLASH_COOKIE)
    if not raw:
        return []
    title, _, description = unquote(raw).partition("|")
    return [Notification(status="success", title=title, description=description)]


async def featured(client: ListingsClient, purpose: Purpose):
    try:
        return await client.featured(purpose.value, config.DEFAULT_LOCATION_ID, config.FEATURED_COUNT)
    except ListingsApiError as e:
        logger.error(f"Error fetching featured {purpose.value} listings: {e}")
        return []


@router.get('/', response_class=HTMLResponse)
async def home(client: ListingsClient = Depends(get_listings_client)):
    """Home page with featured rentals and sales."""
    now = utc_now()
    for_rent = [present_listing(l, False, now, config.CURRENCY) for l in await featured(client, Purpose.FOR_RENT)]
    for_sale = [present_listing(l, False, now, config.CURRENCY) for l in await featured(client, Purpose.FOR_SALE)]

    body = ''.join([
        render.banner('Rent a Home', 'Rental Homes for', 'Everyone',
                      'Explore from Apartments, builder floors, villas and more',
                      'Explore Renting', '/search?purpose=for-rent', RENT_BANNER_IMAGE),
        '<h2 class="text-2xl font-semibold mb-6">Featured Rental Properties</h2>',
        render.card_grid(for_rent) if for_rent else '<div class="text-slate-500">No rentals to show right now.</div>',
        render.banner('Buy a Home', 'Find, Buy & Own Your', 'Dream Home',
                      'Explore from Apartments, land, builder floors, villas and more',
                      'Explore Buying', '/search?purpose=for-sale', SALE_BANNER_IMAGE),
        '<h2 class="text-2xl font-semibold mb-6">Featured Properties for Sale</h2>',
        render.card_grid(for_sale) if for_sale else '<div class="text-slate-500">No properties for sale to show right now.</div>',
    ])
    return HTMLResponse(render.page_shell('Home', body))


@router.get('/search', response_class=HTMLResponse)
async def search_page(
    request: Request,
    client: ListingsClient = Depends(get_listings_client),
    registry: PageRegistry = Depends(get_page_registry),
):
    """Search page; hydrates a fresh controller from the query string."""
    page = registry.create(
        request.query_params,
        lookup=client.auto_complete,
        debounce=config.debounce_seconds,
        timeout=config.REQUEST_TIMEOUT,
        max_url_length=config.MAX_URL_LENGTH,
    )
    logger.debug(f"Created search page {page.page_id} for {request.url.query!r}")

    flash = pop_flash(request)
    body = f'''<div data-page-id="{page.page_id}">
<h1 class="text-2xl font-semibold mb-4">Properties</h1>
{render.filter_panel(page)}
{render.results_placeholder(page)}
</div>'''
    response = HTMLResponse(render.page_shell('Search', body, render.toasts(flash)))
    if flash:
        response.delete_cookie(FLASH_COOKIE)
    return response


@router.get('/property/{external_id}', response_class=HTMLResponse)
async def property_page(external_id: str, client: ListingsClient = Depends(get_listings_client)):
    """Detail page for one property."""
    try:
        detail = await client.property_detail(external_id)
    except ListingsApiError as e:
        logger.error(f"Error fetching property {external_id}: {e}")
        detail = PropertyDetail.unavailable(external_id)

    view = present_listing(detail, False, utc_now(), config.CURRENCY)
    notes = []
    if not detail.photos:
        notes.append(Notification(status="warning", title="Some images could not be loaded", description=""))

    body = render.detail_body(detail, view)
    return HTMLResponse(render.page_shell(detail.title or 'Property', body, render.toasts(notes)))
