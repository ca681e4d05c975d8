"""
HTML builders for pages and htmx fragments.
"""
import json
from html import escape
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote

from realty.filters import SORT_LABELS, FilterStore
from realty.location import LocationResolver
from realty.models import BATHS_MAX, CATEGORIES, PRICE_CEILING, ROOMS_MAX, PropertyDetail, Purpose
from realty.orchestrator import Notification
from realty.presenter import Badge, ImageSlot, ImageState, ListingView

from .sessions import SearchPage

BADGE_COLORS = {
    Badge.VERIFIED: "bg-green-500",
    Badge.FEATURED: "bg-amber-500",
    Badge.NEW: "bg-red-500",
    Badge.RENT: "bg-blue-500",
    Badge.SALE: "bg-purple-500",
}

TOAST_COLORS = {
    "success": "bg-emerald-600",
    "error": "bg-red-600",
    "warning": "bg-amber-500",
    "info": "bg-slate-700",
}


def page_shell(title: str, body: str, notices: str = "") -> str:
    """Wrap a page body in the common document layout."""
    return f'''<!doctype html>
<html lang="en" class="h-full">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{escape(title)} | Realty</title>
  <script src="https://unpkg.com/htmx.org@1.9.12"></script>
  <script src="https://cdn.tailwindcss.com"></script>
  <style>.truncate-2{{display:-webkit-box;-webkit-line-clamp:2;-webkit-box-orient:vertical;overflow:hidden}}</style>
</head>
<body class="h-full bg-slate-50 text-slate-900">
<nav class="bg-white border-b">
  <div class="max-w-7xl mx-auto px-4 py-3 flex items-center justify-between">
    <a href="/" class="text-xl font-semibold text-blue-700">Realty</a>
    <div class="space-x-4 text-sm">
      <a href="/" class="hover:underline">Home</a>
      <a href="/search" class="hover:underline">Search</a>
      <a href="/search?purpose=for-sale" class="hover:underline">Buy Property</a>
      <a href="/search?purpose=for-rent" class="hover:underline">Rent Property</a>
    </div>
  </div>
</nav>
<div id="toasts" class="fixed top-4 right-4 z-50 space-y-2">{notices}</div>
<main class="max-w-7xl mx-auto px-4 py-6">
{body}
</main>
<footer class="text-center text-sm text-slate-500 py-6 border-t">&copy; Realty, Inc.</footer>
</body></html>'''


def toasts(notifications: Iterable[Notification]) -> str:
    """Closable toasts; each removes itself after its duration."""
    parts = []
    for n in notifications:
        color = TOAST_COLORS.get(n.status, TOAST_COLORS["info"])
        close = ('<button class="ml-3 text-white/80" onclick="this.parentElement.remove()">✕</button>'
                 if n.is_closable else '')
        parts.append(
            f'<div class="{color} text-white rounded-lg shadow px-4 py-3 flex items-start" role="status" '
            f'data-status="{escape(n.status)}" '
            f'hx-on::load="setTimeout(() => this.remove(), {n.duration})">'
            f'<div><div class="font-semibold">{escape(n.title)}</div>'
            f'<div class="text-sm">{escape(n.description)}</div></div>{close}</div>'
        )
    return ''.join(parts)


def _report(report_url: Optional[str], outcome: str, view: ListingView) -> str:
    """Inline JS posting an image outcome back to its slot."""
    if not report_url:
        return ''
    state = ImageState.LOADED if outcome == "loaded" else ImageState.FALLBACK
    url = f"{report_url}/{outcome}?listing={quote(view.external_id or '', safe='')}"
    js = (f" var card=this.closest('[data-image-state]'); if(card){{card.dataset.imageState='{state.value}';}}"
          f" htmx.ajax('POST','{url}',{{swap:'none'}});")
    if outcome == "loaded":
        # the fallback image loading after an error is not a successful load
        js = f" if(!this.dataset.failed){{{js}}}"
    else:
        js = " this.dataset.failed='1';" + js
    return escape(js, quote=True)


def listing_card(view: ListingView, slot: Optional[ImageSlot] = None, report_url: Optional[str] = None) -> str:
    """
    Card for one listing; a loading view renders structure only.

    With `report_url` the image posts its load or error outcome back so the
    server-side slot leaves the pending state.
    """
    if view.is_loading:
        return '''<div class="bg-white rounded-xl shadow-sm border overflow-hidden animate-pulse" data-loading="true">
<div class="h-56 bg-slate-200"></div>
<div class="p-4 space-y-3">
<div class="h-4 bg-slate-200 rounded w-2/3"></div>
<div class="flex justify-between"><div class="h-4 bg-slate-200 rounded w-1/3"></div><div class="h-10 w-10 bg-slate-200 rounded-full"></div></div>
<div class="h-3 bg-slate-200 rounded w-full"></div>
</div></div>'''

    slot = slot or ImageSlot()
    if slot.external_id != view.external_id:
        slot.bind(view.external_id, view.cover_photo_url)
    external_id = quote(view.external_id or "", safe="")

    badges = ''.join(
        f'<span class="{BADGE_COLORS[b]} text-white text-xs px-2 py-0.5 rounded-full">{b.value}</span>'
        for b in view.badges
    )
    if slot.ready:
        image = (f'<img src="{escape(slot.src)}" class="w-full h-56 object-cover" loading="lazy" '
                 f'alt="{escape(view.title or "Property Image")}"/>')
    else:
        image = (f'<div class="absolute inset-0 flex items-center justify-center text-slate-400 text-sm">Loading image...</div>'
                 f'<img src="{escape(slot.src)}" class="w-full h-56 object-cover opacity-0 transition-opacity" loading="lazy" '
                 f'onload="this.classList.remove(\'opacity-0\'); this.previousElementSibling.remove();{_report(report_url, "loaded", view)}" '
                 f'onerror="this.onerror=null; this.src=\'{escape(slot.fallback_src)}\';{_report(report_url, "failed", view)}" '
                 f'alt="{escape(view.title or "Property Image")}"/>')

    logo = view.agency_logo_url
    avatar = (f'<img src="{escape(logo)}" class="w-12 h-12 rounded-full object-cover shrink-0" alt="{escape(view.agency_name)}"/>'
              if logo else
              f'<div class="w-12 h-12 rounded-full bg-slate-200 flex items-center justify-center text-sm font-semibold shrink-0">'
              f'{escape(view.agency_name[:1])}</div>')
    furnishing = (f'<div class="mt-2 text-sm text-slate-500">{escape(view.furnishing_status)}</div>'
                  if view.furnishing_status else '')

    return f'''<a href="/property/{external_id}" class="block bg-white rounded-xl shadow-sm border overflow-hidden hover:shadow-md transition"
   data-external-id="{escape(view.external_id or "")}" data-image-state="{slot.state.value}">
<div class="relative h-56 bg-slate-100">{image}
<div class="absolute top-2 left-2 flex gap-1">{badges}</div>
</div>
<div class="p-4">
<div class="flex justify-between items-start gap-3">
<div><div class="text-xl font-bold text-blue-800">{escape(view.price_label)}</div>
<div class="font-medium text-slate-700 truncate-2">{escape(view.title)}</div></div>
{avatar}
</div>
<div class="mt-3 text-slate-600 text-sm flex gap-3">
<span>{escape(view.beds_label)}</span><span class="text-slate-300">|</span>
<span>{escape(view.baths_label)}</span><span class="text-slate-300">|</span>
<span>{escape(view.area_label)}</span>
</div>
{furnishing}
</div></a>'''


def card_grid(views: Sequence[ListingView], slots: Optional[Sequence[ImageSlot]] = None,
              report_base: Optional[str] = None) -> str:
    cards = []
    for i, view in enumerate(views):
        slot = slots[i] if slots and i < len(slots) else None
        report_url = f"{report_base}/{i}" if report_base and slot is not None else None
        cards.append(listing_card(view, slot, report_url))
    return f'<div class="grid grid-cols-1 md:grid-cols-2 lg:grid-cols-3 gap-6">{"".join(cards)}</div>'


def banner(purpose: str, title1: str, title2: str, desc: str, button: str, link: str, image_url: str) -> str:
    return f'''<section class="bg-white rounded-2xl shadow-sm overflow-hidden my-10 flex flex-col md:flex-row items-center">
<img src="{escape(image_url)}" alt="{escape(title1)}" class="w-full md:w-1/2 h-72 md:h-96 object-cover"/>
<div class="p-8 md:p-12 space-y-5">
<div class="text-sm font-semibold uppercase tracking-wide text-amber-600">{escape(purpose)}</div>
<h2 class="text-3xl font-bold">{escape(title1)}<br/>{escape(title2)}</h2>
<p class="text-lg text-slate-600">{escape(desc)}</p>
<a href="{escape(link)}" class="inline-block px-5 py-3 rounded-lg bg-blue-700 text-white hover:-translate-y-0.5 transition">{escape(button)}</a>
</div></section>'''


def _select(name: str, options: Sequence, current, label: str) -> str:
    opts = ''.join(
        f'<option value="{escape(str(value))}"{" selected" if str(value) == str(current) else ""}>{escape(text)}</option>'
        for value, text in options
    )
    return (f'<label class="flex-1 min-w-[180px] text-sm font-medium">{label}'
            f'<select name="{name}" class="mt-1 w-full border rounded px-3 py-2 font-normal">{opts}</select></label>')


def _number(name: str, value: int, label: str, lo: int, hi: Optional[int]) -> str:
    bound = f' max="{hi}"' if hi is not None else ''
    return (f'<label class="flex-1 text-sm font-medium">{label}'
            f'<input type="number" name="{name}" value="{value}" min="{lo}"{bound} '
            f'class="mt-1 w-full border rounded px-3 py-2 font-normal"/></label>')


def location_field(page: SearchPage, scope: str = "main") -> str:
    resolver: LocationResolver = page.orchestrator.location
    base = f"/ui/pages/{page.page_id}"
    if resolver.busy:
        action = '<span class="text-slate-400 text-sm">…</span>'
    elif resolver.text:
        action = (f'<button type="button" class="text-slate-500" hx-post="{base}/location/clear" '
                  f'hx-target="#filters" hx-swap="outerHTML">✕</button>')
    else:
        action = '<span class="text-slate-400">⌖</span>'
    return f'''<div class="relative text-sm font-medium">Location
<div class="mt-1 flex items-center border rounded px-3 py-2 bg-white">
<input type="text" name="locationQuery" value="{escape(resolver.text)}" placeholder="Search location..." autocomplete="off"
       class="flex-1 outline-none font-normal"
       hx-get="{base}/location" hx-trigger="input changed" hx-sync="this:replace" hx-target="#suggestions-{scope}" hx-swap="innerHTML"/>
{action}
</div>
<div id="suggestions-{scope}">{suggestion_list(page)}</div>
</div>'''


def suggestion_list(page: SearchPage) -> str:
    suggestions = page.orchestrator.location.suggestions
    if not suggestions:
        return ''
    items = ''.join(
        f'<li class="p-2 cursor-pointer hover:bg-slate-50" hx-post="/ui/pages/{page.page_id}/location/select" '
        f'hx-vals="{escape(json.dumps({"suggestion_id": s.id}), quote=True)}" hx-target="#filters" hx-swap="outerHTML">'
        f'<div>{escape(s.display_name)}</div><div class="text-xs text-slate-500">{escape(s.breadcrumb)}</div></li>'
        for s in suggestions
    )
    return f'<ul class="absolute left-0 right-0 mt-2 bg-white shadow-md rounded max-h-52 overflow-y-auto z-10">{items}</ul>'


def active_chips(page: SearchPage) -> str:
    store: FilterStore = page.orchestrator.store
    if not store.is_active():
        return ''
    chips = ''.join(
        f'<span class="bg-blue-100 text-blue-800 text-sm px-2 py-1 rounded">{escape(label)}</span>'
        for label in store.active_labels()
    )
    return f'''<div class="flex flex-wrap items-center gap-2 mt-4" id="active-filters">
<span class="text-sm text-slate-600">Active Filters:</span>{chips}
<button type="button" class="text-sm text-red-600 underline" hx-post="/ui/pages/{page.page_id}/reset"
        hx-target="#filters" hx-swap="outerHTML">Clear all</button>
</div>'''


def filter_fields(page: SearchPage, scope: str = "main") -> str:
    state = page.orchestrator.filters
    return f'''<div class="flex flex-wrap gap-4">
{_select("purpose", [(Purpose.FOR_RENT.value, "Rent"), (Purpose.FOR_SALE.value, "Buy")], state.purpose.value, "Purpose")}
{_select("categoryExternalID", list(CATEGORIES.items()), state.category_external_id, "Property Type")}
{_select("sort", [(k.value, v) for k, v in SORT_LABELS.items()], state.sort.value, "Sort By")}
</div>
{location_field(page, scope)}
<div class="flex gap-4">
{_number("minPrice", state.min_price, "Min Price", 0, state.max_price)}
{_number("maxPrice", state.max_price, "Max Price", state.min_price, PRICE_CEILING)}
{_number("areaMin", state.area_min, "Min Area (sqft)", 0, None)}
</div>
<div class="flex gap-4">
{_select("roomsMin", [(n, f"{n}+") for n in range(ROOMS_MAX + 1)], state.rooms_min, "Min Beds")}
{_select("bathsMin", [(n, f"{n}+") for n in range(BATHS_MAX + 1)], state.baths_min, "Min Baths")}
</div>'''


def filter_panel(page: SearchPage) -> str:
    """The desktop form, its active-filter chips and the mobile drawer."""
    base = f"/ui/pages/{page.page_id}"
    return f'''<section id="filters" class="bg-white rounded-xl shadow-sm border p-5 mb-6">
<form action="/search" method="get" class="hidden md:block space-y-4"
      hx-post="{base}/filters" hx-trigger="change" hx-target="#filters" hx-swap="outerHTML">
{filter_fields(page)}
<button type="button" class="px-5 py-3 rounded-lg bg-blue-700 text-white"
        hx-post="{base}/submit" hx-target="#toasts" hx-swap="beforeend">Search Properties</button>
</form>
<div class="md:hidden flex justify-between items-center">
<span class="font-medium">Filters</span>
<button type="button" class="px-3 py-2 border rounded" hx-post="{base}/overlay/open"
        hx-target="#filters" hx-swap="outerHTML">Show filters</button>
</div>
{drawer(page)}
{active_chips(page)}
</section>'''


def drawer(page: SearchPage) -> str:
    if not page.orchestrator.overlay.is_open:
        return ''
    base = f"/ui/pages/{page.page_id}"
    return f'''<div class="fixed inset-0 bg-black/40 z-40 md:hidden" id="drawer">
<form class="absolute inset-y-0 right-0 w-full max-w-sm bg-white p-5 space-y-4 overflow-y-auto"
      hx-post="{base}/filters" hx-trigger="change" hx-target="#filters" hx-swap="outerHTML">
<div class="flex justify-between items-center"><h2 class="text-lg font-semibold">Filter Properties</h2>
<button type="button" hx-post="{base}/overlay/close" hx-target="#filters" hx-swap="outerHTML">✕</button></div>
{filter_fields(page, "drawer")}
<button type="button" class="w-full px-5 py-3 rounded-lg bg-blue-700 text-white"
        hx-post="{base}/submit?from_overlay=true" hx-target="#toasts" hx-swap="beforeend">Apply Filters</button>
</form></div>'''


def results_placeholder(page: SearchPage, count: int = 6) -> str:
    return (f'<div id="results" hx-get="/ui/pages/{page.page_id}/results" hx-trigger="load" hx-swap="outerHTML">'
            f'{card_grid([ListingView.placeholder() for _ in range(count)])}</div>')


def results(views: List[ListingView], slots: Sequence[ImageSlot], total: int,
            page_no: int, pages: int, page_links: Sequence[Optional[str]],
            report_base: Optional[str] = None) -> str:
    if not views:
        body = '<div class="text-center text-slate-500 py-16">No results found</div>'
    else:
        body = card_grid(views, slots, report_base)
    prev_link, next_link = page_links
    nav = ['<div class="flex items-center justify-between p-3 text-sm text-slate-600">', f'<div>Total: {total}</div>',
           '<div class="space-x-2">']
    if prev_link:
        nav.append(f'<a class="px-2 py-1 border rounded" href="{escape(prev_link)}">Prev</a>')
    nav.append(f'<span>Page {page_no + 1}/{max(1, pages)}</span>')
    if next_link:
        nav.append(f'<a class="px-2 py-1 border rounded" href="{escape(next_link)}">Next</a>')
    nav.append('</div></div>')
    return f'<div id="results">{body}{"".join(nav)}</div>'


def description_html(text: str) -> str:
    """Escape a free-text description and keep its paragraph breaks."""
    paragraphs = [p.strip() for p in escape(text or "").split("\n\n") if p.strip()]
    return ''.join(f'<p class="mb-4">{p.replace(chr(10), "<br/>")}</p>' for p in paragraphs)


def detail_body(detail: PropertyDetail, view: ListingView) -> str:
    photos = ''.join(
        f'<img src="{escape(url)}" loading="lazy" class="rounded-lg h-64 w-auto object-cover snap-start" '
        f'onerror="this.style.display=\'none\'" alt="Property photo {i + 1}"/>'
        for i, url in enumerate(detail.photos)
    )
    gallery = f'<div class="flex gap-3 overflow-x-auto snap-x mb-8">{photos}</div>' if photos else ''
    verified = '<span class="text-green-500" title="Verified">✔</span>' if detail.is_verified else ''
    purpose = ''
    if detail.purpose:
        purpose = 'Rent' if detail.purpose == Purpose.FOR_RENT.value else 'Sale'

    facts = [("Type", detail.type), ("Purpose", purpose), ("Furnished", detail.furnishing_status or "")]
    facts_html = ''.join(
        f'<li class="flex justify-between"><span class="text-slate-500">{label}</span>'
        f'<span class="font-medium">{escape(value)}</span></li>'
        for label, value in facts if value
    )
    amenities = ''
    if detail.amenities:
        items = ''.join(f'<span class="bg-slate-100 px-3 py-1 rounded-full text-sm">{escape(a)}</span>'
                        for a in detail.amenities)
        amenities = f'<div class="mt-8"><h3 class="text-lg font-semibold mb-3">Amenities</h3><div class="flex flex-wrap gap-2">{items}</div></div>'

    contact = ''
    digits = ''.join(ch for ch in detail.phone_number if ch.isdigit())
    if digits:
        message = quote(f"Hello, I am interested in the property: {detail.title}")
        contact = (f'<div class="mt-8 flex gap-3">'
                   f'<a class="px-4 py-2 rounded bg-green-600 text-white" href="https://wa.me/{digits}?text={message}" target="_blank">WhatsApp</a>'
                   f'<a class="px-4 py-2 rounded border" href="tel:{digits}">Call {escape(detail.contact_name)}</a></div>')

    return f'''<a href="javascript:history.back()" class="text-blue-600 underline">← Back</a>
<div class="mt-4">{gallery}</div>
<div class="bg-white rounded-2xl shadow-sm p-8">
<div class="flex items-center gap-2 mb-4">{verified}<span class="text-2xl font-bold">{escape(view.price_label)}</span></div>
<div class="flex gap-4 text-blue-700 mb-6"><span>{escape(view.beds_label)}</span><span>{escape(view.baths_label)}</span><span>{escape(view.area_label)}</span></div>
<h1 class="text-xl font-semibold mb-3">{escape(detail.title)}</h1>
<div class="text-slate-700 leading-relaxed">{description_html(detail.description)}</div>
<div class="grid grid-cols-1 md:grid-cols-2 gap-6 mt-8">
<div><h3 class="text-lg font-semibold mb-3">Property Details</h3><ul class="space-y-2">{facts_html}</ul></div>
<div><h3 class="text-lg font-semibold mb-3">Location</h3><div class="text-slate-600">{escape(", ".join(detail.location))}</div></div>
</div>
{amenities}
{contact}
</div>'''
