"""
Web UI route handlers for human-friendly interfaces.
"""
import html
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from carscraper.database import get_listing, get_overview, list_listings, list_permanent, promote_listing
from carscraper.sites import site_names

from ..database import get_db_connection

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ui"])

PLACEHOLDER = "—"

# HTML template for the main page; {site_options} is filled per request
INDEX_HTML = '''<!doctype html>
<html lang="en" class="h-full">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>Vehicle Scraper Dashboard</title>
  <script src="https://unpkg.com/htmx.org@1.9.12"></script>
  <script src="https://cdn.tailwindcss.com"></script>
  <style>.truncate-2{{display:-webkit-box;-webkit-line-clamp:2;-webkit-box-orient:vertical;overflow:hidden}}</style>
</head>
<body class="h-full bg-slate-50 text-slate-900">
<div class="max-w-7xl mx-auto px-4 py-6">
  <h1 class="text-2xl font-semibold mb-4">Vehicle Scraper</h1>
  <form id="job" class="grid grid-cols-1 md:grid-cols-6 gap-3 mb-2" onsubmit="runScrape(event)">
    <select class="border rounded px-3 py-2" name="site_name" required>{site_options}</select>
    <input class="border rounded px-3 py-2 md:col-span-2" type="url" name="search_url" placeholder="Search results URL" required/>
    <input class="border rounded px-3 py-2" type="text" name="keyword" placeholder="Keyword (optional)"/>
    <input class="border rounded px-3 py-2" type="datetime-local" name="from_date" title="From"/>
    <input class="border rounded px-3 py-2" type="datetime-local" name="to_date" title="To"/>
    <input class="border rounded px-3 py-2" type="number" min="1" name="max_pages" placeholder="Max pages"/>
    <div class="md:col-span-5 flex items-center gap-2">
      <button id="run" class="px-3 py-2 rounded bg-slate-800 text-white" type="submit">Start scrape</button>
      <a class="px-3 py-2 rounded border" href="/api/export/csv?store=temporary" target="_blank">Export temporary CSV</a>
      <a class="px-3 py-2 rounded border" href="/api/export/csv?store=permanent" target="_blank">Export permanent CSV</a>
      <span id="status" class="text-sm"></span>
    </div>
  </form>
  <div id="overview" hx-get="/ui/overview" hx-trigger="load, refresh from:body" class="my-4"></div>
  <h2 class="text-lg font-semibold mt-6 mb-2">Latest results</h2>
  <div id="temporary" hx-get="/ui/listings" hx-trigger="load, refresh from:body"></div>
  <h2 class="text-lg font-semibold mt-6 mb-2">Saved listings</h2>
  <div id="permanent" hx-get="/ui/permanent" hx-trigger="load, refresh from:body"></div>
</div>
<script>
async function runScrape(ev) {{
  ev.preventDefault();
  const form = new FormData(ev.target);
  const body = {{}};
  for (const [k, v] of form.entries()) {{ if (v !== "") body[k] = v; }}
  if (body.max_pages) body.max_pages = parseInt(body.max_pages, 10);
  const status = document.getElementById('status');
  const btn = document.getElementById('run');
  btn.disabled = true;
  status.className = 'text-sm text-slate-500';
  status.textContent = 'Scraping...';
  try {{
    const res = await fetch('/api/scrape', {{
      method: 'POST', headers: {{'Content-Type': 'application/json'}}, body: JSON.stringify(body)
    }});
    const data = await res.json();
    if (!res.ok) throw new Error(data.detail || 'Scrape failed');
    status.className = 'text-sm text-emerald-700';
    status.textContent = `Saved ${{data.count}} listings`;
    htmx.trigger(document.body, 'refresh');
  }} catch (e) {{
    status.className = 'text-sm text-red-600';
    status.textContent = e.message;
  }} finally {{
    btn.disabled = false;
  }}
}}
</script>
</body></html>'''


def cell(value: Any) -> str:
    """Escaped cell text; missing values show as an em-dash."""
    if value is None or value == "":
        return PLACEHOLDER
    return html.escape(str(value))


def link_cell(url: Optional[str], label: str) -> str:
    if not url:
        return PLACEHOLDER
    return f"<a class='text-blue-600 underline' href='{html.escape(url, quote=True)}' target='_blank'>{label}</a>"


def render_table(rows: List[Dict[str, Any]], headers: List[str], render_row) -> str:
    html_parts = ['<div class="bg-white rounded-xl shadow border overflow-x-auto">']
    html_parts.append('<table class="min-w-full divide-y divide-slate-200">')
    html_parts.append('<thead class="bg-slate-50"><tr>')
    for header in headers:
        html_parts.append(f'<th class="px-3 py-2 text-left text-xs font-semibold">{header}</th>')
    html_parts.append('</tr></thead><tbody class="divide-y divide-slate-100">')
    if not rows:
        html_parts.append(f'<tr><td class="px-3 py-4 text-slate-500" colspan="{len(headers)}">No listings</td></tr>')
    for row in rows:
        html_parts.append(render_row(row))
    html_parts.append('</tbody></table>')
    html_parts.append(f'<div class="p-3 text-sm text-slate-600">Total: {len(rows)}</div>')
    html_parts.append('</div>')
    return "".join(html_parts)


def _photo(url: Optional[str]) -> str:
    if not url:
        return '<div class="w-20 h-14 bg-slate-100 rounded flex items-center justify-center text-slate-400 text-xs">No photo</div>'
    return (f'<img src="{html.escape(url, quote=True)}" class="w-20 h-14 object-cover rounded shadow-sm" '
            f'loading="lazy" alt="Thumbnail"/>')


def _contact_cells(row: Dict[str, Any]) -> str:
    return (
        f'<td class="px-3 py-2">{cell(row.get("seller_name"))}</td>'
        f'<td class="px-3 py-2 whitespace-nowrap">{cell(row.get("seller_contact"))}</td>'
        f'<td class="px-3 py-2">{cell(row.get("seller_email"))}</td>'
    )


def temporary_row(row: Dict[str, Any]) -> str:
    listing_id = row.get("id")
    return (
        "<tr>"
        f'<td class="px-3 py-2">{_photo(row.get("image"))}</td>'
        f'<td class="px-3 py-2"><div class="font-medium truncate-2 max-w-sm">{cell(row.get("title"))}</div>'
        f'<div class="text-xs text-slate-500">{cell(row.get("site_name"))}</div></td>'
        f'<td class="px-3 py-2">{cell(row.get("price"))}</td>'
        f'<td class="px-3 py-2 text-xs">{cell(row.get("posted_date"))}</td>'
        + _contact_cells(row) +
        f'<td class="px-3 py-2">{link_cell(row.get("product_link"), "Open")}</td>'
        f'<td class="px-3 py-2"><button class="text-emerald-700 underline" '
        f'hx-post="/ui/promote/{listing_id}" hx-swap="outerHTML">Save</button></td>'
        "</tr>"
    )


def permanent_row(row: Dict[str, Any]) -> str:
    return (
        "<tr>"
        f'<td class="px-3 py-2">{_photo(row.get("image"))}</td>'
        f'<td class="px-3 py-2"><div class="font-medium truncate-2 max-w-sm">{cell(row.get("title"))}</div></td>'
        f'<td class="px-3 py-2">{cell(row.get("price"))}</td>'
        + _contact_cells(row) +
        f'<td class="px-3 py-2">{link_cell(row.get("product_link"), "Open")}</td>'
        f'<td class="px-3 py-2"><button class="text-red-600 underline" '
        f'hx-delete="/api/permanent/{row.get("id")}" hx-swap="none" '
        f"hx-on::after-request=\"htmx.trigger(document.body, 'refresh')\">Delete</button></td>"
        "</tr>"
    )


@router.get("/", response_class=HTMLResponse)
async def index():
    """Dashboard page: job form, overview and both stores."""
    options = "".join(f'<option value="{html.escape(n, quote=True)}">{html.escape(n)}</option>' for n in site_names())
    return HTMLResponse(INDEX_HTML.format(site_options=options))


@router.get("/ui/overview", response_class=HTMLResponse)
async def ui_overview():
    try:
        with get_db_connection() as conn:
            stats = get_overview(conn)

        def stat_pill(label: str, value: str) -> str:
            return (f'<div class="px-3 py-2 bg-white rounded-lg shadow text-sm">'
                    f'<div class="text-slate-500">{label}</div>'
                    f'<div class="text-lg font-semibold">{value}</div></div>')

        return HTMLResponse(
            '<div class="grid grid-cols-3 gap-3">'
            + stat_pill("Temporary listings", str(stats["temp_count"]))
            + stat_pill("Saved listings", str(stats["perm_count"]))
            + stat_pill("Exported", str(stats["exported_count"]))
            + "</div>"
        )
    except Exception as e:
        logger.error(f"Error generating overview: {e}")
        return HTMLResponse('<div class="text-red-600">Error loading overview</div>')


@router.get("/ui/listings", response_class=HTMLResponse)
async def ui_listings():
    try:
        with get_db_connection() as conn:
            rows = list_listings(conn)
        headers = ["Photo", "Title", "Price", "Posted", "Seller", "Phone", "Email", "Link", "Actions"]
        return HTMLResponse(render_table(rows, headers, temporary_row))
    except Exception as e:
        logger.error(f"Error generating listings table: {e}")
        return HTMLResponse('<div class="text-red-600">Error loading listings</div>')


@router.get("/ui/permanent", response_class=HTMLResponse)
async def ui_permanent():
    try:
        with get_db_connection() as conn:
            rows = list_permanent(conn)
        headers = ["Photo", "Title", "Price", "Seller", "Phone", "Email", "Link", "Actions"]
        return HTMLResponse(render_table(rows, headers, permanent_row))
    except Exception as e:
        logger.error(f"Error generating permanent table: {e}")
        return HTMLResponse('<div class="text-red-600">Error loading saved listings</div>')


@router.post("/ui/promote/{listing_id}", response_class=HTMLResponse)
async def ui_promote(listing_id: int):
    """Save a temporary listing from its table row."""
    with get_db_connection() as conn:
        row = get_listing(conn, listing_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Listing not found")
        status = promote_listing(conn, row)
    label = "Saved" if status == "created" else "Already saved"
    response = HTMLResponse(f'<span class="text-slate-500">{label}</span>')
    response.headers["HX-Trigger"] = json.dumps({"refresh": True})
    return response
