"""
Craigslist cars+trucks search (any city subdomain).
"""
import re
from typing import Any, Dict, List, Optional

from ..dom import attr_of, body_text, extract_cards, first_attr, reveal_contact, text_of
from ..models import EnrichedListing, ListingStub, RunContext
from ..utils import parse_iso_datetime, strip_fragment, to_iso
from .base import SiteAdapter

CARD_SELECTOR = "li.cl-static-search-result, li.result-row, div.cl-search-result"

CARD_FIELDS = {
    "title": [(".title", None), (".result-title", None), ("a.posting-title", None)],
    "link": [("a", "href")],
    "price": [(".price", None), (".result-price", None), (".priceinfo", None)],
    "image": [("img", "src"), ("img", "data-src"), ("img", "data-lazy-src"), ("img", "data-original")],
    "posted": [("time", "datetime"), (".date", None)],
    "details": [(".meta", None), (".location", None)],
}

REPLY_TRIGGERS = ["button.reply-button", ".reply-button", "button:has-text('reply')"]
REPLY_REGIONS = [".reply-info", ".reply-tel-number", ".reply-email-address", ".reply-content-wrapper"]
POSTING_BODY = "#postingbody"
IMAGE_SELECTORS = ["#postingbody img", ".gallery img", ".swipe img"]

QR_NOTICE_RE = re.compile(r"^\s*QR Code Link to This Post\s*", re.I)

SELLER_NAME = "Private Seller"


def search_page_url(search_url: str, index: int) -> str:
    """Results page index (1-based) through the list view hash."""
    return f"{strip_fragment(search_url)}#search=1~list~{index - 1}~0"


class CraigslistAdapter(SiteAdapter):
    site_name = "Craigslist"
    slug = "craigslist"
    aliases = ("Craigslist (Chicago)", "Craigslist (NewYork)")

    results_selector = "li.cl-static-search-result, li.result-row, div.cl-search-result"
    stop_on_repeat = True
    # static result cards have no <time>; the posting page has the date
    window_on_detail = True
    detail_concurrency = 3

    async def advance(self, ctx: RunContext, page, search_url: str, index: int) -> Optional[bool]:
        return await self.goto_results(page, search_page_url(search_url, index))

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        return await extract_cards(page, CARD_SELECTOR, CARD_FIELDS)

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        await self.pause(0.4, 1.0)
        description = QR_NOTICE_RE.sub("", await text_of(page, POSTING_BODY))

        posted = ""
        detail_stamp = await attr_of(page, "time[datetime]", "datetime")
        dt = parse_iso_datetime(detail_stamp, self.tz)
        if dt is not None:
            posted = to_iso(dt)

        revealed = await reveal_contact(
            page,
            REPLY_TRIGGERS,
            REPLY_REGIONS,
            timeout_ms=self.config.MODAL_TIMEOUT_MS,
            settle_ms=int(1200 * self.config.DELAY_SCALE),
        )
        contact_text = " ".join(t for t in (revealed, description) if t)
        if not contact_text:
            contact_text = await body_text(page)

        image = "" if stub.image else await first_attr(page, IMAGE_SELECTORS, "src")

        return await self.build_listing(
            ctx,
            stub,
            description=description,
            contact_text=contact_text,
            seller_name=SELLER_NAME,
            posted_date=posted,
            image=image,
        )
