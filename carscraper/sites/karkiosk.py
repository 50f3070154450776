"""
Karkiosk used-car listings.
"""
from typing import Any, Dict, List, Optional

from ..dom import body_text, extract_cards, first_text
from ..models import EnrichedListing, ListingStub, RunContext
from .base import SiteAdapter

CARD_SELECTOR = ".featured-car"

CARD_FIELDS = {
    "title": [("h2.cat-head", None)],
    "link": [("a.product-img", "href"), ("h2.cat-head a", "href")],
    "image": [("img.img-box", "src"), ("img", "src")],
    "price": [(".kk-price-box .kk-price-num", None), (".kk-price-box", None)],
    "location": [(".kk-category-list li:nth-child(1) .cate-title", None)],
    "city": [(".kk-category-list li:nth-child(2) .cate-title", None)],
    "mileage": [("span[data-qa='mileage']", None)],
    "seller_type": [(".badge-sellprivate", None), (".badge-selldealer", None)],
}

NEXT_LINK_SELECTORS = ["a[rel='next']", ".pagination a.next", ".pagination li.next a", "a.page-link:has-text('Next')"]
SELLER_NAME_SELECTORS = [".kk-user-name", ".user-name", ".seller-name"]

DESCRIPTION_CHARS = 800
DEFAULT_SELLER = "Private Seller"


class KarkioskAdapter(SiteAdapter):
    site_name = "Karkiosk"
    slug = "karkiosk"
    aliases = ("Karkis",)

    results_selector = CARD_SELECTOR
    detail_concurrency = 3

    async def advance(self, ctx: RunContext, page, search_url: str, index: int) -> Optional[bool]:
        return await self.follow_next_link(page, page.url or search_url, NEXT_LINK_SELECTORS)

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        rows = await extract_cards(page, CARD_SELECTOR, CARD_FIELDS)
        for row in rows:
            location = " ".join(p for p in (row.pop("location", ""), row.pop("city", "")) if p)
            row["meta"] = {
                "location": location,
                "mileage": row.pop("mileage", ""),
                "seller_type": row.pop("seller_type", "") or "Unknown",
            }
        return rows

    def parse_posted_date(self, text: str):
        # cards carry no posting date
        return None

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        await self.pause(0.5, 1.0)
        page_text = await body_text(page)
        seller = await first_text(page, SELLER_NAME_SELECTORS) or DEFAULT_SELLER
        return await self.build_listing(
            ctx,
            stub,
            description=page_text[:DESCRIPTION_CHARS],
            contact_text=page_text,
            seller_name=seller,
        )
