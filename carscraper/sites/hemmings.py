"""
Hemmings classifieds.
"""
import re
from typing import Any, Dict, List, Optional

from ..dom import all_texts, body_text, extract_cards, first_attr, first_text
from ..models import EnrichedListing, ListingStub, RunContext
from .base import SiteAdapter

CARD_SELECTOR = "article, div.shadow-md, li.classified-card"

CARD_FIELDS = {
    "title": [("h3", None)],
    "link": [("a[href*='/classifieds/listing']", "href"), ("a", "href")],
    "price": [(".heading-label + span", None), (".price", None)],
    "image": [("img", "src"), ("img", "data-src")],
    "posted": [("time", "datetime"), ("time", None), (".listed-date", None)],
    "details": [(".listing-details", None), ("p", None)],
}

PAGER_LINKS = "a[href*='page=']"

SELLER_NAME_SELECTORS = [
    "div:has(> .hmn-content-label:text-is('SELLER')) h3.text-base",
    ".seller-info .seller-name",
    ".seller-details .seller-name",
    "[data-testid='seller-name']",
    ".classified-seller",
    ".listing-seller-info h3",
]
PROFILE_LINK_SELECTORS = [
    "a[href*='/profiles/']",
    "a[href*='/user/']",
    "a[href*='/classifieds/seller']",
]
DESCRIPTION_SELECTORS = ["#description", ".description", ".listing-description", ".classified-description"]

DESCRIPTION_FALLBACK_CHARS = 1500


def clean_price(text: str) -> str:
    """Keep digits, "$" and ","; add the dollar sign if the card dropped it."""
    price = re.sub(r"[^0-9$,]", "", text or "").strip()
    if price and not price.startswith("$"):
        price = "$" + price
    return price


class HemmingsAdapter(SiteAdapter):
    site_name = "Hemmings"
    slug = "hemmings"
    aliases = ("Hemming",)

    page_param = "page"
    results_selector = "h3"
    detail_concurrency = 3
    # short numeric ids litter the page; only full numbers count
    min_phone_digits = 10

    async def first_page(self, ctx: RunContext, page, search_url: str) -> bool:
        loaded = await self.goto_results(page, search_url)
        last = 1
        if loaded:
            for label in await all_texts(page, PAGER_LINKS, limit=100):
                if label.isdigit():
                    last = max(last, int(label))
        ctx.state["last_page"] = last
        return loaded

    async def advance(self, ctx: RunContext, page, search_url: str, index: int) -> Optional[bool]:
        if index > ctx.state.get("last_page", 1):
            return None
        return await super().advance(ctx, page, search_url, index)

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        rows = await extract_cards(page, CARD_SELECTOR, CARD_FIELDS)
        for row in rows:
            row["price"] = clean_price(row.get("price"))
        return [r for r in rows if r.get("title") and r.get("link")]

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        await self.pause(0.6, 1.2)
        page_text = await body_text(page)
        description = await first_text(page, DESCRIPTION_SELECTORS)
        if not description:
            description = page_text[:DESCRIPTION_FALLBACK_CHARS]

        return await self.build_listing(
            ctx,
            stub,
            description=description,
            contact_text=page_text,
            seller_name=await first_text(page, SELLER_NAME_SELECTORS),
            seller_profile=await first_attr(page, PROFILE_LINK_SELECTORS, "href") or None,
            profile_page=page,
        )
