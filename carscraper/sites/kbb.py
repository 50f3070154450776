"""
Kelley Blue Book private-party inventory.

Results grow in place behind a "Show More Results" button, so each click
counts as one page load.
"""
from typing import Any, Dict, List, Optional

from ..dom import body_text, click_first, extract_cards, first_text
from ..models import EnrichedListing, ListingStub, RunContext
from .base import SiteAdapter

CARD_SELECTOR = "[data-cmp='inventorySpotlightListing']"

CARD_FIELDS = {
    "title": [("h2[data-cmp='subheading']", None), ("h3", None)],
    "link": [("a[data-cmp='link']", "href"), ("a", "href")],
    "price": [("[data-cmp='firstPrice']", None)],
    "image": [("img[data-cmp='inventoryImage']", "src")],
    "details": [("[data-cmp='listingSpecifications']", None)],
}

SHOW_MORE = ["button:has-text('Show More Results')"]
DESCRIPTION_SELECTORS = ["[data-cmp='sellerComments']", "[data-cmp='vehicleDescription']", "p"]
SELLER_NAME_SELECTORS = ["[data-cmp='ownerName']", "[data-cmp='sellerName']"]

SCROLL_JS = """
async () => {
    for (let y = 0; y < document.body.scrollHeight; y += 600) {
        window.scrollTo(0, y);
        await new Promise(r => setTimeout(r, 150));
    }
}
"""


class KbbAdapter(SiteAdapter):
    site_name = "KBB"
    slug = "kbb"
    aliases = ("Kelley Blue Book",)

    results_selector = CARD_SELECTOR
    stop_on_repeat = True
    detail_concurrency = 2
    block_resources = ("image", "stylesheet", "font", "media")

    async def first_page(self, ctx: RunContext, page, search_url: str) -> bool:
        loaded = await self.goto_results(page, search_url)
        if loaded:
            await self._scroll(page)
        return loaded

    async def advance(self, ctx: RunContext, page, search_url: str, index: int) -> Optional[bool]:
        clicked = await click_first(page, SHOW_MORE, timeout_ms=self.config.MODAL_TIMEOUT_MS)
        if not clicked:
            return None
        await self.pause(2.0, 3.0)
        await self._scroll(page)
        return True

    async def _scroll(self, page) -> None:
        # lazy cards render only once scrolled into view
        try:
            await page.evaluate(SCROLL_JS)
        except Exception:
            pass

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        return await extract_cards(page, CARD_SELECTOR, CARD_FIELDS, limit=500)

    def parse_posted_date(self, text: str):
        return None

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        await self.pause(0.8, 1.5)
        description = await first_text(page, DESCRIPTION_SELECTORS)
        contact_text = description or await body_text(page)
        return await self.build_listing(
            ctx,
            stub,
            description=description,
            contact_text=contact_text,
            seller_name=await first_text(page, SELLER_NAME_SELECTORS),
        )
