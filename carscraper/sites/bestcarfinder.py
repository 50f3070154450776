"""
BestCarFinder owner listings.
"""
from typing import Any, Dict, List, Optional

from ..dom import attr_of, body_text, extract_cards, first_text, reveal_contact
from ..models import EnrichedListing, ListingStub, RunContext
from .base import SiteAdapter

CARD_SELECTOR = "li .car_ad"

CARD_FIELDS = {
    "title": [(".car_vehicle a", None)],
    "link": [(".car_vehicle a", "href")],
    "price": [(".car_price span", None), (".car_price", None)],
    "image": [("img", "src")],
    "details": [(".car_details", None), (".car_desc", None)],
}

NEXT_PAGE_MARKER = "a.pagingbuttons[href*='page=']"

PHONE_SELECTORS = [
    "span.car_contact",
    ".car_contact",
    "#mphonenumber",
    "i#mphonenumber",
    ".msg_auto_item .car_contact",
]
CALL_BUTTONS = ["#btnCallSellerTop", "#btnCallSellerMobile", "#btnCallSeller"]
VEX_REGIONS = [".vex-content", ".vex-dialog-message"]
DESCRIPTION_SELECTORS = ["#car_description", ".car_description", ".vehicle_description"]
SELLER_NAME_SELECTORS = [".seller_name", "#seller_name"]


class BestCarFinderAdapter(SiteAdapter):
    site_name = "BestCarFinder"
    slug = "bestcarfinder"
    aliases = ("Best Car Finder",)

    page_param = "page"
    results_selector = CARD_SELECTOR
    detail_concurrency = 2

    async def advance(self, ctx: RunContext, page, search_url: str, index: int) -> Optional[bool]:
        try:
            has_next = await page.locator(NEXT_PAGE_MARKER).count() > 0
        except Exception:
            has_next = False
        if not has_next:
            return None
        return await super().advance(ctx, page, search_url, index)

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        return await extract_cards(page, CARD_SELECTOR, CARD_FIELDS)

    def parse_posted_date(self, text: str):
        return None

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        await self.pause(1.0, 1.8)
        contact_text = await first_text(page, PHONE_SELECTORS)
        if not contact_text:
            contact_text = await reveal_contact(
                page,
                CALL_BUTTONS,
                PHONE_SELECTORS + VEX_REGIONS,
                timeout_ms=self.config.MODAL_TIMEOUT_MS,
                settle_ms=int(700 * self.config.DELAY_SCALE),
            )
        if not contact_text:
            contact_text = await first_text(page, VEX_REGIONS)

        description = await first_text(page, DESCRIPTION_SELECTORS)
        listing = await self.build_listing(
            ctx,
            stub,
            description=description,
            contact_text=contact_text or await body_text(page),
            seller_name=await first_text(page, SELLER_NAME_SELECTORS),
            image=await attr_of(page, "#main_car_pic", "src"),
        )
        email = await attr_of(page, "#youremail", "value")
        if email and "@" in email:
            listing.seller_email = email
        return listing
