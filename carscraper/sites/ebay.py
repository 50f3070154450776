"""
eBay Motors search results (US, UK and AU storefronts share the markup).
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..dom import body_text, extract_cards, first_attr, first_text, frame_text
from ..models import EnrichedListing, ListingStub, RunContext
from ..utils import parse_any_date, parse_month_day_time, strip_query
from .base import SiteAdapter

CARD_SELECTOR = "li.s-item, li.s-card"

CARD_FIELDS = {
    "title": [(".s-card__title span", None), (".s-item__title span", None), (".s-item__title", None)],
    "link": [("a.s-item__link", "href"), ("a[href*='/itm/']", "href")],
    "price": [(".s-item__price", None), (".s-card__price", None)],
    "image": [("img.s-item__image-img", "src"), ("img.s-card__image", "src")],
    "posted": [(".s-item__listingDate", None), (".s-item__subtitle", None)],
}

SELLER_NAME_SELECTORS = [
    ".x-sellercard-atf__info__about-seller a span",
    "[data-testid='x-sellercard-atf'] .ux-textspans--BOLD",
    ".x-sellercard-atf__info__about-seller",
]
SELLER_LINK_SELECTORS = [
    ".x-sellercard-atf__info__about-seller a",
    "[data-testid='x-sellercard-atf'] a[href*='/str/']",
    "[data-testid='x-sellercard-atf'] a[href*='/usr/']",
]
DESCRIPTION_FRAME = "iframe#desc_ifr"
DESCRIPTION_SELECTORS = [".x-item-description", "#viTabs_0_is", "[data-testid='x-item-description']"]
IMAGE_SELECTORS = [".ux-image-carousel-item.active img", ".ux-image-carousel-item img", "#icImg"]

NEW_LISTING_RE = re.compile(r"^new listing\s*", re.I)


class EbayAdapter(SiteAdapter):
    site_name = "eBay"
    slug = "ebay"
    aliases = ("eBay (US)", "eBay (UK)", "eBay (Aus)")

    page_param = "_pgn"
    results_selector = CARD_SELECTOR
    detail_concurrency = 5

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        return await extract_cards(page, CARD_SELECTOR, CARD_FIELDS)

    def clean_title(self, title: str) -> str:
        return NEW_LISTING_RE.sub("", title)

    def canonical_link(self, link: str) -> str:
        # tracking parameters differ on every load
        return strip_query(link)

    def parse_posted_date(self, text: str) -> Optional[datetime]:
        now = self.clock()
        return parse_month_day_time(text, self.tz, now) or parse_any_date(text, self.tz, now)

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        description = await frame_text(page, DESCRIPTION_FRAME)
        if not description:
            description = await first_text(page, DESCRIPTION_SELECTORS)
        page_text = await body_text(page)
        if not description:
            description = page_text

        seller_name = await first_text(page, SELLER_NAME_SELECTORS)
        profile = await first_attr(page, SELLER_LINK_SELECTORS, "href")
        image = await first_attr(page, IMAGE_SELECTORS, "src")

        return await self.build_listing(
            ctx,
            stub,
            description=description,
            contact_text=page_text,
            seller_name=seller_name,
            seller_profile=profile or None,
            image=image if not stub.image else "",
        )
