"""
PrivatePartyCars listings.

The owner's phone usually sits behind an "inquire" dialog; the site's own
switchboard number appears on every page and is ignored.
"""
import re
from typing import Any, Dict, List, Optional

from ..contacts import DIRECT_PHONE_RE
from ..dom import body_text, extract_cards, reveal_contact, text_of
from ..models import EnrichedListing, ListingStub, RunContext
from .base import SiteAdapter

CARD_SELECTOR = ".results_main a.results_link"

CARD_FIELDS = {
    "title": [(".results_title", None)],
    "link": [("", "href")],
    "price": [(".results_price", None)],
    "image": [("img", "src")],
    "details": [(".results_details", None)],
}

NEXT_LINK_SELECTORS = ["a[rel='next']", ".pagination a.next", "a:has-text('Next Page')", "a:has-text('Next >')"]

INQUIRE_TRIGGERS = [
    "#ask-owner",
    ".inquire_link",
    "a[onclick*='inquire']",
    "input[value*='More Information']",
    "#inquire",
    "a[href*='inquireform']",
    "a[onclick*='inquireform']",
    ".openinquireform",
]
INQUIRE_REGIONS = ["#inquireform_main", ".inquireform_main", ".vex-content", ".vex-dialog-message"]
INQUIRE_NAME_BLOCK = "#inquireform_main .inquireform_div, .inquireform_div"

NAME_RE = re.compile(r"Name:\s*([^\n\r]+)")
CONTACT_WORDS = ("contact", "mobile", "phone", "owner", "call")

# site switchboard, present on every listing
SITE_PHONE = "7753234478"

SNIPPET_BEFORE = 120
SNIPPET_AFTER = 180


class PrivatePartyCarsAdapter(SiteAdapter):
    site_name = "PrivatePartyCars"
    slug = "privatepartycars"
    aliases = ("Private Party Cars",)

    results_selector = CARD_SELECTOR
    detail_concurrency = 3
    ignored_numbers = (SITE_PHONE,)

    async def advance(self, ctx: RunContext, page, search_url: str, index: int) -> Optional[bool]:
        return await self.follow_next_link(page, page.url or search_url, NEXT_LINK_SELECTORS)

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        return await extract_cards(page, CARD_SELECTOR, CARD_FIELDS)

    def parse_posted_date(self, text: str):
        return None

    def phone_near_contact_words(self, text: str) -> Optional[str]:
        """First phone in text whose surroundings mention a contact word."""
        for m in DIRECT_PHONE_RE.finditer(text or ""):
            start = max(0, m.start() - SNIPPET_BEFORE)
            snippet = text[start:m.end() + SNIPPET_AFTER]
            if not any(w in snippet.lower() for w in CONTACT_WORDS):
                continue
            phone = self.extractor.phone(m.group(0))
            if phone:
                return phone
        return None

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        await self.pause(0.6, 1.2)
        modal_text = await reveal_contact(
            page,
            INQUIRE_TRIGGERS,
            INQUIRE_REGIONS,
            timeout_ms=self.config.MODAL_TIMEOUT_MS,
            settle_ms=int(700 * self.config.DELAY_SCALE),
        )
        seller_name = ""
        if modal_text:
            m = NAME_RE.search(await text_of(page, INQUIRE_NAME_BLOCK) or modal_text)
            if m:
                seller_name = m.group(1)

        listing = await self.build_listing(
            ctx,
            stub,
            description=stub.details,
            contact_text=modal_text,
            seller_name=seller_name,
        )
        if not listing.seller_contact:
            listing.seller_contact = self.phone_near_contact_words(await body_text(page))
        return listing
