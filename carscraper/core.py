"""
Scraping entry points: one site search, or one arbitrary product page.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from .browser import BrowserSession, goto_with_retry
from .config import Config, config
from .contacts import ContactExtractor, default_extractor
from .dom import attr_of, body_text, click_first, first_text
from .errors import ScrapeInputError
from .models import EnrichedListing
from .sites import get_adapter
from .utils import absolute_url, now_iso

logger = logging.getLogger(__name__)

# Generic selectors for a product page of unknown origin
DETAIL_TITLE = ["h1", "h2"]
DETAIL_PRICE = [".price", ".amount", ".product-price", "[itemprop='price']"]
DETAIL_SELLER = [".seller-name", ".username", ".user-name", ".contact-name"]
DETAIL_DESCRIPTION = [".description", "#description", ".product-desc"]
SHOW_PHONE = [
    "button:has-text('Show phone')",
    "button:has-text('Show number')",
    "a:has-text('Show phone')",
    "a:has-text('Show number')",
]


async def run_scrape(
    site_name: str,
    search_url: str,
    max_pages: Optional[int] = None,
    keyword: Optional[str] = "",
    from_date=None,
    to_date=None,
    cfg: Optional[Config] = None,
    session_factory: Optional[Callable[[], Any]] = None,
    cancel: Optional[asyncio.Event] = None,
) -> List[EnrichedListing]:
    """
    Scrape one site's search results.

    Raises UnknownSiteError / ScrapeInputError before any browser starts;
    every later failure degrades into partial records.
    """
    adapter = get_adapter(site_name, cfg=cfg, session_factory=session_factory)
    return await adapter.scrape(
        search_url,
        max_pages=max_pages,
        keyword=keyword,
        from_date=from_date,
        to_date=to_date,
        site_name=site_name,
        cancel=cancel,
    )


async def scrape_product_detail(
    product_url: str,
    cfg: Optional[Config] = None,
    session_factory: Optional[Callable[[], Any]] = None,
    extractor: ContactExtractor = default_extractor,
) -> Dict[str, Any]:
    """Best-effort read of a single product page from any site."""
    product_url = (product_url or "").strip()
    if not product_url.startswith(("http://", "https://")):
        raise ScrapeInputError("product_url must be an http(s) URL")

    cfg = cfg or config
    factory = session_factory or (lambda: BrowserSession(cfg))
    async with factory() as session:
        async with session.new_page() as page:
            await goto_with_retry(page, product_url, attempts=cfg.DETAIL_ATTEMPTS,
                                  backoff_s=cfg.RETRY_BACKOFF_S, timeout_ms=cfg.NAV_TIMEOUT_MS)
            if await click_first(page, SHOW_PHONE):
                await asyncio.sleep(1.5 * cfg.DELAY_SCALE)

            text = await body_text(page)
            phone, email = extractor.extract(text)
            product = {
                "product_link": product_url,
                "title": await first_text(page, DETAIL_TITLE),
                "price": await first_text(page, DETAIL_PRICE),
                "seller_name": await first_text(page, DETAIL_SELLER),
                "description": await first_text(page, DETAIL_DESCRIPTION),
                "seller_contact": phone,
                "seller_email": email,
                "image": absolute_url(product_url, await attr_of(page, "img", "src")),
                "fetched_at": now_iso(),
            }
    logger.info(f">>> Detail scrape of {product_url}: phone={product['seller_contact']}")
    return product
