"""
Shared scraping algorithm for every site adapter.

An adapter supplies selectors and a handful of hooks; this module owns the
pager loop (fetch page, parse cards, filter, continue or stop) and the
bounded-concurrency detail fetcher.
"""
import asyncio
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..browser import BrowserSession, goto_with_retry, human_pause
from ..config import Config, config
from ..contacts import ContactExtractor
from ..dom import body_text, first_attr
from ..errors import NavigationError, ScrapeInputError
from ..models import UNKNOWN_SELLER, DateBoundary, EnrichedListing, ListingStub, RunContext
from ..utils import (
    absolute_url,
    clean_text,
    get_zone,
    now_iso,
    parse_any_date,
    parse_iso_datetime,
    utcnow,
    with_query_param,
)

logger = logging.getLogger(__name__)

# Ad slots and injected promos that show up between real results
PLACEHOLDER_TITLE_RE = re.compile(r"^(sponsored|shop on\b.*)$", re.I)


class SiteAdapter(ABC):
    """Base class for one classifieds site."""

    site_name: str = ""
    slug: str = ""
    aliases: Tuple[str, ...] = ()

    # Query parameter carrying the page number; None when the site pages
    # some other way (next link, hash fragment, click)
    page_param: Optional[str] = None
    # Wait for this after each results load; absence is not fatal
    results_selector: Optional[str] = None
    # Stop once a page brings no unseen links (load-more lists, hash paging)
    stop_on_repeat: bool = False
    # Cards carry no usable date: apply the window to the date each detail
    # page yields (too new is dropped, the first one too old ends the run)
    window_on_detail: bool = False

    detail_concurrency: int = 3
    min_phone_digits: int = 7
    ignored_numbers: Tuple[str, ...] = ()
    block_resources: Tuple[str, ...] = ()

    def __init__(
        self,
        cfg: Optional[Config] = None,
        session_factory: Optional[Callable[[], Any]] = None,
        extractor: Optional[ContactExtractor] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = cfg or config
        self.session_factory = session_factory or (
            lambda: BrowserSession(self.config, self.block_resources)
        )
        self.extractor = extractor or ContactExtractor(self.ignored_numbers, self.min_phone_digits)
        self.clock = clock or utcnow
        self.tz = get_zone(self.config.SITE_TIMEZONE)

    # --- entry point ----------------------------------------------------

    async def scrape(
        self,
        search_url: str,
        max_pages: Optional[int] = None,
        keyword: Optional[str] = "",
        from_date=None,
        to_date=None,
        site_name: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[EnrichedListing]:
        """
        Scrape up to max_pages of results and enrich every kept card.

        Raises ScrapeInputError for a missing/non-http search_url, a page
        budget below 1 or a bad date window. Everything else is absorbed.
        """
        search_url = (search_url or "").strip()
        if not search_url:
            raise ScrapeInputError("search_url is required")
        if not search_url.startswith(("http://", "https://")):
            raise ScrapeInputError(f"search_url must be an http(s) URL: {search_url!r}")
        if max_pages is None:
            max_pages = self.config.DEFAULT_MAX_PAGES
        if isinstance(max_pages, bool) or not isinstance(max_pages, int) or max_pages < 1:
            raise ScrapeInputError(f"max_pages must be a positive integer, got {max_pages!r}")
        window = DateBoundary.parse(from_date, to_date, self.tz)

        name = site_name or self.site_name
        logger.info(f">>> [{name}] Scraping {search_url} (max_pages={max_pages}, keyword={keyword!r})")

        async with self.session_factory() as session:
            ctx = RunContext(
                session=session,
                site_name=name,
                keyword=(keyword or "").strip(),
                window=window,
                cancel=cancel,
            )
            stubs = await self.collect(ctx, search_url, max_pages)
            logger.info(f">>> [{name}] Collected {len(stubs)} listing stubs")
            results = await self.enrich_all(ctx, stubs)

        degraded = sum(1 for r in results if r.error)
        logger.info(f">>> [{name}] Done: {len(results)} listings ({degraded} degraded)")
        return results

    # --- pager ----------------------------------------------------------

    async def collect(self, ctx: RunContext, search_url: str, max_pages: int) -> List[ListingStub]:
        stubs: List[ListingStub] = []
        seen: Set[str] = set()
        if ctx.cancelled:
            return stubs

        async with ctx.session.new_page() as page:
            index = 1
            loads = 1
            loaded = await self.first_page(ctx, page, search_url)
            while True:
                if loaded:
                    raw = await self.collect_page(page)
                    if not raw:
                        logger.info(f">>> Page {index}: no cards, stopping")
                        break
                    new_links, hit_boundary = self.accept_cards(ctx, raw, search_url, seen, stubs)
                    logger.info(f">>> Page {index}: {len(raw)} cards, {new_links} new, {len(stubs)} kept so far")
                    if hit_boundary:
                        logger.info(f">>> Page {index}: reached listings older than fromDate, stopping")
                        break
                    if self.stop_on_repeat and new_links == 0:
                        break
                else:
                    logger.warning(f">>> Page {index}: failed to load, skipping")

                if loads >= max_pages:
                    logger.info(f">>> Page budget of {max_pages} used up")
                    break
                if ctx.cancelled:
                    logger.info(">>> Cancelled, stopping pagination")
                    break

                index += 1
                await self.pause(1.0, 2.0)
                loaded = await self.advance(ctx, page, search_url, index)
                if loaded is None:
                    logger.info(f">>> No page {index}, stopping")
                    break
                loads += 1
        return stubs

    async def first_page(self, ctx: RunContext, page, search_url: str) -> bool:
        return await self.goto_results(page, search_url)

    async def advance(self, ctx: RunContext, page, search_url: str, index: int) -> Optional[bool]:
        """
        Move to results page index (2, 3, ...).

        True when loaded, False when the load failed (page skipped), None when
        there is no such page.
        """
        if not self.page_param:
            return None
        return await self.goto_results(page, self.page_url(search_url, index))

    async def follow_next_link(self, page, base_url: str, selectors: Sequence[str]) -> Optional[bool]:
        """advance() for sites that only expose a "next" anchor."""
        href = await first_attr(page, selectors, "href")
        url = absolute_url(base_url, href)
        if not url:
            return None
        return await self.goto_results(page, url)

    def page_url(self, search_url: str, index: int) -> str:
        return with_query_param(search_url, self.page_param, index)

    async def goto_results(self, page, url: str) -> bool:
        try:
            await goto_with_retry(
                page,
                url,
                attempts=self.config.PAGE_ATTEMPTS,
                backoff_s=self.config.RETRY_BACKOFF_S,
                timeout_ms=self.config.NAV_TIMEOUT_MS,
            )
        except NavigationError as e:
            logger.warning(f">>> {e}")
            return False
        if self.results_selector:
            try:
                await page.wait_for_selector(self.results_selector, timeout=self.config.DEFAULT_TIMEOUT_MS // 2)
            except Exception as e:
                logger.debug(f">>> {self.results_selector} not seen on {url}: {e}")
        return True

    @abstractmethod
    async def collect_page(self, page) -> List[Dict[str, Any]]:
        """
        Read the cards on the current results page.

        Each dict may carry title, link, price, image, posted, details and a
        meta dict. Links may be relative.
        """

    def accept_cards(self, ctx: RunContext, raw_cards: Sequence[Dict[str, Any]], base_url: str,
                     seen: Set[str], out: List[ListingStub]) -> Tuple[int, bool]:
        """Filter raw cards into out; return (new link count, hit date boundary)."""
        new_links = 0
        for raw in raw_cards:
            stub = self.to_stub(raw, base_url)
            if stub is None or stub.link in seen:
                continue
            seen.add(stub.link)
            new_links += 1
            if ctx.window and stub.posted_at:
                if ctx.window.is_before_start(stub.posted_at):
                    return new_links, True
                if ctx.window.is_after_end(stub.posted_at):
                    continue
            if not self.matches_keyword(stub, ctx.keyword):
                continue
            out.append(stub)
        return new_links, False

    def to_stub(self, raw: Dict[str, Any], base_url: str) -> Optional[ListingStub]:
        title = self.clean_title(clean_text(raw.get("title")))
        if not title or PLACEHOLDER_TITLE_RE.match(title):
            return None
        link = absolute_url(base_url, raw.get("link"))
        if not link:
            return None
        posted_text = clean_text(raw.get("posted"))
        meta = {k: clean_text(v) for k, v in (raw.get("meta") or {}).items() if clean_text(v)}
        return ListingStub(
            title=title,
            link=self.canonical_link(link),
            price=clean_text(raw.get("price")),
            image=absolute_url(base_url, raw.get("image")),
            posted_date_text=posted_text,
            posted_at=self.parse_posted_date(posted_text) if posted_text else None,
            details=clean_text(raw.get("details")),
            meta=meta,
        )

    def clean_title(self, title: str) -> str:
        return title

    def canonical_link(self, link: str) -> str:
        return link

    def parse_posted_date(self, text: str) -> Optional[datetime]:
        return parse_any_date(text, self.tz, self.clock())

    @staticmethod
    def matches_keyword(stub: ListingStub, keyword: str) -> bool:
        if not keyword:
            return True
        haystack = f"{stub.title} {stub.details}".lower()
        return keyword.lower() in haystack

    # --- detail fetcher -------------------------------------------------

    async def enrich_all(self, ctx: RunContext, stubs: List[ListingStub]) -> List[EnrichedListing]:
        """
        Enrich stubs in batches; one output record per stub, in order.

        With window_on_detail the date window is applied here instead, so
        out-of-window listings are dropped and an older one ends the run.
        """
        results: List[EnrichedListing] = []
        size = max(1, self.detail_concurrency)
        for start in range(0, len(stubs), size):
            if ctx.cancelled:
                logger.info(f">>> Cancelled, {len(stubs) - start} listings left unfetched")
                results.extend(self.degraded(ctx, s, "cancelled") for s in stubs[start:])
                break
            batch = stubs[start:start + size]
            logger.info(f">>> Fetching details {start + 1}-{start + len(batch)} of {len(stubs)}")
            fetched = await asyncio.gather(*(self.enrich(ctx, s) for s in batch))
            if self.window_on_detail and ctx.window:
                fetched, hit_boundary = self.apply_detail_window(ctx, fetched)
                results.extend(fetched)
                if hit_boundary:
                    logger.info(">>> Detail page older than fromDate, stopping enrichment")
                    break
            else:
                results.extend(fetched)
            if start + size < len(stubs):
                await self.pause(0.5, 1.2)
        return results

    async def enrich(self, ctx: RunContext, stub: ListingStub) -> EnrichedListing:
        """Fetch one detail page with bounded retries; never raises."""
        attempts = max(1, self.config.DETAIL_ATTEMPTS)
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                async with ctx.session.new_page() as page:
                    await goto_with_retry(page, stub.link, attempts=1, backoff_s=0,
                                          timeout_ms=self.config.NAV_TIMEOUT_MS)
                    listing = await self.fetch_detail(page, stub, ctx)
                listing.scraped_at = now_iso()
                return listing
            except Exception as e:
                last_error = e
                logger.warning(f">>> Detail attempt {attempt}/{attempts} failed for {stub.link}: {e}")
                if attempt < attempts and self.config.RETRY_BACKOFF_S > 0:
                    await asyncio.sleep(self.config.RETRY_BACKOFF_S * attempt)
        return self.degraded(ctx, stub, str(last_error) if last_error else "failed")

    def apply_detail_window(self, ctx: RunContext,
                            listings: Sequence[EnrichedListing]) -> Tuple[List[EnrichedListing], bool]:
        """Keep in-window listings in order; True once one predates the window."""
        kept: List[EnrichedListing] = []
        for listing in listings:
            posted_at = parse_iso_datetime(listing.posted_date, self.tz) if listing.posted_date else None
            if posted_at is None:
                kept.append(listing)
                continue
            if ctx.window.is_before_start(posted_at):
                return kept, True
            if ctx.window.is_after_end(posted_at):
                logger.debug(f">>> {listing.product_link} posted after toDate, dropped")
                continue
            kept.append(listing)
        return kept, False

    def degraded(self, ctx: RunContext, stub: ListingStub, reason: str) -> EnrichedListing:
        """Record built from the card alone."""
        phone, email = self.extractor.extract(stub.details)
        return EnrichedListing.from_stub(
            stub,
            ctx.site_name,
            seller_contact=phone,
            seller_email=email,
            description=stub.details,
            error=reason,
        )

    @abstractmethod
    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        """Read the already-loaded detail page into a record."""

    async def build_listing(
        self,
        ctx: RunContext,
        stub: ListingStub,
        description: str = "",
        contact_text: str = "",
        seller_name: str = "",
        seller_profile: Optional[str] = None,
        profile_page=None,
        **overrides,
    ) -> EnrichedListing:
        """
        Assemble a record from what a detail page yielded.

        Contact text is searched first, then the description, then the card
        details. When profile_page is given the seller profile is loaded in
        that tab (the worker's own, after its detail reads are done) and its
        phone and email override the rest.
        """
        seller_profile = absolute_url(stub.link, seller_profile) or None
        if overrides.get("image"):
            overrides["image"] = absolute_url(stub.link, overrides["image"])

        phone = email = None
        for text in (contact_text, description, stub.details):
            if not text:
                continue
            phone = phone or self.extractor.phone(text)
            email = email or self.extractor.email(text)
            if phone and email:
                break

        if seller_profile and profile_page is not None:
            p_phone, p_email = await self.read_profile(profile_page, seller_profile)
            phone = p_phone or phone
            email = p_email or email

        meta = dict(stub.meta)
        meta.update(overrides.pop("meta", None) or {})
        listing = EnrichedListing.from_stub(
            stub,
            ctx.site_name,
            seller_name=clean_text(seller_name) or UNKNOWN_SELLER,
            seller_profile=seller_profile,
            seller_email=email,
            seller_contact=phone,
            description=description,
            meta=meta,
        )
        for key, value in overrides.items():
            if value:
                setattr(listing, key, value)
        return listing

    async def read_profile(self, page, url: str) -> Tuple[Optional[str], Optional[str]]:
        """Navigate page to a seller profile and extract (phone, email)."""
        try:
            await goto_with_retry(page, url, attempts=self.config.DETAIL_ATTEMPTS,
                                  backoff_s=self.config.RETRY_BACKOFF_S,
                                  timeout_ms=self.config.NAV_TIMEOUT_MS)
            text = await self.profile_text(page)
        except Exception as e:
            logger.warning(f">>> Seller profile {url} unavailable: {e}")
            return None, None
        return self.extractor.extract(text)

    async def profile_text(self, page) -> str:
        return await body_text(page)

    async def pause(self, low: float, high: float) -> None:
        await human_pause(low, high, self.config.DELAY_SCALE)
