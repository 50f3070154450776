"""
Shared fixtures: an in-memory stand-in for the browser so the pager, the
detail fetcher and the site adapters can be exercised without Playwright
launching anything.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from carscraper.config import config
from carscraper.models import EnrichedListing, ListingStub, RunContext
from carscraper.sites.base import SiteAdapter

BASE_URL = "https://cars.example.test"
SEARCH_URL = BASE_URL + "/search"


class FakeElement:
    """
    One canned DOM node.

    children maps a selector string (exactly as an adapter spells it) to the
    nodes it matches under this one. reveals lists nodes that appear on the
    page once this node is clicked; frame is the document of an iframe node.
    """

    def __init__(self, text: str = "", attrs: Optional[Dict[str, str]] = None,
                 children: Optional[Dict[str, List["FakeElement"]]] = None,
                 visible: bool = True,
                 reveals: Optional[Dict[str, List["FakeElement"]]] = None,
                 frame: Optional["FakeElement"] = None):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.visible = visible
        self.reveals = reveals or {}
        self.frame = frame
        self.clicks = 0


class FakeLocator:
    """The slice of the Playwright Locator API the dom helpers rely on."""

    def __init__(self, resolve: Callable[[], List[FakeElement]], page: "FakePage"):
        self._resolve = resolve
        self._page = page

    def _nodes(self) -> List[FakeElement]:
        return list(self._resolve())

    def _one(self) -> FakeElement:
        nodes = self._nodes()
        if not nodes:
            raise PlaywrightTimeoutError("Timeout waiting for locator")
        return nodes[0]

    def locator(self, selector: str) -> "FakeLocator":
        return FakeLocator(
            lambda: [c for n in self._nodes() for c in n.children.get(selector, [])], self._page
        )

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(lambda: self._nodes()[index:index + 1], self._page)

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    async def count(self) -> int:
        return len(self._nodes())

    async def inner_text(self, timeout=None) -> str:
        return self._one().text

    async def get_attribute(self, name, timeout=None) -> Optional[str]:
        return self._one().attrs.get(name)

    async def is_visible(self) -> bool:
        nodes = self._nodes()
        return bool(nodes) and nodes[0].visible

    async def wait_for(self, state="visible", timeout=None):
        if not self._one().visible:
            raise PlaywrightTimeoutError("Timeout waiting for visible")

    async def click(self, timeout=None):
        node = self._one()
        node.clicks += 1
        self._page.reveal(node.reveals)


class FakeFrameLocator:
    def __init__(self, page: "FakePage", selector: str):
        self._page = page
        self._selector = selector

    def locator(self, selector: str) -> FakeLocator:
        def resolve():
            frames = self._page.root.children.get(self._selector, [])
            if not frames or frames[0].frame is None:
                return []
            return frames[0].frame.children.get(selector, [])
        return FakeLocator(resolve, self._page)


class FakeSite:
    """Canned responses keyed by URL, plus bookkeeping about tabs."""

    def __init__(self):
        self.pages: Dict[str, List[Dict[str, Any]]] = {}
        self.details: Dict[str, str] = {}
        self.posted: Dict[str, str] = {}
        self.dom: Dict[str, FakeElement] = {}
        self.failing = set()
        self.visits: List[str] = []
        self.open_tabs = 0
        self.peak_tabs = 0
        self.opened = 0
        self.closed = 0

    def page_url(self, index: int) -> str:
        return SEARCH_URL if index == 1 else f"{SEARCH_URL}?page={index}"

    def item_url(self, n: int) -> str:
        return f"{BASE_URL}/item/{n}"


class FakePage:
    def __init__(self, site: FakeSite):
        self.site = site
        self.url = ""
        self._closed = False

    @property
    def root(self) -> FakeElement:
        return self.site.dom.setdefault(self.url, FakeElement())

    async def goto(self, url, timeout=None, wait_until=None):
        # yield like a real navigation so concurrent workers interleave
        await asyncio.sleep(0)
        self.site.visits.append(url)
        if url in self.site.failing:
            raise PlaywrightError(f"net::ERR_CONNECTION_RESET at {url}")
        self.url = url
        return None

    async def wait_for_selector(self, selector, timeout=None):
        return None

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(lambda: self.root.children.get(selector, []), self)

    def frame_locator(self, selector: str) -> FakeFrameLocator:
        return FakeFrameLocator(self, selector)

    async def inner_text(self, selector: str, timeout=None) -> str:
        if selector != "body":
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")
        return self.root.text

    def reveal(self, nodes: Dict[str, List[FakeElement]]) -> None:
        for selector, found in nodes.items():
            self.root.children.setdefault(selector, []).extend(found)

    def is_closed(self) -> bool:
        return self._closed

    async def close(self):
        self._closed = True


class FakeSession:
    def __init__(self, site: FakeSite):
        self.site = site

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    @asynccontextmanager
    async def new_page(self):
        site = self.site
        page = FakePage(site)
        site.opened += 1
        site.open_tabs += 1
        site.peak_tabs = max(site.peak_tabs, site.open_tabs)
        try:
            yield page
        finally:
            site.open_tabs -= 1
            site.closed += 1
            await page.close()


class FakeAdapter(SiteAdapter):
    """Adapter that reads cards and detail text straight from a FakeSite."""

    site_name = "Fake Cars"
    slug = "fake"
    page_param = "page"
    detail_concurrency = 2

    async def collect_page(self, page) -> List[Dict[str, Any]]:
        return list(page.site.pages.get(page.url, []))

    async def fetch_detail(self, page, stub: ListingStub, ctx: RunContext) -> EnrichedListing:
        text = page.site.details.get(page.url)
        if text is None:
            raise RuntimeError("detail layout not recognised")
        profile_url = page.url + "/seller"
        has_profile = profile_url in page.site.details
        return await self.build_listing(
            ctx, stub,
            description=text,
            seller_name="Dealer Dan",
            posted_date=page.site.posted.get(page.url, ""),
            seller_profile=profile_url if has_profile else None,
            profile_page=page if has_profile else None,
        )

    async def profile_text(self, page) -> str:
        return page.site.details.get(page.url, "")


def _card(n: int, title: Optional[str] = None, posted: str = "", details: str = "") -> Dict[str, Any]:
    return {
        "title": title or f"Car {n}",
        "link": f"/item/{n}",
        "price": f"${n},000",
        "posted": posted,
        "details": details,
    }


@pytest.fixture
def make_card():
    return _card


@pytest.fixture
def fast_config():
    return config.copy(DELAY_SCALE=0, RETRY_BACKOFF_S=0, SITE_TIMEZONE="UTC")


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def fake_session(site):
    return FakeSession(site)


@pytest.fixture
def adapter(site, fast_config):
    return FakeAdapter(cfg=fast_config, session_factory=lambda: FakeSession(site))


@pytest.fixture
def node():
    """Factory for canned DOM nodes."""
    return FakeElement


@pytest.fixture
def site_adapter(site, fast_config):
    """Build a real site adapter wired to the in-memory browser."""
    def build(cls):
        return cls(cfg=fast_config, session_factory=lambda: FakeSession(site))
    return build
