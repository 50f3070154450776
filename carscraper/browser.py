"""
Browser session management and navigation helpers.

One BrowserSession backs one scrape invocation. Tabs are handed out through
an async context manager so every exit path closes them.
"""
import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .config import Config, config
from .errors import NavigationError

logger = logging.getLogger(__name__)

# Responses that mean "blocked", not "page exists"
BLOCKED_STATUSES = {403, 429, 503}


async def human_pause(low: float, high: float, scale: float = 1.0) -> None:
    """Sleep a random interval; scale 0 turns the pause off."""
    if scale <= 0:
        return
    await asyncio.sleep(random.uniform(low, high) * scale)


async def goto_with_retry(
    page,
    url: str,
    attempts: int = 2,
    backoff_s: float = 0.8,
    timeout_ms: int = 45_000,
    wait_until: str = "domcontentloaded",
):
    """
    Navigate with a bounded number of attempts.

    Raises NavigationError once the attempts are used up. Backoff grows
    linearly with the attempt number.
    """
    attempts = max(1, attempts)
    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            response = await page.goto(url, timeout=timeout_ms, wait_until=wait_until)
            if response is not None and response.status in BLOCKED_STATUSES:
                raise PlaywrightError(f"HTTP {response.status}")
            return response
        except PlaywrightError as e:
            last_error = e
            logger.warning(f">>> Navigation attempt {attempt}/{attempts} failed for {url}: {e}")
            if attempt < attempts and backoff_s > 0:
                await asyncio.sleep(backoff_s * attempt)
    raise NavigationError(url, attempts, last_error)


class BrowserSession:
    """Chromium browser + context owned by a single scrape run."""

    def __init__(self, cfg: Config = config, block_resources: Sequence[str] = ()):
        self.config = cfg
        self.block_resources = set(block_resources)
        self._pw = None
        self.browser = None
        self.context = None

    async def __aenter__(self) -> "BrowserSession":
        self._pw = await async_playwright().start()
        try:
            await self._launch()
        except Exception:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _launch(self) -> None:
        cfg = self.config
        launch_args = ["--disable-blink-features=AutomationControlled"]
        if cfg.HEADLESS:
            launch_args += ["--disable-dev-shm-usage", "--no-sandbox", "--disable-gpu"]
            self.browser = await self._pw.chromium.launch(headless=True, args=launch_args)
            logger.info(">>> Headless mode enabled")
        else:
            kwargs = {"headless": False, "args": launch_args, "slow_mo": 150}
            if cfg.CHROME_CHANNEL:
                kwargs["channel"] = cfg.CHROME_CHANNEL
            self.browser = await self._pw.chromium.launch(**kwargs)
            logger.info(">>> Headless mode disabled")

        self.context = await self.browser.new_context(
            viewport=cfg.VIEWPORT,
            user_agent=cfg.USER_AGENT,
            locale=cfg.LOCALE,
        )
        self.context.set_default_timeout(cfg.DEFAULT_TIMEOUT_MS)
        self.context.set_default_navigation_timeout(cfg.NAV_TIMEOUT_MS)

        if self.block_resources:
            await self.context.route("**/*", self._filter_request)

    async def _filter_request(self, route) -> None:
        if route.request.resource_type in self.block_resources:
            await route.abort()
        else:
            await route.continue_()

    async def close(self) -> None:
        """Tear down context, browser and driver; never raises."""
        for name in ("context", "browser"):
            target = getattr(self, name)
            if target is None:
                continue
            try:
                await target.close()
            except Exception as e:
                logger.warning(f">>> Failed to close {name}: {e}")
            setattr(self, name, None)
        if self._pw is not None:
            try:
                await self._pw.stop()
            except Exception as e:
                logger.warning(f">>> Failed to stop playwright: {e}")
            self._pw = None

    @asynccontextmanager
    async def new_page(self) -> AsyncIterator:
        """Open a tab and close it again however the block exits."""
        page = await self.context.new_page()
        try:
            yield page
        finally:
            try:
                if not page.is_closed():
                    await page.close()
            except Exception as e:
                logger.warning(f">>> Failed to close tab: {e}")
