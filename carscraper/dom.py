"""
Graceful DOM reads on top of Playwright locators.

A missing selector is an extraction miss, not an error: every reader here
returns "" (or an empty list) instead of raising.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .utils import clean_text

logger = logging.getLogger(__name__)

# Field source for card extraction: (selector, attribute or None for inner text)
FieldSpec = Tuple[str, Optional[str]]


async def text_of(root, selector: str, timeout_ms: int = 2_000) -> str:
    """Inner text of the first match under root, cleaned."""
    try:
        loc = root.locator(selector)
        if await loc.count() == 0:
            return ""
        return clean_text(await loc.first.inner_text(timeout=timeout_ms))
    except Exception:
        return ""


async def attr_of(root, selector: str, attr: str, timeout_ms: int = 2_000) -> str:
    """Attribute of the first match under root; "" if absent."""
    try:
        loc = root.locator(selector)
        if await loc.count() == 0:
            return ""
        return (await loc.first.get_attribute(attr, timeout=timeout_ms)) or ""
    except Exception:
        return ""


async def first_text(root, selectors: Sequence[str], timeout_ms: int = 2_000) -> str:
    """Text of the first selector in the list that yields something."""
    for sel in selectors:
        t = await text_of(root, sel, timeout_ms)
        if t:
            return t
    return ""


async def first_attr(root, selectors: Sequence[str], attr: str, timeout_ms: int = 2_000) -> str:
    for sel in selectors:
        v = await attr_of(root, sel, attr, timeout_ms)
        if v:
            return v
    return ""


async def all_texts(root, selector: str, limit: int = 50) -> List[str]:
    """Cleaned inner texts of up to limit matches."""
    out = []
    try:
        loc = root.locator(selector)
        n = min(await loc.count(), limit)
        for i in range(n):
            t = clean_text(await loc.nth(i).inner_text())
            if t:
                out.append(t)
    except Exception as e:
        logger.debug(f">>> all_texts({selector}) stopped early: {e}")
    return out


async def body_text(page) -> str:
    """Full visible text of the page; the description of last resort."""
    try:
        return clean_text(await page.inner_text("body"))
    except Exception:
        return ""


async def extract_cards(page, card_selector: str, fields: Dict[str, Sequence[FieldSpec]], limit: int = 200) -> List[Dict[str, str]]:
    """
    Read one dict per card.

    fields maps an output key to candidate (selector, attr) pairs tried in
    order; attr None means inner text, and selector "" means the card itself.
    """
    rows = []
    cards = page.locator(card_selector)
    try:
        count = await cards.count()
    except Exception as e:
        logger.warning(f">>> Card lookup failed for {card_selector}: {e}")
        return rows

    for i in range(min(count, limit)):
        card = cards.nth(i)
        row = {}
        for key, specs in fields.items():
            value = ""
            for sel, attr in specs:
                if not sel:
                    value = await _self_value(card, attr)
                elif attr:
                    value = await attr_of(card, sel, attr)
                else:
                    value = await text_of(card, sel)
                if value:
                    break
            row[key] = value
        rows.append(row)
    return rows


async def _self_value(el, attr: Optional[str]) -> str:
    try:
        if attr:
            return (await el.get_attribute(attr)) or ""
        return clean_text(await el.inner_text())
    except Exception:
        return ""


async def click_first(page, selectors: Sequence[str], timeout_ms: int = 2_000) -> Optional[str]:
    """Click the first visible selector; return which one, or None."""
    for sel in selectors:
        try:
            loc = page.locator(sel)
            if await loc.count() == 0:
                continue
            if not await loc.first.is_visible():
                continue
            await loc.first.click(timeout=timeout_ms)
            return sel
        except Exception as e:
            logger.debug(f">>> Click on {sel} failed: {e}")
    return None


async def reveal_contact(page, triggers: Sequence[str], regions: Sequence[str],
                         timeout_ms: int = 5_000, settle_ms: int = 1_200) -> str:
    """
    Click the first present contact trigger and read the overlay it opens.

    Returns the combined text of every region that showed up, or "" when no
    trigger exists or nothing rendered in time.
    """
    clicked = await click_first(page, triggers, timeout_ms=timeout_ms)
    if not clicked:
        return ""
    logger.debug(f">>> Revealed contact via {clicked}")
    if settle_ms > 0:
        await asyncio.sleep(settle_ms / 1000)

    chunks = []
    for sel in regions:
        try:
            loc = page.locator(sel)
            await loc.first.wait_for(state="visible", timeout=timeout_ms)
            t = clean_text(await loc.first.inner_text())
            if t and t not in chunks:
                chunks.append(t)
        except Exception:
            continue
    return " ".join(chunks)


async def frame_text(page, frame_selector: str, inner_selector: str = "body", timeout_ms: int = 5_000) -> str:
    """Text inside an embedded iframe (eBay item descriptions)."""
    try:
        if await page.locator(frame_selector).count() == 0:
            return ""
        frame = page.frame_locator(frame_selector)
        return clean_text(await frame.locator(inner_selector).first.inner_text(timeout=timeout_ms))
    except Exception:
        return ""
