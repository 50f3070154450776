"""
Utility functions for logging, text cleanup, price parsing, URLs and dates.
"""
import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit
from zoneinfo import ZoneInfo


def init_logger(
    name: str = "carscraper",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "carscraper.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Serialize an aware datetime as a fixed-width UTC ISO string."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds")


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return to_iso(utcnow())


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def parse_price(price_text: str) -> Tuple[Optional[float], Optional[str]]:
    """
    Parse price text to extract numeric value and currency.

    Supports the currencies the target sites quote (USD $, GBP £, EUR €, AUD).
    Ranges like "$9,500 to $11,000" yield the first value.
    """
    if not price_text:
        return (None, None)

    s = price_text.replace(",", "").replace("\xa0", " ")
    m = re.search(r"(AU\$|A\$|\$|€|£)?\s?(\d+(?:\.\d+)?)", s)
    cur = None
    val = None

    if m:
        cur = m.group(1)
        try:
            val = float(m.group(2))
        except ValueError:
            val = None

    if not cur:
        m2 = re.search(r"\b(USD|EUR|GBP|AUD)\b", s, re.I)
        if m2:
            cur = m2.group(1).upper()

    symbol_map = {"AU$": "AUD", "A$": "AUD", "$": "USD", "€": "EUR", "£": "GBP"}
    if cur in symbol_map:
        cur = symbol_map[cur]

    return (val, cur)


# --- URLs -------------------------------------------------------------------

def absolute_url(base: str, href: Optional[str]) -> str:
    """Resolve href against base; return "" for non-http results."""
    if not href:
        return ""
    href = href.strip()
    if href.startswith(("javascript:", "mailto:", "tel:", "#")):
        return ""
    full = urljoin(base or "", href)
    if not full.startswith(("http://", "https://")):
        return ""
    return full


def with_query_param(url: str, name: str, value) -> str:
    """Set (or replace) one query parameter, keeping the others in order."""
    parts = urlsplit(url)
    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    params.append((name, str(value)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))


def strip_query(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def strip_fragment(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


# --- Dates ------------------------------------------------------------------

def get_zone(name: Optional[str]) -> tzinfo:
    """Resolve a timezone name; "UTC" needs no tz database."""
    if not name or name.upper() in ("UTC", "Z", "GMT"):
        return timezone.utc
    return ZoneInfo(name)


def parse_iso_datetime(text: Optional[str], tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Parse ISO-8601 text; naive values are placed in tz."""
    if not text:
        return None
    s = text.strip()
    if not s:
        return None
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    # "-0500" -> "-05:00"
    s = re.sub(r"([+-]\d{2})(\d{2})$", r"\1:\2", s)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


def _month_number(name: str) -> Optional[int]:
    try:
        return datetime.strptime(name[:3].title(), "%b").month
    except ValueError:
        return None


def parse_month_day_time(text: Optional[str], tz: tzinfo, now: datetime) -> Optional[datetime]:
    """
    Parse "Oct-22 19:00" style stamps that carry no year.

    The current year is assumed; a stamp that would land in the future is
    moved back one year (a December listing seen in January).
    """
    if not text:
        return None
    m = re.search(r"\b([A-Za-z]{3,9})-(\d{1,2})\s+(\d{1,2}):(\d{2})\b", text)
    if not m:
        return None
    month = _month_number(m.group(1))
    if not month:
        return None
    local_now = now.astimezone(tz)
    try:
        dt = datetime(local_now.year, month, int(m.group(2)),
                      int(m.group(3)), int(m.group(4)), tzinfo=tz)
    except ValueError:
        return None
    if dt > local_now + timedelta(days=1):
        dt = dt.replace(year=dt.year - 1)
    return dt


_AGE_UNITS = {
    "minute": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
}


def parse_relative_age(text: Optional[str], now: datetime) -> Optional[datetime]:
    """Parse "3 days ago", "today", "yesterday", "just now"."""
    if not text:
        return None
    t = text.lower()
    if "just now" in t:
        return now
    if re.search(r"\btoday\b", t):
        return now
    if re.search(r"\byesterday\b", t):
        return now - timedelta(days=1)
    m = re.search(r"\b(\d+|an?)\s*(minute|min|hour|hr|day|week|month)s?\s+ago\b", t)
    if not m:
        return None
    qty = 1 if m.group(1) in ("a", "an") else int(m.group(1))
    return now - qty * _AGE_UNITS[m.group(2)]


def parse_us_date(text: Optional[str], tz: tzinfo) -> Optional[datetime]:
    """Parse "10/22/2025", "Oct 22, 2025" and "October 22 2025"."""
    if not text:
        return None
    m = re.search(r"\b(\d{1,2})/(\d{1,2})/(\d{2,4})\b", text)
    if m:
        year = int(m.group(3))
        if year < 100:
            year += 2000
        try:
            return datetime(year, int(m.group(1)), int(m.group(2)), tzinfo=tz)
        except ValueError:
            return None
    m = re.search(r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{4})\b", text)
    if m:
        month = _month_number(m.group(1))
        if month:
            try:
                return datetime(int(m.group(3)), month, int(m.group(2)), tzinfo=tz)
            except ValueError:
                return None
    return None


def parse_any_date(text: Optional[str], tz: tzinfo, now: datetime) -> Optional[datetime]:
    """Try every supported date grammar in turn."""
    return (
        parse_iso_datetime(text, tz)
        or parse_month_day_time(text, tz, now)
        or parse_us_date(text, tz)
        or parse_relative_age(text, now)
    )
