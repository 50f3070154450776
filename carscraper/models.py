"""
Data models for the vehicle listing scraper.
"""
import asyncio
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Any, Dict, Optional

from .errors import ScrapeInputError
from .utils import now_iso, parse_iso_datetime, to_iso

UNKNOWN_SELLER = "unknown"
DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class ListingStub:
    """Lightweight listing summary captured from one search-results card."""

    title: str
    link: str
    price: str = ""
    image: str = ""
    posted_date_text: str = ""

    # Parsed from posted_date_text when the site's date grammar allows it
    posted_at: Optional[datetime] = None
    # Card-level free text (mileage and engine lines, teaser); searched by keyword filter
    details: str = ""
    meta: Dict[str, str] = field(default_factory=dict)


@dataclass
class EnrichedListing:
    """A stub plus whatever seller data its detail page(s) yielded."""

    title: str
    product_link: str
    price: str
    image: str
    posted_date: str
    site_name: str

    seller_name: str = UNKNOWN_SELLER
    seller_profile: Optional[str] = None
    seller_email: Optional[str] = None
    seller_contact: Optional[str] = None
    description: str = ""
    scraped_at: str = field(default_factory=now_iso)
    meta: Dict[str, Any] = field(default_factory=dict)

    # Diagnostics only: why enrichment degraded
    error: Optional[str] = None

    @classmethod
    def from_stub(cls, stub: ListingStub, site_name: str, **fields) -> "EnrichedListing":
        posted = to_iso(stub.posted_at) if stub.posted_at else stub.posted_date_text
        fields.setdefault("meta", dict(stub.meta))
        return cls(
            title=stub.title,
            product_link=stub.link,
            price=stub.price,
            image=stub.image,
            posted_date=posted,
            site_name=site_name,
            **fields,
        )

    def to_record(self) -> Dict[str, Any]:
        """Plain dict for storage and JSON output."""
        return asdict(self)


@dataclass(frozen=True)
class DateBoundary:
    """Inclusive posted-date window; either end may be open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def parse(cls, from_date: Optional[str], to_date: Optional[str], tz: tzinfo) -> Optional["DateBoundary"]:
        """Build a window from ISO strings; None when neither end is given."""
        start = cls._parse_end(from_date, "fromDate", tz)
        end = cls._parse_end(to_date, "toDate", tz)
        if end is not None and isinstance(to_date, str) and DATE_ONLY_RE.match(to_date.strip()):
            # a bare date closes at the end of that day
            end = end + timedelta(days=1, microseconds=-1)
        if start is None and end is None:
            return None
        if start and end and start > end:
            raise ScrapeInputError(f"fromDate {from_date} is after toDate {to_date}")
        return cls(start, end)

    @staticmethod
    def _parse_end(value, label: str, tz: tzinfo) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=tz)
        if not str(value).strip():
            return None
        dt = parse_iso_datetime(str(value), tz)
        if dt is None:
            raise ScrapeInputError(f"Invalid {label}: {value!r}")
        return dt

    def is_before_start(self, when: datetime) -> bool:
        return self.start is not None and when < self.start

    def is_after_end(self, when: datetime) -> bool:
        return self.end is not None and when > self.end


@dataclass
class RunContext:
    """Per-invocation state shared by the pager and the detail fetcher."""

    session: Any
    site_name: str
    keyword: str = ""
    window: Optional[DateBoundary] = None
    cancel: Optional[asyncio.Event] = None
    # Adapter scratch space for one pagination run (last page number etc.)
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()
