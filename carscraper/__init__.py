"""
Vehicle Classifieds Scraper Package
"""
from .models import EnrichedListing, ListingStub, DateBoundary
from .core import run_scrape, scrape_product_detail
from .contacts import ContactExtractor, extract_email, extract_phone
from .normalizer import deobfuscate_digits, digits_only
from .errors import NavigationError, ScrapeInputError, UnknownSiteError
from .database import (
    db_connect,
    db_init,
    ingest_listings,
    promote_listing,
    promote_many,
    get_overview,
)
from .export import save_output_rows
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "EnrichedListing",
    "ListingStub",
    "DateBoundary",
    "run_scrape",
    "scrape_product_detail",
    "ContactExtractor",
    "extract_phone",
    "extract_email",
    "deobfuscate_digits",
    "digits_only",
    "NavigationError",
    "ScrapeInputError",
    "UnknownSiteError",
    "db_connect",
    "db_init",
    "ingest_listings",
    "promote_listing",
    "promote_many",
    "get_overview",
    "save_output_rows",
    "init_logger",
    "now_iso"
]
