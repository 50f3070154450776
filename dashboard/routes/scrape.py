"""
Scrape job route handlers.
"""
import logging

from fastapi import APIRouter, HTTPException

from carscraper.core import run_scrape, scrape_product_detail
from carscraper.database import ingest_listings, list_listings
from carscraper.errors import NavigationError, ScrapeInputError

from ..config import config
from ..database import get_db_connection
from ..models import DetailRequest, ScrapeRequest, ScrapeResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["scrape"])


@router.post("/scrape", response_model=ScrapeResponse)
async def post_scrape(req: ScrapeRequest):
    """Run one site scrape and store the results in the temporary store."""
    if not req.search_url.strip() or not req.site_name.strip():
        raise HTTPException(status_code=400, detail="search_url and site_name are required")

    logger.info(f"Starting scrape for {req.site_name}: {req.search_url}")
    try:
        listings = await run_scrape(
            req.site_name,
            req.search_url,
            max_pages=req.max_pages,
            keyword=req.keyword or "",
            from_date=req.from_date or None,
            to_date=req.to_date or None,
        )
    except ScrapeInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    links = {x.product_link for x in listings}
    with get_db_connection() as conn:
        stats = ingest_listings(conn, listings, ttl_hours=config.LISTING_TTL_HOURS)
        stored = [r for r in list_listings(conn) if r["product_link"] in links]

    logger.info(f"{req.site_name} scrape completed: {len(listings)} records "
                f"({stats['inserted']} new, {stats['updated']} updated)")
    return ScrapeResponse(success=True, count=len(stored), results=stored)


@router.post("/scrape/detail")
async def post_scrape_detail(req: DetailRequest):
    """Scrape a single product page of any site."""
    if not req.product_url.strip():
        raise HTTPException(status_code=400, detail="product_url is required")
    try:
        product = await scrape_product_detail(req.product_url)
    except ScrapeInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NavigationError as e:
        logger.error(f"Detail scrape failed: {e}")
        raise HTTPException(status_code=502, detail="Product page could not be loaded")
    return {"ok": True, "product": product}
