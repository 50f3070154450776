"""
Overview counts route handler.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from carscraper.database import get_overview
from carscraper.errors import ScrapeInputError

from ..database import get_db_connection
from ..models import OverviewOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["overview"])


@router.get("/overview", response_model=OverviewOut)
async def get_api_overview(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
):
    """Temporary/permanent record counts, optionally within a scrape date range."""
    try:
        with get_db_connection() as conn:
            return OverviewOut(**get_overview(conn, date_from or None, date_to or None))
    except ScrapeInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
