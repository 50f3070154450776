"""
Temporary listing route handlers and CSV export.
"""
import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse

from carscraper.database import delete_listing, list_listings
from carscraper.export import STORE_TABLES, export_store

from ..database import get_db_connection
from ..models import ListingsResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])


@router.get("/listing", response_model=ListingsResponse)
async def get_api_listings():
    """Unexpired temporary listings, newest first."""
    try:
        with get_db_connection() as conn:
            return ListingsResponse(results=list_listings(conn))
    except Exception as e:
        logger.error(f"Error fetching listings: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch listings")


@router.delete("/listing/{listing_id}")
async def delete_api_listing(listing_id: int):
    with get_db_connection() as conn:
        deleted = delete_listing(conn, listing_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Listing not found")
    return {"success": True}


@router.get("/export/csv")
async def export_listings_csv(store: str = Query("temporary")):
    """Download the temporary or permanent store as CSV."""
    if store not in STORE_TABLES:
        raise HTTPException(status_code=400, detail=f"store must be one of {sorted(STORE_TABLES)}")
    try:
        with get_db_connection() as conn:
            df = export_store(conn, store)
        csv_content = df.to_csv(index=False).encode("utf-8")

        return StreamingResponse(
            iter([csv_content]),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{store}_listings.csv"'}
        )
    except Exception as e:
        logger.error(f"Error exporting CSV: {e}")
        raise HTTPException(status_code=500, detail="Error generating CSV export")
