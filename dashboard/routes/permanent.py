"""
Permanent store route handlers.
"""
import logging
from typing import List, Union

from fastapi import APIRouter, HTTPException

from carscraper.database import delete_permanent, list_permanent, promote_listing, promote_many

from ..database import get_db_connection
from ..models import PermanentIn, PermanentListResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["permanent"])


@router.get("/permanent", response_model=PermanentListResponse)
async def get_permanent():
    try:
        with get_db_connection() as conn:
            return PermanentListResponse(results=list_permanent(conn))
    except Exception as e:
        logger.error(f"Error fetching permanent listings: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch permanent data")


@router.post("/permanent")
async def post_permanent(payload: Union[List[PermanentIn], PermanentIn]):
    """
    Keep one listing (object body) or many (array body).

    Links that are already permanent are skipped, not errors.
    """
    try:
        with get_db_connection() as conn:
            if isinstance(payload, list):
                saved = promote_many(conn, [p.model_dump() for p in payload])
                return {"saved_count": saved}
            status = promote_listing(conn, payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if status == "exists":
        return {"exists": True}
    return {"success": True}


@router.delete("/permanent/{listing_id}")
async def delete_api_permanent(listing_id: int):
    with get_db_connection() as conn:
        deleted = delete_permanent(conn, listing_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Permanent record not found")
    return {"success": True}
