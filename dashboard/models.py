"""
Pydantic models for API request/response serialization.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ScrapeRequest(BaseModel):
    """Body of POST /api/scrape. Required fields are checked by the handler."""
    search_url: str = ""
    site_name: str = ""
    keyword: Optional[str] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    max_pages: Optional[int] = None


class DetailRequest(BaseModel):
    product_url: str = ""


class ListingOut(BaseModel):
    """Output model for a stored temporary listing."""
    id: Optional[int] = None
    product_link: str
    title: str = ""
    price: Optional[str] = None
    image: Optional[str] = None
    posted_date: Optional[str] = None
    site_name: Optional[str] = None
    seller_name: Optional[str] = None
    seller_profile: Optional[str] = None
    seller_email: Optional[str] = None
    seller_contact: Optional[str] = None
    description: Optional[str] = None
    meta: Dict[str, Any] = {}
    error: Optional[str] = None
    scraped_at: Optional[str] = None
    expires_at: Optional[str] = None


class ScrapeResponse(BaseModel):
    success: bool
    count: int
    results: List[ListingOut]


class ListingsResponse(BaseModel):
    results: List[ListingOut]


class PermanentIn(BaseModel):
    """A listing to keep; title and product_link are required."""
    title: str = ""
    product_link: str = ""
    price: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = None
    seller_name: Optional[str] = None
    seller_profile: Optional[str] = None
    seller_email: Optional[str] = None
    seller_contact: Optional[str] = None
    description: Optional[str] = None
    scraped_at: Optional[str] = None


class PermanentOut(PermanentIn):
    id: int
    created_at: Optional[str] = None


class PermanentListResponse(BaseModel):
    results: List[PermanentOut]


class OverviewOut(BaseModel):
    temp_count: int
    perm_count: int
    exported_count: int
