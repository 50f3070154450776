"""
Route package initialization.
"""
from .listings import router as listings_router
from .overview import router as overview_router
from .permanent import router as permanent_router
from .scrape import router as scrape_router
from .ui import router as ui_router

__all__ = ["listings_router", "overview_router", "permanent_router", "scrape_router", "ui_router"]
