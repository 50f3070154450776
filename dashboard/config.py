"""
Dashboard configuration and settings management.
"""
import os


class Config:
    """Application configuration."""

    # Database
    DB_PATH: str = os.getenv("CARSCRAPER_DB", "./data/db/carscraper.db")

    # API settings
    API_TITLE: str = "Vehicle Scraper Dashboard"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Run classifieds scrapes and manage the scraped listings"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Temporary listings expire after this many hours
    LISTING_TTL_HOURS: float = float(os.getenv("LISTING_TTL_HOURS", "48"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("DASHBOARD_LOG_FILE", "dashboard.log")

    def validate(self) -> None:
        """Validate configuration on startup; create the DB directory if needed."""
        if not self.DB_PATH:
            raise ValueError("Database path not configured")
        if self.LISTING_TTL_HOURS <= 0:
            raise ValueError("LISTING_TTL_HOURS must be positive")
        os.makedirs(os.path.dirname(self.DB_PATH) or ".", exist_ok=True)


# Global config instance
config = Config()
