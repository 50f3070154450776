"""
Scraper configuration and settings management.
"""
import os


def _env_bool(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """Scraper configuration."""

    # Browser
    HEADLESS: bool = _env_bool("HEADLESS", "1")
    CHROME_CHANNEL: str = os.getenv("CHROME_CHANNEL", "")
    USER_AGENT: str = os.getenv(
        "SCRAPER_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36",
    )
    VIEWPORT: dict = {"width": 1366, "height": 900}
    LOCALE: str = "en-US"

    # Timeouts (milliseconds)
    DEFAULT_TIMEOUT_MS: int = int(os.getenv("SCRAPER_TIMEOUT_MS", "30000"))
    NAV_TIMEOUT_MS: int = int(os.getenv("SCRAPER_NAV_TIMEOUT_MS", "45000"))
    MODAL_TIMEOUT_MS: int = 5_000

    # Retry policy
    PAGE_ATTEMPTS: int = int(os.getenv("SCRAPER_PAGE_ATTEMPTS", "2"))
    DETAIL_ATTEMPTS: int = int(os.getenv("SCRAPER_DETAIL_ATTEMPTS", "2"))
    RETRY_BACKOFF_S: float = float(os.getenv("SCRAPER_RETRY_BACKOFF_S", "0.8"))

    # Multiplier for every politeness delay; 0 disables them
    DELAY_SCALE: float = float(os.getenv("SCRAPER_DELAY_SCALE", "1.0"))

    # Naive dates (form input, site card text) are read in this zone
    SITE_TIMEZONE: str = os.getenv("SCRAPER_TZ", "UTC")

    # Pagination
    DEFAULT_MAX_PAGES: int = 50

    def copy(self, **overrides) -> "Config":
        """Return an instance with some settings overridden."""
        c = Config()
        c.__dict__.update(self.__dict__)
        for k, v in overrides.items():
            if not hasattr(Config, k):
                raise AttributeError(f"Unknown setting: {k}")
            setattr(c, k, v)
        return c


# Global config instance
config = Config()
