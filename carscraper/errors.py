"""
Exception types raised by the scraping pipeline.

Only input errors ever reach the caller. Navigation failures are raised by
the retry helpers and absorbed by the pager and detail fetcher.
"""


class ScrapeInputError(ValueError):
    """Missing or malformed scrape input (URL, page budget, date window)."""


class UnknownSiteError(ScrapeInputError):
    """No adapter is registered for the requested site name."""


class NavigationError(Exception):
    """A page could not be loaded within the retry budget."""

    def __init__(self, url: str, attempts: int, cause: Exception = None):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        msg = f"Navigation to {url} failed after {attempts} attempt(s)"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
