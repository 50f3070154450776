"""
Site adapters and the name registry the dashboard and CLI use to pick one.
"""
from typing import Dict, List, Type

from ..errors import UnknownSiteError
from .base import SiteAdapter
from .bestcarfinder import BestCarFinderAdapter
from .craigslist import CraigslistAdapter
from .ebay import EbayAdapter
from .hemmings import HemmingsAdapter
from .karkiosk import KarkioskAdapter
from .kbb import KbbAdapter
from .privatepartycars import PrivatePartyCarsAdapter

ADAPTERS: List[Type[SiteAdapter]] = [
    EbayAdapter,
    HemmingsAdapter,
    CraigslistAdapter,
    KarkioskAdapter,
    KbbAdapter,
    PrivatePartyCarsAdapter,
    BestCarFinderAdapter,
]


def _build_registry() -> Dict[str, Type[SiteAdapter]]:
    registry = {}
    for cls in ADAPTERS:
        for name in (cls.site_name, cls.slug, *cls.aliases):
            registry[name.strip().lower()] = cls
    return registry


REGISTRY = _build_registry()


def adapter_class(site_name: str) -> Type[SiteAdapter]:
    """Look up an adapter by display name, alias or slug (case-insensitive)."""
    cls = REGISTRY.get((site_name or "").strip().lower())
    if cls is None:
        raise UnknownSiteError(f"No scraper for site {site_name!r}")
    return cls


def get_adapter(site_name: str, **kwargs) -> SiteAdapter:
    """Fresh adapter instance; kwargs go to the adapter constructor."""
    return adapter_class(site_name)(**kwargs)


def site_names() -> List[str]:
    """Display names offered in the dashboard's site picker."""
    names = []
    for cls in ADAPTERS:
        names.extend(cls.aliases if cls.slug in ("ebay", "craigslist") else (cls.site_name,))
    return names


__all__ = [
    "ADAPTERS",
    "SiteAdapter",
    "adapter_class",
    "get_adapter",
    "site_names",
]
