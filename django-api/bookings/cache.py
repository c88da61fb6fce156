"""Catalog cache keys.

Keys look like ``catalog:schools:active`` or, for packets of one year,
``catalog:packets:availableForCompetition:2024-25``.
"""

from collections.abc import Callable, Iterable
from typing import Any

from django.conf import settings
from django.core.cache import cache

CATALOG_FILTERS: dict[str, tuple[str, ...]] = {
    "years": ("all",),
    "currentYear": ("all",),
    "schools": ("active", "all"),
    "packets": ("availableForCompetition", "availableForPractice", "all"),
    "stateSeries": ("available", "all"),
    "compilations": ("available", "all"),
}


def catalog_key(resource: str, filter: str, year_code: str | None = None) -> str:
    key = f"catalog:{resource}:{filter}"
    return f"{key}:{year_code}" if year_code else key


def get_or_build(resource: str, filter: str, build: Callable[[], Any], year_code: str | None = None):
    """Return cached data for the key, building and storing it on a miss."""
    key = catalog_key(resource, filter, year_code)
    data = cache.get(key)
    if data is None:
        data = build()
        cache.set(key, data, settings.CATALOG_CACHE_TIMEOUT)
    return data


def invalidate(resource: str, year_codes: Iterable[str] = ()) -> None:
    keys = []
    for filter in CATALOG_FILTERS[resource]:
        keys.append(catalog_key(resource, filter))
        keys.extend(catalog_key(resource, filter, code) for code in year_codes)
    cache.delete_many(keys)
