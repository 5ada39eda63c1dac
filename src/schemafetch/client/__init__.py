"""HTTP fetching and cache revalidation for schemafetch.

Classes:
    :class:`Fetcher` -- blocking GET with bounded redirect following and
    conditional revalidation, backed by :class:`httpx.Client`.
    :class:`Revalidator` -- the fresh / check / refetch policy on top of a
    :class:`~schemafetch.cache.DocumentCache` and a :class:`Fetcher`.

Example::

    from schemafetch.cache import DocumentCache
    from schemafetch.client import Fetcher, Revalidator

    with Fetcher(settings.http) as fetcher:
        revalidator = Revalidator(DocumentCache.open(settings.cache, "schemastore"), fetcher)
        catalog = revalidator.get_or_refresh(settings.catalog_url)
"""

from schemafetch.client.fetcher import CheckResult, Fetcher
from schemafetch.client.revalidate import (
    REFRESH_INTERVAL,
    RevalidationState,
    Revalidator,
    get_cached,
    parse_json,
)

__all__ = [
    "CheckResult",
    "Fetcher",
    "REFRESH_INTERVAL",
    "RevalidationState",
    "Revalidator",
    "get_cached",
    "parse_json",
]
