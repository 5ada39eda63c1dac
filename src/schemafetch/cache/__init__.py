"""Content-addressed document caching for schemafetch.

This package provides :class:`DocumentCache`, a fail-open cache of fetched
documents keyed by the SHA3-256 digest of a canonical serialisation of the
caller's lookup key.  Entries are stored in one of two interchangeable
backends (:class:`FileStore` or :class:`DiskCacheStore`) under
``<cache_root>/<group>``.

The cache is consumed by :class:`~schemafetch.client.revalidate.Revalidator`
and is controlled by the ``cache`` section of
:class:`~schemafetch.models.Settings`.
"""

from schemafetch.cache.cache import DocumentCache
from schemafetch.cache.store import (
    DiskCacheStore,
    DisabledStore,
    FileStore,
    Store,
    open_store,
)

__all__ = [
    "DiskCacheStore",
    "DisabledStore",
    "DocumentCache",
    "FileStore",
    "Store",
    "open_store",
]
