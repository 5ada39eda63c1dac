"""Typed document cache on top of a byte-oriented :class:`~schemafetch.cache.store.Store`.

:class:`DocumentCache` combines a store with the entry codec: callers deal
in logical keys (usually URLs) and :class:`~schemafetch.models.CacheEntry`
objects, while the store only ever sees SHA3-256 keys and JSON envelopes.

Every operation is fail-open.  An unserialisable key, a corrupt envelope,
or a backend failure is logged and reported as a miss (``None``) or a
failed write (``False``); no exception reaches the caller.

See Also:
    :class:`~schemafetch.models.CacheConfig` -- controls ``enabled``,
    ``dir`` and ``backend``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from schemafetch.cache import codec
from schemafetch.cache.store import DisabledStore, Store, open_store
from schemafetch.exceptions import CacheKeyError
from schemafetch.models import CacheConfig, CacheEntry

logger = logging.getLogger(__name__)


class DocumentCache:
    """Cache of fetched documents for one group.

    Args:
        store: The backing store.  Use :meth:`open` to build one from
            configuration.
        group: The group name, kept for diagnostics.

    Example::

        from schemafetch.cache import DocumentCache
        from schemafetch.models import CacheConfig, CacheEntry

        cache = DocumentCache.open(CacheConfig(dir="/tmp/sf"), "schemastore")
        cache.put("https://example.com/a.json", CacheEntry(body={"a": 1}))
        hit = cache.get("https://example.com/a.json")
    """

    def __init__(self, store: Store, group: str = "") -> None:
        self._store = store
        self._group = group

    @classmethod
    def open(cls, config: CacheConfig, group: str) -> DocumentCache:
        """Open the cache for *group* as described by *config*.

        When ``config.enabled`` is false (or no directory is configured) the
        result is backed by a :class:`~schemafetch.cache.store.DisabledStore`
        and nothing is created on disk.
        """
        if not config.enabled or config.dir is None:
            return cls(DisabledStore(), group)
        return cls(open_store(config.dir, group, config.backend), group)

    @property
    def enabled(self) -> bool:
        """Whether entries are actually persisted."""
        return self._store.enabled

    @property
    def store(self) -> Store:
        """The backing store."""
        return self._store

    def _key(self, logical_key: Any) -> Optional[bytes]:
        try:
            return codec.to_key(logical_key)
        except CacheKeyError as exc:
            logger.error("%s", exc)
            return None

    def get(self, logical_key: Any) -> Optional[CacheEntry]:
        """Look up the entry for *logical_key*.

        Returns:
            The decoded entry, or ``None`` on a miss, a corrupt entry, or
            when caching is disabled.
        """
        if not self._store.enabled:
            return None
        key = self._key(logical_key)
        if key is None:
            return None
        raw = self._store.get(key)
        if raw is None:
            return None
        return codec.decode(raw)

    def put(self, logical_key: Any, entry: CacheEntry) -> bool:
        """Store *entry* under *logical_key*, replacing any previous entry.

        Returns:
            ``True`` if the entry was persisted.
        """
        if not self._store.enabled:
            return False
        key = self._key(logical_key)
        if key is None:
            return False
        try:
            raw = codec.encode(entry)
        except (TypeError, ValueError) as exc:
            logger.error("Unable to serialize cache value due to: %s", exc)
            return False
        return self._store.put(key, raw)

    def delete(self, logical_key: Any) -> bool:
        """Remove the entry for *logical_key*.  A missing entry is not an error."""
        if not self._store.enabled:
            return False
        key = self._key(logical_key)
        if key is None:
            return False
        return self._store.delete(key)

    def clear(self) -> bool:
        """Remove all entries of this group."""
        return self._store.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled`` (bool), and when enabled: ``group``,
            ``size`` (number of entries), ``directory`` (str path), and
            ``backend`` (store class name).
        """
        if not self._store.enabled:
            return {"enabled": False}
        path: Optional[Path] = self._store.path
        return {
            "enabled": True,
            "group": self._group,
            "size": len(self._store),
            "directory": str(path) if path is not None else None,
            "backend": type(self._store).__name__,
        }

    def close(self) -> None:
        """Close the underlying store and release resources."""
        self._store.close()

    def __enter__(self) -> DocumentCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
