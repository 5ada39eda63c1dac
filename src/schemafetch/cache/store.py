"""Key/value storage backends for the document cache.

A :class:`Store` maps opaque byte keys to byte values inside one *group*
directory (``<cache_root>/<group>``).  Two interchangeable backends are
provided and selected at runtime through
:attr:`~schemafetch.models.CacheConfig.backend`:

* :class:`FileStore` (``"file"``) -- one file per key.  The file name is the
  base64url encoding (no padding) of the key.  Writes go to a temporary file
  in the same directory that is fsynced and then renamed over the target,
  so concurrent readers see either the old value or the new one, never a
  partial write.
* :class:`DiskCacheStore` (``"diskcache"``) -- an embedded SQLite-backed
  :class:`diskcache.Cache` opened at the group path, with eviction turned
  off so entries persist until removed explicitly.

Every backend error (I/O failure, SQLite error, lock timeout) is caught at
this layer, logged, and converted to ``None`` or ``False``.  If the store
cannot be opened at all, :func:`open_store` hands back a
:class:`DisabledStore` and the rest of the process runs uncached.
"""

from __future__ import annotations

import base64
import logging
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import diskcache

logger = logging.getLogger(__name__)

_DISKCACHE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


class Store(ABC):
    """Abstract byte-oriented key/value store scoped to one cache group.

    Implementations never raise from :meth:`get`, :meth:`put`,
    :meth:`delete` or :meth:`clear`; failures are logged and reported
    through the return value.
    """

    path: Optional[Path] = None

    @property
    def enabled(self) -> bool:
        """Whether this store persists anything."""
        return True

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value stored under *key*, or ``None`` if absent or unreadable."""

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> bool:
        """Store *value* under *key*, replacing any previous value.

        Returns:
            ``True`` on success, ``False`` if the write failed.
        """

    @abstractmethod
    def delete(self, key: bytes) -> bool:
        """Remove *key*.  Removing a missing key succeeds.

        Returns:
            ``True`` on success, ``False`` if the removal failed.
        """

    @abstractmethod
    def clear(self) -> bool:
        """Remove every entry of this group."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of entries currently stored."""

    def close(self) -> None:
        """Release backend resources.  Safe to call more than once."""


class DisabledStore(Store):
    """A store that remembers nothing.

    Returned by :func:`open_store` when caching is turned off or the
    backend could not be opened.
    """

    @property
    def enabled(self) -> bool:
        return False

    def get(self, key: bytes) -> Optional[bytes]:
        return None

    def put(self, key: bytes, value: bytes) -> bool:
        return False

    def delete(self, key: bytes) -> bool:
        return False

    def clear(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0


class FileStore(Store):
    """One-file-per-key store rooted at a group directory.

    Args:
        path: The group directory.  Created (with parents) if missing.

    Raises:
        OSError: If the directory cannot be created.  :func:`open_store`
            turns this into a :class:`DisabledStore`.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        if not self.path.is_dir():
            self.path.mkdir(parents=True, exist_ok=True)

    def _key_path(self, key: bytes) -> Path:
        name = base64.urlsafe_b64encode(key).rstrip(b"=").decode("ascii")
        return self.path / name

    def get(self, key: bytes) -> Optional[bytes]:
        path = self._key_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("Unable to read cache data file '%s' due to: %s", path, exc)
            return None

    def put(self, key: bytes, value: bytes) -> bool:
        path = self._key_path(key)
        tmp_path: Optional[str] = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self.path,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fd:
                tmp_path = fd.name
                fd.write(value)
                fd.flush()
                os.fsync(fd.fileno())
            os.replace(tmp_path, path)
            return True
        except OSError as exc:
            logger.error("Unable to write cache data file '%s' due to: %s", path, exc)
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            return False

    def delete(self, key: bytes) -> bool:
        path = self._key_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return True
        except OSError as exc:
            logger.error("Unable to remove cache data file '%s' due to: %s", path, exc)
            return False
        return True

    def _entries(self) -> list[Path]:
        # Temp files start with "." which never occurs in base64url names.
        return [p for p in self.path.iterdir() if p.is_file() and not p.name.startswith(".")]

    def clear(self) -> bool:
        ok = True
        try:
            entries = self._entries()
        except OSError as exc:
            logger.error("Unable to list cache directory '%s' due to: %s", self.path, exc)
            return False
        for entry in entries:
            try:
                entry.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.error("Unable to remove cache data file '%s' due to: %s", entry, exc)
                ok = False
        return ok

    def __len__(self) -> int:
        try:
            return len(self._entries())
        except OSError:
            return 0


class DiskCacheStore(Store):
    """Embedded-database store backed by :class:`diskcache.Cache`.

    Args:
        path: The group directory holding the SQLite database.

    Raises:
        OSError, sqlite3.Error: If the database cannot be opened.
            :func:`open_store` turns this into a :class:`DisabledStore`.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._db: Optional[diskcache.Cache] = diskcache.Cache(
            str(self.path), eviction_policy="none"
        )

    def get(self, key: bytes) -> Optional[bytes]:
        if self._db is None:
            return None
        try:
            return self._db.get(key, default=None, retry=True)
        except _DISKCACHE_ERRORS as exc:
            logger.error("Unable to get from cache due to: %s", exc)
            return None

    def put(self, key: bytes, value: bytes) -> bool:
        if self._db is None:
            return False
        try:
            return bool(self._db.set(key, value, retry=True))
        except _DISKCACHE_ERRORS as exc:
            logger.error("Unable to insert into cache due to: %s", exc)
            return False

    def delete(self, key: bytes) -> bool:
        if self._db is None:
            return False
        try:
            self._db.delete(key, retry=True)
        except _DISKCACHE_ERRORS as exc:
            logger.error("Unable to remove from cache due to: %s", exc)
            return False
        return True

    def clear(self) -> bool:
        if self._db is None:
            return False
        try:
            self._db.clear(retry=True)
        except _DISKCACHE_ERRORS as exc:
            logger.error("Unable to clear cache due to: %s", exc)
            return False
        return True

    def __len__(self) -> int:
        if self._db is None:
            return 0
        try:
            return len(self._db)
        except _DISKCACHE_ERRORS:
            return 0

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None


BACKENDS: dict[str, type[Store]] = {
    "file": FileStore,
    "diskcache": DiskCacheStore,
}


def open_store(root: Optional[Path], group: str, backend: str = "file") -> Store:
    """Open the store for *group* under *root*, failing soft.

    Args:
        root: The cache root directory, or ``None`` when caching is
            disabled.
        group: Logical namespace; becomes a sub-directory of *root*.
        backend: Key of :data:`BACKENDS`.

    Returns:
        The opened store, or a :class:`DisabledStore` if *root* is ``None``
        or the backend could not be opened.
    """
    if root is None:
        return DisabledStore()
    store_cls = BACKENDS.get(backend)
    if store_cls is None:
        logger.error("Unknown cache backend '%s', caching disabled", backend)
        return DisabledStore()
    path = Path(root) / group
    try:
        store = store_cls(path)
    except _DISKCACHE_ERRORS as exc:
        logger.error("Unable to open cache '%s' due to: %s", path, exc)
        return DisabledStore()
    logger.debug("Opened %s cache at '%s'", backend, path)
    return store
