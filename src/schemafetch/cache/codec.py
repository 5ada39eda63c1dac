"""Cache key derivation and the persisted entry envelope.

Storage keys are content-addressed: the caller's logical key (usually the
document URL, but any JSON-serialisable value works) is serialised to
canonical JSON -- sorted object keys, compact separators, UTF-8 -- and
hashed with SHA3-256.  Two logical keys map to the same storage key exactly
when their canonical serialisations are byte-equal, so ``{"a": 1, "b": 2}``
and ``{"b": 2, "a": 1}`` address the same entry.

Entries are stored as a JSON envelope::

    {"etag": "\\"abc\\"", "date": "Wed, 21 Oct 2015 07:28:00 GMT",
     "time": 1700000000.0, "body": {...}}

:func:`decode` never raises: anything that is not a well-formed envelope is
logged as a corrupt entry and reported as ``None``, which the revalidation
policy treats exactly like a miss.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from schemafetch.exceptions import CacheKeyError
from schemafetch.models import CacheEntry

logger = logging.getLogger(__name__)

KEY_SIZE = 32
"""Length in bytes of every storage key (SHA3-256 digest size)."""


def canonical(logical_key: Any) -> bytes:
    """Serialise *logical_key* into its canonical byte form.

    Raises:
        CacheKeyError: If the value is not JSON-serialisable.
    """
    try:
        text = json.dumps(
            logical_key,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise CacheKeyError(f"Unable to serialize cache key: {exc}") from exc
    return text.encode("utf-8")


def to_key(logical_key: Any) -> bytes:
    """Derive the opaque storage key for *logical_key*.

    Returns:
        The 32-byte SHA3-256 digest of :func:`canonical`.

    Raises:
        CacheKeyError: If the value is not JSON-serialisable.
    """
    return hashlib.sha3_256(canonical(logical_key)).digest()


def encode(entry: CacheEntry) -> bytes:
    """Serialise *entry* into the JSON wire envelope.

    Raises:
        TypeError, ValueError: If the body is not JSON-serialisable.
    """
    envelope = {
        "etag": entry.etag,
        "date": entry.last_modified,
        "time": entry.fetched_at,
        "body": entry.body,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode(raw: bytes) -> Optional[CacheEntry]:
    """Parse a wire envelope back into a :class:`~schemafetch.models.CacheEntry`.

    Returns:
        The entry, or ``None`` if *raw* is not a valid envelope.
    """
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Unable to parse cached value due to: %s", exc)
        return None
    if not isinstance(data, dict) or "time" not in data or "body" not in data:
        logger.error("Unable to parse cached value due to: missing envelope fields")
        return None
    try:
        return CacheEntry.model_validate(data)
    except ValidationError as exc:
        logger.error("Unable to parse cached value due to: %s", exc)
        return None
