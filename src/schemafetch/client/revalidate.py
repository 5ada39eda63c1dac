"""Revalidation policy: serve fresh, revalidate stale, refetch changed.

:class:`Revalidator` decides, for each lookup, between three costs:

1. **Fresh** -- the entry was fetched or revalidated less than
   ``refresh_interval`` seconds ago: return it with no network traffic.
   The window bounds the request rate against origin servers across
   repeated invocations of the tool.
2. **Conditional check** -- the entry is older: send a conditional GET with
   its validators.  A 304 only moves ``fetched_at`` forward.
3. **Full refetch** -- there is no usable entry, or the server reports the
   document changed: GET it, parse it, and replace the entry wholesale.

The policy is fail-open.  If a check or a refetch fails while a previous
entry exists, that entry is served again and its timestamp refreshed so
the next invocation does not hammer the server immediately.  There is no
upper bound on how stale a served entry may become; availability wins over
freshness when the network is unreachable.  Only "no entry and the fetch
failed" yields ``None``.
"""

from __future__ import annotations

import enum
import json
import logging
import time
from typing import Any, Callable, Optional

from schemafetch.cache import DocumentCache
from schemafetch.client.fetcher import CheckResult, Fetcher
from schemafetch.models import CacheEntry

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 300.0
"""Default number of seconds a cached document is served without revalidation."""

Parser = Callable[[bytes], Any]


def parse_json(raw: bytes) -> Any:
    """Default payload parser: decode the body as JSON."""
    return json.loads(raw)


class RevalidationState(str, enum.Enum):
    """The path a lookup took through the policy."""

    NO_ENTRY = "no_entry"
    FRESH = "fresh"
    CHECKED_UNMODIFIED = "checked_unmodified"
    CHECKED_MODIFIED = "checked_modified"
    STALE_FALLBACK = "stale_fallback"
    FAILED = "failed"


class Revalidator:
    """Orchestrates a :class:`~schemafetch.cache.DocumentCache` and a
    :class:`~schemafetch.client.fetcher.Fetcher`.

    Args:
        cache: Where entries are read from and written to.  A disabled
            cache turns every lookup into a plain fetch.
        fetcher: The HTTP fetcher.
        refresh_interval: Seconds during which an entry is served without
            revalidation.
        clock: Returns the current UNIX time; injectable for tests.
    """

    def __init__(
        self,
        cache: DocumentCache,
        fetcher: Fetcher,
        refresh_interval: float = REFRESH_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._refresh_interval = refresh_interval
        self._clock = clock
        self.last_state: Optional[RevalidationState] = None

    def get_or_refresh(
        self,
        url: str,
        parse: Parser = parse_json,
        key: Any = None,
    ) -> Any:
        """Return the document at *url*, from cache when possible.

        Args:
            url: The remote document.
            parse: Turns the raw response body into the cached payload.
                The result must be JSON-serialisable to be persisted.
                A parser exception counts as a failed fetch.
            key: Logical cache key; defaults to *url*.

        Returns:
            The parsed payload, or ``None`` if there is no cached entry and
            the document could not be fetched.
        """
        key = url if key is None else key
        entry = self._cache.get(key)

        if entry is None:
            fetched = self._refetch(url, key, parse)
            if fetched is None:
                self.last_state = RevalidationState.FAILED
                return None
            self.last_state = RevalidationState.NO_ENTRY
            return fetched.body

        now = self._clock()
        age = now - entry.fetched_at
        if 0 <= age < self._refresh_interval:
            logger.debug("Serving fresh cached copy of %s (age %.0fs)", url, age)
            self.last_state = RevalidationState.FRESH
            return entry.body

        result = self._fetcher.check(url, entry.etag, entry.last_modified)
        if result is CheckResult.UNMODIFIED:
            logger.debug("Cached copy of %s is still valid", url)
            self._touch(key, entry)
            self.last_state = RevalidationState.CHECKED_UNMODIFIED
            return entry.body

        if result is CheckResult.MODIFIED:
            logger.debug("Cached copy of %s is outdated, refetching", url)
            fetched = self._refetch(url, key, parse)
            if fetched is not None:
                self.last_state = RevalidationState.CHECKED_MODIFIED
                return fetched.body

        logger.warning("Unable to revalidate %s, serving cached copy", url)
        self._touch(key, entry)
        self.last_state = RevalidationState.STALE_FALLBACK
        return entry.body

    def _touch(self, key: Any, entry: CacheEntry) -> None:
        entry.refresh(self._clock())
        self._cache.put(key, entry)

    def _refetch(self, url: str, key: Any, parse: Parser) -> Optional[CacheEntry]:
        """GET *url* and store the parsed result.

        Returns:
            The new entry, or ``None`` if the fetch or the parser failed.  A
            parser may legitimately return ``None`` (a JSON ``null``).
        """
        doc = self._fetcher.fetch(url)
        if doc is None:
            return None
        try:
            body = parse(doc.body)
        except (ValueError, TypeError) as exc:
            logger.error("Unable to parse document from '%s' due to: %s", doc.url, exc)
            return None
        entry = CacheEntry(
            etag=doc.etag,
            last_modified=doc.last_modified,
            fetched_at=self._clock(),
            body=body,
        )
        self._cache.put(key, entry)
        return entry


def get_cached(
    cache: DocumentCache,
    fetcher: Fetcher,
    url: str,
    parse: Parser = parse_json,
    refresh_interval: float = REFRESH_INTERVAL,
) -> Any:
    """One-shot form of :meth:`Revalidator.get_or_refresh`."""
    return Revalidator(cache, fetcher, refresh_interval).get_or_refresh(url, parse)
