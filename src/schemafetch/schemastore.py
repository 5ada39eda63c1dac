"""Search and retrieve JSON Schemas from `SchemaStore <https://www.schemastore.org/>`_.

:class:`SchemaStore` is a thin consumer of the cache layer: the catalog
and every schema body go through
:meth:`~schemafetch.client.revalidate.Revalidator.get_or_refresh`, so
repeated invocations reuse the local copy and only revalidate it once the
refresh interval has passed.

Search patterns are case-insensitive regular expressions.  A schema
matches when *every* pattern is found in its name (or, optionally, every
pattern is found in its description).
"""

from __future__ import annotations

import json
import logging
import re
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

import httpx
from pydantic import ValidationError

from schemafetch.cache import DocumentCache
from schemafetch.client.fetcher import Fetcher
from schemafetch.client.revalidate import Revalidator
from schemafetch.exceptions import InvalidUsageError, NotFoundError
from schemafetch.models import DEFAULT_CATALOG_URL, SchemaInfo, SchemaList, Settings

logger = logging.getLogger(__name__)

CACHE_GROUP = "schemastore"
"""Cache group holding the catalog and all schema bodies."""


def build_patterns(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    """Compile *patterns* as case-insensitive regular expressions.

    Raises:
        InvalidUsageError: If any pattern is not a valid regular expression.
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as exc:
            raise InvalidUsageError(f"Invalid pattern '{pattern}': {exc}") from exc
    return compiled


def _all_match(regexes: list[re.Pattern[str]], text: str) -> bool:
    return bool(regexes) and all(regex.search(text) for regex in regexes)


def parse_catalog(raw: bytes) -> Any:
    """Decode a catalog body, rejecting anything that is not a valid :class:`SchemaList`.

    The JSON is returned unchanged so the cache keeps the document as served.

    Raises:
        ValueError: If *raw* is not JSON or does not validate.
    """
    data = json.loads(raw)
    SchemaList.model_validate(data)
    return data


class SchemaStore:
    """Catalog client for SchemaStore.

    Args:
        revalidator: The cache/fetch policy used for every document.
        catalog_url: URL of the catalog JSON.
    """

    def __init__(self, revalidator: Revalidator, catalog_url: str = DEFAULT_CATALOG_URL) -> None:
        self._revalidator = revalidator
        self.catalog_url = catalog_url

    def list(self) -> Optional[SchemaList]:
        """Return the catalog, or ``None`` if it is neither cached nor fetchable.

        A malformed catalog is never stored; if an older valid copy is
        cached it keeps being served.
        """
        raw = self._revalidator.get_or_refresh(self.catalog_url, parse=parse_catalog)
        if raw is None:
            return None
        try:
            return SchemaList.model_validate(raw)
        except ValidationError as exc:
            logger.error("Unable to parse catalog from '%s' due to: %s", self.catalog_url, exc)
            return None

    def find(
        self,
        patterns: Iterable[str],
        in_names: bool = True,
        in_descriptions: bool = False,
    ) -> Optional[list[SchemaInfo]]:
        """Return the catalog entries matching all *patterns*.

        Args:
            patterns: Keywords or regular expressions.
            in_names: Match against schema names.
            in_descriptions: Match against schema descriptions.

        Returns:
            Matching entries in catalog order, or ``None`` if the catalog is
            unavailable.

        Raises:
            InvalidUsageError: If a pattern does not compile.
        """
        regexes = build_patterns(patterns)
        catalog = self.list()
        if catalog is None:
            return None
        return [
            schema
            for schema in catalog.schemas
            if (in_names and _all_match(regexes, schema.name))
            or (in_descriptions and _all_match(regexes, schema.description))
        ]

    def find_one(
        self,
        patterns: Iterable[str],
        in_names: bool = True,
        in_descriptions: bool = False,
    ) -> Optional[SchemaInfo]:
        """Return the single catalog entry matching *patterns*.

        Returns:
            The entry, or ``None`` if the catalog is unavailable.

        Raises:
            NotFoundError: If zero or several entries match.
            InvalidUsageError: If a pattern does not compile.
        """
        schemas = self.find(patterns, in_names, in_descriptions)
        if schemas is None:
            return None
        if not schemas:
            raise NotFoundError("No schemas found.")
        if len(schemas) > 1:
            names = ", ".join(schema.name for schema in schemas[:10])
            raise NotFoundError(f"Multiple schemas found: {names}")
        return schemas[0]

    def get_by_url(self, url: str) -> Optional[Any]:
        """Return the schema body at *url*, or ``None`` if unavailable."""
        return self._revalidator.get_or_refresh(url)

    def get_one(
        self,
        patterns: Iterable[str],
        in_names: bool = True,
        in_descriptions: bool = False,
    ) -> Optional[tuple[SchemaInfo, Any]]:
        """Find exactly one schema and return it together with its body.

        Returns:
            ``(info, body)``, or ``None`` if the catalog or the body is
            unavailable.

        Raises:
            NotFoundError: If zero or several entries match.
            InvalidUsageError: If a pattern does not compile.
        """
        schema = self.find_one(patterns, in_names, in_descriptions)
        if schema is None:
            return None
        content = self.get_by_url(schema.url)
        if content is None:
            return None
        return schema, content


@contextmanager
def open_schema_store(
    settings: Settings,
    client: Optional[httpx.Client] = None,
) -> Iterator[SchemaStore]:
    """Build a :class:`SchemaStore` from *settings* and release it afterwards.

    Opens the ``schemastore`` cache group and a :class:`Fetcher`, wires
    them into a :class:`Revalidator`, and closes both on exit.

    Args:
        settings: The resolved settings.
        client: Optional pre-built :class:`httpx.Client` for the fetcher.
    """
    cache = DocumentCache.open(settings.cache, CACHE_GROUP)
    try:
        with Fetcher(settings.http, client=client) as fetcher:
            revalidator = Revalidator(
                cache, fetcher, refresh_interval=settings.cache.refresh_interval
            )
            yield SchemaStore(revalidator, settings.catalog_url)
    finally:
        cache.close()
