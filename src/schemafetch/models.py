"""Canonical Pydantic models shared across all schemafetch modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Settings models** -- resolved once at startup by
:func:`~schemafetch.config.resolve_settings` and passed explicitly to the
cache and HTTP layers:
    :class:`CacheConfig`, :class:`HttpConfig`, and :class:`Settings`.

**Cache models** -- the persisted envelope and the fetcher's result:
    :class:`CacheEntry` and :class:`FetchedDocument`.

**Catalog models** -- the SchemaStore catalog document:
    :class:`SchemaInfo` and :class:`SchemaList`.

All models use Pydantic v2. Catalog models accept unknown keys so that new
catalog fields do not break older clients.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CATALOG_URL = "https://www.schemastore.org/api/json/catalog.json"
"""SchemaStore's public catalog of JSON Schemas."""


# --- Settings ---


class CacheConfig(BaseModel):
    """Local document cache settings."""

    enabled: bool = Field(default=True, description="Enable the document cache")
    dir: Optional[Path] = Field(
        default=None,
        description="Cache root directory (defaults to the platform cache dir)",
    )
    backend: Literal["file", "diskcache"] = Field(
        default="file",
        description="Storage backend: one file per key, or an embedded diskcache database",
    )
    refresh_interval: float = Field(
        default=300.0,
        ge=0,
        description="Seconds during which a cached document is served without revalidation",
    )


class HttpConfig(BaseModel):
    """HTTP transport settings used by :class:`~schemafetch.client.fetcher.Fetcher`."""

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    redirect_limit: int = Field(
        default=5, ge=0, description="Maximum number of redirect hops to follow"
    )


class Settings(BaseModel):
    """Effective configuration for one schemafetch invocation.

    Built by :func:`~schemafetch.config.resolve_settings` from CLI flags,
    environment variables, the optional config file, and defaults.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    catalog_url: str = Field(default=DEFAULT_CATALOG_URL)
    log_level: str = Field(default="WARNING")


# --- Cache ---


class CacheEntry(BaseModel):
    """A fetched document persisted in the cache together with its validators.

    On disk the fields use the short wire names ``etag``, ``date``, ``time``
    and ``body`` (see :mod:`schemafetch.cache.codec`).

    Attributes:
        etag: The ``ETag`` response header of the last full fetch.
        last_modified: The ``Last-Modified`` response header of the last
            full fetch.
        fetched_at: UNIX timestamp of the last fetch or revalidation.
        body: The deserialised payload.  Only replaced by a full refetch.
    """

    model_config = ConfigDict(populate_by_name=True)

    etag: Optional[str] = None
    last_modified: Optional[str] = Field(default=None, alias="date")
    fetched_at: float = Field(default_factory=time.time, alias="time")
    body: Any = None

    def refresh(self, now: float) -> None:
        """Move :attr:`fetched_at` forward to *now*; never backwards."""
        self.fetched_at = max(self.fetched_at, now)


class FetchedDocument(BaseModel):
    """The terminal 2xx response of a :meth:`~schemafetch.client.fetcher.Fetcher.fetch`."""

    url: str
    body: bytes
    etag: Optional[str] = None
    last_modified: Optional[str] = None


# --- Catalog ---


class SchemaInfo(BaseModel):
    """One entry of the SchemaStore catalog."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    url: str
    description: str = ""
    file_match: Optional[list[str]] = Field(default=None, alias="fileMatch")
    versions: Optional[dict[str, str]] = None

    def describe(self) -> str:
        """Render the entry as the indented block used by ``search --verbose``."""
        lines = [
            f"- name: {self.name}",
            f"  description: {self.description}",
            f"  url: {self.url}",
        ]
        if self.file_match:
            lines.append("  file_match:")
            lines.extend(f"    - {pattern}" for pattern in self.file_match)
        if self.versions:
            lines.append("  versions:")
            lines.extend(f"    {version}: {url}" for version, url in self.versions.items())
        return "\n".join(lines)


class SchemaList(BaseModel):
    """The SchemaStore catalog document."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    schema_: Optional[str] = Field(default=None, alias="$schema")
    version: Optional[float] = None
    schemas: list[SchemaInfo] = Field(default_factory=list)
