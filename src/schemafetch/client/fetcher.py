"""Redirect-aware HTTP GET with conditional revalidation.

This module provides :class:`Fetcher`, the only component of schemafetch
that talks to the network.  It wraps :class:`httpx.Client` with redirect
following switched off and walks redirects itself so that:

- the number of hops is bounded by
  :attr:`~schemafetch.models.HttpConfig.redirect_limit` (at most
  ``redirect_limit + 1`` requests per call);
- conditional headers (``If-None-Match`` / ``If-Modified-Since``) are sent
  on every hop, not only the first;
- a ``304 Not Modified`` is treated as a terminal answer rather than as a
  redirect.

Failures are raised internally as :class:`~schemafetch.exceptions.FetchError`
subclasses and collapsed at the public boundary: :meth:`Fetcher.fetch`
returns ``None`` and :meth:`Fetcher.check` returns
:attr:`CheckResult.FAILED`, each with a logged warning.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

import httpx

from schemafetch import __version__
from schemafetch.exceptions import (
    FetchError,
    MalformedURLError,
    RedirectLimitExceeded,
    TransportFailure,
    UnexpectedStatus,
)
from schemafetch.models import FetchedDocument, HttpConfig

logger = logging.getLogger(__name__)

USER_AGENT = f"schemafetch/{__version__}"


class CheckResult(str, enum.Enum):
    """Outcome of a conditional revalidation request."""

    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    FAILED = "failed"


def _is_redirect(status_code: int) -> bool:
    return 300 <= status_code < 400 and status_code != 304


def _raw_header(response: httpx.Response, name: bytes) -> Optional[str]:
    """Return header *name* decoded as latin-1 so it round-trips byte-exact."""
    for key, value in response.headers.raw:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


class Fetcher:
    """Blocking HTTP fetcher used by the revalidation policy.

    Can be used as a context manager, in which case an owned
    :class:`httpx.Client` is opened on entry and closed on exit.  When used
    without ``with`` the client is created lazily on the first request and
    released by :meth:`close`.

    Args:
        config: Transport settings (timeout, SSL verification, redirect
            limit).  Defaults to :class:`~schemafetch.models.HttpConfig`.
        client: Optional pre-built client, e.g. one with an
            :class:`httpx.MockTransport`.  It must not follow redirects on
            its own; an injected client is never closed by the fetcher.

    Example::

        with Fetcher(HttpConfig(redirect_limit=3)) as fetcher:
            doc = fetcher.fetch("https://www.schemastore.org/api/json/catalog.json")
            if doc is not None:
                result = fetcher.check(doc.url, doc.etag, doc.last_modified)
    """

    def __init__(
        self,
        config: Optional[HttpConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or HttpConfig()
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Fetcher:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if the fetcher created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                follow_redirects=False,
            )
            self._owns_client = True
        return self._client

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def fetch(self, url: str) -> Optional[FetchedDocument]:
        """GET *url*, following redirects, and return the document.

        Args:
            url: Absolute http(s) URL.

        Returns:
            The body and validators of the terminal 2xx response, or
            ``None`` if any hop failed, the redirect limit was exceeded, or
            the terminal status was not 2xx.
        """
        logger.info("Starting HTTP GET request to: %s", url)
        try:
            response = self._get_with_redirects(url, {})
            if not response.is_success:
                raise UnexpectedStatus(
                    f"Unexpected HTTP response from '{response.url}': {response.status_code}",
                    url=str(response.url),
                    status_code=response.status_code,
                )
        except FetchError as exc:
            logger.warning("%s", exc)
            return None

        return FetchedDocument(
            url=str(response.url),
            body=response.content,
            etag=_raw_header(response, b"etag"),
            last_modified=_raw_header(response, b"last-modified"),
        )

    def check(
        self,
        url: str,
        etag: Optional[str] = None,
        last_modified: Optional[str] = None,
    ) -> CheckResult:
        """Ask the server whether *url* changed since the given validators.

        ``If-None-Match`` and ``If-Modified-Since`` are attached when the
        corresponding validator is present, and carried across every
        redirect hop.  Validators are sent as the latin-1 bytes they were read
        from, so non-ASCII values round-trip unchanged.

        Returns:
            :attr:`CheckResult.UNMODIFIED` on a terminal 304,
            :attr:`CheckResult.MODIFIED` on a terminal 2xx, and
            :attr:`CheckResult.FAILED` otherwise.
        """
        headers: dict[str, bytes] = {}
        try:
            if etag:
                headers["If-None-Match"] = etag.encode("latin-1")
            if last_modified:
                headers["If-Modified-Since"] = last_modified.encode("latin-1")
        except UnicodeEncodeError as exc:
            logger.warning("Unable to revalidate '%s' due to invalid validator: %s", url, exc)
            return CheckResult.FAILED

        logger.info("Starting conditional HTTP GET request to: %s", url)
        try:
            response = self._get_with_redirects(url, headers)
        except FetchError as exc:
            logger.warning("%s", exc)
            return CheckResult.FAILED

        if response.status_code == 304:
            return CheckResult.UNMODIFIED
        if response.is_success:
            return CheckResult.MODIFIED
        logger.warning(
            "Unexpected HTTP response from '%s': %s", response.url, response.status_code
        )
        return CheckResult.FAILED

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _parse_url(self, url: str | httpx.URL, redirected: bool) -> httpx.URL:
        """Validate *url* as an absolute http(s) URL."""
        what = "redirect url" if redirected else "url"
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise MalformedURLError(f"Invalid {what} '{url}' due to: {exc}", url=str(url)) from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise MalformedURLError(
                f"Invalid {what} '{url}' due to: not an absolute http(s) URL", url=str(url)
            )
        return parsed

    def _get_with_redirects(self, url: str, headers: dict[str, bytes]) -> httpx.Response:
        """Issue GET requests, following up to ``redirect_limit`` redirects.

        Raises:
            MalformedURLError: The URL or a ``Location`` target is unusable.
            RedirectLimitExceeded: Still redirected after the last allowed hop.
            TransportFailure: A request failed at the network level.
        """
        client = self._http()
        request_headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            **headers,
        }
        hops_left = self._config.redirect_limit
        current = self._parse_url(url, redirected=False)

        while True:
            try:
                response = client.get(current, headers=request_headers)
            except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
                raise TransportFailure(
                    f"Invalid request '{current}' due to: {exc}", url=str(current)
                ) from exc

            logger.info(
                "Received HTTP GET response from: %s with status: %s",
                current,
                response.status_code,
            )

            if not _is_redirect(response.status_code):
                return response

            if hops_left == 0:
                raise RedirectLimitExceeded(
                    f"Too many redirects fetching '{url}' "
                    f"(limit {self._config.redirect_limit})",
                    url=url,
                )
            hops_left -= 1

            location = response.headers.get("Location")
            if not location:
                raise MalformedURLError(
                    f"Redirect from '{current}' has no Location header", url=str(current)
                )
            try:
                target = current.join(location)
            except httpx.InvalidURL as exc:
                raise MalformedURLError(
                    f"Invalid redirect url '{location}' due to: {exc}", url=location
                ) from exc
            logger.debug("Following redirect from %s to %s", current, target)
            current = self._parse_url(target, redirected=True)
