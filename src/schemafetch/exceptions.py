"""Exception hierarchy for schemafetch.

All exceptions inherit from :class:`SchemafetchError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`schemafetch.exit_codes`.
The top-level error handler in :func:`schemafetch.app.main` catches
``SchemafetchError`` and exits with the appropriate code.

The :class:`FetchError` branch is different from the rest: it is raised
only inside :class:`~schemafetch.client.fetcher.Fetcher` and is always
caught again at the fetcher's public boundary, where it collapses into a
``None`` / ``CheckResult.FAILED`` result.  Callers of the cache layer never
see these exceptions.

Subclass hierarchy::

    SchemafetchError (exit 1)
    +-- ConfigError            (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- NotFoundError          (exit 4)
    +-- QueryError             (exit 6)
    +-- CacheKeyError          (exit 1)
    +-- FetchError             (exit 6)
        +-- MalformedURLError
        +-- RedirectLimitExceeded
        +-- TransportFailure
        +-- UnexpectedStatus
"""

from schemafetch.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_QUERY_ERROR,
)


class SchemafetchError(Exception):
    """Base exception for all schemafetch errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`schemafetch.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SchemafetchError):
    """Raised for configuration problems (invalid config file, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(SchemafetchError):
    """Raised for invalid CLI arguments or search patterns that do not compile."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SchemafetchError):
    """Raised when a catalog search matches no schema, or too many."""

    exit_code = EXIT_NOT_FOUND


class QueryError(SchemafetchError):
    """Raised when a required document is neither cached nor fetchable."""

    exit_code = EXIT_QUERY_ERROR


class CacheKeyError(SchemafetchError):
    """Raised when a logical cache key cannot be canonically serialised."""


class FetchError(SchemafetchError):
    """Base class for failures inside the HTTP fetcher.

    Args:
        message: Description of the failure.
        url: The URL being requested when the failure happened.
    """

    exit_code = EXIT_QUERY_ERROR

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class MalformedURLError(FetchError):
    """Raised when the initial URL or a redirect target is not a usable http(s) URL."""


class RedirectLimitExceeded(FetchError):
    """Raised when a server keeps redirecting past the configured hop limit."""


class TransportFailure(FetchError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""


class UnexpectedStatus(FetchError):
    """Raised when the terminal response is neither 2xx nor an expected 304.

    Args:
        message: Description of the failure.
        url: The final URL that produced the response.
        status_code: The HTTP status code that was received.
    """

    def __init__(self, message: str, url: str = "", status_code: int = 0):
        super().__init__(message, url)
        self.status_code = status_code
