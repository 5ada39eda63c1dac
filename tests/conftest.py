"""Shared test fixtures for schemafetch.

Provides an isolated config environment, a controllable clock, and a
scriptable HTTP origin (:class:`FakeServer`) built on
:class:`httpx.MockTransport` that records every request it receives.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterator

import httpx
import pytest

from schemafetch.cache import DocumentCache
from schemafetch.client import Fetcher, Revalidator
from schemafetch.models import CacheConfig, HttpConfig
from schemafetch.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Undo :func:`~schemafetch.output.configure_logging` after CLI tests.

    The CLI stops ``schemafetch`` records from propagating to the root
    logger, which would hide them from ``caplog`` in later tests.
    """
    yield
    package_logger = logging.getLogger("schemafetch")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def quiet_output() -> Iterator[OutputManager]:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config, and clears all SCHEMAFETCH_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("schemafetch.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "SCHEMAFETCH_CACHE_DIR",
        "SCHEMAFETCH_NO_CACHE",
        "SCHEMAFETCH_CATALOG_URL",
        "SCHEMAFETCH_LOG_LEVEL",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Clock and HTTP origin
# ---------------------------------------------------------------------------


class FakeClock:
    """A manually advanced replacement for :func:`time.time`."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeServer:
    """Scriptable HTTP origin for :class:`httpx.MockTransport`.

    Assign :attr:`handler` to decide how each request is answered; every
    request is appended to :attr:`requests` before the handler runs.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(404)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    @property
    def conditional_requests(self) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if "if-none-match" in r.headers or "if-modified-since" in r.headers
        ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def fetcher(server: FakeServer) -> Iterator[Fetcher]:
    client = server.client()
    with Fetcher(HttpConfig(redirect_limit=5), client=client) as f:
        yield f
    client.close()


@pytest.fixture
def doc_cache(tmp_path: Path) -> Iterator[DocumentCache]:
    cache = DocumentCache.open(CacheConfig(dir=tmp_path / "cache"), "test")
    yield cache
    cache.close()


@pytest.fixture
def revalidator(doc_cache: DocumentCache, fetcher: Fetcher, clock: FakeClock) -> Revalidator:
    return Revalidator(doc_cache, fetcher, refresh_interval=300, clock=clock)


@pytest.fixture
def catalog_raw() -> dict[str, Any]:
    """Load the sample SchemaStore catalog."""
    with open(FIXTURES_DIR / "catalog.json") as f:
        return json.load(f)


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
