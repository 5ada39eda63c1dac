"""End-to-end tests for the schemafetch CLI."""

from __future__ import annotations

import json
import re
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from schemafetch import __version__
from schemafetch.app import app, main
from schemafetch.exceptions import ConfigError, InvalidUsageError, NotFoundError, QueryError
from schemafetch.models import DEFAULT_CATALOG_URL

runner = CliRunner()

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def origin(server, catalog_raw: dict[str, Any]):
    """Serve the sample catalog and a small body for every listed schema."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == DEFAULT_CATALOG_URL:
            return httpx.Response(200, json=catalog_raw, headers={"ETag": '"catalog-1"'})
        for schema in catalog_raw["schemas"]:
            if schema["url"] == url:
                return httpx.Response(
                    200, json={"$id": url, "title": schema["name"], "type": "object"}
                )
        return httpx.Response(404)

    server.handler = handler
    return server


@pytest.fixture
def invoke(isolated_config: Path, origin):
    """Run the CLI against the fake origin with an isolated cache directory."""
    client = origin.client()
    cache_dir = isolated_config / "sfcache"

    def _invoke(*args: str, cache: bool = True):
        argv = ["--cache-dir", str(cache_dir)] if cache else []
        return runner.invoke(app, [*argv, *args], obj={"http_client": client})

    _invoke.cache_dir = cache_dir
    yield _invoke
    client.close()


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"schemafetch {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        text = _strip_ansi(result.output)
        for command in ("search", "retrieve", "cache"):
            assert command in text

    def test_invalid_log_level(self, invoke) -> None:
        result = invoke("--log-level", "chatty", "search")
        assert isinstance(result.exception, ConfigError)


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


class TestSearch:
    def test_lists_all_without_patterns(self, invoke) -> None:
        result = invoke("search")
        assert result.exit_code == 0, result.output
        for name in ("tsconfig.json", "package.json", "GitHub Workflow", "GitHub Action"):
            assert f"- {name}" in result.stdout

    def test_pattern(self, invoke) -> None:
        result = invoke("--quiet", "search", "github", "workflow")
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "- GitHub Workflow"

    def test_with_descriptions(self, invoke) -> None:
        result = invoke("--quiet", "search", "--with-descriptions", "typescript")
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "- tsconfig.json"

    def test_json(self, invoke) -> None:
        result = invoke("--quiet", "--json", "search", "tsconfig")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data == [
            {
                "name": "tsconfig.json",
                "url": "https://json.schemastore.org/tsconfig.json",
                "description": "TypeScript compiler configuration file",
                "fileMatch": ["tsconfig.json", "tsconfig.*.json"],
            }
        ]

    def test_verbose_describes(self, invoke) -> None:
        result = invoke("--verbose", "search", "action")
        assert result.exit_code == 0, result.output
        assert "  url: https://json.schemastore.org/github-action.json" in result.output
        assert "    1.0: https://json.schemastore.org/github-action-1.0.json" in result.output

    def test_no_match_is_empty(self, invoke) -> None:
        result = invoke("search", "nonexistent")
        assert result.exit_code == 0
        assert "Found 0 schemas" in result.output

    def test_invalid_pattern(self, invoke) -> None:
        result = invoke("search", "(unclosed")
        assert isinstance(result.exception, InvalidUsageError)

    def test_catalog_unavailable(self, invoke, origin) -> None:
        origin.handler = lambda request: httpx.Response(503)
        result = invoke("search", "tsconfig")
        assert isinstance(result.exception, QueryError)


# ---------------------------------------------------------------------------
# retrieve
# ---------------------------------------------------------------------------


class TestRetrieve:
    def test_to_stdout(self, invoke) -> None:
        result = invoke("--quiet", "retrieve", "^package")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["title"] == "package.json"

    def test_to_file(self, invoke, isolated_config: Path) -> None:
        target = isolated_config / "tsconfig.schema.json"
        result = invoke("retrieve", "tsconfig", "--output", str(target))
        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text())["title"] == "tsconfig.json"
        assert "Saved tsconfig.json" in result.output

    def test_existing_file_needs_force(self, invoke, isolated_config: Path) -> None:
        target = isolated_config / "existing.json"
        target.write_text("keep me")
        result = invoke("retrieve", "tsconfig", "-o", str(target))
        assert isinstance(result.exception, InvalidUsageError)
        assert target.read_text() == "keep me"

        result = invoke("--force", "retrieve", "tsconfig", "-o", str(target))
        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text())["title"] == "tsconfig.json"

    def test_ambiguous(self, invoke) -> None:
        result = invoke("retrieve", "github")
        assert isinstance(result.exception, NotFoundError)
        assert "Multiple schemas found" in str(result.exception)

    def test_not_found(self, invoke) -> None:
        result = invoke("retrieve", "nonexistent")
        assert isinstance(result.exception, NotFoundError)

    def test_body_unavailable(self, invoke, origin, catalog_raw) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == DEFAULT_CATALOG_URL:
                return httpx.Response(200, json=catalog_raw)
            return httpx.Response(500)

        origin.handler = handler
        result = invoke("retrieve", "tsconfig")
        assert isinstance(result.exception, QueryError)


# ---------------------------------------------------------------------------
# Caching across invocations
# ---------------------------------------------------------------------------


class TestCaching:
    def test_second_invocation_uses_cache(self, invoke, origin) -> None:
        assert invoke("search", "tsconfig").exit_code == 0
        assert invoke("retrieve", "tsconfig").exit_code == 0
        assert invoke("retrieve", "tsconfig").exit_code == 0
        assert [str(r.url) for r in origin.requests] == [
            DEFAULT_CATALOG_URL,
            "https://json.schemastore.org/tsconfig.json",
        ]
        assert (invoke.cache_dir / "schemastore").is_dir()

    def test_no_cache_fetches_every_time(self, invoke, origin) -> None:
        assert invoke("--no-cache", "search").exit_code == 0
        assert invoke("--no-cache", "search").exit_code == 0
        assert len(origin.requests) == 2
        assert not invoke.cache_dir.exists()

    def test_env_no_cache(self, invoke, origin, monkeypatch) -> None:
        monkeypatch.setenv("SCHEMAFETCH_NO_CACHE", "1")
        invoke("search", cache=False)
        invoke("search", cache=False)
        assert len(origin.requests) == 2

    def test_stale_copy_served_offline(self, invoke, origin, isolated_config: Path) -> None:
        config_file = isolated_config / "config" / "schemafetch" / "config.json"
        config_file.parent.mkdir(parents=True)
        config_file.write_text(json.dumps({"cache": {"refresh_interval": 0}}))

        assert invoke("search").exit_code == 0
        origin.handler = lambda request: httpx.Response(503)
        result = invoke("--quiet", "search", "tsconfig")
        assert result.exit_code == 0, result.output
        assert "- tsconfig.json" in result.stdout


# ---------------------------------------------------------------------------
# cache sub-commands
# ---------------------------------------------------------------------------


class TestCacheCommands:
    def test_info_json(self, invoke) -> None:
        invoke("search")
        result = invoke("--json", "cache", "info")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["enabled"] is True
        assert data["size"] == 1
        assert data["backend"] == "FileStore"
        assert data["refresh_interval"] == 300
        assert data["directory"] == str(invoke.cache_dir / "schemastore")

    def test_info_disabled(self, invoke) -> None:
        result = invoke("--json", "--no-cache", "cache", "info")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"enabled": False, "refresh_interval": 300.0}

    def test_clear(self, invoke, origin) -> None:
        invoke("retrieve", "tsconfig")
        result = invoke("cache", "clear")
        assert result.exit_code == 0, result.output
        assert "Removed 2 cached documents." in result.output
        invoke("search")
        assert len(origin.requests) == 3

    def test_clear_disabled(self, invoke) -> None:
        result = invoke("--no-cache", "cache", "clear")
        assert result.exit_code == 0
        assert "Caching is disabled" in result.output

    def test_path(self, invoke) -> None:
        result = invoke("cache", "path")
        assert result.exit_code == 0
        assert result.stdout.strip() == str(invoke.cache_dir)

    def test_path_default(self, invoke, isolated_config: Path) -> None:
        result = invoke("cache", "path", cache=False)
        assert result.stdout.strip() == str(isolated_config / "cache" / "schemafetch")

    def test_path_disabled(self, invoke) -> None:
        result = invoke("--no-cache", "cache", "path")
        assert result.exit_code == 0
        assert "Caching is disabled." in result.output


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_error_maps_to_exit_code(self, isolated_config: Path, monkeypatch, capsys) -> None:
        monkeypatch.setattr("schemafetch.app._setup_signal_handlers", lambda: None)
        monkeypatch.setattr(sys, "argv", ["schemafetch", "--no-cache", "search", "(unclosed"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2
        assert "Invalid pattern" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(self, isolated_config: Path, monkeypatch, capsys) -> None:
        def boom(*args: object, **kwargs: object) -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr("schemafetch.app._setup_signal_handlers", lambda: None)
        monkeypatch.setattr("schemafetch.config.resolve_settings", boom)
        monkeypatch.setattr(sys, "argv", ["schemafetch", "search"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "schemafetch" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()
        assert "Unexpected error" in capsys.readouterr().err
