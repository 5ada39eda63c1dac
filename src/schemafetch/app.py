"""Typer application and CLI entry point for schemafetch.

This module wires together the top-level Typer application and registers
the sub-commands (``search``, ``retrieve``, ``cache``).  The root callback
resolves :class:`~schemafetch.models.Settings` from flags, environment and
config file, installs the output manager and the log handler, and hands
the settings to every command through ``ctx.obj``.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~schemafetch.exceptions.SchemafetchError` exits with the error's
code; any other exception is written to a crash log under the data
directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from schemafetch import __version__
from schemafetch.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="schemafetch",
    help="Search and retrieve JSON Schemas from SchemaStore, with a local cache.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"schemafetch {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    cache_dir: Optional[Path] = typer.Option(
        None, "--cache-dir", "-c", help="Cache directory."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", "-n", help="Disable caching."
    ),
    catalog_url: Optional[str] = typer.Option(
        None, "--catalog-url", "-u", help="Schema store catalog URL."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-l", help="Logging level (debug, info, warning, error)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Verbose output and debug logging."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing output files."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Resolves settings, initialises the global
    :class:`~schemafetch.output.OutputManager` and the log handler, and
    stores shared state in ``ctx.obj``:

    * ``settings`` -- the resolved :class:`~schemafetch.models.Settings`
    * ``verbose`` / ``force`` -- the corresponding flags

    A pre-populated ``ctx.obj`` (e.g. from ``CliRunner.invoke(obj=...)``)
    is kept, which lets tests inject an ``http_client``.
    """
    from schemafetch.config import resolve_settings
    from schemafetch.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)

    settings = resolve_settings(
        cli_cache_dir=cache_dir,
        cli_no_cache=no_cache,
        cli_catalog_url=catalog_url,
        cli_log_level="DEBUG" if verbose else log_level,
    )
    configure_logging(settings.log_level, no_color=output.no_color)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose
    ctx.obj["force"] = force


from schemafetch.commands.cache import cache_app  # noqa: E402
from schemafetch.commands.retrieve import retrieve_command  # noqa: E402
from schemafetch.commands.search import search_command  # noqa: E402

app.command("search")(search_command)
app.command("retrieve")(retrieve_command)
app.add_typer(cache_app, name="cache", help="Local cache management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from schemafetch.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``schemafetch`` console script.

    Unhandled :class:`~schemafetch.exceptions.SchemafetchError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from schemafetch.exceptions import SchemafetchError
        from schemafetch.output import error

        if isinstance(exc, SchemafetchError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
