"""Retrieve command -- print or save the body of exactly one schema."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from schemafetch.exceptions import InvalidUsageError, QueryError
from schemafetch.output import debug, print_data, success


def retrieve_command(
    ctx: typer.Context,
    pattern: str = typer.Argument(help="Keyword or regular expression matching one schema name."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the schema to this file instead of stdout."
    ),
) -> None:
    """Retrieve a JSON Schema by name.

    The pattern must match exactly one catalog entry.  The schema body is
    pretty-printed as JSON to stdout, or written to ``--output`` (existing
    files are only replaced with the global ``--force`` flag).

    Example::

        schemafetch retrieve '^tsconfig'
        schemafetch --force retrieve package.json -o package.schema.json
    """
    from schemafetch.schemastore import open_schema_store

    settings = ctx.obj["settings"]
    if output is not None and output.exists() and not ctx.obj.get("force"):
        raise InvalidUsageError(f"Output file '{output}' already exists (use --force to overwrite)")

    with open_schema_store(settings, client=ctx.obj.get("http_client")) as store:
        found = store.get_one([pattern])

    if found is None:
        raise QueryError(f"Unable to retrieve schema matching '{pattern}'")
    schema, content = found
    debug(f"Retrieved {schema.name} from {schema.url}")

    text = json.dumps(content, indent=2, ensure_ascii=False)
    if output is None:
        print_data(text)
        return

    try:
        output.write_text(text + "\n", encoding="utf-8")
    except OSError as exc:
        raise QueryError(f"Unable to write JSON Schema to '{output}': {exc}") from exc
    success(f"Saved {schema.name} to {output}")
