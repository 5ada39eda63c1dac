"""Search command -- list catalog entries matching keywords or regexps."""

from __future__ import annotations

from typing import Optional

import typer

from schemafetch.exceptions import QueryError
from schemafetch.output import get_output, info


def search_command(
    ctx: typer.Context,
    patterns: Optional[list[str]] = typer.Argument(
        None, help="Keywords or regular expressions; all must match."
    ),
    with_descriptions: bool = typer.Option(
        False, "--with-descriptions", "-d", help="Also match schema descriptions."
    ),
) -> None:
    """Search the schema catalog.

    Without patterns every catalog entry is listed.  Patterns are matched
    case-insensitively against schema names (and descriptions with
    ``--with-descriptions``); an entry matches when all patterns do.

    Example::

        schemafetch search tsconfig
        schemafetch search -d "github" "workflow"
        schemafetch --json search eslint
    """
    from schemafetch.output import OutputFormat
    from schemafetch.schemastore import open_schema_store

    settings = ctx.obj["settings"]
    with open_schema_store(settings, client=ctx.obj.get("http_client")) as store:
        if patterns:
            schemas = store.find(patterns, in_names=True, in_descriptions=with_descriptions)
        else:
            catalog = store.list()
            schemas = catalog.schemas if catalog is not None else None

    if schemas is None:
        raise QueryError(f"Unable to load schema catalog from {settings.catalog_url}")

    output = get_output()
    info(f"Found {len(schemas)} schemas")
    if output.format == OutputFormat.JSON:
        output.format_response(
            [schema.model_dump(mode="json", by_alias=True, exclude_none=True) for schema in schemas]
        )
    elif ctx.obj.get("verbose"):
        for schema in schemas:
            output.print_data(schema.describe())
    else:
        for schema in schemas:
            output.print_data(f"- {schema.name}")
