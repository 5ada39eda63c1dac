"""schemafetch -- Search and retrieve JSON Schemas with a revalidating local cache.

This package fetches remote JSON documents (the SchemaStore catalog and the
schema bodies it points to) over HTTP and keeps them in a local cache.
Repeated lookups inside the refresh window never touch the network; older
entries are revalidated with conditional GET requests, and any cache or
network failure degrades to a cache miss or to the stale copy instead of
failing the command.

Typical workflow::

    schemafetch search tsconfig        # list matching catalog entries
    schemafetch retrieve tsconfig      # print the schema body
    schemafetch cache info             # show where the cache lives

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for settings, cache entries and catalog data.
    config: XDG-aware settings resolution.
    cache: Content-addressed storage backends and the entry codec.
    client: Redirect-aware conditional HTTP fetcher and revalidation policy.
    schemastore: SchemaStore catalog client.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
