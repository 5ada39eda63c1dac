"""Cache commands -- inspect and empty the local document cache.

Provides the ``schemafetch cache`` sub-command group.  Entries never expire
on their own; ``cache clear`` is the only way to drop them short of
deleting the cache directory.
"""

from __future__ import annotations

import typer

from schemafetch.output import format_response, info, print_data, success, warning


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("info")
def cache_info(ctx: typer.Context) -> None:
    """Show cache location, backend, and number of stored documents.

    Example::

        schemafetch cache info
        schemafetch --json cache info
    """
    from schemafetch.cache import DocumentCache
    from schemafetch.schemastore import CACHE_GROUP

    settings = ctx.obj["settings"]
    with DocumentCache.open(settings.cache, CACHE_GROUP) as cache:
        stats = cache.stats()
    stats["refresh_interval"] = settings.cache.refresh_interval
    format_response(stats)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached document.

    Example::

        schemafetch cache clear
    """
    from schemafetch.cache import DocumentCache
    from schemafetch.schemastore import CACHE_GROUP

    settings = ctx.obj["settings"]
    with DocumentCache.open(settings.cache, CACHE_GROUP) as cache:
        if not cache.enabled:
            warning("Caching is disabled; nothing to clear.")
            return
        count = len(cache.store)
        if not cache.clear():
            warning("Some cache entries could not be removed; see log for details.")
            return
    success(f"Removed {count} cached documents.")


@cache_app.command("path")
def cache_path(ctx: typer.Context) -> None:
    """Print the cache directory.

    Example::

        rm -r "$(schemafetch cache path)"
    """
    settings = ctx.obj["settings"]
    if not settings.cache.enabled or settings.cache.dir is None:
        info("Caching is disabled.")
        return
    print_data(str(settings.cache.dir))
