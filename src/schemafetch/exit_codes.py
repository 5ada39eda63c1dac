"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~schemafetch.exceptions.SchemafetchError` subclass.
Shell wrappers can inspect the exit code to tell a missing schema apart
from an unreachable catalog without parsing stderr.

Example::

    $ schemafetch retrieve no-such-schema
    $ echo $?
    4   # EXIT_NOT_FOUND -- the search matched nothing
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (including bad search patterns)."""

EXIT_NOT_FOUND = 4
"""The search matched no schema, or more than one where exactly one was required."""

EXIT_QUERY_ERROR = 6
"""A required remote document could not be fetched and no cached copy exists."""
