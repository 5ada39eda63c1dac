"""Sub-commands of the schemafetch CLI.

Each module defines either a command function or a :class:`typer.Typer`
group that :mod:`schemafetch.app` registers on the root application:

* :mod:`~schemafetch.commands.search` -- ``schemafetch search``
* :mod:`~schemafetch.commands.retrieve` -- ``schemafetch retrieve``
* :mod:`~schemafetch.commands.cache` -- ``schemafetch cache info|clear|path``
"""
