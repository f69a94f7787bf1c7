"""Built-in CLI commands for kubeschema.

Each module defines Typer command functions that are registered on the
root application in :mod:`kubeschema.app`:

* :mod:`kubeschema.commands.query` -- ``versions``, ``kinds``,
  ``properties``, ``explain`` and ``bundles``.
* :mod:`kubeschema.commands.lint` -- ``lint``.
* :mod:`kubeschema.commands.config` -- the ``config`` sub-command group.
"""
