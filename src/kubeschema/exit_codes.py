"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~kubeschema.exceptions.KubeSchemaError` subclass.
Shell scripts and CI jobs can inspect the exit code to tell a lint failure
from a broken bundle without parsing stderr.

Example::

    $ kubeschema lint deployment.yaml
    $ echo $?
    8   # EXIT_LINT_FAILURE -- the document has schema errors
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""The requested kind, model or property is not known to the loaded schemas."""

EXIT_BUNDLE_ERROR = 7
"""A schema bundle exists but could not be read or decoded."""

EXIT_LINT_FAILURE = 8
"""A checked document contains schema errors."""
