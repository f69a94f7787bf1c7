"""Exception hierarchy for kubeschema.

All exceptions inherit from :class:`KubeSchemaError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`kubeschema.exit_codes`.
The top-level error handler in :func:`kubeschema.app.main` catches
``KubeSchemaError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Schema lookups never raise: unknown kinds, unresolvable paths and missing
bundles degrade to empty results. Only genuinely corrupt bundle data surfaces
as :class:`BundleLoadError`.

Subclass hierarchy::

    KubeSchemaError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- NotFoundError       (exit 4)
    +-- BundleLoadError     (exit 7)
    +-- LintFailure         (exit 8)
    +-- ConfigError         (exit 1)
    +-- DocumentParseError  (exit 2)
"""

from kubeschema.exit_codes import (
    EXIT_BUNDLE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_LINT_FAILURE,
    EXIT_NOT_FOUND,
)


class KubeSchemaError(Exception):
    """Base exception for all kubeschema errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`kubeschema.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(KubeSchemaError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(KubeSchemaError):
    """Raised by CLI commands when a requested kind, model or property is unknown."""

    exit_code = EXIT_NOT_FOUND


class BundleLoadError(KubeSchemaError):
    """Raised when a present bundle is corrupt (bad zip, malformed JSON) or its load times out."""

    exit_code = EXIT_BUNDLE_ERROR


class LintFailure(KubeSchemaError):
    """Raised when checked documents contain at least one error diagnostic."""

    exit_code = EXIT_LINT_FAILURE


class ConfigError(KubeSchemaError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class DocumentParseError(KubeSchemaError):
    """Raised when a resource document to be checked is not valid YAML."""

    exit_code = EXIT_INVALID_USAGE
