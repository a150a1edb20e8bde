"""Exception hierarchy for pluginpack.

All exceptions inherit from :class:`PluginpackError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`pluginpack.exit_codes`.
Pipeline stages turn these into fatal stage results; the entry point in
:func:`pluginpack.app.main` catches ``PluginpackError`` and exits with the
appropriate code, while unexpected exceptions produce a crash log and exit
with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    PluginpackError (exit 1)
    +-- InvalidUsageError  (exit 2)
    +-- ConfigError        (exit 1)
    +-- ProjectError       (exit 3)
    +-- BundleError        (exit 4)
    +-- PackagingError     (exit 5)
    +-- ManifestError      (exit 6)
"""

from pluginpack.exit_codes import (
    EXIT_BUNDLE_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MANIFEST_ERROR,
    EXIT_PACKAGING_FAILURE,
    EXIT_PROJECT_ERROR,
)


class PluginpackError(Exception):
    """Base exception for all pluginpack errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`pluginpack.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(PluginpackError):
    """Raised for invalid CLI arguments (e.g. a project root that is a file)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(PluginpackError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class ProjectError(PluginpackError):
    """Raised when the project metadata (``package.json``) is missing or invalid."""

    exit_code = EXIT_PROJECT_ERROR


class BundleError(PluginpackError):
    """Raised when the script bundler is unavailable or exits non-zero."""

    exit_code = EXIT_BUNDLE_FAILURE


class PackagingError(PluginpackError):
    """Raised when output directories cannot be created or staging is empty."""

    exit_code = EXIT_PACKAGING_FAILURE


class ManifestError(PluginpackError):
    """Raised when a manifest document cannot be parsed or persisted."""

    exit_code = EXIT_MANIFEST_ERROR
