"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~pluginpack.exceptions.PluginpackError` subclass.
CI scripts can inspect the exit code to tell a broken bundle from a
missing ``package.json`` without parsing stderr.

Example::

    $ pluginpack ./my-plugin
    $ echo $?
    4   # EXIT_BUNDLE_FAILURE -- the script bundler returned non-zero
"""

EXIT_SUCCESS = 0
"""The archive was produced (recoverable skips do not change this)."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_PROJECT_ERROR = 3
"""The project root or its ``package.json`` is missing or unreadable."""

EXIT_BUNDLE_FAILURE = 4
"""The script bundler failed, so there is nothing to package."""

EXIT_PACKAGING_FAILURE = 5
"""Output directories could not be created or the staging directory was empty."""

EXIT_MANIFEST_ERROR = 6
"""A ``PluginConfig.json`` document could not be read or written."""
