"""pluginpack -- Package React Native plugin projects into ``.snplg`` archives.

This package turns a plugin project (a JavaScript bundle plus an optional
Android native extension) into a single distributable archive for the
plugin host. The build pipeline bundles the scripts, bootstraps the
``PluginConfig.json`` manifest, scans native sources for ``ReactPackage``
registrations, decides whether a Gradle build is needed, and assembles the
final archive.

Typical workflow::

    pluginpack                    # package the project in the current directory
    pluginpack ./my-plugin        # package another project
    pluginpack --scan-only        # report what the native scan discovers

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    pipeline: Stage sequencing and the build report.
"""

__version__ = "0.3.0"
