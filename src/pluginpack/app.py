"""Typer application and CLI entry point for pluginpack.

``pluginpack`` is a single command: it packages the plugin project in
``PROJECT_ROOT`` (default: the current directory) into
``build/outputs/<name>.snplg``.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`pluginpack.pipeline`: The stages run by the command.
    :mod:`pluginpack.config`: Build configuration resolution.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from pluginpack import __version__
from pluginpack.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="pluginpack",
    help="Package a React Native plugin project into a .snplg archive.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"pluginpack {__version__}")
        raise typer.Exit()


@app.command()
def main_command(
    project_root: Optional[Path] = typer.Argument(
        None,
        help="Plugin project root (defaults to the current directory).",
        show_default=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the build report as JSON on stdout."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    scan_only: bool = typer.Option(
        False, "--scan-only", help="Only report what discovery finds; write nothing."
    ),
    skip_native: bool = typer.Option(
        False, "--skip-native", help="Never run the native build."
    ),
    require_packages: bool = typer.Option(
        False,
        "--require-packages",
        help="Skip the native build unless reactPackages is non-empty.",
    ),
    build_task: Optional[str] = typer.Option(
        None, "--build-task", help="Gradle task to run (default: buildCustomApkDebug)."
    ),
) -> None:
    """Package the plugin project at PROJECT_ROOT.

    Initialises the global :class:`~pluginpack.output.OutputManager` from
    the CLI flags, resolves the build configuration, and runs the
    :class:`~pluginpack.pipeline.Pipeline`.

    Raises:
        typer.Exit: With the failing error's exit code on any fatal stage.
    """
    from pluginpack.config import resolve_config
    from pluginpack.exceptions import (
        BundleError,
        InvalidUsageError,
        PluginpackError,
        ProjectError,
    )
    from pluginpack.output import (
        OutputFormat,
        OutputManager,
        error,
        print_report,
        print_stage_table,
        set_output,
        suggest,
    )
    from pluginpack.pipeline import Pipeline

    set_output(
        OutputManager(
            format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    root = project_root if project_root is not None else Path.cwd()
    try:
        if not root.is_dir():
            raise InvalidUsageError(f"Project root is not a directory: {root}")

        config = resolve_config(
            root,
            cli_build_task=build_task,
            cli_require_packages=True if require_packages else None,
            cli_skip_native=True if skip_native else None,
        )
        pipeline = Pipeline(root, config)

        if scan_only:
            print_report(pipeline.scan().to_dict())
            return

        report = pipeline.run()
    except PluginpackError as exc:
        error(str(exc))
        if isinstance(exc, ProjectError):
            suggest("Run pluginpack from the plugin project root, or pass PROJECT_ROOT.")
        elif isinstance(exc, BundleError):
            suggest("Install the React Native CLI: npm install --save-dev react-native")
        raise typer.Exit(code=exc.exit_code) from None

    if json_output:
        print_report(report.to_dict())
    elif not quiet:
        print_stage_table(
            [stage.to_dict() for stage in report.stages],
            title=f"{report.project} {report.version}",
        )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from pluginpack.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``pluginpack`` console script.

    :class:`~pluginpack.exceptions.PluginpackError` instances that escape
    the command cause a clean exit with the error's ``exit_code``. All
    other exceptions produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from pluginpack.exceptions import PluginpackError
        from pluginpack.output import error

        if isinstance(exc, PluginpackError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
