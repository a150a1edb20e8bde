"""Console output for pluginpack: reports on stdout, diagnostics on stderr.

Follows `clig.dev <https://clig.dev/>`_ conventions. The only things
written to stdout are the reports a CI job may want to parse:

* the build report (``--json``) or the stage table after a normal run,
* the scan report (``--scan-only``).

Everything else -- stage banners, the skip warnings of recoverable
stages, errors, next-step hints -- goes to stderr. Rich markup is used
when stdout is a terminal; ``NO_COLOR``, ``TERM=dumb`` and ``--no-color``
fall back to plain text.

:class:`OutputManager` holds the preferences and the two consoles. The
CLI installs one with :func:`set_output`; pipeline stages call the
module-level helpers (:func:`info`, :func:`warning`, ...) instead of
passing a manager around.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

# Rich styles for the status column of the stage table.
_STATUS_STYLES = {"ok": "green", "skipped": "yellow", "fatal": "bold red"}


class OutputFormat(str, Enum):
    """How reports are rendered on stdout.

    ``AUTO`` becomes ``RICH`` on an interactive terminal with colour
    enabled and ``PLAIN`` otherwise. ``--json`` selects ``JSON``.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Route reports to stdout and diagnostics to stderr.

    Args:
        format: Report format; ``AUTO`` is resolved from the terminal.
        no_color: Disable colour and Rich markup.
        quiet: Drop informational diagnostics (warnings and errors stay).
        verbose: Show ``debug`` lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = self._resolve_format(format)

        rich_stdout = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    def _resolve_format(self, requested: OutputFormat) -> OutputFormat:
        if requested != OutputFormat.AUTO:
            return requested
        if _is_tty() and not self._no_color:
            return OutputFormat.RICH
        return OutputFormat.PLAIN

    @property
    def format(self) -> OutputFormat:
        """The resolved report format."""
        return self._format

    # ------------------------------------------------------------------ #
    # Reports (stdout)
    # ------------------------------------------------------------------ #

    def print_report(self, report: dict[str, Any]) -> None:
        """Write a build or scan report to stdout.

        ``JSON`` prints the document as is. ``PLAIN`` prints one
        ``key<TAB>value`` line per top-level key: lists of names are
        comma-joined, anything nested is inlined as compact JSON. ``RICH``
        prints highlighted JSON.
        """
        if self._format == OutputFormat.JSON:
            self._write(json.dumps(report, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN:
            for key, value in report.items():
                self._write(f"{key}\t{_plain_value(value)}")
        else:
            text = json.dumps(report, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    def print_stage_table(self, stages: list[dict[str, str]], title: Optional[str] = None) -> None:
        """Write one row per pipeline stage (name, status, reason) to stdout.

        Args:
            stages: Rows as produced by ``StageResult.to_dict()``.
            title: Table caption, shown in Rich mode only.
        """
        if self._format == OutputFormat.JSON:
            self._write(json.dumps(stages, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            self._write("Stage\tStatus\tReason")
            for stage in stages:
                self._write(f"{stage['name']}\t{stage['status']}\t{stage['reason']}")
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Stage")
        table.add_column("Status")
        table.add_column("Reason", overflow="fold")
        for stage in stages:
            style = _STATUS_STYLES.get(stage["status"], "")
            status = f"[{style}]{stage['status']}[/{style}]" if style else stage["status"]
            table.add_row(stage["name"], status, escape(stage["reason"]))
        self._stdout.print(table)

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        """Print a green success line. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message, style="green")

    def warning(self, message: str) -> None:
        """Print a warning. Recoverable stage skips land here; never suppressed."""
        self._diagnostic(message, prefix="Warning:", prefix_style="yellow")

    def error(self, message: str) -> None:
        """Print an error. Never suppressed."""
        self._diagnostic(message, prefix="Error:", prefix_style="bold red")

    def suggest(self, message: str) -> None:
        """Print a next-step hint after a failure. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(f"→ {message}", style="dim")

    def debug(self, message: str) -> None:
        """Print a debug line. Only shown with ``--verbose``."""
        if self._verbose:
            self._diagnostic(f"[debug] {message}", style="dim")

    def progress(self, message: str) -> None:
        """Print a stage banner (``Stage: bundle``).

        Only displayed when stdout is a TTY, so piped runs and CI logs stay
        free of banners. Suppressed by ``--quiet``.
        """
        if not self._quiet and _is_tty():
            self._diagnostic(message, style="dim")

    def _diagnostic(
        self,
        message: str,
        style: Optional[str] = None,
        prefix: str = "",
        prefix_style: Optional[str] = None,
    ) -> None:
        """Write one diagnostic line to stderr, with Rich markup unless colour is off."""
        if self._no_color:
            line = f"{prefix} {message}" if prefix else message
            print(line, file=sys.stderr, flush=True)
            return
        text = escape(message)
        if style:
            text = f"[{style}]{text}[/{style}]"
        if prefix:
            text = f"[{prefix_style}]{prefix}[/{prefix_style}] {text}"
        self._stderr.print(text)


def _plain_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return ",".join(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value) or ``TERM=dumb`` turns colour off."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global instance, installed by the CLI
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests swap ``sys.stdout`` between runs)."""
    global _output
    _output = None


def print_report(report: dict[str, Any]) -> None:
    get_output().print_report(report)


def print_stage_table(stages: list[dict[str, str]], title: Optional[str] = None) -> None:
    get_output().print_stage_table(stages, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)


def progress(message: str) -> None:
    get_output().progress(message)
