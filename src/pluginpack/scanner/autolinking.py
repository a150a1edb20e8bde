"""Reader for the generated React Native autolinking package list.

After a Gradle sync, React Native writes ``PackageList.java`` listing one
``new XPackage(...)`` per autolinked dependency. Those packages must be
registered by the host too, so they join the application's own references
in the manifest. Host-provided packages (the core ``MainReactPackage`` and
the plugin runtime's own package) are excluded.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

from pluginpack.scanner.grammar import SourceGrammar, strip_comments
from pluginpack.scanner.scanner import SourceScanner

_NEW_RE = re.compile(r"\bnew\s+([A-Za-z_][\w.]*)\s*\(")


def read_autolinked_packages(
    source: Path,
    excludes: Iterable[str] = (),
    suffix: str = "Package",
) -> tuple[str, ...]:
    """Return the packages instantiated in an autolinking ``PackageList.java``.

    Each ``new X(`` is resolved through the file's imports only (the list
    imports every package it uses).

    Args:
        source: Path to ``PackageList.java``.
        excludes: Fully-qualified names to leave out.
        suffix: Required class-name suffix.

    Returns:
        Sorted, de-duplicated fully-qualified names; empty when the file
        does not exist.
    """
    if not source.is_file():
        return ()
    text = source.read_text(encoding="utf-8", errors="ignore")
    unit = SourceScanner().parse(text, SourceGrammar.JAVA, source)

    excluded = set(excludes)
    found: set[str] = set()
    for name in _NEW_RE.findall(strip_comments(text)):
        fqcn = name if "." in name else unit.imports.get(name, name)
        if fqcn.endswith(suffix) and fqcn not in excluded:
            found.add(fqcn)
    return tuple(sorted(found))
