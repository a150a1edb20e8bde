"""Classification of ``node_modules`` dependencies.

A third-party module matters to the packaging pipeline only if it ships
Android sources that must be compiled into the native extension. React
Native itself, React, the plugin SDK, and the ``@react-native*`` /
``@react-navigation*`` scopes are provided by the host and are ignored
by name, whatever their directory contents.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from pluginpack.output import debug, warning
from pluginpack.scanner.scanner import SourceScanner

# Host-provided modules, matched case-insensitively with fnmatch.
IGNORED_MODULE_PATTERNS = (
    "react-native",
    "react",
    "sn-plugin-lib",
    "@react-native*",
    "@react-navigation*",
)

DEFAULT_NATIVE_DIRS = ("android", "platforms/android", "platforms/android-native")


@dataclass
class DependencyModule:
    """A dependency under ``node_modules``.

    Attributes:
        name: Module name, ``scope/name`` for scoped packages.
        native_source_roots: Candidate native directories that exist and
            contain at least one Java/Kotlin file.
        ignored: Static deny-list classification.
    """

    name: str
    native_source_roots: set[Path] = field(default_factory=set)
    ignored: bool = False

    @property
    def native_bearing(self) -> bool:
        return not self.ignored and bool(self.native_source_roots)


class DependencyClassifier:
    """Decide, per dependency module, whether it is ignored or native-bearing.

    Args:
        extra_ignored: Additional name patterns to ignore.
        native_dirs: Candidate native source directories, relative to the
            module root.
        scanner: Scanner used to look for source files.
    """

    def __init__(
        self,
        extra_ignored: Iterable[str] = (),
        native_dirs: Iterable[str] = DEFAULT_NATIVE_DIRS,
        scanner: Optional[SourceScanner] = None,
    ) -> None:
        self._patterns = tuple(p.lower() for p in (*IGNORED_MODULE_PATTERNS, *extra_ignored))
        self._native_dirs = tuple(native_dirs)
        self._scanner = scanner or SourceScanner()

    def is_ignored(self, name: str) -> bool:
        """Return ``True`` if *name* matches a deny-list pattern (case-insensitive)."""
        lower = name.lower()
        return any(fnmatch.fnmatchcase(lower, pattern) for pattern in self._patterns)

    def classify(self, name: str, module_root: Path) -> DependencyModule:
        """Classify the module *name* rooted at *module_root*.

        Ignored modules are returned without touching the file system.
        """
        if self.is_ignored(name):
            return DependencyModule(name=name, ignored=True)

        roots = {
            module_root / rel
            for rel in self._native_dirs
            if self._scanner.has_sources(module_root / rel)
        }
        return DependencyModule(name=name, native_source_roots=roots)

    def scan_node_modules(self, project_root: Path) -> list[DependencyModule]:
        """Classify every module under ``<project_root>/node_modules``.

        Scoped directories (``@scope``) are descended one level. Dot
        directories such as ``.bin`` are skipped.

        Returns:
            All modules found, sorted by name.
        """
        node_modules = project_root / "node_modules"
        if not node_modules.is_dir():
            return []

        modules: list[DependencyModule] = []
        for top in sorted(node_modules.iterdir()):
            if not top.is_dir() or top.name.startswith("."):
                continue
            if top.name.startswith("@"):
                for sub in sorted(top.iterdir()):
                    if sub.is_dir():
                        modules.append(self.classify(f"{top.name}/{sub.name}", sub))
            else:
                modules.append(self.classify(top.name, top))

        for module in modules:
            if module.native_bearing:
                warning(f"Third-party module contains Android sources: {module.name}")
            elif module.ignored:
                debug(f"Ignoring host-provided module: {module.name}")
        return sorted(modules, key=lambda m: m.name)
