"""Pattern-based scanner for Java and Kotlin source trees.

Walks native source roots and extracts a
:class:`~pluginpack.scanner.units.SourceUnit` per file: the package
declaration, the import table, class declarations with their supertypes,
``x = Ctor(...)`` bindings, and calls of the registration functions
(``add(FooPackage())``, ``add(new FooPackage())``, ``add(foo)``).

Comments are stripped before any pattern runs, so sample code in KDoc or
Javadoc never contributes a registration.

See :class:`SourceScanner` for the main entry point.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, Optional

import pathspec

from pluginpack.scanner.grammar import (
    CAPABILITY_MARKERS,
    IMPORT_RE,
    PACKAGE_RE,
    SOURCE_EXTENSIONS,
    SourceGrammar,
    strip_comments,
)
from pluginpack.scanner.resolver import qualify_class
from pluginpack.scanner.units import CallSite, CallSiteKind, ClassDeclaration, SourceUnit

# Directories never descended into: VCS and IDE metadata, JS dependencies.
ALWAYS_SKIP = frozenset({".git", ".idea", "node_modules"})

# Gradle output directories. Only pruned inside a Gradle module (or at the
# scan root); elsewhere a directory named "build" is a package segment.
GRADLE_OUTPUTS = frozenset({"build", ".gradle", ".cxx"})

GRADLE_MODULE_MARKERS = frozenset({
    "build.gradle",
    "build.gradle.kts",
    "settings.gradle",
    "settings.gradle.kts",
    "gradlew",
    "src",
})


def _is_gradle_module(rel_dir: str, dirnames: list[str], filenames: list[str]) -> bool:
    if rel_dir == ".":
        return True
    return any(name in GRADLE_MODULE_MARKERS for name in (*dirnames, *filenames))


def _load_gitignore(root: Path) -> pathspec.PathSpec | None:
    """Load ``.gitignore`` from *root* if it exists, returning a PathSpec matcher."""
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return None
    lines = gitignore.read_text(encoding="utf-8", errors="replace").splitlines()
    return pathspec.PathSpec.from_lines("gitignore", lines)


def _class_header(text: str, start: int) -> str:
    """Return the declaration text between a class name and its body.

    Stops at a top-level ``{`` or ``;``, or at a line break once the header
    cannot continue (Kotlin classes may have no body at all).
    """
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch in "(<":
            depth += 1
        elif ch in ")>":
            depth = max(depth - 1, 0)
        elif depth == 0:
            if ch in "{;":
                break
            if ch == "\n" and not _header_continues(text[start:i], text[i:]):
                break
        i += 1
    return text[start:i]


def _header_continues(before: str, after: str) -> bool:
    if before.rstrip().endswith((",", ":")):
        return True
    return after.lstrip().startswith((":", ",", "{", "extends", "implements", "where"))


class SourceScanner:
    """Scan Java/Kotlin source trees for registration facts.

    Args:
        registration_functions: Names of functions whose calls register a
            package (``add`` for ``packages.add(...)``).
        exclude_patterns: Extra gitignore-style patterns, relative to each
            scanned root, for files to leave out.
    """

    def __init__(
        self,
        registration_functions: Iterable[str] = ("add",),
        exclude_patterns: Optional[list[str]] = None,
    ) -> None:
        self._functions = tuple(registration_functions)
        self._exclude = (
            pathspec.PathSpec.from_lines("gitignore", exclude_patterns)
            if exclude_patterns else None
        )
        self._include = pathspec.PathSpec.from_lines(
            "gitignore", [f"*{ext}" for ext in SOURCE_EXTENSIONS],
        )
        self._constructor_calls = {
            grammar: grammar.constructor_call_re(self._functions) for grammar in SourceGrammar
        }
        self._variable_calls = SourceGrammar.variable_call_re(self._functions)

    # ------------------------------------------------------------------ #
    # File discovery
    # ------------------------------------------------------------------ #

    def iter_source_files(self, root: Path) -> Iterator[Path]:
        """Yield ``.java``/``.kt`` files under *root* in sorted walk order.

        Honours a ``.gitignore`` at *root* and prunes :data:`ALWAYS_SKIP`
        directories. :data:`GRADLE_OUTPUTS` are pruned at *root* and next to
        a Gradle module marker (``build.gradle``, ``src``, ...), so
        ``com/lib/build/`` package directories are still scanned. Yields
        nothing when *root* is not a directory.
        """
        if not root.is_dir():
            return
        gitignore_spec = _load_gitignore(root)

        for dirpath, dirnames, filenames in os.walk(str(root)):
            rel_dir = os.path.relpath(dirpath, str(root))
            gradle_module = _is_gradle_module(rel_dir, dirnames, filenames)

            dirnames[:] = sorted(
                d for d in dirnames
                if d not in ALWAYS_SKIP
                and not (gradle_module and d in GRADLE_OUTPUTS)
                and not (gitignore_spec and gitignore_spec.match_file(
                    (os.path.join(rel_dir, d) if rel_dir != "." else d) + "/",
                ))
            )

            for fname in sorted(filenames):
                rel_path = os.path.join(rel_dir, fname) if rel_dir != "." else fname
                if not self._include.match_file(rel_path):
                    continue
                if gitignore_spec and gitignore_spec.match_file(rel_path):
                    continue
                if self._exclude and self._exclude.match_file(rel_path):
                    continue
                yield Path(dirpath) / fname

    def has_sources(self, root: Path) -> bool:
        """Return ``True`` if *root* contains at least one source file."""
        return next(self.iter_source_files(root), None) is not None

    # ------------------------------------------------------------------ #
    # Parsing
    # ------------------------------------------------------------------ #

    def scan(self, roots: Iterable[Path]) -> list[SourceUnit]:
        """Parse every source file under *roots*.

        A file reachable from two roots (e.g. ``android`` and
        ``android/app/src/main/java``) is parsed once. Unreadable files are
        skipped.

        Returns:
            Source units sorted by file path.
        """
        seen: set[Path] = set()
        units: list[SourceUnit] = []
        for root in roots:
            for path in self.iter_source_files(root):
                key = path.resolve()
                if key in seen:
                    continue
                seen.add(key)
                unit = self.scan_file(path)
                if unit is not None:
                    units.append(unit)
        units.sort(key=lambda u: str(u.path))
        return units

    def scan_file(self, path: Path) -> Optional[SourceUnit]:
        """Parse a single file, or return ``None`` if it is unsupported or unreadable."""
        grammar = SourceGrammar.for_path(path)
        if grammar is None:
            return None
        try:
            text = path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            return None
        return self.parse(text, grammar, path)

    def parse(self, text: str, grammar: SourceGrammar, path: Path = Path("<memory>")) -> SourceUnit:
        """Extract a :class:`SourceUnit` from source *text*.

        Args:
            text: Raw file content (comments included).
            grammar: Grammar to apply.
            path: Path recorded on the unit.
        """
        text = strip_comments(text)
        unit = SourceUnit(path=path, grammar=grammar)

        package = PACKAGE_RE.search(text)
        if package:
            unit.package = package.group(1)

        for match in IMPORT_RE.finditer(text):
            is_static, fqcn, wildcard, alias = match.groups()
            if is_static or wildcard:
                continue
            unit.imports[alias or fqcn.rsplit(".", 1)[-1]] = fqcn

        for match in grammar.class_re.finditer(text):
            heritage = grammar.heritage(_class_header(text, match.end()))
            unit.classes.append(ClassDeclaration(
                name=match.group(1),
                heritage=tuple(heritage),
                registrable=any(h.rsplit(".", 1)[-1] in CAPABILITY_MARKERS for h in heritage),
            ))

        for match in grammar.assignment_re.finditer(text):
            unit.local_aliases[match.group("var")] = qualify_class(match.group("target"), unit)

        calls: list[tuple[int, CallSite]] = []
        for match in self._constructor_calls[grammar].finditer(text):
            calls.append((match.start(), CallSite(
                CallSiteKind.CONSTRUCTOR, match.group("target"), match.group("fn"),
            )))
        for match in self._variable_calls.finditer(text):
            calls.append((match.start(), CallSite(
                CallSiteKind.VARIABLE, match.group("target"), match.group("fn"),
            )))
        unit.call_sites = [site for _, site in sorted(calls, key=lambda c: c[0])]
        return unit
