"""Static discovery of React Native packages in native sources.

This package finds the ``ReactPackage`` classes a plugin registers, without
compiling anything:

1. **Grammars** (:mod:`~pluginpack.scanner.grammar`) -- Java and Kotlin
   extraction rules behind one :class:`SourceGrammar` variant.

2. **Scanning** (:mod:`~pluginpack.scanner.scanner`) -- walks source
   roots and parses each file into a
   :class:`~pluginpack.scanner.units.SourceUnit`.

3. **Resolution** (:mod:`~pluginpack.scanner.resolver`) -- turns the
   names at ``add(...)`` call sites into fully-qualified class names.

4. **Autolinking** (:mod:`~pluginpack.scanner.autolinking`) -- reads the
   generated ``PackageList.java``.

The convenience function :func:`find_application_packages` combines steps
2 and 3 for a project's application sources.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Optional

from pluginpack.scanner.autolinking import read_autolinked_packages as read_autolinked_packages
from pluginpack.scanner.grammar import SourceGrammar as SourceGrammar
from pluginpack.scanner.resolver import (
    collect_declarations as collect_declarations,
    collect_references as collect_references,
    registrable_declarations as registrable_declarations,
    resolve_name as resolve_name,
)
from pluginpack.scanner.scanner import SourceScanner
from pluginpack.scanner.units import ClassDeclaration, SourceUnit as SourceUnit


def find_application_packages(
    roots: Iterable[Path],
    registration_functions: Iterable[str] = ("add",),
    suffix: str = "Package",
    declarations: Optional[Mapping[str, ClassDeclaration]] = None,
) -> tuple[str, ...]:
    """Scan *roots* and return the packages registered by ``add(...)`` calls.

    Args:
        roots: Application source roots (missing roots are ignored).
        registration_functions: Names of the registration functions.
        suffix: Required class-name suffix.
        declarations: Extra known declarations for the capability check;
            declarations found under *roots* are always included.

    Example::

        find_application_packages([Path("android/app/src/main/java")])
        # ('com.example.FooPackage',)
    """
    units = SourceScanner(registration_functions).scan(roots)
    known = dict(declarations or {})
    known.update(collect_declarations(units))
    return collect_references(units, suffix=suffix, declarations=known)
