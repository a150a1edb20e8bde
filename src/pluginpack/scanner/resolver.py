"""Symbol resolution from bare names to fully-qualified class names.

A registration call site only names a class the way the file sees it:
``add(FooPackage())`` may mean an imported class, a class in the file's
own package, or -- for ``add(foo)`` -- whatever ``foo`` was constructed
from. :func:`resolve_name` applies the file's context in a fixed order,
first match wins:

1. already dotted -> unchanged
2. import table -> imported fully-qualified name
3. local alias (variable call sites only) -> aliased class
4. file declares a package -> ``package.Name``
5. otherwise -> the bare name

A bare reference that was never bound to a constructor still resolves
(``add(bar)`` gives ``com.example.bar``), so Kotlin ``object``
registrations are found while unbound locals fail the suffix filter.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from pluginpack.scanner.units import CallSiteKind, ClassDeclaration, SourceUnit


def qualify_class(name: str, unit: SourceUnit) -> str:
    """Qualify a class *name* using *unit*'s imports and package (steps 1, 2, 4, 5)."""
    if "." in name:
        return name
    if name in unit.imports:
        return unit.imports[name]
    if unit.package:
        return f"{unit.package}.{name}"
    return name


def resolve_name(
    name: str,
    unit: SourceUnit,
    kind: CallSiteKind = CallSiteKind.CONSTRUCTOR,
) -> str:
    """Resolve a name found at a call site to a fully-qualified class name.

    Args:
        name: Class or variable name as written at the call site.
        unit: Source unit the call site belongs to.
        kind: ``CONSTRUCTOR`` when *name* is a class, ``VARIABLE`` when it
            is a bare reference (a local, or a Kotlin ``object``).

    Returns:
        The fully-qualified name.
    """
    if (
        kind is CallSiteKind.VARIABLE
        and "." not in name
        and name not in unit.imports
        and name in unit.local_aliases
    ):
        return unit.local_aliases[name]
    return qualify_class(name, unit)


def collect_declarations(units: Iterable[SourceUnit]) -> dict[str, ClassDeclaration]:
    """Map the fully-qualified name of every declared class to its declaration."""
    declarations: dict[str, ClassDeclaration] = {}
    for unit in units:
        for decl in unit.classes:
            declarations[qualify_class(decl.name, unit)] = decl
    return declarations


def registrable_declarations(units: Iterable[SourceUnit]) -> tuple[str, ...]:
    """Fully-qualified names of declared classes carrying a capability marker, sorted."""
    return tuple(sorted(
        fqcn for fqcn, decl in collect_declarations(units).items() if decl.registrable
    ))


def collect_references(
    units: Iterable[SourceUnit],
    suffix: str = "Package",
    declarations: Optional[Mapping[str, ClassDeclaration]] = None,
) -> tuple[str, ...]:
    """Resolve every registration call site into a set of package references.

    A resolved name is kept when it ends with *suffix*. When the class is
    declared in the scanned sources (*declarations*), it must also carry a
    capability marker; classes from libraries are accepted on the suffix
    alone.

    Args:
        units: Source units to resolve.
        suffix: Required class-name suffix.
        declarations: Known declarations keyed by fully-qualified name.

    Returns:
        Sorted, de-duplicated fully-qualified names.
    """
    declarations = declarations or {}
    references: set[str] = set()
    for unit in units:
        for site in unit.call_sites:
            fqcn = resolve_name(site.name, unit, site.kind)
            if not fqcn.endswith(suffix):
                continue
            declared = declarations.get(fqcn)
            if declared is not None and not declared.registrable:
                continue
            references.add(fqcn)
    return tuple(sorted(references))
