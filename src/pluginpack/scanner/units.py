"""Structured facts extracted from one native source file."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pluginpack.scanner.grammar import SourceGrammar


class CallSiteKind(str, enum.Enum):
    """How a registration call refers to the registered class."""

    CONSTRUCTOR = "constructor"  # add(FooPackage()) / add(new FooPackage())
    VARIABLE = "variable"  # add(foo)


@dataclass(frozen=True)
class CallSite:
    """One call of a registration function.

    Attributes:
        kind: Whether the argument is a constructor or a bare variable.
        name: Class name (possibly dotted) or variable name as written.
        function: Name of the registration function (e.g. ``add``).
    """

    kind: CallSiteKind
    name: str
    function: str = "add"


@dataclass(frozen=True)
class ClassDeclaration:
    """A class declared in a source file.

    Attributes:
        name: Simple class name.
        heritage: Supertypes as written after ``:`` / ``extends`` /
            ``implements``, in declaration order.
        registrable: ``True`` when one of the heritage names is a
            capability marker such as ``ReactPackage``.
    """

    name: str
    heritage: tuple[str, ...] = ()
    registrable: bool = False


@dataclass
class SourceUnit:
    """Facts parsed from a single ``.java`` or ``.kt`` file.

    Units are derived, used for resolution, and then discarded; they are
    never persisted.

    Attributes:
        path: File the unit was parsed from.
        grammar: Grammar the file was parsed with.
        package: First ``package`` declaration, or ``None``.
        imports: Short name to fully-qualified name.
        local_aliases: Variable name to the fully-qualified name of the
            class it was constructed from.
        classes: Class declarations in source order.
        call_sites: Registration call sites in source order.
    """

    path: Path
    grammar: SourceGrammar
    package: Optional[str] = None
    imports: dict[str, str] = field(default_factory=dict)
    local_aliases: dict[str, str] = field(default_factory=dict)
    classes: list[ClassDeclaration] = field(default_factory=list)
    call_sites: list[CallSite] = field(default_factory=list)
