"""Per-language extraction rules for the two native source grammars.

Java and Kotlin share most of their surface syntax (``package``,
``import``, ``//`` and ``/* */`` comments) but differ in how a class names
its supertypes and how a local is bound to a new instance:

==========  ==============================  ===================================
Grammar     Inheritance                     Construction
==========  ==============================  ===================================
Java        ``class A extends B implements  ``B b = new B();``
            C``
Kotlin      ``class A(x: X) : B(), C``      ``val b = B()``
==========  ==============================  ===================================

:class:`SourceGrammar` is selected from the file extension and exposes
these differences as a handful of rules; everything downstream works on
the common :class:`~pluginpack.scanner.units.SourceUnit`.
"""

from __future__ import annotations

import enum
import re
from pathlib import Path
from typing import Optional

# Supertypes that make a class a registrable React Native package.
CAPABILITY_MARKERS = frozenset({
    "ReactPackage",
    "TurboReactPackage",
    "BaseReactPackage",
    "ViewManagerOnDemandReactPackage",
})

# String literals are matched first so that "http://x" is not read as a comment.
_COMMENT_OR_STRING_RE = re.compile(
    r'("""[\s\S]*?"""|"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\')'
    r"|(/\*[\s\S]*?\*/|//[^\n]*)"
)

PACKAGE_RE = re.compile(r"^\s*package\s+([A-Za-z_][\w.]*)", re.M)
IMPORT_RE = re.compile(
    r"^\s*import\s+(static\s+)?([A-Za-z_][\w.]*?)(\.\*)?(?:\s+as\s+([A-Za-z_]\w*))?\s*;?\s*$",
    re.M,
)

_IDENT = r"[A-Za-z_]\w*"
_QUALIFIED = r"[A-Za-z_][\w.]*"
_QUALIFIED_RE = re.compile(_QUALIFIED)
_PAREN_GROUP_RE = re.compile(r"\([^()]*\)")
_ANGLE_GROUP_RE = re.compile(r"<[^<>]*>")


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments, keeping string literals intact.

    Block comments are replaced by their newlines only, so line-anchored
    patterns (``package``, ``import``) still see the original line layout.
    """

    def _replace(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return "\n" * match.group(2).count("\n")

    return _COMMENT_OR_STRING_RE.sub(_replace, text)


def _strip_nested(text: str, pattern: re.Pattern[str]) -> str:
    """Repeatedly delete innermost bracket groups matched by *pattern*."""
    previous = None
    while previous != text:
        previous = text
        text = pattern.sub(" ", text)
    return text


def _type_names(segment: str) -> list[str]:
    """Return the leading qualified name of each comma-separated type in *segment*."""
    names: list[str] = []
    for part in segment.split(","):
        match = _QUALIFIED_RE.search(part)
        if match:
            names.append(match.group(0).rstrip("."))
    return names


def _kotlin_heritage(header: str) -> list[str]:
    header = _strip_nested(header, _PAREN_GROUP_RE)
    header = _strip_nested(header, _ANGLE_GROUP_RE)
    header = re.split(r"\bwhere\b", header, maxsplit=1)[0]
    _, colon, supertypes = header.partition(":")
    if not colon:
        return []
    # `Foo by delegate` delegates an interface; keep only the type.
    supertypes = re.sub(r"\bby\s+\S+", "", supertypes)
    return _type_names(supertypes)


def _java_heritage(header: str) -> list[str]:
    header = _strip_nested(header, _ANGLE_GROUP_RE)
    names: list[str] = []
    extends = re.search(r"\bextends\s+(.+?)(?=\bimplements\b|$)", header, re.S)
    if extends:
        names.extend(_type_names(extends.group(1)))
    implements = re.search(r"\bimplements\s+(.+)$", header, re.S)
    if implements:
        names.extend(_type_names(implements.group(1)))
    return names


class SourceGrammar(str, enum.Enum):
    """The two native source grammars recognised by the scanner."""

    JAVA = "java"
    KOTLIN = "kotlin"

    @classmethod
    def for_path(cls, path: Path) -> Optional[SourceGrammar]:
        """Return the grammar for *path* by extension, or ``None`` if unsupported."""
        return _BY_EXTENSION.get(path.suffix.lower())

    @property
    def class_re(self) -> re.Pattern[str]:
        """Pattern whose group 1 is the name of a declared class."""
        return _CLASS_RE[self]

    @property
    def assignment_re(self) -> re.Pattern[str]:
        """Pattern with groups ``var`` and ``target`` for ``x = Ctor(...)`` sites."""
        return _ASSIGNMENT_RE[self]

    def heritage(self, header: str) -> list[str]:
        """Extract supertype names from a class header (text after the class name)."""
        if self is SourceGrammar.JAVA:
            return _java_heritage(header)
        return _kotlin_heritage(header)

    def constructor_call_re(self, functions: tuple[str, ...]) -> re.Pattern[str]:
        """Pattern for ``fn(Ctor(...))`` (Kotlin) or ``fn(new Ctor(...))`` (Java).

        Group ``fn`` is the function name and group ``target`` the class.
        """
        alternation = "|".join(re.escape(f) for f in functions)
        if self is SourceGrammar.JAVA:
            body = rf"new\s+(?P<target>{_QUALIFIED})\s*[<(]"
        else:
            body = rf"(?P<target>{_QUALIFIED})\s*\("
        return re.compile(rf"\b(?P<fn>{alternation})\(\s*{body}")

    @staticmethod
    def variable_call_re(functions: tuple[str, ...]) -> re.Pattern[str]:
        """Pattern for ``fn(variable)``; the same in both grammars."""
        alternation = "|".join(re.escape(f) for f in functions)
        return re.compile(rf"\b(?P<fn>{alternation})\(\s*(?P<target>{_IDENT})\s*\)")


_BY_EXTENSION = {
    ".java": SourceGrammar.JAVA,
    ".kt": SourceGrammar.KOTLIN,
}

SOURCE_EXTENSIONS = tuple(sorted(_BY_EXTENSION))

_CLASS_RE = {
    SourceGrammar.JAVA: re.compile(rf"(?<![.:])\bclass[ \t]+({_IDENT})"),
    SourceGrammar.KOTLIN: re.compile(rf"(?<![.:])\b(?:class|object)[ \t]+({_IDENT})"),
}

_ASSIGNMENT_RE = {
    # `Foo x = new Foo(`, `var x = new Foo<>(`, `x = new Foo(`
    SourceGrammar.JAVA: re.compile(
        rf"\b(?P<var>{_IDENT})\s*=\s*new\s+(?P<target>{_QUALIFIED})\s*[<(]"
    ),
    # `val x = Foo(`, `var x: ReactPackage = Foo(`, `x = Foo(`
    SourceGrammar.KOTLIN: re.compile(
        rf"\b(?P<var>{_IDENT})(?:\s*:\s*[\w.<>?, ]+?)?\s*=\s*(?P<target>{_QUALIFIED})\s*\("
    ),
}
