"""Tests for symbol resolution and package reference collection."""

from __future__ import annotations

from pathlib import Path

import pytest

from pluginpack.scanner import find_application_packages
from pluginpack.scanner.grammar import SourceGrammar
from pluginpack.scanner.resolver import (
    collect_declarations,
    collect_references,
    registrable_declarations,
    resolve_name,
)
from pluginpack.scanner.scanner import SourceScanner
from pluginpack.scanner.units import CallSiteKind, SourceUnit


def _unit(
    package: str | None = None,
    imports: dict[str, str] | None = None,
    aliases: dict[str, str] | None = None,
) -> SourceUnit:
    return SourceUnit(
        path=Path("Main.kt"),
        grammar=SourceGrammar.KOTLIN,
        package=package,
        imports=imports or {},
        local_aliases=aliases or {},
    )


def _parse(text: str, grammar: SourceGrammar = SourceGrammar.KOTLIN) -> SourceUnit:
    return SourceScanner().parse(text, grammar)


# ---------------------------------------------------------------------------
# resolve_name
# ---------------------------------------------------------------------------


class TestResolveName:
    def test_dotted_name_unchanged(self) -> None:
        unit = _unit(package="com.app", imports={"x": "y"})
        assert resolve_name("com.lib.FooPackage", unit) == "com.lib.FooPackage"

    def test_import_wins_over_package(self) -> None:
        unit = _unit(package="com.app", imports={"FooPackage": "com.lib.FooPackage"})
        assert resolve_name("FooPackage", unit) == "com.lib.FooPackage"

    @pytest.mark.parametrize("name", ["FooPackage", "BarPackage", "Baz"])
    def test_resolution_matches_import_table(self, name: str) -> None:
        imports = {
            "FooPackage": "com.lib.FooPackage",
            "BarPackage": "org.other.BarPackage",
            "Baz": "net.thing.BazPackage",
        }
        unit = _unit(package="com.app", imports=imports)
        assert resolve_name(name, unit) == imports[name]

    def test_package_prefix(self) -> None:
        assert resolve_name("FooPackage", _unit(package="com.app")) == "com.app.FooPackage"

    def test_bare_name_without_context(self) -> None:
        assert resolve_name("FooPackage", _unit()) == "FooPackage"

    def test_variable_uses_local_alias(self) -> None:
        unit = _unit(package="com.app", aliases={"bar": "com.lib.BarPackage"})
        assert resolve_name("bar", unit, CallSiteKind.VARIABLE) == "com.lib.BarPackage"

    def test_variable_without_alias_falls_back_to_package(self) -> None:
        unit = _unit(package="com.app")
        assert resolve_name("bar", unit, CallSiteKind.VARIABLE) == "com.app.bar"

    def test_variable_import_wins_over_alias(self) -> None:
        unit = _unit(
            imports={"FooPackage": "com.lib.FooPackage"},
            aliases={"FooPackage": "com.other.FooPackage"},
        )
        assert resolve_name("FooPackage", unit, CallSiteKind.VARIABLE) == "com.lib.FooPackage"

    def test_constructor_ignores_local_alias(self) -> None:
        unit = _unit(package="com.app", aliases={"FooPackage": "com.lib.Other"})
        assert resolve_name("FooPackage", unit) == "com.app.FooPackage"


# ---------------------------------------------------------------------------
# collect_references
# ---------------------------------------------------------------------------


class TestCollectReferences:
    def test_declared_package_in_same_file(self) -> None:
        unit = _parse(
            "package com.example\n\n"
            "import com.facebook.react.ReactPackage\n\n"
            "class FooPackage : ReactPackage {}\n\n"
            "fun register(packages: MutableList<ReactPackage>) {\n"
            "    packages.add(FooPackage())\n"
            "}\n"
        )
        refs = collect_references([unit], declarations=collect_declarations([unit]))
        assert refs == ("com.example.FooPackage",)

    def test_variable_alias_matches_direct_construction(self) -> None:
        direct = _parse("package com.example\nadd(FooPackage())\n")
        aliased = _parse("package com.example\nval bar = FooPackage()\nadd(bar)\n")
        assert collect_references([direct]) == collect_references([aliased])
        assert collect_references([aliased]) == ("com.example.FooPackage",)

    def test_suffix_filter(self) -> None:
        unit = _parse("package com.example\nadd(FooModule())\nadd(BarPackage())\n")
        assert collect_references([unit]) == ("com.example.BarPackage",)

    def test_custom_suffix(self) -> None:
        unit = _parse("package com.example\nadd(FooModule())\nadd(BarPackage())\n")
        assert collect_references([unit], suffix="Module") == ("com.example.FooModule",)

    def test_unresolvable_variable_contributes_nothing(self) -> None:
        unit = _parse("package com.example\nadd(mystery)\n")
        assert collect_references([unit]) == ()

    def test_kotlin_object_registered_by_name(self) -> None:
        unit = _parse(
            "package com.example\n\n"
            "import com.facebook.react.ReactPackage\n\n"
            "object FooPackage : ReactPackage {}\n\n"
            "fun register(packages: MutableList<ReactPackage>) {\n"
            "    packages.add(FooPackage)\n"
            "}\n"
        )
        assert [site.kind for site in unit.call_sites] == [CallSiteKind.VARIABLE]
        refs = collect_references([unit], declarations=collect_declarations([unit]))
        assert refs == ("com.example.FooPackage",)

    def test_declared_without_marker_rejected(self) -> None:
        unit = _parse(
            "package com.example\n"
            "class FakePackage : Something()\n"
            "add(FakePackage())\n"
        )
        refs = collect_references([unit], declarations=collect_declarations([unit]))
        assert refs == ()

    def test_library_class_accepted_on_suffix(self) -> None:
        unit = _parse(
            "package com.example\n"
            "import com.lib.LibPackage\n"
            "add(LibPackage())\n"
        )
        refs = collect_references([unit], declarations=collect_declarations([unit]))
        assert refs == ("com.lib.LibPackage",)

    def test_duplicates_across_alias_paths_deduplicated(self) -> None:
        a = _parse("package com.x\nimport com.lib.FooPackage\nadd(FooPackage())\n")
        b = _parse("package com.y\nimport com.lib.FooPackage as F\nval p = F()\nadd(p)\n")
        c = _parse("add(com.lib.FooPackage())\n")
        assert collect_references([a, b, c]) == ("com.lib.FooPackage",)

    def test_output_sorted(self) -> None:
        unit = _parse("package p\nadd(ZPackage())\nadd(APackage())\nadd(MPackage())\n")
        assert collect_references([unit]) == ("p.APackage", "p.MPackage", "p.ZPackage")

    def test_java_and_kotlin_together(self) -> None:
        java = _parse(
            "package com.j;\nimport com.lib.JPackage;\nclass A { void f() { list.add(new JPackage()); } }\n",
            SourceGrammar.JAVA,
        )
        kotlin = _parse("package com.k\nadd(KPackage())\n")
        assert collect_references([java, kotlin]) == ("com.k.KPackage", "com.lib.JPackage")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


class TestDeclarations:
    def test_registrable_declarations_qualified(self) -> None:
        unit = _parse(
            "package com.example\n"
            "class APackage : ReactPackage\n"
            "class Helper\n"
            "object BPackage : TurboReactPackage()\n"
        )
        assert registrable_declarations([unit]) == (
            "com.example.APackage",
            "com.example.BPackage",
        )

    def test_collect_declarations_keys(self) -> None:
        unit = _parse("package com.example\nclass Helper\n")
        declarations = collect_declarations([unit])
        assert list(declarations) == ["com.example.Helper"]
        assert not declarations["com.example.Helper"].registrable


# ---------------------------------------------------------------------------
# find_application_packages
# ---------------------------------------------------------------------------


class TestFindApplicationPackages:
    def test_scans_roots(self, tmp_path: Path) -> None:
        root = tmp_path / "android" / "app" / "src" / "main" / "java"
        (root / "com" / "example").mkdir(parents=True)
        (root / "com" / "example" / "MainApplication.kt").write_text(
            "package com.example\n"
            "class MainApplication : Application() {\n"
            "    fun packages() = PackageList(this).packages.apply { add(FooPackage()) }\n"
            "}\n"
        )
        (root / "com" / "example" / "FooPackage.kt").write_text(
            "package com.example\nclass FooPackage : ReactPackage {}\n"
        )
        assert find_application_packages([root]) == ("com.example.FooPackage",)

    def test_build_package_segment_scanned(self, tmp_path: Path) -> None:
        root = tmp_path / "android" / "app" / "src" / "main" / "java"
        (root / "com" / "example" / "build").mkdir(parents=True)
        (root / "com" / "example" / "build" / "MainApplication.kt").write_text(
            "package com.example.build\n"
            "import com.example.FooPackage\n"
            "class MainApplication : Application() {\n"
            "    fun packages() = PackageList(this).packages.apply { add(FooPackage()) }\n"
            "}\n"
        )
        assert find_application_packages([root]) == ("com.example.FooPackage",)

    def test_external_declarations_apply(self, tmp_path: Path) -> None:
        app_root = tmp_path / "app"
        app_root.mkdir()
        (app_root / "Main.kt").write_text("package com.example\nadd(FakePackage())\n")
        lib = SourceScanner().parse(
            "package com.example\nclass FakePackage : Plain()\n", SourceGrammar.KOTLIN,
        )
        assert find_application_packages(
            [app_root], declarations=collect_declarations([lib]),
        ) == ()

    def test_missing_roots_ignored(self, tmp_path: Path) -> None:
        assert find_application_packages([tmp_path / "missing"]) == ()
