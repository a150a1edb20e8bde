"""Shared test fixtures for pluginpack.

Provides reusable fixtures for isolated config environments, output state,
throwaway plugin project trees, and a fake external toolchain (bundler and
Gradle) so pipeline tests never spawn real processes. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Optional
from unittest.mock import patch

import pytest

from pluginpack.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all PLUGINPACK_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("pluginpack.config._is_xdg_platform", lambda: True)

    for var in [
        "PLUGINPACK_BUILD_TASK",
        "PLUGINPACK_REQUIRE_PACKAGES",
        "PLUGINPACK_SKIP_NATIVE",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for tests that ignore output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Project trees
# ---------------------------------------------------------------------------


class ProjectBuilder:
    """Write a plugin project tree under *root*."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, rel: str, text: str) -> Path:
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def write_json(self, rel: str, data: Any) -> Path:
        return self.write(rel, json.dumps(data, indent=2))

    def read_json(self, rel: str) -> Any:
        return json.loads((self.root / rel).read_text(encoding="utf-8"))

    def package_json(self, **fields: Any) -> Path:
        data = {"name": "sudoku", "version": "1.2.0", "description": "Daily sudoku"}
        data.update(fields)
        return self.write_json("package.json", data)

    def gradle_wrapper(self) -> Path:
        return self.write("android/gradlew", "#!/bin/sh\nexit 0\n")

    def app_source(self, rel: str, text: str) -> Path:
        """Write an application source under ``android/app/src/main/java``."""
        return self.write(f"android/app/src/main/java/{rel}", text)

    def native_module(self, name: str, native_dir: str = "android") -> Path:
        """Create ``node_modules/<name>`` with one Java file under *native_dir*."""
        return self.write(
            f"node_modules/{name}/{native_dir}/src/main/java/com/lib/LibModule.java",
            "package com.lib;\n\npublic class LibModule {}\n",
        )

    def js_module(self, name: str) -> Path:
        return self.write(f"node_modules/{name}/index.js", "module.exports = {};\n")

    @property
    def staged_manifest(self) -> dict[str, Any]:
        return self.read_json("build/generated/PluginConfig.json")

    @property
    def root_manifest(self) -> dict[str, Any]:
        return self.read_json("PluginConfig.json")


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
    """A minimal plugin project: ``package.json`` and ``index.js``."""
    builder = ProjectBuilder(tmp_path / "project")
    builder.package_json()
    builder.write("index.js", "import {AppRegistry} from 'react-native';\n")
    return builder


# ---------------------------------------------------------------------------
# Fake toolchain
# ---------------------------------------------------------------------------


class FakeToolchain:
    """Stand-in for ``subprocess.run`` serving both the bundler and Gradle.

    The bundler writes ``<name>.bundle`` and one asset. Gradle exits with
    :attr:`gradle_returncode` and, on success, drops :attr:`apk_names`
    under ``app/build/outputs/apk``.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.bundle_returncode = 0
        self.gradle_returncode = 0
        self.apk_names: list[str] = ["app-custom-debug.apk"]
        self.executables: dict[str, Optional[str]] = {"npx": "/usr/bin/npx", "gradle": None}

    def which(self, name: str) -> Optional[str]:
        return self.executables.get(name)

    def run(self, argv: list[str], cwd: Optional[str] = None, **kwargs: Any):
        argv = list(argv)
        self.calls.append(argv)
        if "--bundle-output" in argv:
            return self._bundle(argv)
        return self._gradle(argv, Path(cwd or "."))

    @property
    def gradle_calls(self) -> list[list[str]]:
        return [c for c in self.calls if "--bundle-output" not in c]

    def _bundle(self, argv: list[str]) -> subprocess.CompletedProcess:
        if self.bundle_returncode != 0:
            return subprocess.CompletedProcess(argv, self.bundle_returncode, "", "error: bundling failed")
        bundle = Path(argv[argv.index("--bundle-output") + 1])
        assets = Path(argv[argv.index("--assets-dest") + 1])
        bundle.parent.mkdir(parents=True, exist_ok=True)
        bundle.write_text("__d(function(){});\n")
        (assets / "assets").mkdir(parents=True, exist_ok=True)
        (assets / "assets" / "grid.png").write_bytes(b"\x89PNG")
        return subprocess.CompletedProcess(argv, 0, "", "")

    def _gradle(self, argv: list[str], cwd: Path) -> subprocess.CompletedProcess:
        if self.gradle_returncode != 0:
            return subprocess.CompletedProcess(
                argv, self.gradle_returncode, "", "FAILURE: Build failed with an exception.",
            )
        out = cwd / "app" / "build" / "outputs" / "apk" / "custom" / "debug"
        out.mkdir(parents=True, exist_ok=True)
        for name in self.apk_names:
            (out / name).write_bytes(b"APK:" + name.encode())
        return subprocess.CompletedProcess(argv, 0, "BUILD SUCCESSFUL", "")


@pytest.fixture
def toolchain() -> FakeToolchain:
    """Patch ``subprocess.run`` and ``shutil.which`` with a :class:`FakeToolchain`."""
    fake = FakeToolchain()
    with patch("pluginpack.bundler.subprocess.run", side_effect=fake.run), \
            patch("pluginpack.bundler.shutil.which", side_effect=fake.which):
        yield fake
