"""Invocation of the Gradle toolchain for the native extension.

The invoker only reports what happened -- whether the task ran, its exit
status, and the tail of its output. Finding the produced APK is left to
:class:`~pluginpack.assembler.ArtifactAssembler`, so "the build failed"
and "the build produced nothing usable" stay separate outcomes.
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pluginpack.manifest import ManifestStore
from pluginpack.models import NativeConfig
from pluginpack.output import debug, error, info, success, warning


@dataclass
class NativeBuildResult:
    """Outcome of one native build attempt.

    Attributes:
        ran: ``False`` when the build was skipped before any process started.
        succeeded: ``True`` when the task exited with status 0.
        exit_code: Process exit status, ``None`` if no process ran or it
            timed out.
        tool: Path of the Gradle executable used.
        reason: Why the build was skipped or failed.
        output_tail: Last lines of the toolchain's output.
    """

    ran: bool = False
    succeeded: bool = False
    exit_code: Optional[int] = None
    tool: Optional[str] = None
    reason: str = ""
    output_tail: list[str] = field(default_factory=list)

    @classmethod
    def skipped(cls, reason: str) -> NativeBuildResult:
        return cls(reason=reason)


def find_gradle(android_dir: Path) -> Optional[str]:
    """Locate the Gradle executable: the project's ``gradlew`` first, then ``gradle`` on PATH."""
    wrapper = android_dir / ("gradlew.bat" if os.name == "nt" else "gradlew")
    if wrapper.is_file():
        if os.name != "nt":
            try:
                mode = wrapper.stat().st_mode
                wrapper.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            except OSError as exc:
                # Read-only checkouts: the wrapper may already be executable.
                warning(f"Could not make {wrapper.name} executable: {exc}")
        return str(wrapper)
    return shutil.which("gradle")


class NativeBuildInvoker:
    """Run the configured Gradle task in the project's Android directory.

    Args:
        project_root: Root of the plugin project.
        config: Native build settings.
    """

    def __init__(self, project_root: Path, config: NativeConfig) -> None:
        self._config = config
        self.android_dir = project_root / config.android_dir

    def run(self, manifest: Optional[ManifestStore] = None) -> NativeBuildResult:
        """Run the build task once; failures are reported, never retried.

        Args:
            manifest: Staged manifest store, consulted when
                ``require_packages`` is enabled.

        Returns:
            A :class:`NativeBuildResult`. Missing prerequisites produce a
            skipped result rather than an exception.
        """
        if self._config.require_packages:
            packages = manifest.react_packages() if manifest is not None else None
            if not packages:
                return NativeBuildResult.skipped("no reactPackages in the staged manifest")

        if not self.android_dir.is_dir():
            return NativeBuildResult.skipped(f"android directory not found: {self.android_dir}")

        tool = find_gradle(self.android_dir)
        if tool is None:
            return NativeBuildResult.skipped("gradle/gradlew not found")

        task = self._config.build_task
        info(f"Running gradle task: {task}...")
        debug(f"Executing: {tool} {task} (cwd={self.android_dir})")

        try:
            result = subprocess.run(
                [tool, task],
                cwd=str(self.android_dir),
                capture_output=True,
                text=True,
                timeout=self._config.timeout,
            )
        except subprocess.TimeoutExpired:
            error(f"Native build timed out after {self._config.timeout} seconds.")
            return NativeBuildResult(
                ran=True, tool=tool, reason=f"timed out after {self._config.timeout}s",
            )
        except OSError as exc:
            return NativeBuildResult.skipped(f"gradle executable not runnable: {tool} ({exc})")

        tail = (result.stderr or "").splitlines()[-20:] or (result.stdout or "").splitlines()[-20:]
        if result.returncode != 0:
            error(f"Native build failed with exit code {result.returncode}:")
            for line in tail:
                error(f"  {line}")
            return NativeBuildResult(
                ran=True,
                exit_code=result.returncode,
                tool=tool,
                reason=f"{task} exited with {result.returncode}",
                output_tail=tail,
            )

        success("Native build succeeded")
        return NativeBuildResult(
            ran=True, succeeded=True, exit_code=0, tool=tool, output_tail=tail,
        )
