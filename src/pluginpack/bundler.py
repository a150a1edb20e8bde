"""Script bundler collaborator (``react-native bundle``).

The bundle is the one artifact every plugin needs, so any failure here is
fatal: :func:`build_bundle` raises :class:`~pluginpack.exceptions.BundleError`.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from pluginpack.exceptions import BundleError
from pluginpack.models import BundleConfig, ProjectDescriptor
from pluginpack.output import error, info, success


def bundle_command(
    config: BundleConfig,
    bundle_output: Path,
    assets_dest: Path,
) -> list[str]:
    """Build the bundler argv for *config*."""
    return [
        *config.command,
        "--entry-file", config.entry_file,
        "--bundle-output", str(bundle_output),
        "--platform", config.platform,
        "--assets-dest", str(assets_dest),
        "--dev", "false",
    ]


def build_bundle(
    descriptor: ProjectDescriptor,
    staging_dir: Path,
    config: BundleConfig,
) -> Path:
    """Bundle the project's scripts into *staging_dir*.

    Writes ``<staging_dir>/<name>.bundle`` and the asset tree into
    *staging_dir*, running the bundler from the project root.

    Returns:
        Path of the produced bundle.

    Raises:
        BundleError: If the bundler is not installed, times out, exits
            non-zero, or produces no bundle file.
    """
    if not config.command or shutil.which(config.command[0]) is None:
        tool = config.command[0] if config.command else "<empty>"
        raise BundleError(f"Bundler executable not found: {tool}")

    bundle_output = staging_dir / f"{descriptor.artifact_stem}.bundle"
    argv = bundle_command(config, bundle_output, staging_dir)

    info("Starting React Native bundling...")
    info(f"Executing command: {' '.join(argv)}")
    try:
        result = subprocess.run(
            argv,
            cwd=str(descriptor.root_path),
            capture_output=True,
            text=True,
            timeout=config.timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise BundleError(f"Bundler timed out after {config.timeout} seconds") from exc
    except FileNotFoundError as exc:
        raise BundleError(f"Bundler executable not found: {argv[0]}") from exc

    if result.returncode != 0:
        for line in (result.stderr or result.stdout or "").splitlines()[-20:]:
            error(f"  {line}")
        raise BundleError(f"Bundler exited with code {result.returncode}")

    if not bundle_output.is_file():
        raise BundleError(f"Bundler reported success but produced no bundle at {bundle_output}")

    success(f"Bundle generated: {bundle_output}")
    return bundle_output
