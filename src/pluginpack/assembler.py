"""Staging and archive assembly.

The assembler owns everything that lands in the staging directory besides
the bundle: the native binary (renamed to ``app.npk``), the icon, and
finally the archive built from the whole directory. Each staging step also
points the staged manifest at the file it placed.
"""

from __future__ import annotations

import os
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pluginpack.exceptions import PackagingError
from pluginpack.manifest import ManifestStore
from pluginpack.models import NativeConfig, PackagingConfig, ProjectDescriptor
from pluginpack.output import debug, info, success, warning


@dataclass(frozen=True)
class BuildArtifact:
    """A native binary produced by the toolchain and copied into staging."""

    produced_path: Path
    staged_path: Path


def ensure_directory(path: Path) -> Path:
    """Create *path* (and parents) if missing.

    Raises:
        PackagingError: If the directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PackagingError(f"Cannot create directory {path}: {exc}") from exc
    if not path.is_dir():
        raise PackagingError(f"Not a directory: {path}")
    return path


class ArtifactAssembler:
    """Assemble the staging directory and the final archive.

    Args:
        descriptor: Project identity (archive name).
        staging_dir: Directory compressed into the archive.
        outputs_dir: Directory receiving the archive.
        manifest: Store for the staged manifest.
        packaging: Packaging settings.
        native: Native build settings (APK search location and name hint).
    """

    def __init__(
        self,
        descriptor: ProjectDescriptor,
        staging_dir: Path,
        outputs_dir: Path,
        manifest: ManifestStore,
        packaging: PackagingConfig,
        native: NativeConfig,
    ) -> None:
        self._descriptor = descriptor
        self.staging_dir = staging_dir
        self.outputs_dir = outputs_dir
        self._manifest = manifest
        self._packaging = packaging
        self._native = native

    # ------------------------------------------------------------------ #
    # Native binary
    # ------------------------------------------------------------------ #

    def locate_native_binary(self) -> Optional[Path]:
        """Find the APK produced by the toolchain.

        Searches the configured output tree for ``*.apk``, preferring files
        whose name contains the artifact hint (``custom``). Ties are broken
        by path order.

        Returns:
            The chosen APK, or ``None`` if there is none.
        """
        search_root = self._descriptor.root_path / self._native.output_dir
        if not search_root.is_dir():
            return None
        candidates = sorted(p for p in search_root.rglob("*.apk") if p.is_file())
        if not candidates:
            return None
        hint = self._native.artifact_hint.lower()
        preferred = [p for p in candidates if hint and hint in p.name.lower()]
        return (preferred or candidates)[0]

    def stage_native_binary(self, produced: Path) -> BuildArtifact:
        """Copy *produced* into staging under the fixed name and record it in the manifest."""
        target = self.staging_dir / self._packaging.native_artifact_name
        shutil.copyfile(produced, target)
        success(f"APK copied to: {target}")
        self._manifest.set_native_code_package(target.name)
        return BuildArtifact(produced_path=produced, staged_path=target)

    def remove_stale_native_binary(self) -> None:
        """Delete a staged native binary left by an earlier run."""
        stale = self.staging_dir / self._packaging.native_artifact_name
        if stale.is_file():
            stale.unlink()
            debug(f"Removed stale native binary: {stale}")
        self._manifest.clear_native_code_package()

    # ------------------------------------------------------------------ #
    # Icon
    # ------------------------------------------------------------------ #

    def stage_icon(self) -> Optional[Path]:
        """Copy the root manifest's icon into staging and update ``iconPath``.

        The configured ``iconPath`` may be absolute or relative to the
        project root.

        Returns:
            The staged icon path, or ``None`` if no usable icon is configured.
        """
        icon_ref = self._manifest.load_root().get("iconPath")
        if not icon_ref or not isinstance(icon_ref, str):
            warning("iconPath not set or empty")
            return None

        source = Path(icon_ref)
        if not source.is_absolute():
            source = self._descriptor.root_path / icon_ref
        if not source.is_file():
            warning(f"Icon file not found: {source}")
            return None

        target = self.staging_dir / source.name
        if source.resolve() != target.resolve():
            shutil.copyfile(source, target)
        success(f"Icon copied to: {target}")
        self._manifest.set_icon_path(source.name)
        return target

    # ------------------------------------------------------------------ #
    # Archive
    # ------------------------------------------------------------------ #

    def compress(self) -> Path:
        """Zip the staging directory into ``<outputs>/<name>.zip``.

        Entries are stored relative to the staging directory in sorted order;
        an archive from a previous run is replaced.

        Raises:
            PackagingError: If the staging directory is missing or empty.
        """
        info(f"Packaging directory: {self.staging_dir}")
        if not self.staging_dir.is_dir():
            raise PackagingError(f"Staging directory does not exist: {self.staging_dir}")
        files = sorted(p for p in self.staging_dir.rglob("*") if p.is_file())
        if not files:
            raise PackagingError(f"Staging directory is empty: {self.staging_dir}")

        ensure_directory(self.outputs_dir)
        archive = self.outputs_dir / f"{self._descriptor.artifact_stem}.zip"
        if archive.exists():
            archive.unlink()

        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path in files:
                zf.write(path, path.relative_to(self.staging_dir).as_posix())
        success(f"Zip created: {archive}")
        return archive

    def finalize(self, archive: Path) -> Path:
        """Rename *archive* to the distributable extension, replacing an old package."""
        extension = self._packaging.extension
        if not extension.startswith("."):
            extension = f".{extension}"
        package = archive.with_suffix(extension)
        os.replace(archive, package)
        success(f"Plugin package created: {package}")
        return package
