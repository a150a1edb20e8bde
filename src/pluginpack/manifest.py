"""Idempotent maintenance of the ``PluginConfig.json`` manifest.

The manifest lives in two places:

* the **root copy** (``<project>/PluginConfig.json``) -- the source of
  truth, created once with a random ``pluginID`` and never overwritten;
* the **staging copy** (``<project>/build/generated/PluginConfig.json``) --
  shipped inside the archive and updated by several pipeline stages.

Every mutation reads the whole document, changes the targeted keys, and
writes the whole document back atomically, so keys this module does not
know about (and their order) survive, and re-running the pipeline
converges to the same content.
"""

from __future__ import annotations

import json
import secrets
import string
from pathlib import Path
from typing import Any, Iterable, Optional

from pluginpack.config import atomic_write_json, read_json
from pluginpack.exceptions import ManifestError
from pluginpack.models import ManifestDocument, ProjectDescriptor
from pluginpack.output import info, success, warning

MANIFEST_FILENAME = "PluginConfig.json"
PLUGIN_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_plugin_id(length: int = 16) -> str:
    """Generate a random plugin identifier from ``a-z0-9``."""
    return "".join(secrets.choice(PLUGIN_ID_ALPHABET) for _ in range(length))


def _load(path: Path) -> dict[str, Any]:
    try:
        data = read_json(path)
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Cannot read manifest {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} must contain a JSON object")
    return data


def _save(path: Path, data: dict[str, Any]) -> None:
    try:
        atomic_write_json(path, data)
    except OSError as exc:
        raise ManifestError(f"Cannot write manifest {path}: {exc}") from exc


class ManifestStore:
    """Read-modify-write access to the root and staging manifests.

    Args:
        project_root: Project root holding the root manifest.
        staging_dir: Staging directory holding the staged manifest.
        filename: Manifest file name.
    """

    def __init__(
        self,
        project_root: Path,
        staging_dir: Path,
        filename: str = MANIFEST_FILENAME,
    ) -> None:
        self.root_path = project_root / filename
        self.staging_path = staging_dir / filename

    # ------------------------------------------------------------------ #
    # Root manifest
    # ------------------------------------------------------------------ #

    def bootstrap_root(self, descriptor: ProjectDescriptor, id_length: int = 16) -> bool:
        """Create the root manifest from *descriptor* unless it already exists.

        The ``pluginID`` is generated here exactly once; an existing root
        manifest is never touched.

        Returns:
            ``True`` if the manifest was created, ``False`` if it existed.
        """
        if self.root_path.is_file():
            warning(
                f"{self.root_path.name} already exists in the project root, "
                "skipping generation"
            )
            return False

        document = ManifestDocument(
            name=descriptor.name,
            desc=descriptor.description,
            icon_path="",
            version_name=descriptor.version,
            version_code="1",
            plugin_id=new_plugin_id(id_length),
            plugin_key=descriptor.name,
            js_main_path="index",
        )
        _save(self.root_path, document.to_json_dict())
        success(f"Created: {self.root_path}")
        return True

    def load_root(self) -> dict[str, Any]:
        """Return the root manifest as a dict.

        Raises:
            ManifestError: If it is missing or invalid.
        """
        return _load(self.root_path)

    # ------------------------------------------------------------------ #
    # Staging manifest
    # ------------------------------------------------------------------ #

    def seed_staging(self) -> None:
        """Bring the staging manifest in line with the root manifest.

        Copies the root manifest when the staging copy is absent. When it is
        present, every root key is written over it so edits to the root
        manifest reach the archive, while keys the pipeline added (such as
        ``reactPackages``) are kept.
        """
        root = self.load_root()
        if not self.staging_path.is_file():
            _save(self.staging_path, root)
            info(f"Copied {self.root_path.name} to {self.staging_path.parent}")
            return
        staged = self.load_staging()
        staged.update(root)
        _save(self.staging_path, staged)

    def load_staging(self) -> dict[str, Any]:
        """Return the staging manifest as a dict.

        Raises:
            ManifestError: If it is missing or invalid.
        """
        return _load(self.staging_path)

    def update(self, **fields: Any) -> dict[str, Any]:
        """Overwrite *fields* (JSON key names) in the staging manifest.

        A value of ``None`` removes the key. All other keys are preserved.

        Returns:
            The document as written.
        """
        if not self.staging_path.is_file():
            self.seed_staging()
        data = self.load_staging()
        for key, value in fields.items():
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
        _save(self.staging_path, data)
        return data

    def set_icon_path(self, file_name: str) -> None:
        """Point ``iconPath`` at a file staged at the archive root."""
        self.update(iconPath=f"/{file_name}")
        success(f"Updated iconPath to: /{file_name}")

    def set_native_code_package(self, file_name: str) -> None:
        """Point ``nativeCodePackage`` at a binary staged at the archive root."""
        self.update(nativeCodePackage=f"/{file_name}")
        success(f"Updated nativeCodePackage to: /{file_name}")

    def clear_native_code_package(self) -> None:
        """Drop a ``nativeCodePackage`` left by a previous run."""
        if self.staging_path.is_file() and "nativeCodePackage" in self.load_staging():
            self.update(nativeCodePackage=None)
            info("Removed stale nativeCodePackage from the staged manifest")

    def merge_packages(self, references: Iterable[str]) -> list[str]:
        """Replace ``reactPackages`` with the sorted union of *references*.

        The key is always written, as ``[]`` when nothing was found, so a
        previous run's list never lingers.

        Returns:
            The list written to the manifest.
        """
        packages = sorted(set(references))
        self.update(reactPackages=packages)
        success(f"Updated {self.staging_path.name} with {len(packages)} reactPackages")
        return packages

    def react_packages(self) -> Optional[list[str]]:
        """Return the staged ``reactPackages`` list, or ``None`` if absent."""
        if not self.staging_path.is_file():
            return None
        packages = self.load_staging().get("reactPackages")
        return list(packages) if isinstance(packages, list) else None
