"""Project descriptor loading from ``package.json``.

The descriptor carries the identity used throughout the pipeline: the
bundle and archive file names, and the ``name``/``desc``/``versionName``
fields of a freshly bootstrapped manifest.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from pluginpack.config import read_json
from pluginpack.exceptions import ProjectError
from pluginpack.models import ProjectDescriptor
from pluginpack.output import info

PACKAGE_JSON = "package.json"


def load_descriptor(project_root: Path) -> ProjectDescriptor:
    """Read ``<project_root>/package.json`` into a :class:`ProjectDescriptor`.

    ``description`` defaults to an empty string and ``version`` to
    ``"0.0.1"`` when absent or null. A UTF-8 byte-order mark is tolerated.

    Args:
        project_root: Root directory of the plugin project.

    Returns:
        The immutable project descriptor.

    Raises:
        ProjectError: If ``package.json`` is missing, is not valid JSON, or
            has no usable ``name``.
    """
    package_json = project_root / PACKAGE_JSON
    if not package_json.is_file():
        raise ProjectError(f"package.json not found: {package_json}")

    try:
        data = read_json(package_json)
    except (OSError, json.JSONDecodeError) as exc:
        raise ProjectError(f"Cannot read {package_json}: {exc}") from exc

    if not isinstance(data, dict):
        raise ProjectError(f"{package_json} must contain a JSON object")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ProjectError(f"{package_json} has no 'name' field")

    try:
        descriptor = ProjectDescriptor(
            root_path=project_root.resolve(),
            name=name.strip(),
            description=data.get("description") or "",
            version=data.get("version") or "0.0.1",
        )
    except ValidationError as exc:
        raise ProjectError(f"Invalid project metadata in {package_json}: {exc}") from exc

    info(f"Package name: {descriptor.name}")
    info(f"Version: {descriptor.version}")
    info(f"Description: {descriptor.description}")
    return descriptor
