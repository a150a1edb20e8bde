"""Canonical Pydantic models shared across pluginpack modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config
directory or in the project's ``pluginpack.json``:
    :class:`BundleConfig`, :class:`ScanConfig`, :class:`NativeConfig`,
    :class:`PackagingConfig`, and the aggregate :class:`BuildConfig`.

**Project models** -- produced while packaging a project:
    :class:`ProjectDescriptor` (identity read from ``package.json``) and
    :class:`ManifestDocument` (the ``PluginConfig.json`` shipped inside the
    archive).

All models use Pydantic v2. :class:`ManifestDocument` uses ``extra="allow"``
so that keys added by hand to ``PluginConfig.json`` survive a round trip.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Build configuration ---


class BundleConfig(BaseModel):
    """Settings for the script bundler invocation."""

    command: list[str] = Field(
        default_factory=lambda: ["npx", "react-native", "bundle"],
        description="Bundler command prefix; bundle arguments are appended",
    )
    entry_file: str = Field(default="index.js", description="Bundle entry point")
    platform: str = Field(default="android", description="Target platform")
    timeout: int = Field(default=600, description="Bundler timeout in seconds")


class ScanConfig(BaseModel):
    """Settings for native source discovery.

    Paths are relative to the project root unless stated otherwise.
    """

    application_roots: list[str] = Field(
        default_factory=lambda: [
            "android/app/src/main/java",
            "android/src/main/java",
            "app/android/src/main/java",
        ],
        description="Source roots holding the application's registration calls",
    )
    native_roots: list[str] = Field(
        default_factory=lambda: ["android", "app/android"],
        description="Roots scanned for registrable class declarations",
    )
    registration_functions: list[str] = Field(
        default_factory=lambda: ["add"],
        description="Function names whose calls register a package",
    )
    package_suffix: str = Field(
        default="Package", description="Suffix a registrable class name must carry"
    )
    ignored_modules: list[str] = Field(
        default_factory=list,
        description="Extra dependency name patterns to ignore (fnmatch, case-insensitive)",
    )
    module_native_dirs: list[str] = Field(
        default_factory=lambda: ["android", "platforms/android", "platforms/android-native"],
        description="Candidate native source directories inside a dependency module",
    )
    autolinking_source: str = Field(
        default=(
            "android/app/build/generated/autolinking/src/main/java/"
            "com/facebook/react/PackageList.java"
        ),
        description="Generated autolinking package list",
    )
    autolinking_excludes: list[str] = Field(
        default_factory=lambda: [
            "com.facebook.react.shell.MainReactPackage",
            "com.ratta.supernote.note.plugincore.PluginPackage",
            "com.ratta.supernote.pluginlib.PluginPackage",
        ],
        description="Host-provided packages never listed in the manifest",
    )


class NativeConfig(BaseModel):
    """Settings for the Gradle build of the native extension."""

    android_dir: str = Field(default="android", description="Gradle project directory")
    build_task: str = Field(default="buildCustomApkDebug", description="Gradle task to run")
    timeout: int = Field(default=1800, description="Build timeout in seconds")
    require_packages: bool = Field(
        default=False,
        description="Skip the build unless the staged manifest lists reactPackages",
    )
    skip: bool = Field(default=False, description="Never run the native build")
    output_dir: str = Field(
        default="android/app/build/outputs/apk",
        description="Directory searched for the produced APK",
    )
    artifact_hint: str = Field(
        default="custom", description="Preferred substring in the APK file name"
    )


class PackagingConfig(BaseModel):
    """Settings for staging and archive layout."""

    staging_dir: str = Field(default="build/generated")
    outputs_dir: str = Field(default="build/outputs")
    manifest_name: str = Field(default="PluginConfig.json")
    native_artifact_name: str = Field(default="app.npk")
    extension: str = Field(default=".snplg")
    plugin_id_length: int = Field(default=16, ge=1)


class BuildConfig(BaseModel):
    """Effective build configuration after precedence resolution.

    Stored as ``config.json`` in the user's config directory and, per
    project, as ``pluginpack.json`` next to ``package.json``. See
    :func:`pluginpack.config.resolve_config` for the precedence chain.
    """

    bundle: BundleConfig = Field(default_factory=BundleConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    native: NativeConfig = Field(default_factory=NativeConfig)
    packaging: PackagingConfig = Field(default_factory=PackagingConfig)


# --- Project models ---


class ProjectDescriptor(BaseModel):
    """Identity of the project being packaged.

    Created once at pipeline start by
    :func:`~pluginpack.descriptor.load_descriptor` and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    root_path: Path
    name: str
    description: str = ""
    version: str = "0.0.1"

    @property
    def artifact_stem(self) -> str:
        """File-name-safe form of :attr:`name` (scoped names lose the ``@`` and ``/``)."""
        return self.name.lstrip("@").replace("/", "-")


class ManifestDocument(BaseModel):
    """The ``PluginConfig.json`` manifest consumed by the plugin host.

    Attribute names are Pythonic; the JSON keys are the aliases. Unknown
    keys are preserved in ``model_extra``.

    Example::

        ManifestDocument(
            name="sudoku",
            desc="Daily sudoku",
            versionName="1.0.0",
            pluginID="k3j9x0q2m1b7c8d4",
            pluginKey="sudoku",
        )
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    desc: str = ""
    icon_path: str = Field(default="", alias="iconPath")
    version_name: str = Field(default="0.0.1", alias="versionName")
    version_code: str = Field(default="1", alias="versionCode")
    plugin_id: str = Field(alias="pluginID")
    plugin_key: str = Field(alias="pluginKey")
    js_main_path: str = Field(default="index", alias="jsMainPath")
    react_packages: Optional[list[str]] = Field(default=None, alias="reactPackages")
    native_code_package: Optional[str] = Field(default=None, alias="nativeCodePackage")

    def to_json_dict(self) -> dict:
        """Serialise with the JSON key names, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
