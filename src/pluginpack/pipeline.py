"""The packaging pipeline: from a project tree to a ``.snplg`` archive.

Stages run strictly in sequence::

    descriptor -> staging -> bundle -> manifest -> icon -> discovery
        -> packages -> native -> archive

Every stage returns a :class:`StageResult`. :meth:`Pipeline._run_stage`
dispatches on its status: ``OK`` and ``SKIPPED`` continue (skips are
reported as warnings), ``FATAL`` aborts the run by raising the stage's
:class:`~pluginpack.exceptions.PluginpackError`.

The only branch point is the build decision taken after discovery; the
native stage is skipped unless it is ``NATIVE_BUILD_REQUIRED``.
"""

from __future__ import annotations

import dataclasses
import enum
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from pluginpack.assembler import ArtifactAssembler, BuildArtifact, ensure_directory
from pluginpack.bundler import build_bundle
from pluginpack.decision import BuildDecision, decide
from pluginpack.dependencies import DependencyClassifier, DependencyModule
from pluginpack.descriptor import load_descriptor
from pluginpack.exceptions import PluginpackError
from pluginpack.manifest import ManifestStore
from pluginpack.models import BuildConfig, ProjectDescriptor
from pluginpack.native import NativeBuildInvoker, NativeBuildResult
from pluginpack.output import debug, info, progress, success, warning
from pluginpack.scanner import (
    SourceScanner,
    collect_declarations,
    find_application_packages,
    read_autolinked_packages,
    registrable_declarations,
)


class StageStatus(str, enum.Enum):
    """Outcome class of a pipeline stage."""

    OK = "ok"
    SKIPPED = "skipped"
    FATAL = "fatal"


@dataclass
class StageResult:
    """Result of one pipeline stage.

    Attributes:
        status: Outcome class.
        reason: Why the stage was skipped or failed.
        value: Stage output passed on to later stages.
        error: The error that aborts the run (``FATAL`` only).
        name: Stage name, filled in by the orchestrator.
    """

    status: StageStatus
    reason: str = ""
    value: Any = None
    error: Optional[PluginpackError] = None
    name: str = ""

    @classmethod
    def ok(cls, value: Any = None, reason: str = "") -> StageResult:
        return cls(StageStatus.OK, reason=reason, value=value)

    @classmethod
    def skipped(cls, reason: str, value: Any = None) -> StageResult:
        return cls(StageStatus.SKIPPED, reason=reason, value=value)

    @classmethod
    def fatal(cls, exc: PluginpackError) -> StageResult:
        return cls(StageStatus.FATAL, reason=str(exc), error=exc)

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "status": self.status.value, "reason": self.reason}


@dataclass
class ScanReport:
    """Everything discovery learned about a project.

    Attributes:
        application_references: Packages registered by the application's
            own ``add(...)`` calls.
        autolinked_references: Packages listed by the generated autolinking
            ``PackageList.java``.
        registrable_declarations: ``ReactPackage`` classes declared in the
            project's native roots.
        modules: Classified ``node_modules`` dependencies.
        decision: The build decision.
    """

    application_references: tuple[str, ...]
    autolinked_references: tuple[str, ...]
    registrable_declarations: tuple[str, ...]
    modules: list[DependencyModule]
    decision: BuildDecision

    @property
    def native_modules(self) -> list[str]:
        """Names of the native-bearing dependency modules."""
        return [m.name for m in self.modules if m.native_bearing]

    def package_references(self) -> list[str]:
        """The references merged into ``reactPackages``.

        Autolinked packages only count when a native build is required.
        """
        refs = set(self.application_references)
        if self.decision is BuildDecision.NATIVE_BUILD_REQUIRED:
            refs.update(self.autolinked_references)
        return sorted(refs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.value,
            "application_references": list(self.application_references),
            "autolinked_references": list(self.autolinked_references),
            "registrable_declarations": list(self.registrable_declarations),
            "native_modules": self.native_modules,
            "ignored_modules": [m.name for m in self.modules if m.ignored],
        }


@dataclass
class PipelineReport:
    """Summary of a complete pipeline run (printed by ``--json``)."""

    project: str
    version: str
    decision: BuildDecision
    react_packages: list[str]
    package_path: Path
    native_artifact: Optional[BuildArtifact] = None
    native_build: Optional[NativeBuildResult] = None
    icon_path: Optional[Path] = None
    stages: list[StageResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        native_build = None
        if self.native_build is not None:
            native_build = {
                "ran": self.native_build.ran,
                "succeeded": self.native_build.succeeded,
                "exit_code": self.native_build.exit_code,
                "reason": self.native_build.reason,
            }
        return {
            "project": self.project,
            "version": self.version,
            "decision": self.decision.value,
            "react_packages": self.react_packages,
            "package": str(self.package_path),
            "native_code_package": (
                str(self.native_artifact.staged_path) if self.native_artifact else None
            ),
            "native_build": native_build,
            "icon": str(self.icon_path) if self.icon_path else None,
            "stages": [stage.to_dict() for stage in self.stages],
        }


class Pipeline:
    """Package the plugin project at *project_root*.

    Args:
        project_root: Root of the plugin project (holds ``package.json``).
        config: Effective build configuration; defaults when omitted.

    Example::

        report = Pipeline(Path("."), resolve_config(Path("."))).run()
        print(report.package_path)
    """

    def __init__(self, project_root: Path, config: Optional[BuildConfig] = None) -> None:
        self.project_root = project_root
        self.config = config or BuildConfig()
        self.stages: list[StageResult] = []

    # ------------------------------------------------------------------ #
    # Public entry points
    # ------------------------------------------------------------------ #

    def scan(self) -> ScanReport:
        """Load the descriptor and run discovery only.

        Nothing is bundled, built, or written.
        """
        self.stages = []
        descriptor = self._run_stage("descriptor", self._load_descriptor).value
        return self._run_stage("discovery", self._discover, descriptor).value

    def run(self) -> PipelineReport:
        """Run every stage and return the report.

        Raises:
            PluginpackError: The error of the first fatal stage.
        """
        self.stages = []
        debug(f"Detected operating system: {platform.system()} {platform.release()}")

        descriptor: ProjectDescriptor = self._run_stage("descriptor", self._load_descriptor).value
        packaging = self.config.packaging
        root = descriptor.root_path
        staging_dir = root / packaging.staging_dir
        store = ManifestStore(root, staging_dir, packaging.manifest_name)
        assembler = ArtifactAssembler(
            descriptor,
            staging_dir,
            root / packaging.outputs_dir,
            store,
            packaging,
            self.config.native,
        )

        self._run_stage("staging", self._prepare_staging, staging_dir)
        self._run_stage("bundle", self._bundle, descriptor, staging_dir)
        self._run_stage("manifest", self._bootstrap_manifest, store, descriptor)
        icon = self._run_stage("icon", self._stage_icon, assembler).value
        scan: ScanReport = self._run_stage("discovery", self._discover, descriptor).value
        packages = self._run_stage("packages", self._merge_packages, store, scan).value
        native = self._run_stage(
            "native", self._build_native, descriptor, scan, store, assembler
        ).value
        package = self._run_stage("archive", self._package, assembler).value

        success(f"Build process completed: {package}")
        artifact, build_result = native
        return PipelineReport(
            project=descriptor.name,
            version=descriptor.version,
            decision=scan.decision,
            react_packages=packages,
            package_path=package,
            native_artifact=artifact,
            native_build=build_result,
            icon_path=icon,
            stages=list(self.stages),
        )

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def _run_stage(
        self,
        name: str,
        stage: Callable[..., StageResult],
        *args: Any,
    ) -> StageResult:
        progress(f"Stage: {name}")
        try:
            result = stage(*args)
        except PluginpackError as exc:
            result = StageResult.fatal(exc)
        result = dataclasses.replace(result, name=name)
        self.stages.append(result)

        if result.status is StageStatus.FATAL:
            debug(f"Stage '{name}' failed")
            raise result.error
        if result.status is StageStatus.SKIPPED:
            warning(f"Skipping {name}: {result.reason}")
        return result

    # ------------------------------------------------------------------ #
    # Stages
    # ------------------------------------------------------------------ #

    def _load_descriptor(self) -> StageResult:
        return StageResult.ok(load_descriptor(self.project_root))

    def _prepare_staging(self, staging_dir: Path) -> StageResult:
        return StageResult.ok(ensure_directory(staging_dir))

    def _bundle(self, descriptor: ProjectDescriptor, staging_dir: Path) -> StageResult:
        return StageResult.ok(build_bundle(descriptor, staging_dir, self.config.bundle))

    def _bootstrap_manifest(
        self, store: ManifestStore, descriptor: ProjectDescriptor
    ) -> StageResult:
        created = store.bootstrap_root(descriptor, self.config.packaging.plugin_id_length)
        store.seed_staging()
        if not created:
            return StageResult.skipped(f"{store.root_path.name} already exists", value=False)
        return StageResult.ok(True)

    def _stage_icon(self, assembler: ArtifactAssembler) -> StageResult:
        icon = assembler.stage_icon()
        if icon is None:
            return StageResult.skipped("no icon configured")
        return StageResult.ok(icon)

    def _discover(self, descriptor: ProjectDescriptor) -> StageResult:
        cfg = self.config.scan
        root = descriptor.root_path
        scanner = SourceScanner(cfg.registration_functions)

        native_units = scanner.scan(root / rel for rel in cfg.native_roots)
        declared = registrable_declarations(native_units)
        for name in declared:
            debug(f"Declared ReactPackage: {name}")

        references = find_application_packages(
            [root / rel for rel in cfg.application_roots],
            registration_functions=cfg.registration_functions,
            suffix=cfg.package_suffix,
            declarations=collect_declarations(native_units),
        )
        for name in references:
            info(f"Application registers: {name}")

        classifier = DependencyClassifier(cfg.ignored_modules, cfg.module_native_dirs, scanner)
        modules = classifier.scan_node_modules(root)

        autolinked = read_autolinked_packages(
            root / cfg.autolinking_source,
            excludes=cfg.autolinking_excludes,
            suffix=cfg.package_suffix,
        )

        decision = decide(references, modules)
        info(f"Build decision: {decision.value}")
        return StageResult.ok(
            ScanReport(
                application_references=references,
                autolinked_references=autolinked,
                registrable_declarations=declared,
                modules=modules,
                decision=decision,
            )
        )

    def _merge_packages(self, store: ManifestStore, scan: ScanReport) -> StageResult:
        return StageResult.ok(store.merge_packages(scan.package_references()))

    def _build_native(
        self,
        descriptor: ProjectDescriptor,
        scan: ScanReport,
        store: ManifestStore,
        assembler: ArtifactAssembler,
    ) -> StageResult:
        result = self._native_outcome(descriptor, scan, store, assembler)
        if result.status is not StageStatus.OK:
            assembler.remove_stale_native_binary()
        return result

    def _native_outcome(
        self,
        descriptor: ProjectDescriptor,
        scan: ScanReport,
        store: ManifestStore,
        assembler: ArtifactAssembler,
    ) -> StageResult:
        if scan.decision is BuildDecision.NO_NATIVE_WORK:
            return StageResult.skipped("no native work required", value=(None, None))
        if self.config.native.skip:
            return StageResult.skipped("native build disabled", value=(None, None))

        build = NativeBuildInvoker(descriptor.root_path, self.config.native).run(store)
        if not build.ran:
            return StageResult.skipped(build.reason, value=(None, build))
        if not build.succeeded:
            return StageResult.skipped(f"native build failed ({build.reason})", value=(None, build))

        produced = assembler.locate_native_binary()
        if produced is None:
            return StageResult.skipped("generated APK not found", value=(None, build))
        return StageResult.ok((assembler.stage_native_binary(produced), build))

    def _package(self, assembler: ArtifactAssembler) -> StageResult:
        return StageResult.ok(assembler.finalize(assembler.compress()))
