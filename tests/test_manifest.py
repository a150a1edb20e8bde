"""Tests for pluginpack.manifest -- bootstrap, staging seed, idempotent updates."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import pytest

from pluginpack.exceptions import ManifestError
from pluginpack.manifest import ManifestStore, new_plugin_id
from pluginpack.models import ManifestDocument, ProjectDescriptor


def _read(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def descriptor(tmp_path: Path) -> ProjectDescriptor:
    return ProjectDescriptor(
        root_path=tmp_path, name="sudoku", description="Daily sudoku", version="1.2.0",
    )


@pytest.fixture
def store(tmp_path: Path, quiet_output) -> ManifestStore:
    return ManifestStore(tmp_path, tmp_path / "build" / "generated")


class TestNewPluginId:
    def test_alphabet_and_length(self) -> None:
        assert re.fullmatch(r"[a-z0-9]{16}", new_plugin_id())

    def test_custom_length(self) -> None:
        assert len(new_plugin_id(8)) == 8


class TestBootstrapRoot:
    def test_creates_identity_fields(self, store: ManifestStore, descriptor: ProjectDescriptor) -> None:
        assert store.bootstrap_root(descriptor) is True
        data = _read(store.root_path)
        assert data["name"] == "sudoku"
        assert data["desc"] == "Daily sudoku"
        assert data["iconPath"] == ""
        assert data["versionName"] == "1.2.0"
        assert data["versionCode"] == "1"
        assert data["pluginKey"] == "sudoku"
        assert data["jsMainPath"] == "index"
        assert re.fullmatch(r"[a-z0-9]{16}", data["pluginID"])
        assert "reactPackages" not in data
        assert "nativeCodePackage" not in data

    def test_key_order(self, store: ManifestStore, descriptor: ProjectDescriptor) -> None:
        store.bootstrap_root(descriptor)
        assert list(_read(store.root_path)) == [
            "name", "desc", "iconPath", "versionName", "versionCode",
            "pluginID", "pluginKey", "jsMainPath",
        ]

    def test_never_overwrites_plugin_id(self, store: ManifestStore, descriptor: ProjectDescriptor) -> None:
        store.bootstrap_root(descriptor)
        first = _read(store.root_path)["pluginID"]
        assert store.bootstrap_root(descriptor) is False
        assert _read(store.root_path)["pluginID"] == first

    def test_existing_hand_written_manifest_untouched(
        self, store: ManifestStore, descriptor: ProjectDescriptor,
    ) -> None:
        store.root_path.write_text('{"name": "custom", "pluginID": "fixed"}')
        assert store.bootstrap_root(descriptor) is False
        assert _read(store.root_path) == {"name": "custom", "pluginID": "fixed"}

    def test_bootstrapped_root_is_a_valid_manifest(
        self, store: ManifestStore, descriptor: ProjectDescriptor,
    ) -> None:
        store.bootstrap_root(descriptor)
        doc = ManifestDocument.model_validate(_read(store.root_path))
        assert doc.plugin_key == "sudoku"
        assert len(doc.plugin_id) == 16


class TestSeedStaging:
    def test_copies_root_when_absent(self, store: ManifestStore, descriptor: ProjectDescriptor) -> None:
        store.bootstrap_root(descriptor)
        store.seed_staging()
        assert _read(store.staging_path) == _read(store.root_path)

    def test_overlays_root_and_keeps_pipeline_keys(
        self, store: ManifestStore, descriptor: ProjectDescriptor,
    ) -> None:
        store.bootstrap_root(descriptor)
        store.seed_staging()
        store.merge_packages(["com.example.FooPackage"])

        root = _read(store.root_path)
        root["desc"] = "Edited"
        store.root_path.write_text(json.dumps(root))
        store.seed_staging()

        staged = _read(store.staging_path)
        assert staged["desc"] == "Edited"
        assert staged["reactPackages"] == ["com.example.FooPackage"]
        assert all(staged[key] == value for key, value in root.items())

    def test_missing_root_raises(self, store: ManifestStore) -> None:
        with pytest.raises(ManifestError):
            store.seed_staging()

    def test_invalid_json_raises(self, store: ManifestStore) -> None:
        store.root_path.write_text("{not json")
        with pytest.raises(ManifestError):
            store.seed_staging()

    def test_bom_tolerated(self, store: ManifestStore) -> None:
        store.root_path.write_bytes(b'\xef\xbb\xbf{"name": "bom"}')
        store.seed_staging()
        assert _read(store.staging_path) == {"name": "bom"}


class TestFieldUpdates:
    @pytest.fixture(autouse=True)
    def _seeded(self, store: ManifestStore, descriptor: ProjectDescriptor) -> None:
        store.bootstrap_root(descriptor)
        store.seed_staging()

    def test_set_icon_path(self, store: ManifestStore) -> None:
        store.set_icon_path("icon.png")
        assert _read(store.staging_path)["iconPath"] == "/icon.png"
        assert _read(store.root_path)["iconPath"] == ""

    def test_set_native_code_package(self, store: ManifestStore) -> None:
        store.set_native_code_package("app.npk")
        assert _read(store.staging_path)["nativeCodePackage"] == "/app.npk"

    def test_clear_native_code_package(self, store: ManifestStore) -> None:
        store.set_native_code_package("app.npk")
        store.clear_native_code_package()
        assert "nativeCodePackage" not in _read(store.staging_path)

    def test_clear_when_absent_is_noop(self, store: ManifestStore) -> None:
        before = store.staging_path.read_text()
        store.clear_native_code_package()
        assert store.staging_path.read_text() == before

    def test_unknown_keys_preserved(self, store: ManifestStore) -> None:
        data = _read(store.staging_path)
        data["customFlag"] = {"nested": [1, 2]}
        store.staging_path.write_text(json.dumps(data))

        store.set_icon_path("icon.png")
        store.merge_packages(["a.BPackage"])

        staged = _read(store.staging_path)
        assert staged["customFlag"] == {"nested": [1, 2]}
        assert list(staged)[: len(data)] == list(data)

    def test_update_overwrites_in_place(self, store: ManifestStore) -> None:
        store.set_icon_path("a.png")
        store.set_icon_path("b.png")
        text = store.staging_path.read_text()
        assert text.count('"iconPath"') == 1
        assert _read(store.staging_path)["iconPath"] == "/b.png"


class TestMergePackages:
    @pytest.fixture(autouse=True)
    def _seeded(self, store: ManifestStore, descriptor: ProjectDescriptor) -> None:
        store.bootstrap_root(descriptor)
        store.seed_staging()

    def test_sorted_and_deduplicated(self, store: ManifestStore) -> None:
        result = store.merge_packages(["b.ZPackage", "a.APackage", "b.ZPackage"])
        assert result == ["a.APackage", "b.ZPackage"]
        assert store.react_packages() == ["a.APackage", "b.ZPackage"]

    def test_empty_written_as_empty_list(self, store: ManifestStore) -> None:
        store.merge_packages([])
        assert _read(store.staging_path)["reactPackages"] == []

    def test_replaces_stale_list(self, store: ManifestStore) -> None:
        store.merge_packages(["old.OldPackage"])
        store.merge_packages([])
        assert store.react_packages() == []

    def test_idempotent(self, store: ManifestStore) -> None:
        refs = ["com.example.FooPackage", "com.lib.BarPackage"]
        store.merge_packages(refs)
        first = store.staging_path.read_bytes()
        store.merge_packages(refs)
        assert store.staging_path.read_bytes() == first

    def test_react_packages_absent(self, tmp_path: Path, quiet_output) -> None:
        assert ManifestStore(tmp_path / "x", tmp_path / "y").react_packages() is None
