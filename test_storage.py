"""Tests for QSettings quick save and file import/export."""

import asyncio
import json
from datetime import datetime

import pytest
from PySide6.QtCore import QSettings, QUrl

from mindmap import EditorConfig, StorageManager
from mindmap.storage import normalize_file_path, timestamped_export_name


DOC = {
    "nodes": [
        {"id": "node_0", "text": "Root, with comma", "x": 0.0, "y": 0.0, "color": "#ffffff", "parentId": None},
    ],
    "connections": [],
}


@pytest.fixture
def settings(app, tmp_path):
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def storage(settings):
    return StorageManager(EditorConfig(), settings)


class TestQuickSave:
    def test_save_then_load(self, storage):
        saved = []
        storage.saveCompleted.connect(saved.append)
        assert storage.save(DOC).ok
        assert saved == ["mindmap"]
        assert storage.hasSavedData()

        result = storage.load()
        assert result.ok
        assert result.document == DOC

    def test_load_without_save_is_not_an_error(self, storage):
        errors = []
        storage.errorOccurred.connect(errors.append)
        result = storage.load()
        assert not result.ok
        assert result.error == ""
        assert errors == []

    def test_corrupted_save_reports_error(self, storage, settings):
        settings.setValue("mindmap", "{oops")
        errors = []
        storage.errorOccurred.connect(errors.append)
        result = storage.load()
        assert not result.ok
        assert "corrupted" in result.error
        assert errors == [result.error]

    def test_delete(self, storage):
        storage.save(DOC)
        assert storage.delete()
        assert not storage.hasSavedData()

    def test_custom_storage_key(self, settings):
        storage = StorageManager(EditorConfig(storage_key="other"), settings)
        storage.save(DOC)
        assert settings.contains("other")
        assert not settings.contains("mindmap")

    def test_unserializable_document(self, storage):
        result = storage.save({"nodes": [object()]})
        assert not result.ok
        assert "Failed to save" in result.error


class TestFiles:
    def test_export_adds_extension(self, storage, tmp_path):
        target = tmp_path / "map"
        result = asyncio.run(storage.export_file(DOC, str(target)))
        assert result.ok
        written = tmp_path / "map.json"
        assert json.loads(written.read_text(encoding="utf-8")) == DOC

    def test_export_accepts_file_url(self, storage, tmp_path):
        url = QUrl.fromLocalFile(str(tmp_path / "url.json")).toString()
        assert asyncio.run(storage.export_file(DOC, url)).ok
        assert (tmp_path / "url.json").exists()

    def test_export_to_missing_directory_fails(self, storage, tmp_path):
        result = asyncio.run(storage.export_file(DOC, str(tmp_path / "missing" / "map.json")))
        assert not result.ok
        assert "Failed to export" in result.error

    def test_import(self, storage, tmp_path):
        path = tmp_path / "in.json"
        path.write_text(json.dumps(DOC), encoding="utf-8")
        loaded = []
        storage.loadCompleted.connect(loaded.append)
        result = asyncio.run(storage.import_file(str(path)))
        assert result.ok
        assert result.document == DOC
        assert loaded == [str(path)]

    def test_import_missing_file(self, storage, tmp_path):
        result = asyncio.run(storage.import_file(str(tmp_path / "nope.json")))
        assert not result.ok
        assert "File not found" in result.error

    def test_import_malformed_file(self, storage, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"nodes": "nope"}', encoding="utf-8")
        result = asyncio.run(storage.import_file(str(path)))
        assert not result.ok
        assert "Invalid mind map file" in result.error

    def test_empty_path(self, storage):
        assert not asyncio.run(storage.import_file("")).ok
        assert not asyncio.run(storage.export_file(DOC, "")).ok


def test_normalize_file_path(tmp_path):
    path = str(tmp_path / "a.json")
    assert normalize_file_path(QUrl.fromLocalFile(path).toString()) == path
    assert normalize_file_path(path) == path


def test_timestamped_export_name():
    name = timestamped_export_name(datetime(2024, 1, 31, 12, 0, 0))
    assert name == "mindmap-2024-01-31T12-00-00.json"
