"""Persistence for MindMap documents.

Quick save/load goes through ``QSettings`` under a single key, the desktop
counterpart of browser local storage. File import and export are coroutines
that push the byte I/O to the default executor so the event loop never blocks
on disk access.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from PySide6.QtCore import QObject, QSettings, QUrl, Signal, Slot

from .config import EditorConfig
from .errors import ImportFormatError, OperationResult, PersistenceError
from .serialization import document_from_json, document_to_json

logger = logging.getLogger(__name__)


def normalize_file_path(file_path: str) -> str:
    """Convert file URLs into local paths, including Windows file URLs."""
    if file_path.startswith("file:"):
        url = QUrl(file_path)
        if url.isLocalFile():
            file_path = url.toLocalFile()
        else:
            file_path = url.path()
    if os.name == "nt" and file_path.startswith("/") and len(file_path) > 2 and file_path[2] == ":":
        file_path = file_path[1:]
    return file_path


def timestamped_export_name(now: Optional[datetime] = None) -> str:
    """Return a file name like ``mindmap-2024-01-31T12-00-00.json``."""
    stamp = (now or datetime.now()).isoformat(timespec="seconds").replace(":", "-")
    return f"mindmap-{stamp}.json"


def _write_text(path: str, text: str) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as exc:
        raise PersistenceError(f"Cannot write {path}: {exc}") from exc


def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise PersistenceError(f"Cannot read {path}: {exc}") from exc


class StorageManager(QObject):
    """Saves and loads documents, reporting failures as results and signals."""

    saveCompleted = Signal(str)  # Emitted with the storage key or file path
    loadCompleted = Signal(str)  # Emitted with the storage key or file path
    errorOccurred = Signal(str)  # Emitted with error message on failure

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        settings: Optional[QSettings] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._config = config or EditorConfig()
        self._key = self._config.storage_key
        if settings is None:
            settings = QSettings(self._config.settings_organization, self._config.settings_application)
        self._settings = settings

    def _fail(self, message: str) -> OperationResult:
        logger.error(message)
        self.errorOccurred.emit(message)
        return OperationResult.failure(message)

    # --- Quick save ---------------------------------------------------------
    def save(self, doc: Dict[str, Any]) -> OperationResult:
        try:
            payload = json.dumps(doc, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            return self._fail(f"Failed to save mind map: {e}")
        self._settings.setValue(self._key, payload)
        self._settings.sync()
        if self._settings.status() != QSettings.Status.NoError:
            return self._fail("Failed to save mind map: settings storage is not writable")
        logger.info("Mind map saved under %r", self._key)
        self.saveCompleted.emit(self._key)
        return OperationResult.success(doc)

    def load(self) -> OperationResult:
        """Return the saved document; a missing save is not an error."""
        stored = self._settings.value(self._key)
        # INI-backed settings may split unquoted values on commas
        if isinstance(stored, list):
            stored = ",".join(str(part) for part in stored)
        if not stored:
            logger.info("No saved mind map under %r", self._key)
            return OperationResult(ok=False)
        try:
            doc = document_from_json(str(stored))
        except ImportFormatError as e:
            return self._fail(f"Saved mind map is corrupted: {e}")
        logger.info("Mind map loaded from %r", self._key)
        self.loadCompleted.emit(self._key)
        return OperationResult.success(doc)

    @Slot(result=bool)
    def delete(self) -> bool:
        self._settings.remove(self._key)
        self._settings.sync()
        return self._settings.status() == QSettings.Status.NoError

    @Slot(result=bool)
    def hasSavedData(self) -> bool:
        return bool(self._settings.value(self._key))

    # --- Files --------------------------------------------------------------
    async def export_file(self, doc: Dict[str, Any], file_path: str) -> OperationResult:
        """Write ``doc`` as pretty-printed JSON, adding a ``.json`` extension if needed."""
        file_path = normalize_file_path(file_path)
        if not file_path:
            return self._fail("No file path specified")
        if not file_path.endswith(".json"):
            file_path += ".json"

        text = document_to_json(doc)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _write_text, file_path, text)
        except PersistenceError as e:
            return self._fail(f"Failed to export mind map: {e}")
        logger.info("Mind map exported to %s", file_path)
        self.saveCompleted.emit(file_path)
        return OperationResult.success(doc)

    async def import_file(self, file_path: str) -> OperationResult:
        file_path = normalize_file_path(file_path)
        if not file_path:
            return self._fail("No file path specified")
        if not Path(file_path).exists():
            return self._fail(f"File not found: {file_path}")

        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, _read_text, file_path)
        except PersistenceError as e:
            return self._fail(f"Failed to import mind map: {e}")
        try:
            doc = document_from_json(text)
        except ImportFormatError as e:
            return self._fail(f"Invalid mind map file: {e}")
        logger.info("Mind map imported from %s", file_path)
        self.loadCompleted.emit(file_path)
        return OperationResult.success(doc)
