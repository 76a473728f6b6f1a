"""MindMapManager: the facade the UI talks to.

The manager owns the graph model and the interaction controller, keeps the
selection, forwards every visible change to the renderer, mediates
context-menu actions and runs persistence through the storage collaborator.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Optional, Tuple

from PySide6.QtCore import Property, QObject, Signal, Slot

from .config import EditorConfig
from .constants import COLOR_PRESETS
from .errors import ImportFormatError, OperationResult, UnknownEntityError, ValidationError
from .geometry import random_point_at_distance
from .graph import GraphModel
from .interaction import InteractionController
from .renderer import Renderer
from .serialization import LoadSummary, deserialize_graph, serialize_graph
from .storage import StorageManager, timestamped_export_name
from .types import EntityKind

logger = logging.getLogger(__name__)


class MindMapManager(QObject):
    """Facade combining the graph model, the interaction controller and selection."""

    selectionChanged = Signal()
    importInProgressChanged = Signal()
    contextMenuRequested = Signal(str, str, float, float, arguments=["kind", "entityId", "x", "y"])
    errorOccurred = Signal(str)
    loadCompleted = Signal()

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        renderer: Optional[Renderer] = None,
        storage: Optional[StorageManager] = None,
        rng: Optional[random.Random] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._config = config or EditorConfig()
        self._graph = GraphModel(self._config, self)
        self._controller = InteractionController(self._graph, self._config, self)
        self._renderer = renderer
        self._storage = storage
        self._rng = rng
        self._selected_id = ""
        self._menu_target: Optional[Tuple[EntityKind, str]] = None
        self._pending_import: Optional[int] = None
        self._import_counter = 0
        self._last_load_summary: Optional[LoadSummary] = None

        self._graph.nodeAdded.connect(self._render_node)
        self._graph.nodeChanged.connect(self._render_node)
        self._graph.nodeRemoved.connect(self._on_node_removed)
        self._graph.connectionAdded.connect(self._render_connection)
        self._graph.connectionChanged.connect(self._render_connection)
        self._graph.connectionRemoved.connect(self._on_connection_removed)
        self._graph.graphCleared.connect(self._on_graph_cleared)
        self._controller.nodePressed.connect(self.select)
        self._controller.transformChanged.connect(self._apply_transform)
        if self._storage is not None:
            self._storage.errorOccurred.connect(self.errorOccurred)

    # --- Accessors ----------------------------------------------------------
    @property
    def graph(self) -> GraphModel:
        return self._graph

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def config(self) -> EditorConfig:
        return self._config

    @property
    def last_load_summary(self) -> Optional[LoadSummary]:
        return self._last_load_summary

    @Property(str, notify=selectionChanged)
    def selectedNodeId(self) -> str:
        return self._selected_id

    @Property(bool, notify=importInProgressChanged)
    def importInProgress(self) -> bool:
        return self._pending_import is not None

    def _reject(self, error, message: str) -> bool:
        if self._config.strict:
            raise error(message)
        logger.warning("Ignored manager operation: %s", message)
        return False

    def _fail(self, message: str) -> OperationResult:
        logger.error(message)
        self.errorOccurred.emit(message)
        return OperationResult.failure(message)

    # --- Renderer sync ------------------------------------------------------
    def _render_node(self, node_id: str) -> None:
        node = self._graph.get_node(node_id)
        if self._renderer is not None and node is not None:
            self._renderer.render_node(node, node_id == self._selected_id)

    def _render_connection(self, connection_id: str) -> None:
        connection = self._graph.get_connection(connection_id)
        if self._renderer is not None and connection is not None:
            self._renderer.render_connection(connection, self._graph.geometry(connection_id))

    def _remove_visual(self, entity_id: str) -> None:
        if self._renderer is not None:
            self._renderer.remove_visual(entity_id)

    def _apply_transform(self) -> None:
        if self._renderer is not None:
            translate = self._controller.translate
            self._renderer.apply_transform(translate.x, translate.y, self._controller.scale)

    def _on_node_removed(self, node_id: str) -> None:
        self._remove_visual(node_id)
        if self._menu_target is not None and self._menu_target[1] == node_id:
            self._menu_target = None
        if node_id == self._selected_id:
            self._selected_id = ""
            self.selectionChanged.emit()

    def _on_connection_removed(self, connection_id: str) -> None:
        self._remove_visual(connection_id)
        if self._menu_target is not None and self._menu_target[1] == connection_id:
            self._menu_target = None

    def _on_graph_cleared(self) -> None:
        self._menu_target = None
        if self._selected_id:
            self._selected_id = ""
            self.selectionChanged.emit()
        if self._renderer is not None:
            self._renderer.clear()

    # --- Selection ----------------------------------------------------------
    @Slot(str, result=bool)
    def select(self, node_id: str) -> bool:
        """Select ``node_id``, deselecting the previous node. An empty id clears."""
        if node_id == self._selected_id:
            return True
        if node_id and not self._graph.has_node(node_id):
            return self._reject(UnknownEntityError, f"Unknown node: {node_id!r}")

        previous = self._selected_id
        self._selected_id = node_id
        if previous:
            self._render_node(previous)
        if node_id:
            self._render_node(node_id)
        self.selectionChanged.emit()
        return True

    @Slot()
    def clearSelection(self) -> None:
        self.select("")

    # --- Graph operations ---------------------------------------------------
    @Slot(float, float, str, result=str)
    def createNode(self, x: float, y: float, text: str = "") -> str:
        node = self._graph.create_node(x, y, text or None)
        return node.id

    @Slot(str, result=str)
    def createChildOf(self, parent_id: str) -> str:
        """Create a child at a random point ``child_distance`` away from its parent."""
        parent = self._graph.get_node(parent_id)
        if parent is None:
            self._reject(UnknownEntityError, f"Unknown node: {parent_id!r}")
            return ""
        position = random_point_at_distance(parent.position, self._config.child_distance, self._rng)
        child = self._graph.create_node(position.x, position.y)
        self._graph.add_child(parent_id, child.id)
        self._graph.create_connection(parent_id, child.id)
        return child.id

    @Slot(str, result=bool)
    def deleteNode(self, node_id: str) -> bool:
        if not self._graph.has_node(node_id):
            return self._reject(UnknownEntityError, f"Unknown node: {node_id!r}")
        return self._graph.delete_node(node_id)

    @Slot(result=bool)
    def deleteSelected(self) -> bool:
        if not self._selected_id:
            return False
        return self.deleteNode(self._selected_id)

    @Slot(str, str, result=bool)
    def editNodeText(self, node_id: str, text: str) -> bool:
        return self._graph.update_node_text(node_id, text)

    @Slot(str, str, result=bool)
    def setNodeColor(self, node_id: str, color: str) -> bool:
        return self._graph.update_node_color(node_id, color)

    @Slot(str, str, result=bool)
    def editConnectionLabel(self, connection_id: str, label: str) -> bool:
        return self._graph.update_connection_label(connection_id, label)

    @Slot(str, str, str, result=str)
    def connectNodes(self, source_id: str, target_id: str, label: str = "") -> str:
        connection = self._graph.create_connection(source_id, target_id, label)
        return connection.id if connection is not None else ""

    @Slot(str, result=bool)
    def removeConnection(self, connection_id: str) -> bool:
        return self._graph.remove_connection(connection_id)

    @Slot(float, float, result=str)
    def ensureInitialNode(self, x: float, y: float) -> str:
        """Create and select a first node when the canvas is empty."""
        if self._graph.node_count():
            return ""
        node_id = self.createNode(x, y)
        self.select(node_id)
        return node_id

    @Slot()
    def clear(self) -> None:
        self._graph.clear()

    # --- Context menu -------------------------------------------------------
    @Slot(str, str, float, float, result=bool)
    def requestContextMenu(self, kind: str, entity_id: str, screen_x: float, screen_y: float) -> bool:
        """Ask the context-menu view to open for a node or a connection."""
        try:
            entity_kind = EntityKind(kind)
        except ValueError:
            return self._reject(ValidationError, f"Unknown entity kind: {kind!r}")

        if entity_kind is EntityKind.NODE:
            if not self.select(entity_id):
                return False
        elif self._graph.get_connection(entity_id) is None:
            return self._reject(UnknownEntityError, f"Unknown connection: {entity_id!r}")

        self._menu_target = (entity_kind, entity_id)
        self.contextMenuRequested.emit(entity_kind.value, entity_id, screen_x, screen_y)
        return True

    @Slot(str, str, result=bool)
    def handleContextAction(self, action: str, value: str = "") -> bool:
        """Run a context-menu action against the entity the menu was opened for.

        ``value`` carries the new text for ``edit``/``editConnection`` and the
        color for ``color``, either a preset name or a color value.
        """
        target = self._menu_target
        self._menu_target = None

        if action == "editConnection":
            if target is not None and target[0] is EntityKind.CONNECTION:
                return self.editConnectionLabel(target[1], value)
            if not self._selected_id:
                return False
            changed = False
            for connection in self._graph.connections_of(self._selected_id):
                changed = self.editConnectionLabel(connection.id, value) or changed
            return changed

        node_id = self._selected_id
        if not node_id:
            return False
        if action == "edit":
            return self.editNodeText(node_id, value)
        if action == "addChild":
            return bool(self.createChildOf(node_id))
        if action == "delete":
            return self.deleteSelected()
        if action == "color":
            color = COLOR_PRESETS.get(value, value)
            return bool(color) and self.setNodeColor(node_id, color)

        logger.warning("Unknown context menu action: %s", action)
        return False

    # --- Serialization ------------------------------------------------------
    def serialize(self) -> Dict[str, Any]:
        return serialize_graph(self._graph)

    def deserialize(self, doc: Dict[str, Any]) -> OperationResult:
        """Replace the graph with ``doc``. Malformed documents leave it untouched."""
        try:
            self._last_load_summary = deserialize_graph(self._graph, doc)
        except ImportFormatError as e:
            return self._fail(f"Invalid mind map document: {e}")
        self.loadCompleted.emit()
        return OperationResult.success(doc)

    # --- Persistence --------------------------------------------------------
    def _require_storage(self) -> StorageManager:
        if self._storage is None:
            self._storage = StorageManager(self._config)
            self._storage.errorOccurred.connect(self.errorOccurred)
        return self._storage

    @Slot(result=bool)
    def save(self) -> bool:
        return self._require_storage().save(self.serialize()).ok

    @Slot(result=bool)
    def load(self) -> bool:
        result = self._require_storage().load()
        if not result.ok:
            return False
        return self.deserialize(result.document).ok

    async def export_file(self, file_path: str = "") -> OperationResult:
        doc = self.serialize()
        if not doc["nodes"]:
            return self._fail("No mind map data to save")
        return await self._require_storage().export_file(doc, file_path or timestamped_export_name())

    async def import_file(self, file_path: str) -> OperationResult:
        """Load a document from disk.

        Only one import runs at a time; a second call while one is pending
        fails immediately. A cancelled import's document is dropped.
        """
        if self._pending_import is not None:
            return self._fail("An import is already in progress")

        self._import_counter += 1
        token = self._import_counter
        self._pending_import = token
        self.importInProgressChanged.emit()
        try:
            result = await self._require_storage().import_file(file_path)
        finally:
            cancelled = self._pending_import != token
            if not cancelled:
                self._pending_import = None
                self.importInProgressChanged.emit()

        if cancelled:
            logger.info("Dropped result of cancelled import from %s", file_path)
            return OperationResult(ok=False, cancelled=True)
        if not result.ok:
            return result
        return self.deserialize(result.document)

    @Slot(result=bool)
    def cancelImport(self) -> bool:
        if self._pending_import is None:
            return False
        self._pending_import = None
        self.importInProgressChanged.emit()
        return True
