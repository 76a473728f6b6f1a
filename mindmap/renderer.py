"""Rendering collaborator interface and its Qt list model implementation.

The manager pushes every visible change through :class:`Renderer`. Rendering
is a one-way projection: nothing here is read back as graph state.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from PySide6.QtCore import (
    Property,
    QAbstractListModel,
    QModelIndex,
    Qt,
    Signal,
)

from .types import Connection, ConnectionGeometry, Node


class Renderer(Protocol):
    """Drawing surface the manager keeps in sync with the graph."""

    def render_node(self, node: Node, selected: bool) -> None:
        ...

    def render_connection(self, connection: Connection, geometry: ConnectionGeometry) -> None:
        ...

    def remove_visual(self, entity_id: str) -> None:
        ...

    def apply_transform(self, translate_x: float, translate_y: float, scale: float) -> None:
        ...

    def clear(self) -> None:
        ...


class NodeListModel(QAbstractListModel):
    """Qt model exposing rendered nodes and connections to QML."""

    IdRole = Qt.UserRole + 1
    XRole = Qt.UserRole + 2
    YRole = Qt.UserRole + 3
    TextRole = Qt.UserRole + 4
    ColorRole = Qt.UserRole + 5
    SelectedRole = Qt.UserRole + 6

    nodesChanged = Signal()
    connectionsChanged = Signal()
    transformChanged = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._nodes: List[Node] = []
        self._selected: Dict[str, bool] = {}
        self._connections: Dict[str, Dict[str, Any]] = {}
        self._translate_x = 0.0
        self._translate_y = 0.0
        self._scale = 1.0

    # --- Qt model overrides -------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._nodes)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._nodes)):
            return None

        node = self._nodes[index.row()]
        if role == self.IdRole:
            return node.id
        if role == self.XRole:
            return node.x
        if role == self.YRole:
            return node.y
        if role in (self.TextRole, Qt.DisplayRole):
            return node.text
        if role == self.ColorRole:
            return node.color
        if role == self.SelectedRole:
            return self._selected.get(node.id, False)
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        return {
            self.IdRole: b"nodeId",
            self.XRole: b"x",
            self.YRole: b"y",
            self.TextRole: b"text",
            self.ColorRole: b"color",
            self.SelectedRole: b"selected",
        }

    # --- Properties exposed to QML -----------------------------------------
    @Property(list, notify=connectionsChanged)
    def connections(self) -> List[Dict[str, Any]]:
        return list(self._connections.values())

    @Property(int, notify=nodesChanged)
    def count(self) -> int:
        return len(self._nodes)

    @Property(float, notify=transformChanged)
    def translateX(self) -> float:
        return self._translate_x

    @Property(float, notify=transformChanged)
    def translateY(self) -> float:
        return self._translate_y

    @Property(float, notify=transformChanged)
    def scale(self) -> float:
        return self._scale

    # --- Renderer -----------------------------------------------------------
    def _row_of(self, node_id: str) -> int:
        for row, node in enumerate(self._nodes):
            if node.id == node_id:
                return row
        return -1

    def render_node(self, node: Node, selected: bool) -> None:
        self._selected[node.id] = selected
        row = self._row_of(node.id)
        if row < 0:
            self.beginInsertRows(QModelIndex(), len(self._nodes), len(self._nodes))
            self._nodes.append(node)
            self.endInsertRows()
        else:
            self._nodes[row] = node
            index = self.index(row, 0)
            self.dataChanged.emit(
                index,
                index,
                [self.XRole, self.YRole, self.TextRole, self.ColorRole, self.SelectedRole],
            )
        self.nodesChanged.emit()

    def render_connection(self, connection: Connection, geometry: ConnectionGeometry) -> None:
        self._connections[connection.id] = {
            "id": connection.id,
            "sourceId": connection.source_id,
            "targetId": connection.target_id,
            "label": connection.label,
            "path": geometry.path,
            "midX": geometry.midpoint.x,
            "midY": geometry.midpoint.y,
            "angle": geometry.angle,
        }
        self.connectionsChanged.emit()

    def remove_visual(self, entity_id: str) -> None:
        if self._connections.pop(entity_id, None) is not None:
            self.connectionsChanged.emit()
            return
        row = self._row_of(entity_id)
        if row < 0:
            return
        self.beginRemoveRows(QModelIndex(), row, row)
        self._nodes.pop(row)
        self.endRemoveRows()
        self._selected.pop(entity_id, None)
        self.nodesChanged.emit()

    def apply_transform(self, translate_x: float, translate_y: float, scale: float) -> None:
        self._translate_x = translate_x
        self._translate_y = translate_y
        self._scale = scale
        self.transformChanged.emit()

    def clear(self) -> None:
        if self._nodes:
            self.beginRemoveRows(QModelIndex(), 0, len(self._nodes) - 1)
            self._nodes.clear()
            self.endRemoveRows()
        self._selected.clear()
        self._connections.clear()
        self.nodesChanged.emit()
        self.connectionsChanged.emit()

    # --- Utilities ----------------------------------------------------------
    def connection_data(self, connection_id: str) -> Dict[str, Any]:
        return dict(self._connections.get(connection_id, {}))

    def node_ids(self) -> List[str]:
        return [node.id for node in self._nodes]
