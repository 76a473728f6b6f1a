"""Graph model holding MindMap nodes and connections.

Parent/child structure is kept in an ownership index (child id -> parent id
plus an ordered children set per node) instead of mutual object references,
so the one-parent rule is checked in a single place. A second index maps each
node to the connections touching it, which keeps drag updates proportional to
the number of incident edges.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Type

from PySide6.QtCore import QObject, Signal

from .config import EditorConfig
from .constants import NODE_ID_PREFIX, connection_id_for
from .errors import MindMapError, UnknownEntityError, ValidationError
from .geometry import connection_geometry, node_contains
from .types import Connection, ConnectionGeometry, Node

logger = logging.getLogger(__name__)


class GraphModel(QObject):
    """Owns nodes, connections and their structural relations."""

    nodeAdded = Signal(str)
    nodeChanged = Signal(str)
    nodeRemoved = Signal(str)
    connectionAdded = Signal(str)
    connectionChanged = Signal(str)
    connectionRemoved = Signal(str)
    graphCleared = Signal()

    def __init__(self, config: Optional[EditorConfig] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._config = config or EditorConfig()
        self._nodes: Dict[str, Node] = {}
        self._connections: Dict[str, Connection] = {}
        self._geometry: Dict[str, ConnectionGeometry] = {}
        # child id -> parent id
        self._parents: Dict[str, str] = {}
        # node id -> ordered set of child ids
        self._children: Dict[str, Dict[str, None]] = {}
        # node id -> ordered set of incident connection ids
        self._incidence: Dict[str, Dict[str, None]] = {}
        self._next_index = 0

    @property
    def config(self) -> EditorConfig:
        return self._config

    @property
    def nodes(self) -> Dict[str, Node]:
        """Read-only view of the nodes, in insertion order."""
        return dict(self._nodes)

    @property
    def connections(self) -> Dict[str, Connection]:
        """Read-only view of the connections, in insertion order."""
        return dict(self._connections)

    def node_count(self) -> int:
        return len(self._nodes)

    def connection_count(self) -> int:
        return len(self._connections)

    def iter_nodes(self) -> Iterable[Node]:
        return iter(list(self._nodes.values()))

    def iter_connections(self) -> Iterable[Connection]:
        return iter(list(self._connections.values()))

    # --- Invariant handling -------------------------------------------------
    def _reject(self, error: Type[MindMapError], message: str) -> bool:
        if self._config.strict:
            raise error(message)
        logger.warning("Ignored graph operation: %s", message)
        return False

    def _require_node(self, node_id: str) -> Optional[Node]:
        node = self._nodes.get(node_id)
        if node is None:
            self._reject(UnknownEntityError, f"Unknown node: {node_id!r}")
        return node

    # --- Ids ----------------------------------------------------------------
    def _next_id(self) -> str:
        while True:
            node_id = f"{NODE_ID_PREFIX}_{self._next_index}"
            self._next_index += 1
            if node_id not in self._nodes:
                return node_id

    def _reserve_id(self, node_id: str) -> None:
        """Move the id counter past an externally supplied id."""
        parts = node_id.rsplit("_", 1)
        if len(parts) != 2 or parts[0] != NODE_ID_PREFIX:
            return
        try:
            index = int(parts[1])
        except ValueError:
            return
        self._next_index = max(self._next_index, index + 1)

    # --- Lookup -------------------------------------------------------------
    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def find_connection(self, source_id: str, target_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id_for(source_id, target_id))

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def parent_of(self, node_id: str) -> Optional[str]:
        return self._parents.get(node_id)

    def children_of(self, node_id: str) -> List[str]:
        return list(self._children.get(node_id, {}))

    def geometry(self, connection_id: str) -> Optional[ConnectionGeometry]:
        return self._geometry.get(connection_id)

    @staticmethod
    def involves(connection: Connection, node_id: str) -> bool:
        return connection.source_id == node_id or connection.target_id == node_id

    def connections_of(self, node_id: str) -> List[Connection]:
        """Return the connections touching ``node_id`` in insertion order."""
        return [self._connections[cid] for cid in self._incidence.get(node_id, {})]

    def node_at(self, x: float, y: float) -> Optional[str]:
        """Return the topmost node whose rectangle contains the canvas point."""
        for node in reversed(list(self._nodes.values())):
            if node_contains(node.position, (x, y)):
                return node.id
        return None

    # --- Nodes --------------------------------------------------------------
    def create_node(
        self,
        x: float,
        y: float,
        text: Optional[str] = None,
        color: Optional[str] = None,
        node_id: Optional[str] = None,
    ) -> Optional[Node]:
        """Create a parentless node and return it.

        ``node_id`` is only supplied when restoring a saved document. A
        duplicate id is rejected and None is returned.
        """
        if node_id is None:
            node_id = self._next_id()
        elif node_id in self._nodes:
            self._reject(ValidationError, f"Duplicate node id: {node_id!r}")
            return None
        else:
            self._reserve_id(node_id)

        node = Node(
            id=node_id,
            x=float(x),
            y=float(y),
            text=self._config.default_text if text is None else text,
            color=self._config.default_color if color is None else color,
        )
        self._nodes[node_id] = node
        self._children[node_id] = {}
        self._incidence[node_id] = {}
        self.nodeAdded.emit(node_id)
        return node

    def move_node(self, node_id: str, x: float, y: float) -> bool:
        node = self._require_node(node_id)
        if node is None:
            return False
        if node.x == x and node.y == y:
            return True
        node.x = float(x)
        node.y = float(y)
        self.nodeChanged.emit(node_id)
        for connection_id in list(self._incidence[node_id]):
            self._refresh_geometry(connection_id)
        return True

    def update_node_text(self, node_id: str, text: str) -> bool:
        node = self._require_node(node_id)
        if node is None or node.text == text:
            return False
        node.text = text
        self.nodeChanged.emit(node_id)
        return True

    def update_node_color(self, node_id: str, color: str) -> bool:
        node = self._require_node(node_id)
        if node is None or node.color == color:
            return False
        node.color = color
        self.nodeChanged.emit(node_id)
        return True

    def delete_node(self, node_id: str) -> bool:
        """Delete a node, its incident connections and its structural links.

        Children are not deleted: they lose their parent and stay in the graph.
        """
        if self._require_node(node_id) is None:
            return False

        for connection_id in list(self._incidence[node_id]):
            self._drop_connection(connection_id)

        parent_id = self._parents.pop(node_id, None)
        if parent_id is not None:
            self._children[parent_id].pop(node_id, None)

        orphans = list(self._children.pop(node_id))
        for child_id in orphans:
            del self._parents[child_id]

        del self._incidence[node_id]
        del self._nodes[node_id]
        self.nodeRemoved.emit(node_id)
        for child_id in orphans:
            self.nodeChanged.emit(child_id)
        return True

    # --- Parent/child -------------------------------------------------------
    def child_link_error(self, parent_id: str, child_id: str) -> Optional[str]:
        """Return why ``child_id`` cannot be placed under ``parent_id``, or None."""
        if parent_id not in self._nodes:
            return f"Unknown node: {parent_id!r}"
        if child_id not in self._nodes:
            return f"Unknown node: {child_id!r}"
        if parent_id == child_id:
            return f"Node {child_id!r} cannot be its own child"

        current = self._parents.get(child_id)
        if current is not None and current != parent_id:
            return f"Node {child_id!r} already has parent {current!r}"

        ancestor: Optional[str] = parent_id
        while ancestor is not None:
            if ancestor == child_id:
                return f"Adding {child_id!r} under {parent_id!r} would create a cycle"
            ancestor = self._parents.get(ancestor)
        return None

    def add_child(self, parent_id: str, child_id: str) -> bool:
        """Make ``child_id`` a child of ``parent_id``.

        A node has at most one parent; linking it under a second one fails.
        """
        if self._require_node(parent_id) is None or self._require_node(child_id) is None:
            return False
        if self._parents.get(child_id) == parent_id:
            return True
        error = self.child_link_error(parent_id, child_id)
        if error is not None:
            return self._reject(ValidationError, error)

        self._parents[child_id] = parent_id
        self._children[parent_id][child_id] = None
        self.nodeChanged.emit(child_id)
        return True

    def remove_child(self, parent_id: str, child_id: str) -> bool:
        if self._require_node(parent_id) is None or self._require_node(child_id) is None:
            return False
        if self._parents.get(child_id) != parent_id:
            return self._reject(
                ValidationError,
                f"Node {child_id!r} is not a child of {parent_id!r}",
            )
        del self._parents[child_id]
        del self._children[parent_id][child_id]
        self.nodeChanged.emit(child_id)
        return True

    # --- Connections --------------------------------------------------------
    def create_connection(self, source_id: str, target_id: str, label: str = "") -> Optional[Connection]:
        """Create a directed connection, or return the existing one for the pair."""
        if self._require_node(source_id) is None or self._require_node(target_id) is None:
            return None
        if source_id == target_id:
            self._reject(ValidationError, f"Cannot connect node {source_id!r} to itself")
            return None

        connection_id = connection_id_for(source_id, target_id)
        existing = self._connections.get(connection_id)
        if existing is not None:
            return existing

        connection = Connection(connection_id, source_id, target_id, label)
        self._connections[connection_id] = connection
        self._incidence[source_id][connection_id] = None
        self._incidence[target_id][connection_id] = None
        self._geometry[connection_id] = self._compute_geometry(connection)
        self.connectionAdded.emit(connection_id)
        return connection

    def update_connection_label(self, connection_id: str, label: str) -> bool:
        connection = self._connections.get(connection_id)
        if connection is None:
            return self._reject(UnknownEntityError, f"Unknown connection: {connection_id!r}")
        if connection.label == label:
            return False
        connection.label = label
        self.connectionChanged.emit(connection_id)
        return True

    def remove_connection(self, connection_id: str) -> bool:
        if connection_id not in self._connections:
            return self._reject(UnknownEntityError, f"Unknown connection: {connection_id!r}")
        self._drop_connection(connection_id)
        return True

    def _drop_connection(self, connection_id: str) -> None:
        connection = self._connections.pop(connection_id)
        self._geometry.pop(connection_id, None)
        self._incidence[connection.source_id].pop(connection_id, None)
        self._incidence[connection.target_id].pop(connection_id, None)
        self.connectionRemoved.emit(connection_id)

    def _compute_geometry(self, connection: Connection) -> ConnectionGeometry:
        source = self._nodes[connection.source_id]
        target = self._nodes[connection.target_id]
        return connection_geometry(source.position, target.position)

    def _refresh_geometry(self, connection_id: str) -> None:
        self._geometry[connection_id] = self._compute_geometry(self._connections[connection_id])
        self.connectionChanged.emit(connection_id)

    # --- Bulk ---------------------------------------------------------------
    def clear(self) -> None:
        self._nodes.clear()
        self._connections.clear()
        self._geometry.clear()
        self._parents.clear()
        self._children.clear()
        self._incidence.clear()
        self.graphCleared.emit()
