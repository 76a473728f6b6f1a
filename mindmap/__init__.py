"""MindMap graph interaction engine built with PySide6.

The package holds the node/connection model, the pointer gesture state
machine, connection geometry and the document format used to save and load
mind maps.
"""

from .config import EditorConfig
from .constants import COLOR_PRESETS, connection_id_for
from .errors import (
    ImportFormatError,
    MindMapError,
    OperationResult,
    PersistenceError,
    UnknownEntityError,
    ValidationError,
)
from .graph import GraphModel
from .interaction import GestureState, InteractionController
from .manager import MindMapManager
from .renderer import NodeListModel, Renderer
from .serialization import (
    LoadSummary,
    deserialize_graph,
    document_from_json,
    document_to_json,
    serialize_graph,
    validate_document,
)
from .storage import StorageManager
from .types import Connection, ConnectionGeometry, EntityKind, Node, Point

__all__ = [
    "COLOR_PRESETS",
    "Connection",
    "ConnectionGeometry",
    "EditorConfig",
    "EntityKind",
    "GestureState",
    "GraphModel",
    "ImportFormatError",
    "InteractionController",
    "LoadSummary",
    "MindMapError",
    "MindMapManager",
    "Node",
    "NodeListModel",
    "OperationResult",
    "PersistenceError",
    "Point",
    "Renderer",
    "StorageManager",
    "UnknownEntityError",
    "ValidationError",
    "connection_id_for",
    "deserialize_graph",
    "document_from_json",
    "document_to_json",
    "serialize_graph",
    "validate_document",
]
