"""Conversion between the graph model and the flat MindMap document format.

Documents look like::

    {"nodes": [{"id", "text", "x", "y", "color", "parentId"}],
     "connections": [{"id", "sourceId", "targetId", "label"}]}

Nodes and connections are written in insertion order so saving the same
graph twice produces the same document.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import connection_id_for
from .errors import ImportFormatError
from .graph import GraphModel

logger = logging.getLogger(__name__)


@dataclass
class LoadSummary:
    """What a call to :func:`deserialize_graph` restored and skipped."""

    nodes: int = 0
    parent_links: int = 0
    connections: int = 0
    labels: int = 0
    skipped: List[str] = field(default_factory=list)


def serialize_graph(graph: GraphModel) -> Dict[str, Any]:
    """Return the document for the current graph."""
    nodes_data = []
    for node in graph.iter_nodes():
        nodes_data.append({
            "id": node.id,
            "text": node.text,
            "x": node.x,
            "y": node.y,
            "color": node.color,
            "parentId": graph.parent_of(node.id),
        })

    connections_data = []
    for connection in graph.iter_connections():
        connections_data.append({
            "id": connection.id,
            "sourceId": connection.source_id,
            "targetId": connection.target_id,
            "label": connection.label,
        })

    return {"nodes": nodes_data, "connections": connections_data}


def _is_number(value: Any) -> bool:
    """True for finite numbers that fit in a float; bools are not numbers here."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _optional_str(record: Dict[str, Any], key: str, where: str) -> None:
    value = record.get(key)
    if value is not None and not isinstance(value, str):
        raise ImportFormatError(f"{where}: '{key}' must be a string")


def validate_document(doc: Any) -> None:
    """Raise :class:`ImportFormatError` unless ``doc`` is a well-formed document."""
    if not isinstance(doc, dict):
        raise ImportFormatError("Document must be a JSON object")

    nodes = doc.get("nodes")
    if not isinstance(nodes, list):
        raise ImportFormatError("Document is missing a 'nodes' list")

    seen = set()
    for index, record in enumerate(nodes):
        where = f"nodes[{index}]"
        if not isinstance(record, dict):
            raise ImportFormatError(f"{where} must be an object")
        node_id = record.get("id")
        if not isinstance(node_id, str) or not node_id:
            raise ImportFormatError(f"{where}: 'id' must be a non-empty string")
        if node_id in seen:
            raise ImportFormatError(f"{where}: duplicate node id {node_id!r}")
        seen.add(node_id)
        for key in ("x", "y"):
            if not _is_number(record.get(key)):
                raise ImportFormatError(f"{where}: '{key}' must be a finite number")
        for key in ("text", "color", "parentId"):
            _optional_str(record, key, where)

    connections = doc.get("connections", [])
    if connections is None:
        return
    if not isinstance(connections, list):
        raise ImportFormatError("'connections' must be a list")
    for index, record in enumerate(connections):
        where = f"connections[{index}]"
        if not isinstance(record, dict):
            raise ImportFormatError(f"{where} must be an object")
        for key in ("sourceId", "targetId"):
            if not isinstance(record.get(key), str):
                raise ImportFormatError(f"{where}: '{key}' must be a string")
        for key in ("id", "label"):
            _optional_str(record, key, where)


def deserialize_graph(graph: GraphModel, doc: Dict[str, Any]) -> LoadSummary:
    """Replace the graph contents with ``doc``.

    The document is validated before anything is cleared, so a malformed
    document leaves the graph untouched. Records that reference missing nodes
    are skipped and listed in the returned summary.
    """
    validate_document(doc)
    graph.clear()
    summary = LoadSummary()

    # Pass 1: nodes, keeping their saved ids.
    for record in doc["nodes"]:
        graph.create_node(
            record["x"],
            record["y"],
            text=record.get("text"),
            color=record.get("color"),
            node_id=record["id"],
        )
        summary.nodes += 1

    # Pass 2: parent links and the connections they imply.
    for record in doc["nodes"]:
        parent_id: Optional[str] = record.get("parentId")
        if not parent_id:
            continue
        child_id = record["id"]
        error = graph.child_link_error(parent_id, child_id)
        if error is not None:
            summary.skipped.append(f"parent link {parent_id} -> {child_id}: {error}")
            continue
        graph.add_child(parent_id, child_id)
        graph.create_connection(parent_id, child_id)
        summary.parent_links += 1

    # Pass 3: labels, plus explicit connections without a parent link.
    for record in doc.get("connections") or []:
        source_id = record["sourceId"]
        target_id = record["targetId"]
        if not graph.has_node(source_id) or not graph.has_node(target_id) or source_id == target_id:
            summary.skipped.append(f"connection {source_id} -> {target_id}: invalid endpoints")
            continue

        label = record.get("label") or ""
        existing = graph.find_connection(source_id, target_id)
        if existing is not None:
            if label:
                graph.update_connection_label(existing.id, label)
                summary.labels += 1
            continue

        expected_id = connection_id_for(source_id, target_id)
        record_id = record.get("id")
        if record_id and record_id != expected_id:
            summary.skipped.append(f"connection {record_id}: id does not match its endpoints")
            continue
        graph.create_connection(source_id, target_id, label)
        summary.connections += 1

    for reason in summary.skipped:
        logger.warning("Skipped while loading document: %s", reason)
    return summary


def document_to_json(doc: Dict[str, Any], indent: Optional[int] = 2) -> str:
    return json.dumps(doc, ensure_ascii=False, indent=indent)


def document_from_json(text: str) -> Dict[str, Any]:
    """Parse and validate a JSON document."""
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ImportFormatError(f"Invalid JSON: {exc}") from exc
    validate_document(doc)
    return doc
