"""Data types for MindMap graphs.

This module contains the core data structures shared by the graph model,
the interaction controller and the serializer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Tuple


class Point(NamedTuple):
    """An (x, y) pair in canvas or screen space."""

    x: float
    y: float


class EntityKind(Enum):
    """Kinds of entities a context menu can be opened for."""

    NODE = "node"
    CONNECTION = "connection"


@dataclass
class Node:
    """A positioned, labeled vertex on the canvas."""

    id: str
    x: float
    y: float
    text: str = "New Node"
    color: str = "#ffffff"

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)


@dataclass
class Connection:
    """A directed, labeled edge between two nodes."""

    id: str
    source_id: str
    target_id: str
    label: str = ""


@dataclass(frozen=True)
class ConnectionGeometry:
    """Render data derived from a connection's endpoint positions."""

    path: str
    start: Point
    end: Point
    control_points: Tuple[Point, Point]
    midpoint: Point
    angle: float
