"""Geometric helpers for node placement and connection rendering.

All functions are pure and operate on ``(x, y)`` pairs. Angles are in
degrees, measured with ``atan2`` so they fall in the range -180..180.
"""

from __future__ import annotations

import math
import random
from typing import Optional, Sequence, Tuple

from .constants import NODE_HEIGHT, NODE_WIDTH
from .types import ConnectionGeometry, Point

Coordinate = Sequence[float]


def distance(p1: Coordinate, p2: Coordinate) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def angle(p1: Coordinate, p2: Coordinate) -> float:
    return math.degrees(math.atan2(p2[1] - p1[1], p2[0] - p1[0]))


def midpoint(p1: Coordinate, p2: Coordinate) -> Point:
    return Point((p1[0] + p2[0]) / 2, (p1[1] + p2[1]) / 2)


def bezier_control_points(p1: Coordinate, p2: Coordinate) -> Tuple[Point, Point]:
    """Return control points at 1/3 and 2/3 along the segment from p1 to p2.

    Control points on the straight line give a visually straight cubic.
    """
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    return (
        Point(p1[0] + dx / 3, p1[1] + dy / 3),
        Point(p1[0] + dx * 2 / 3, p1[1] + dy * 2 / 3),
    )


def bezier_path(p1: Coordinate, p2: Coordinate) -> str:
    """Return SVG-style path data for a cubic curve from p1 to p2."""
    c1, c2 = bezier_control_points(p1, p2)
    return (
        f"M {p1[0]:g} {p1[1]:g} "
        f"C {c1.x:g} {c1.y:g}, {c2.x:g} {c2.y:g}, {p2[0]:g} {p2[1]:g}"
    )


def random_point_at_distance(
    center: Coordinate,
    dist: float,
    rng: Optional[random.Random] = None,
) -> Point:
    """Return a point exactly ``dist`` away from ``center`` at a uniform random angle."""
    theta = (rng or random).random() * math.tau
    return Point(center[0] + math.cos(theta) * dist, center[1] + math.sin(theta) * dist)


def connection_geometry(p1: Coordinate, p2: Coordinate) -> ConnectionGeometry:
    start = Point(float(p1[0]), float(p1[1]))
    end = Point(float(p2[0]), float(p2[1]))
    return ConnectionGeometry(
        path=bezier_path(start, end),
        start=start,
        end=end,
        control_points=bezier_control_points(start, end),
        midpoint=midpoint(start, end),
        angle=angle(start, end),
    )


def node_contains(
    center: Coordinate,
    point: Coordinate,
    width: float = NODE_WIDTH,
    height: float = NODE_HEIGHT,
) -> bool:
    """Return True if ``point`` lies in the node rectangle centered on ``center``."""
    half_w = width / 2
    half_h = height / 2
    return (
        center[0] - half_w <= point[0] <= center[0] + half_w
        and center[1] - half_h <= point[1] <= center[1] + half_h
    )
