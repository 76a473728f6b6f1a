"""Pointer gesture state machine for the MindMap canvas.

Every pointer event is routed through one controller instance, which holds
the active gesture explicitly instead of attaching listeners per node. Pointer
coordinates are screen coordinates; node positions live in canvas space and
are related to the screen by ``screen = canvas * scale + translate``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from PySide6.QtCore import Property, QObject, Signal, Slot

from .config import EditorConfig
from .graph import GraphModel
from .types import Point

logger = logging.getLogger(__name__)


class GestureState(Enum):
    """Interaction states. Only one gesture is active at a time."""

    IDLE = "idle"
    DRAGGING = "dragging"
    PANNING = "panning"


class InteractionController(QObject):
    """Resolves pointer and wheel events into node drags, pans and zooms."""

    transformChanged = Signal()
    gestureChanged = Signal()
    nodePressed = Signal(str, arguments=["nodeId"])

    def __init__(
        self,
        graph: GraphModel,
        config: Optional[EditorConfig] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._graph = graph
        self._config = config or graph.config
        self._translate = Point(0.0, 0.0)
        self._scale = 1.0
        self._state = GestureState.IDLE
        self._drag_node_id = ""
        self._grab_offset = Point(0.0, 0.0)
        self._start_point = Point(0.0, 0.0)

        self._graph.nodeRemoved.connect(self._on_node_removed)
        self._graph.graphCleared.connect(self._reset_gesture)

    # --- Properties exposed to QML -----------------------------------------
    @Property(float, notify=transformChanged)
    def translateX(self) -> float:
        return self._translate.x

    @Property(float, notify=transformChanged)
    def translateY(self) -> float:
        return self._translate.y

    @Property(float, notify=transformChanged)
    def scale(self) -> float:
        return self._scale

    @Property(str, notify=gestureChanged)
    def gesture(self) -> str:
        return self._state.value

    @Property(str, notify=gestureChanged)
    def dragNodeId(self) -> str:
        return self._drag_node_id

    # --- Python accessors ---------------------------------------------------
    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def translate(self) -> Point:
        return self._translate

    @property
    def grab_offset(self) -> Point:
        return self._grab_offset

    def screen_to_canvas(self, x: float, y: float) -> Point:
        return Point((x - self._translate.x) / self._scale, (y - self._translate.y) / self._scale)

    def canvas_to_screen(self, x: float, y: float) -> Point:
        return Point(x * self._scale + self._translate.x, y * self._scale + self._translate.y)

    # --- Pointer events -----------------------------------------------------
    @Slot(float, float, str)
    def pointerDown(self, x: float, y: float, target_id: str = "") -> None:
        """Start a drag on a node or a pan on the background.

        ``target_id`` names the node under the pointer when the view already
        knows it; otherwise the node is found by hit testing.
        """
        if self._state is not GestureState.IDLE:
            logger.debug("Ignoring pointer down during %s gesture", self._state.value)
            return

        canvas = self.screen_to_canvas(x, y)
        if target_id and not self._graph.has_node(target_id):
            target_id = ""
        node_id = target_id or self._graph.node_at(canvas.x, canvas.y)

        if node_id:
            node = self._graph.get_node(node_id)
            self._state = GestureState.DRAGGING
            self._drag_node_id = node_id
            self._grab_offset = Point(node.x - canvas.x, node.y - canvas.y)
            logger.debug("Drag started on %s", node_id)
            self.gestureChanged.emit()
            self.nodePressed.emit(node_id)
            return

        self._state = GestureState.PANNING
        self._start_point = Point(x - self._translate.x, y - self._translate.y)
        logger.debug("Pan started at (%s, %s)", x, y)
        self.gestureChanged.emit()

    @Slot(float, float)
    def pointerMove(self, x: float, y: float) -> None:
        if self._state is GestureState.DRAGGING:
            canvas = self.screen_to_canvas(x, y)
            self._graph.move_node(
                self._drag_node_id,
                canvas.x + self._grab_offset.x,
                canvas.y + self._grab_offset.y,
            )
        elif self._state is GestureState.PANNING:
            self._set_transform(Point(x - self._start_point.x, y - self._start_point.y), self._scale)

    @Slot()
    def pointerUp(self) -> None:
        self._reset_gesture()

    @Slot(float, float, float, result=bool)
    def wheel(self, delta_y: float, x: float, y: float) -> bool:
        """Zoom around the pointer. Returns False when the step is rejected."""
        factor = self._config.zoom_in_factor if delta_y < 0 else self._config.zoom_out_factor
        new_scale = self._scale * factor
        if not self._config.min_scale <= new_scale <= self._config.max_scale:
            logger.debug("Zoom step to %.3f rejected", new_scale)
            return False

        translate = Point(
            x - (x - self._translate.x) * factor,
            y - (y - self._translate.y) * factor,
        )
        self._set_transform(translate, new_scale)
        return True

    # --- View ---------------------------------------------------------------
    @Slot()
    def reset(self) -> None:
        """Reset pan, zoom and any active gesture."""
        self._reset_gesture()
        self._set_transform(Point(0.0, 0.0), 1.0)

    @Slot(float, float, float, float)
    def centerOn(self, x: float, y: float, viewport_width: float, viewport_height: float) -> None:
        """Pan so the canvas point (x, y) sits in the middle of the viewport."""
        self._set_transform(
            Point(viewport_width / 2 - x * self._scale, viewport_height / 2 - y * self._scale),
            self._scale,
        )

    @Slot(str, float, float)
    def centerOnNode(self, node_id: str, viewport_width: float, viewport_height: float) -> None:
        node = self._graph.get_node(node_id)
        if node is None:
            return
        self.centerOn(node.x, node.y, viewport_width, viewport_height)

    def _set_transform(self, translate: Point, scale: float) -> None:
        if translate == self._translate and scale == self._scale:
            return
        self._translate = translate
        self._scale = scale
        self.transformChanged.emit()

    def _reset_gesture(self) -> None:
        changed = self._state is not GestureState.IDLE
        self._state = GestureState.IDLE
        self._drag_node_id = ""
        self._grab_offset = Point(0.0, 0.0)
        self._start_point = Point(0.0, 0.0)
        if changed:
            self.gestureChanged.emit()

    def _on_node_removed(self, node_id: str) -> None:
        if self._state is GestureState.DRAGGING and self._drag_node_id == node_id:
            self._reset_gesture()
