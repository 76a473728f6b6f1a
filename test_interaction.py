"""Tests for the pointer gesture state machine."""

import pytest

from mindmap import EditorConfig, GestureState, GraphModel, InteractionController


@pytest.fixture
def graph(app):
    return GraphModel()


@pytest.fixture
def controller(graph):
    return InteractionController(graph)


def _pan(controller, dx, dy):
    controller.pointerDown(0.0, 0.0, "")
    controller.pointerMove(dx, dy)
    controller.pointerUp()


class TestPan:
    def test_background_press_starts_pan(self, controller):
        controller.pointerDown(10.0, 10.0, "")
        assert controller.state is GestureState.PANNING
        assert controller.gesture == "panning"

    def test_pan_follows_pointer(self, controller):
        _pan(controller, 10.0, 10.0)
        assert controller.translate == (10.0, 10.0)

        controller.pointerDown(50.0, 50.0, "")
        controller.pointerMove(80.0, 80.0)
        assert controller.translateX == 40.0
        assert controller.translateY == 40.0

    def test_pointer_up_ends_gesture(self, controller):
        controller.pointerDown(0.0, 0.0, "")
        controller.pointerUp()
        assert controller.state is GestureState.IDLE
        controller.pointerMove(100.0, 100.0)
        assert controller.translate == (0.0, 0.0)

    def test_transform_signal(self, controller):
        emitted = []
        controller.transformChanged.connect(lambda: emitted.append(True))
        _pan(controller, 5.0, 0.0)
        assert emitted == [True]


class TestDrag:
    def test_drag_keeps_grab_offset(self, graph, controller):
        node = graph.create_node(100, 100)
        controller.pointerDown(110.0, 105.0, node.id)
        assert controller.state is GestureState.DRAGGING
        assert controller.dragNodeId == node.id
        assert controller.grab_offset == (-10.0, -5.0)

        controller.pointerMove(200.0, 200.0)
        assert node.position == (190.0, 195.0)

    def test_target_found_by_hit_test(self, graph, controller):
        node = graph.create_node(100, 100)
        controller.pointerDown(100.0, 100.0, "")
        assert controller.dragNodeId == node.id

    def test_unknown_target_falls_back_to_hit_test(self, graph, controller):
        controller.pointerDown(500.0, 500.0, "missing")
        assert controller.state is GestureState.PANNING

    def test_drag_after_pan_uses_canvas_space(self, graph, controller):
        node = graph.create_node(100, 100)
        _pan(controller, 50.0, 20.0)
        controller.pointerDown(150.0, 120.0, "")
        assert controller.dragNodeId == node.id
        controller.pointerMove(250.0, 220.0)
        assert node.position == (200.0, 200.0)

    def test_drag_when_zoomed(self, graph, controller):
        node = graph.create_node(100, 100)
        controller.wheel(-100.0, 0.0, 0.0)
        screen = controller.canvas_to_screen(100.0, 100.0)
        controller.pointerDown(screen.x, screen.y, node.id)
        controller.pointerMove(screen.x + 11.0, screen.y)
        assert node.x == pytest.approx(110.0)
        assert node.y == pytest.approx(100.0)

    def test_press_emits_node_pressed(self, graph, controller):
        node = graph.create_node(0, 0)
        pressed = []
        controller.nodePressed.connect(pressed.append)
        controller.pointerDown(0.0, 0.0, node.id)
        assert pressed == [node.id]

    def test_drag_moves_connections(self, graph, controller):
        a = graph.create_node(0, 0)
        b = graph.create_node(300, 0)
        connection = graph.create_connection(a.id, b.id)
        controller.pointerDown(300.0, 0.0, b.id)
        controller.pointerMove(300.0, 100.0)
        assert graph.geometry(connection.id).end == (300.0, 100.0)

    def test_press_during_gesture_is_ignored(self, graph, controller):
        a = graph.create_node(0, 0)
        b = graph.create_node(300, 300)
        controller.pointerDown(0.0, 0.0, a.id)
        controller.pointerDown(300.0, 300.0, b.id)
        assert controller.dragNodeId == a.id
        controller.pointerMove(10.0, 10.0)
        assert b.position == (300.0, 300.0)
        assert a.position == (10.0, 10.0)

    def test_deleting_dragged_node_resets_gesture(self, graph, controller):
        node = graph.create_node(0, 0)
        controller.pointerDown(0.0, 0.0, node.id)
        graph.delete_node(node.id)
        assert controller.state is GestureState.IDLE
        controller.pointerMove(50.0, 50.0)
        assert graph.node_count() == 0

    def test_clearing_graph_resets_gesture(self, graph, controller):
        node = graph.create_node(0, 0)
        controller.pointerDown(0.0, 0.0, node.id)
        graph.clear()
        assert controller.state is GestureState.IDLE


class TestZoom:
    def test_zoom_in_keeps_point_under_cursor(self, controller):
        before = controller.screen_to_canvas(100.0, 100.0)
        assert controller.wheel(-100.0, 100.0, 100.0) is True
        assert controller.scale == pytest.approx(1.1)
        assert controller.translateX == pytest.approx(-10.0)
        assert controller.translateY == pytest.approx(-10.0)
        after = controller.screen_to_canvas(100.0, 100.0)
        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)

    def test_zoom_out(self, controller):
        assert controller.wheel(100.0, 0.0, 0.0) is True
        assert controller.scale == pytest.approx(0.9)

    def test_zoom_out_stops_at_minimum(self, controller):
        results = [controller.wheel(100.0, 0.0, 0.0) for _ in range(16)]
        assert results[:15] == [True] * 15
        assert results[15] is False
        assert controller.scale >= 0.2

    def test_zoom_in_stops_at_maximum(self, controller):
        results = [controller.wheel(-100.0, 0.0, 0.0) for _ in range(17)]
        assert results[:16] == [True] * 16
        assert results[16] is False
        assert controller.scale <= 5.0

    def test_rejected_step_leaves_transform_alone(self, app):
        graph = GraphModel(EditorConfig(min_scale=1.0))
        controller = InteractionController(graph)
        assert controller.wheel(100.0, 50.0, 50.0) is False
        assert controller.scale == 1.0
        assert controller.translate == (0.0, 0.0)

    def test_bounds_are_inclusive(self, app):
        graph = GraphModel(EditorConfig(min_scale=0.9))
        controller = InteractionController(graph)
        assert controller.wheel(100.0, 0.0, 0.0) is True
        assert controller.scale == 0.9


class TestView:
    def test_reset(self, controller):
        controller.wheel(-100.0, 30.0, 30.0)
        _pan(controller, 10.0, 10.0)
        controller.reset()
        assert controller.scale == 1.0
        assert controller.translate == (0.0, 0.0)

    def test_center_on_node(self, graph, controller):
        node = graph.create_node(100, 50)
        controller.centerOnNode(node.id, 800.0, 600.0)
        assert controller.canvas_to_screen(100.0, 50.0) == (400.0, 300.0)

    def test_screen_canvas_round_trip(self, controller):
        controller.wheel(-100.0, 40.0, 70.0)
        screen = controller.canvas_to_screen(12.0, 34.0)
        canvas = controller.screen_to_canvas(screen.x, screen.y)
        assert canvas.x == pytest.approx(12.0)
        assert canvas.y == pytest.approx(34.0)
