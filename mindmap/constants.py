"""Constants and presets for MindMap diagrams."""

from typing import Dict


DEFAULT_NODE_TEXT = "New Node"
DEFAULT_NODE_COLOR = "#ffffff"

# Node rectangles are centered on the node position.
NODE_WIDTH = 120.0
NODE_HEIGHT = 40.0

CHILD_DISTANCE = 150.0

ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9
MIN_SCALE = 0.2
MAX_SCALE = 5.0

NODE_ID_PREFIX = "node"
CONNECTION_ID_PREFIX = "connection"

STORAGE_KEY = "mindmap"
SETTINGS_ORGANIZATION = "MindMap"
SETTINGS_APPLICATION = "MindMap"


COLOR_PRESETS: Dict[str, str] = {
    "white": "#ffffff",
    "red": "#ffcdd2",
    "green": "#c8e6c9",
    "blue": "#bbdefb",
    "yellow": "#fff9c4",
    "purple": "#e1bee7",
}


def connection_id_for(source_id: str, target_id: str) -> str:
    """Return the deterministic connection id for a source/target pair."""
    return f"{CONNECTION_ID_PREFIX}-{source_id}-{target_id}"
