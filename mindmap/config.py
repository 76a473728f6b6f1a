"""Editor configuration for MindMap."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    CHILD_DISTANCE,
    DEFAULT_NODE_COLOR,
    DEFAULT_NODE_TEXT,
    MAX_SCALE,
    MIN_SCALE,
    SETTINGS_APPLICATION,
    SETTINGS_ORGANIZATION,
    STORAGE_KEY,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class EditorConfig:
    """Tunable values for the graph model and the interaction controller.

    ``strict`` turns invariant violations into exceptions. It is meant for
    development and tests; with it off, violations are logged and ignored.
    """

    child_distance: float = CHILD_DISTANCE
    zoom_in_factor: float = ZOOM_IN_FACTOR
    zoom_out_factor: float = ZOOM_OUT_FACTOR
    min_scale: float = MIN_SCALE
    max_scale: float = MAX_SCALE
    default_text: str = DEFAULT_NODE_TEXT
    default_color: str = DEFAULT_NODE_COLOR
    strict: bool = False
    settings_organization: str = SETTINGS_ORGANIZATION
    settings_application: str = SETTINGS_APPLICATION
    storage_key: str = STORAGE_KEY

    def __post_init__(self) -> None:
        if self.min_scale <= 0 or self.min_scale > self.max_scale:
            raise ValueError(f"Invalid scale bounds: [{self.min_scale}, {self.max_scale}]")
        if self.zoom_in_factor <= 1.0:
            raise ValueError(f"Zoom-in factor must be greater than 1: {self.zoom_in_factor}")
        if not 0.0 < self.zoom_out_factor < 1.0:
            raise ValueError(f"Zoom-out factor must be between 0 and 1: {self.zoom_out_factor}")
        if self.child_distance < 0:
            raise ValueError(f"Child distance must not be negative: {self.child_distance}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EditorConfig":
        """Build a config from ``MINDMAP_*`` environment variables."""
        env = os.environ if environ is None else environ
        kwargs = {}
        strict = env.get("MINDMAP_STRICT")
        if strict is not None:
            kwargs["strict"] = strict.strip().lower() in _TRUE_VALUES
        for name, key in (
            ("MINDMAP_CHILD_DISTANCE", "child_distance"),
            ("MINDMAP_MIN_SCALE", "min_scale"),
            ("MINDMAP_MAX_SCALE", "max_scale"),
        ):
            raw = env.get(name)
            if raw is None or not raw.strip():
                continue
            try:
                kwargs[key] = float(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {name}: {raw}") from exc
        return cls(**kwargs)
