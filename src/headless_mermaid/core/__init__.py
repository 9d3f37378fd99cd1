"""Configuration and error primitives shared by the renderer."""

from __future__ import annotations

from .config import HeadlessMermaidConfig, Viewport, resolve_config
from .exceptions import ErrorCause, HeadlessMermaidError, RenderPhase


__all__ = [
    "ErrorCause",
    "HeadlessMermaidConfig",
    "HeadlessMermaidError",
    "RenderPhase",
    "Viewport",
    "resolve_config",
]
