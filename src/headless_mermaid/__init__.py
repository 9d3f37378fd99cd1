"""Render Mermaid code blocks to inline SVG with a headless browser."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from .browser import MermaidSession, close_session, launch_session, open_session
from .core.config import HeadlessMermaidConfig, Viewport, resolve_config
from .core.exceptions import ErrorCause, HeadlessMermaidError, RenderPhase
from .nodes import mermaid_nodes
from .pipeline import process, process_sync, render_graphs, render_graphs_sync
from .render import render


try:
    __version__ = _pkg_version("headless-mermaid")
except PackageNotFoundError:
    __version__ = "0.0.0"


__all__ = [
    "ErrorCause",
    "HeadlessMermaidConfig",
    "HeadlessMermaidError",
    "MermaidSession",
    "RenderPhase",
    "Viewport",
    "__version__",
    "close_session",
    "launch_session",
    "mermaid_nodes",
    "open_session",
    "process",
    "process_sync",
    "render",
    "render_graphs",
    "render_graphs_sync",
    "resolve_config",
]
