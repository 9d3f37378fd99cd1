"""Render a single Mermaid definition inside an initialised page."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
import itertools
import json
import logging
from typing import Any

from .browser import SERIALISE_ERROR_FUNCTION
from .core.exceptions import HeadlessMermaidError, RenderPhase


logger = logging.getLogger(__name__)

MARKER_CLASS = "mermaid"
STRIPPED_ATTRIBUTES: tuple[str, ...] = ("height", "style", "width")
ID_PREFIX = "mermaid"

RENDER_SCRIPT = (
    """
async ([id, definition]) => {
"""
    + SERIALISE_ERROR_FUNCTION
    + """
  try {
    const mermaid = window.mermaid;
    const api = typeof mermaid.render === 'function' ? mermaid : mermaid.mermaidAPI;
    let output = await api.render(id, definition);
    if (output !== null && typeof output === 'object' && 'svg' in output) {
      output = output.svg;
    }
    const container = document.createElement('div');
    container.innerHTML = String(output).trim();
    const element = container.firstElementChild;
    for (const name of %(stripped)s) {
      element.removeAttribute(name);
    }
    element.classList.add(%(marker)s);
    return { success: true, svgCode: element.outerHTML, error: null };
  } catch (e) {
    return { success: false, svgCode: null, error: serialiseError(e) };
  }
}
"""
    % {
        "stripped": json.dumps(list(STRIPPED_ATTRIBUTES)),
        "marker": json.dumps(MARKER_CLASS),
    }
)


def diagram_ids(prefix: str = ID_PREFIX) -> Iterator[str]:
    """Yield ``mermaid0``, ``mermaid1``... for one batch."""
    return (f"{prefix}{index}" for index in itertools.count())


async def render(page: Any, diagram_id: str, definition: str) -> str:
    """Return the post-processed SVG markup for ``definition``.

    ``diagram_id`` must be unique among the renders running on the same page,
    Mermaid uses it as a DOM element id.
    """
    logger.debug("rendering diagram %s", diagram_id)
    try:
        outcome = await page.evaluate(RENDER_SCRIPT, [diagram_id, definition])
    except Exception as exc:
        raise HeadlessMermaidError.from_exception(RenderPhase.RENDER, exc) from exc

    if isinstance(outcome, Mapping) and outcome.get("success"):
        return str(outcome.get("svgCode") or "")

    error = outcome.get("error") if isinstance(outcome, Mapping) else None
    raise HeadlessMermaidError.from_payload(RenderPhase.RENDER, error)


__all__ = [
    "ID_PREFIX",
    "MARKER_CLASS",
    "RENDER_SCRIPT",
    "STRIPPED_ATTRIBUTES",
    "diagram_ids",
    "render",
]
