"""Entry points rendering every Mermaid block of a document in one session."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterable, Mapping, Sequence
import logging
from threading import Thread
from typing import Any, TypeVar

from .browser import MermaidSession, open_session
from .core.config import HeadlessMermaidConfig, resolve_config
from .nodes import Node, mermaid_nodes, replace_with_markup
from .render import diagram_ids, render


logger = logging.getLogger(__name__)

T = TypeVar("T")

Options = HeadlessMermaidConfig | Mapping[str, Any] | None


async def render_batch(session: MermaidSession, definitions: Sequence[str]) -> list[str]:
    """Render all definitions concurrently on the session page.

    Every render settles before this returns or raises. When renders fail, the
    first failure in input order is raised.
    """
    ids = diagram_ids()
    results = await asyncio.gather(
        *(render(session.page, next(ids), definition) for definition in definitions),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


async def _render_definitions(
    definitions: Sequence[str], config: HeadlessMermaidConfig
) -> list[str]:
    async with open_session(
        config.viewport,
        config.mermaid_options,
        script=config.script,
        browser_args=config.browser_args,
    ) as session:
        return await render_batch(session, definitions)


async def render_graphs(definitions: Iterable[str], options: Options = None) -> list[str]:
    """Render raw Mermaid definitions and return SVG markup in input order."""
    config = resolve_config(options)
    batch = list(definitions)
    if not batch:
        return []
    return await _render_definitions(batch, config)


async def process(tree: Node | None, options: Options = None) -> None:
    """Replace the Mermaid code blocks of an mdast tree with rendered SVG.

    The browser is only started when the tree holds at least one matching
    block. Nodes are rewritten only once every diagram rendered successfully.
    """
    config = resolve_config(options)
    nodes = mermaid_nodes(tree, config.language)
    if not nodes:
        logger.debug("no '%s' code blocks to render", config.language)
        return

    definitions = [str(node.get("value") or "") for node in nodes]
    markups = await _render_definitions(definitions, config)
    for node, markup in zip(nodes, markups, strict=True):
        replace_with_markup(node, markup)
    logger.debug("rendered %d '%s' diagrams", len(nodes), config.language)


class _LoopWorker:
    """Run a coroutine to completion on a dedicated thread."""

    @classmethod
    def run(cls, coro: Coroutine[Any, Any, T]) -> T:
        result: list[T] = []
        error: list[BaseException] = []

        def target() -> None:
            try:
                result.append(asyncio.run(coro))
            except BaseException as exc:  # pragma: no cover - pass through
                error.append(exc)

        thread = Thread(target=target, name="headless-mermaid", daemon=True)
        thread.start()
        thread.join()

        if error:
            raise error[0]
        return result[0]


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` from synchronous code, even under a running event loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    return _LoopWorker.run(coro)


def process_sync(tree: Node | None, options: Options = None) -> None:
    """Blocking variant of :func:`process`."""
    run_sync(process(tree, options))


def render_graphs_sync(definitions: Iterable[str], options: Options = None) -> list[str]:
    """Blocking variant of :func:`render_graphs`."""
    return run_sync(render_graphs(definitions, options))


__all__ = [
    "process",
    "process_sync",
    "render_batch",
    "render_graphs",
    "render_graphs_sync",
    "run_sync",
]
