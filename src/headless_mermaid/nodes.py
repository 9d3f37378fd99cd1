"""Locate diagram code blocks inside mdast-shaped document trees."""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from typing import Any


CODE_NODE = "code"
HTML_NODE = "html"

Node = MutableMapping[str, Any]


def walk(tree: Node | None) -> Iterator[Node]:
    """Yield every node of the tree in document (pre-order) order."""
    if tree is None:
        return
    stack: list[Node] = [tree]
    while stack:
        node = stack.pop()
        yield node
        children = node.get("children") or ()
        stack.extend(reversed(list(children)))


def node_language(node: Node) -> str:
    """Return the lower-cased language tag of a code node."""
    return str(node.get("lang") or "").lower()


def mermaid_nodes(tree: Node | None, language: str) -> list[Node]:
    """Return the code nodes tagged with ``language``.

    ``language`` is expected in lower case; nodes without a tag never match a
    non-empty language.
    """
    return [
        node
        for node in walk(tree)
        if node.get("type") == CODE_NODE and node_language(node) == language
    ]


def replace_with_markup(node: Node, markup: str) -> None:
    """Turn a code node into a raw markup node holding ``markup``."""
    node["type"] = HTML_NODE
    node["value"] = markup


__all__ = [
    "CODE_NODE",
    "HTML_NODE",
    "Node",
    "mermaid_nodes",
    "node_language",
    "replace_with_markup",
    "walk",
]
