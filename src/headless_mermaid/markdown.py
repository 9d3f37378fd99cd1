"""Markdown extension replacing fenced Mermaid blocks with inline SVG."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from markdown import Markdown
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor

from .core.config import HeadlessMermaidConfig
from .nodes import CODE_NODE, Node
from .pipeline import process_sync


@dataclass(slots=True)
class _FencedDiagram:
    start: int
    end: int
    indent: str
    node: Node


class _HeadlessMermaidPreprocessor(Preprocessor):
    """Render matching fences in one browser session and stash the SVG."""

    def __init__(self, md: Markdown, config: HeadlessMermaidConfig) -> None:
        super().__init__(md)
        self.config = config

    def run(self, lines: list[str]) -> list[str]:  # type: ignore[override]
        diagrams = self._collect(lines)
        if not diagrams:
            return lines

        tree: Node = {"type": "root", "children": [item.node for item in diagrams]}
        process_sync(tree, self.config)

        result: list[str] = []
        cursor = 0
        for item in diagrams:
            result.extend(lines[cursor : item.start])
            placeholder = self.md.htmlStash.store(item.node["value"])
            result.extend(["", f"{item.indent}{placeholder}", ""])
            cursor = item.end + 1
        result.extend(lines[cursor:])
        return result

    def _collect(self, lines: list[str]) -> list[_FencedDiagram]:
        diagrams: list[_FencedDiagram] = []
        index = 0
        length = len(lines)

        while index < length:
            stripped = lines[index].lstrip()
            if not self._looks_like_fence_start(stripped):
                index += 1
                continue

            fence_char = stripped[0]
            fence_len = self._fence_length(stripped)
            indent = lines[index][: len(lines[index]) - len(stripped)]
            info = stripped[fence_len:].strip()

            end = index + 1
            while end < length and not self._is_fence_end(
                lines[end].lstrip(), fence_char, fence_len
            ):
                end += 1
            if end >= length:
                # Unterminated fence: leave the rest of the document alone.
                break

            language = self._info_language(info)
            if language == self.config.language:
                body = [self._dedent(line, indent) for line in lines[index + 1 : end]]
                node: Node = {"type": CODE_NODE, "lang": language, "value": "\n".join(body)}
                diagrams.append(_FencedDiagram(index, end, indent, node))
            index = end + 1

        return diagrams

    def _looks_like_fence_start(self, stripped: str) -> bool:
        if not stripped:
            return False
        char = stripped[0]
        if char not in {"`", "~"}:
            return False
        return stripped.startswith(char * 3)

    def _is_fence_end(self, stripped: str, fence_char: str, fence_len: int) -> bool:
        candidate = stripped.rstrip()
        return (
            len(candidate) >= fence_len
            and candidate.startswith(fence_char * fence_len)
            and not candidate.strip(fence_char)
        )

    def _fence_length(self, stripped: str) -> int:
        char = stripped[0]
        count = 0
        for ch in stripped:
            if ch == char:
                count += 1
            else:
                break
        return count

    @staticmethod
    def _info_language(info: str) -> str:
        if not info:
            return ""
        token = info.split(maxsplit=1)[0]
        return token.lstrip("{.").rstrip("}").lower()

    @staticmethod
    def _dedent(line: str, indent: str) -> str:
        if indent and line.startswith(indent):
            return line[len(indent) :]
        return line


class HeadlessMermaidExtension(Extension):
    """Register the Mermaid fence preprocessor."""

    def __init__(self, **kwargs: Any) -> None:
        self.config = {
            "language": ["mermaid", "Fence language rendered as a diagram."],
            "viewport": [{}, "Browser viewport as a mapping with height and width."],
            "mermaid_options": [{}, "Options forwarded to mermaid.initialize."],
            "mermaid_script": ["", "Path or URL of the Mermaid bundle to inject."],
        }
        super().__init__(**kwargs)

    def build_config(self) -> HeadlessMermaidConfig:
        """Translate the extension settings into renderer options."""
        options: dict[str, Any] = {"language": self.getConfig("language") or "mermaid"}
        viewport = self.getConfig("viewport")
        if isinstance(viewport, Mapping) and viewport:
            options["viewport"] = dict(viewport)
        mermaid_options = self.getConfig("mermaid_options")
        if isinstance(mermaid_options, Mapping):
            options["mermaid_options"] = dict(mermaid_options)
        script = self.getConfig("mermaid_script")
        if script:
            options["mermaid_script"] = script
        return HeadlessMermaidConfig.model_validate(options)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        processor = _HeadlessMermaidPreprocessor(md, self.build_config())
        if not md.is_block_level("svg"):
            # Keeps the stashed SVG out of a wrapping paragraph.
            add = getattr(md.block_level_elements, "add", None) or md.block_level_elements.append
            add("svg")
        # Above fenced_code_block (25) so the fences are still raw text.
        md.preprocessors.register(processor, "headless_mermaid", priority=28)


def makeExtension(  # noqa: N802 - Markdown expects this entry point name
    **kwargs: Any,
) -> HeadlessMermaidExtension:  # pragma: no cover - entry point
    return HeadlessMermaidExtension(**kwargs)


__all__ = ["HeadlessMermaidExtension", "makeExtension"]
