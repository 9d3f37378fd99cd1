"""Configuration models used by the headless Mermaid renderer.

HeadlessMermaidConfig

`language` (`str`)
: Code block language tag selecting the diagrams to render. Matching is
  case-insensitive. Defaults to `mermaid`.

`viewport` (`Viewport`)
: Height and width of the browser page hosting Mermaid. Defaults to 200x200.

`mermaid_options` (`dict[str, Any]`)
: Options forwarded verbatim to `mermaid.initialize`. Accepts the
  `mermaidOptions` alias used by JavaScript configuration files.

`mermaid_script` (`str | Path | None`)
: Local path or URL of the Mermaid bundle injected in the page. Defaults to the
  pinned CDN bundle.

`browser_args` (`tuple[str, ...]`)
: Chromium command line flags. The defaults disable the sandbox so the
  browser starts inside containers.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_LANGUAGE = "mermaid"
DEFAULT_MERMAID_SCRIPT = "https://unpkg.com/mermaid@11/dist/mermaid.min.js"
DEFAULT_BROWSER_ARGS: tuple[str, ...] = ("--no-sandbox", "--disable-setuid-sandbox")


class Viewport(BaseModel):
    """Browser page dimensions in CSS pixels."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    height: int = Field(default=200, gt=0)
    width: int = Field(default=200, gt=0)

    def as_playwright(self) -> dict[str, int]:
        """Return the mapping expected by ``page.set_viewport_size``."""
        return {"width": self.width, "height": self.height}


class HeadlessMermaidConfig(BaseModel):
    """Options controlling diagram selection and rendering."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    language: str = DEFAULT_LANGUAGE
    viewport: Viewport = Field(default_factory=Viewport)
    mermaid_options: dict[str, Any] = Field(default_factory=dict, alias="mermaidOptions")
    mermaid_script: str | Path | None = None
    browser_args: tuple[str, ...] = DEFAULT_BROWSER_ARGS

    @field_validator("language")
    @classmethod
    def normalise_language(cls, value: str) -> str:
        """Lower-case the language so node matching stays case-insensitive."""
        return value.strip().lower()

    @property
    def script(self) -> str | Path:
        """Return the Mermaid bundle location, falling back to the CDN."""
        return self.mermaid_script or DEFAULT_MERMAID_SCRIPT


def resolve_config(
    options: HeadlessMermaidConfig | Mapping[str, Any] | None = None,
) -> HeadlessMermaidConfig:
    """Merge caller options over the defaults.

    Merging is shallow: a caller-supplied key replaces the default value as a
    whole, nested mappings such as ``viewport`` are not combined field by field.
    """
    if options is None:
        return HeadlessMermaidConfig()
    if isinstance(options, HeadlessMermaidConfig):
        return options
    return HeadlessMermaidConfig.model_validate(dict(options))


__all__ = [
    "DEFAULT_BROWSER_ARGS",
    "DEFAULT_LANGUAGE",
    "DEFAULT_MERMAID_SCRIPT",
    "HeadlessMermaidConfig",
    "Viewport",
    "resolve_config",
]
