from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError
import pytest

from headless_mermaid.core.config import (
    DEFAULT_BROWSER_ARGS,
    DEFAULT_MERMAID_SCRIPT,
    HeadlessMermaidConfig,
    Viewport,
    resolve_config,
)


def test_defaults() -> None:
    cfg = resolve_config()

    assert cfg.language == "mermaid"
    assert cfg.viewport == Viewport(height=200, width=200)
    assert cfg.mermaid_options == {}
    assert cfg.script == DEFAULT_MERMAID_SCRIPT
    assert cfg.browser_args == DEFAULT_BROWSER_ARGS
    assert "--no-sandbox" in cfg.browser_args


def test_caller_keys_override_defaults() -> None:
    cfg = resolve_config(
        {
            "language": "Diagram",
            "viewport": {"height": 600, "width": 800},
            "mermaid_options": {"theme": "forest"},
        }
    )

    assert cfg.language == "diagram"
    assert cfg.viewport.as_playwright() == {"width": 800, "height": 600}
    assert cfg.mermaid_options == {"theme": "forest"}


def test_mermaid_options_accept_javascript_alias() -> None:
    cfg = resolve_config({"mermaidOptions": {"theme": "dark", "flowchart": {"curve": "basis"}}})

    assert cfg.mermaid_options == {"theme": "dark", "flowchart": {"curve": "basis"}}


def test_merge_is_shallow() -> None:
    cfg = resolve_config({"mermaid_options": {"theme": "neutral"}})

    # Untouched keys keep their defaults.
    assert cfg.viewport == Viewport()
    assert cfg.language == "mermaid"


def test_existing_config_is_returned_as_is() -> None:
    cfg = HeadlessMermaidConfig(language="mermaid", mermaid_script=Path("/opt/mermaid.js"))

    assert resolve_config(cfg) is cfg
    assert cfg.script == Path("/opt/mermaid.js")


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        resolve_config({"theme": "dark"})


def test_viewport_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        resolve_config({"viewport": {"height": 0, "width": 100}})


def test_config_is_immutable() -> None:
    cfg = resolve_config()

    with pytest.raises(ValidationError):
        cfg.language = "dot"  # type: ignore[misc]
