"""Exception hierarchy for the headless Mermaid renderer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
import json
import traceback
from typing import Any


UNKNOWN_ERROR_MESSAGE = "unknown error"


class RenderPhase(str, Enum):
    """Stage of the pipeline that produced a failure."""

    BROWSER = "browser"
    MERMAID = "mermaid"
    RENDER = "render"


PHASE_MESSAGES: dict[RenderPhase, str] = {
    RenderPhase.BROWSER: "failed to initialize browser",
    RenderPhase.MERMAID: "failed to initialize mermaid",
    RenderPhase.RENDER: "failed to render SVG",
}


@dataclass(frozen=True, slots=True)
class ErrorCause:
    """Snapshot of an error raised on either side of the page boundary."""

    message: str
    stack: str | None = None
    name: str | None = None

    @classmethod
    def from_payload(cls, raw: Any) -> ErrorCause:
        """Rebuild a cause from the JSON string produced inside the page.

        The page serialises thrown values with their own property names so
        that ``message`` and ``stack`` survive. Anything that does not decode
        to an object with a message still produces a usable cause.
        """
        data = raw
        if isinstance(raw, str):
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                return cls(message=raw.strip() or UNKNOWN_ERROR_MESSAGE)

        match data:
            case Mapping():
                message = data.get("message")
                if not isinstance(message, str) or not message.strip():
                    message = UNKNOWN_ERROR_MESSAGE
                stack = data.get("stack")
                name = data.get("name")
                return cls(
                    message=message,
                    stack=stack if isinstance(stack, str) else None,
                    name=name if isinstance(name, str) else None,
                )
            case str() if data.strip():
                return cls(message=data)
            case _:
                return cls(message=UNKNOWN_ERROR_MESSAGE)

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorCause:
        """Capture a Python exception as a cause."""
        message = str(exc).strip() or exc.__class__.__name__
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(message=message, stack=stack.rstrip() or None, name=exc.__class__.__name__)

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.message, self.stack, self.name))


class HeadlessMermaidError(RuntimeError):
    """Raised when the browser, Mermaid, or a single render fails."""

    def __init__(self, phase: RenderPhase, cause: ErrorCause) -> None:
        self.phase = phase
        self.cause = cause
        message = f"{PHASE_MESSAGES[phase]}: {cause.message}"
        if cause.stack:
            message = f"{message}\n{cause.stack}"
        super().__init__(message)

    def __reduce__(self) -> tuple[Any, ...]:
        # ``args`` holds the formatted message, not the constructor arguments.
        return (type(self), (self.phase, self.cause))

    @classmethod
    def from_exception(cls, phase: RenderPhase, exc: BaseException) -> HeadlessMermaidError:
        """Wrap a Python-side exception for the given phase."""
        return cls(phase, ErrorCause.from_exception(exc))

    @classmethod
    def from_payload(cls, phase: RenderPhase, raw: Any) -> HeadlessMermaidError:
        """Wrap an error serialised inside the browser page."""
        return cls(phase, ErrorCause.from_payload(raw))


__all__ = [
    "PHASE_MESSAGES",
    "UNKNOWN_ERROR_MESSAGE",
    "ErrorCause",
    "HeadlessMermaidError",
    "RenderPhase",
]
