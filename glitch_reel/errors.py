"""Error kinds raised by glitch_reel."""
from __future__ import annotations


class GlitchReelError(Exception):
    """Base class for all glitch_reel failures."""


class ConfigurationError(GlitchReelError, ValueError):
    """Invalid inputs detected before any external job is started."""


class RenderError(GlitchReelError):
    """A per-frame transform request failed."""

    def __init__(self, index: int, diagnostics: str = "") -> None:
        super().__init__(f"frame transform failed for event {index}")
        self.index = index
        self.diagnostics = diagnostics


class EncodeError(GlitchReelError):
    """The final encode exited with a non-zero status."""

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class CompositeError(GlitchReelError):
    """Compositing the reel onto a target video failed."""

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class ProbeWarning(UserWarning):
    """Duration probing failed; a fallback loop count is used instead."""
