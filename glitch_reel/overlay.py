"""Placement math for compositing the reel onto a longer video."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import COMPOSITE_FPS, FALLBACK_LOOP_COUNT, POSITIONS
from .errors import ConfigurationError


@dataclass(frozen=True)
class OverlayPlacement:
    position: str
    margin: int
    x_expr: str
    y_expr: str
    loop_count: int
    clamp_duration: Optional[float]

    @property
    def overlay_expr(self) -> str:
        return f"{self.x_expr}:{self.y_expr}"

    def resolve(self, main_w: int, main_h: int, overlay_w: int, overlay_h: int) -> Tuple[int, int]:
        """Evaluate the placement for concrete frame sizes."""
        right = self.position.endswith("right")
        bottom = self.position.startswith("bottom")
        x = main_w - overlay_w - self.margin if right else self.margin
        y = main_h - overlay_h - self.margin if bottom else self.margin
        return x, y


def _anchor_exprs(position: str, margin: int) -> Tuple[str, str]:
    far_x = f"main_w-overlay_w-{margin}"
    far_y = f"main_h-overlay_h-{margin}"
    near = str(margin)
    return {
        "bottom-right": (far_x, far_y),
        "bottom-left": (near, far_y),
        "top-right": (far_x, near),
        "top-left": (near, near),
    }[position]


def place(
    target_duration: Optional[float],
    clip_duration: float,
    position: str = "bottom-right",
    margin: int = 20,
) -> OverlayPlacement:
    """Compute loop count, position formulas and duration clamp.

    ``target_duration`` may be ``None`` (or non-positive) when probing
    failed; the reel is then looped :data:`FALLBACK_LOOP_COUNT` times and the
    output is not clamped.
    """
    if clip_duration <= 0:
        raise ConfigurationError(f"clip duration must be > 0 (got {clip_duration})")
    if margin < 0:
        raise ConfigurationError(f"margin must be >= 0 (got {margin})")
    if position not in POSITIONS:
        logging.warning("unknown position %r, using bottom-right", position)
        position = "bottom-right"

    known = target_duration is not None and target_duration > 0
    if known:
        loop_count = max(1, math.ceil(target_duration / clip_duration))
    else:
        loop_count = FALLBACK_LOOP_COUNT
    x_expr, y_expr = _anchor_exprs(position, margin)
    return OverlayPlacement(
        position=position,
        margin=margin,
        x_expr=x_expr,
        y_expr=y_expr,
        loop_count=loop_count,
        clamp_duration=float(target_duration) if known else None,
    )


def composite_command(
    target: str,
    clip: str,
    output: str,
    placement: OverlayPlacement,
    profile: Dict[str, object],
) -> List[str]:
    """Return ffmpeg arguments that loop *clip* over *target*."""
    filter_complex = (
        f"[0:v]fps={COMPOSITE_FPS}[base];"
        f"[1:v]fps={COMPOSITE_FPS}[overlay];"
        f"[base][overlay]overlay={placement.overlay_expr}:shortest=0:format=auto"
    )
    args = [
        "-i", target,
        "-stream_loop", str(placement.loop_count - 1),
        "-i", clip,
        "-filter_complex", filter_complex,
        "-c:v", profile["codec"],
        "-c:a", "copy",
        "-preset", profile["preset"],
        "-crf", profile["crf"],
        *profile["extra"],
    ]
    if placement.clamp_duration is not None:
        args.extend(["-t", str(placement.clamp_duration)])
    args.extend(["-y", output])
    return args
