"""Glitch effect pipeline.

Two kinds of effects are layered by :class:`EffectLevel`:

* per-frame ImageMagick stages, baked into every prepared frame;
* temporal ffmpeg filter stages, applied once to the concatenated reel.

Both are selected from ordered tables keyed by the minimum level at which a
stage appears, so level ``k`` is always a superset of level ``k - 1`` and the
stage order is fixed by the table rather than by control flow.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple

from .errors import ConfigurationError


class EffectLevel(IntEnum):
    CLEAN = 0
    SCANLINES = 1
    NOISE = 2
    CHAOS = 3

    @classmethod
    def coerce(cls, value) -> "EffectLevel":
        try:
            return cls(int(value))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"glitch level must be within 0..3 (got {value!r})"
            ) from e


@dataclass(frozen=True)
class FrameStage:
    name: str
    args: Tuple[str, ...]


@dataclass(frozen=True)
class FilterStage:
    name: str
    segments: Tuple[str, ...]


FRAME_STAGES: Tuple[Tuple[EffectLevel, FrameStage], ...] = (
    (EffectLevel.SCANLINES, FrameStage("color_shift", ("-modulate", "100,110,100"))),
    (
        EffectLevel.NOISE,
        FrameStage("impulse_noise", ("-attenuate", "0.3", "+noise", "Impulse")),
    ),
    (
        EffectLevel.CHAOS,
        FrameStage("channel_offset", ("-channel", "R", "-evaluate", "add", "5")),
    ),
)

# every third row forced opaque, other rows keep their alpha
_SCANLINE_GEQ = (
    r"[a]geq='r=r(X,Y):g=g(X,Y):b=b(X,Y):"
    r"a=if(not(mod(Y\,3))\,255\,a(X,Y))'[scanlines]"
)

FILTER_STAGES: Tuple[Tuple[EffectLevel, FilterStage], ...] = (
    (EffectLevel.CLEAN, FilterStage("format", ("format=yuva420p",))),
    (
        EffectLevel.SCANLINES,
        FilterStage(
            "scanlines",
            ("split[a][b]", _SCANLINE_GEQ, "[b][scanlines]overlay"),
        ),
    ),
    (EffectLevel.NOISE, FilterStage("noise", ("noise=alls=10:allf=t+u",))),
    (
        EffectLevel.CHAOS,
        FilterStage(
            "chromatic_shift",
            (
                "split[main][dup]",
                "[dup]lutrgb=r=0:b=0,crop=iw-4:ih:2:0[green]",
                "[main][green]overlay=0:0",
            ),
        ),
    ),
)


def frame_stages(level) -> List[FrameStage]:
    level = EffectLevel.coerce(level)
    return [stage for min_level, stage in FRAME_STAGES if level >= min_level]


def filter_stages(level) -> List[FilterStage]:
    level = EffectLevel.coerce(level)
    return [stage for min_level, stage in FILTER_STAGES if level >= min_level]


@dataclass(frozen=True)
class TransformSpec:
    """Static ImageMagick transform for one prepared frame."""

    size: int
    rotation: float
    background: str = "none"
    stages: Tuple[FrameStage, ...] = ()

    def magick_args(self) -> List[str]:
        square = f"{self.size}x{self.size}"
        args = [
            "-resize", f"{square}^",
            "-gravity", "center",
            "-extent", square,
            "-background", self.background,
            "-rotate", f"{self.rotation:.2f}",
            "-gravity", "center",
            "-extent", square,
        ]
        for stage in self.stages:
            args.extend(stage.args)
        return args


def transform_for(event, level, size: int) -> TransformSpec:
    """Return the transform for *event* at glitch *level*."""
    if size <= 0:
        raise ConfigurationError(f"frame size must be > 0 (got {size})")
    return TransformSpec(
        size=int(size),
        rotation=float(event.rotation),
        stages=tuple(frame_stages(level)),
    )


@dataclass(frozen=True)
class FilterGraph:
    stages: Tuple[FilterStage, ...]

    @property
    def stage_names(self) -> List[str]:
        return [s.name for s in self.stages]

    def render(self) -> str:
        """Render an ffmpeg filtergraph string.

        Segments that start with a link label open a new chain (``;``),
        everything else continues the current chain (``,``).
        """
        out = ""
        for stage in self.stages:
            for segment in stage.segments:
                if not out:
                    out = segment
                elif segment.startswith("["):
                    out += ";" + segment
                else:
                    out += "," + segment
        return out

    def __str__(self) -> str:
        return self.render()


def temporal_filter_graph(level) -> FilterGraph:
    return FilterGraph(stages=tuple(filter_stages(level)))
