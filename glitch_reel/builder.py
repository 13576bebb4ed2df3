"""Core building logic for the glitch reel."""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Dict, List, Optional

from .catalog import FrameCatalog
from .config import (
    DEFAULT_GLITCH_LEVEL,
    DEFAULT_MARGIN,
    DEFAULT_MAX_FRAME_DURATION,
    DEFAULT_MAX_ROTATION,
    DEFAULT_MIN_FRAME_DURATION,
    DEFAULT_POSITION,
    DEFAULT_SIZE,
)
from .effects import EffectLevel, temporal_filter_graph
from .errors import CompositeError, ConfigurationError, EncodeError
from .jobs import JobRunner, probe_duration
from .overlay import OverlayPlacement, composite_command, place
from .planner import SequenceEvent, plan, total_planned
from .render import MagickTransformer, RenderAssembler


def _export_profile(profile: str, codec: str) -> Dict[str, object]:
    """Return encoder settings for given *profile* and *codec*."""
    try:
        base = {
            "preview": {"crf": "31", "preset": "veryfast"},
            "social": {"crf": "23", "preset": "medium"},
            "quality": {"crf": "18", "preset": "slow"},
        }[profile]
    except KeyError as e:
        raise ConfigurationError(f"unknown export profile: {profile}") from e
    codec_map = {"h264": "libx264", "hevc": "libx265"}
    if codec not in codec_map:
        raise ConfigurationError(f"unknown codec: {codec}")
    extra = ["-movflags", "+faststart"]
    if codec == "hevc":
        extra.extend(["-tag:v", "hvc1"])
    return {
        "codec": codec_map[codec],
        "crf": base["crf"],
        "preset": base["preset"],
        "extra": extra,
    }


def _progress_dot() -> None:
    print(".", end="", flush=True)


def _discard(path: str) -> None:
    """Best-effort removal of a partial output or temporary artifact."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning("could not remove %s: %s", path, e)


def _print_plan(events: List[SequenceEvent], total: float, level: EffectLevel) -> None:
    print(f"📊 Animation Plan ({total:g}s total):")
    print("─" * 60)
    for i, ev in enumerate(events, 1):
        print(f"  {i:2d}. {ev.frame.name:<25} {ev.duration:.3f}s  {ev.rotation:+.1f}°")
    print("─" * 60)
    print(f"   Total cuts: {len(events)}")
    print(f"   Glitch level: {int(level)}/3\n")


def encode_command(concat_path: str, filter_graph: str, output: str, profile: Dict[str, object]) -> List[str]:
    return [
        "-f", "concat",
        "-safe", "0",
        "-i", concat_path,
        "-vf", filter_graph,
        "-c:v", profile["codec"],
        "-preset", profile["preset"],
        "-crf", profile["crf"],
        "-pix_fmt", "yuv420p",
        *profile["extra"],
        "-y",
        output,
    ]


@dataclass(frozen=True)
class ReelResult:
    output: str
    events: List[SequenceEvent]
    duration: float


def make_glitch_reel(
    catalog: FrameCatalog,
    output: str,
    *,
    magick: str,
    ffmpeg: str,
    duration: float,
    size: int = DEFAULT_SIZE,
    min_frame_duration: float = DEFAULT_MIN_FRAME_DURATION,
    max_frame_duration: float = DEFAULT_MAX_FRAME_DURATION,
    max_rotation: float = DEFAULT_MAX_ROTATION,
    glitch_level: int = DEFAULT_GLITCH_LEVEL,
    profile: str = "social",
    codec: str = "h264",
    seed: Optional[int] = None,
    workers: int = 1,
    runner: Optional[JobRunner] = None,
) -> ReelResult:
    """Plan, prepare and encode a glitch reel from *catalog*.

    All configuration is checked before the first external job runs. On any
    render or encode failure the partial *output* is removed and the
    temporary frames are cleaned up.
    """
    frames = catalog.require_frames()
    level = EffectLevel.coerce(glitch_level)
    prof = _export_profile(profile, codec)
    if size <= 0:
        raise ConfigurationError(f"frame size must be > 0 (got {size})")
    events = plan(
        frames,
        duration,
        min_frame_duration,
        max_frame_duration,
        max_rotation,
        seed=seed,
    )
    runner = runner or JobRunner()
    _print_plan(events, duration, level)
    graph = temporal_filter_graph(level)
    logging.info("filter stages: %s", ", ".join(graph.stage_names))

    with tempfile.TemporaryDirectory(
        prefix=f"glitch_reel_{os.getpid()}_", ignore_cleanup_errors=True
    ) as scratch:
        assembler = RenderAssembler(
            size, scratch, MagickTransformer(runner, magick), workers=workers
        )
        print("🎨 Preparing rotated frames...")

        def _on_frame(req):
            ev = events[req.index]
            print(f"  [{req.index + 1}/{len(events)}] {ev.frame.name} {ev.rotation:+.1f}° ✓")

        prepared, concat = assembler.assemble(events, level, on_frame=_on_frame)
        concat_path = concat.write(os.path.join(scratch, "concat.txt"))

        print("🎬 Encoding glitch reel...")
        try:
            result = runner.run(
                ffmpeg,
                encode_command(concat_path, str(graph), output, prof),
                on_progress=_progress_dot,
            )
        except KeyboardInterrupt:
            _discard(output)
            raise
        print()
        if not result.ok:
            _discard(output)
            raise EncodeError(
                f"ffmpeg encoding failed (exit {result.exit_status})", result.diagnostics
            )
        for item in prepared:
            _discard(item.artifact)
        _discard(concat_path)

    if os.path.exists(output):
        size_kb = os.path.getsize(output) / 1024
        print(f"✅ Glitch reel created: {output} ({size_kb:.2f} KB)")
    logging.info("reel %s: %d cuts, %.3fs", output, len(events), total_planned(events))
    return ReelResult(output=output, events=events, duration=float(duration))


def overlay_on_video(
    target: str,
    clip: str,
    clip_duration: float,
    output: str,
    *,
    ffmpeg: str,
    ffprobe: Optional[str] = None,
    position: str = DEFAULT_POSITION,
    margin: int = DEFAULT_MARGIN,
    profile: str = "social",
    codec: str = "h264",
    runner: Optional[JobRunner] = None,
) -> OverlayPlacement:
    """Loop *clip* over *target* at a screen corner and write *output*."""
    prof = _export_profile(profile, codec)
    runner = runner or JobRunner()
    target_duration = probe_duration(runner, ffprobe, target)
    placement = place(target_duration, clip_duration, position, margin)
    if target_duration is None:
        logging.warning(
            "could not detect %s duration, looping %d times", target, placement.loop_count
        )
    else:
        print(f"   Input duration: {target_duration:.1f}s, reel: {clip_duration:g}s")
    print(f"📹 Compositing {clip} onto {target} ({placement.position}, margin {placement.margin}px)")

    try:
        result = runner.run(
            ffmpeg,
            composite_command(target, clip, output, placement, prof),
            on_progress=_progress_dot,
        )
    except KeyboardInterrupt:
        _discard(output)
        raise
    print()
    if not result.ok:
        _discard(output)
        raise CompositeError(
            f"video overlay failed (exit {result.exit_status})", result.diagnostics
        )
    if os.path.exists(output):
        size_mb = os.path.getsize(output) / 1024 / 1024
        print(f"✅ Video created: {output} ({size_mb:.2f} MB)")
    return placement
