"""Command line interface for glitch_reel."""
from __future__ import annotations

import argparse
import logging
import sys

import yaml

from . import config
from .bin_config import resolve_ffmpeg, resolve_ffprobe, resolve_imagemagick
from .builder import make_glitch_reel, overlay_on_video
from .catalog import find_frames
from .errors import CompositeError, EncodeError, GlitchReelError, RenderError
from .validate import validate_args

EPILOG = """\
glitch levels:
  0 - clean (no glitch)
  1 - scanlines
  2 - scanlines + noise
  3 - scanlines + noise + chromatic aberration
"""


def _glitch_type(x: str) -> int:
    v = int(x)
    if not (0 <= v <= 3):
        raise argparse.ArgumentTypeError("--glitch must be within 0..3")
    return v


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="glitch-reel",
        description="Build a looping glitch reel from still frames",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--preset", action="append", default=[], help="Path to YAML preset overriding defaults")
    parser.add_argument("-f", "--frames", default=config.DEFAULT_FRAME_PATTERN, help="Frame glob pattern")
    parser.add_argument("-D", "--dir", default=config.DEFAULT_FRAME_DIR, help="Directory containing frames")
    parser.add_argument("-d", "--duration", type=float, default=config.DEFAULT_DURATION, help="Reel duration (s)")
    parser.add_argument("-s", "--size", type=int, default=config.DEFAULT_SIZE, help="Square output size (px)")
    parser.add_argument("-r", "--rotation", type=float, default=config.DEFAULT_MAX_ROTATION, help="Max rotation angle (deg)")
    parser.add_argument("-g", "--glitch", type=_glitch_type, default=config.DEFAULT_GLITCH_LEVEL, help="Glitch level 0-3")
    parser.add_argument("-o", "--output", default=config.DEFAULT_OUTPUT, help="Output reel file")
    parser.add_argument(
        "--min-frame-duration",
        type=float,
        default=config.DEFAULT_MIN_FRAME_DURATION,
        help="Shortest cut (s)",
    )
    parser.add_argument(
        "--max-frame-duration",
        type=float,
        default=config.DEFAULT_MAX_FRAME_DURATION,
        help="Longest cut (s)",
    )
    parser.add_argument("-O", "--overlay", help="Overlay the reel on this video")
    parser.add_argument(
        "-p",
        "--position",
        default=config.DEFAULT_POSITION,
        help="bottom-right, bottom-left, top-right or top-left",
    )
    parser.add_argument("-m", "--margin", type=int, default=config.DEFAULT_MARGIN, help="Margin from edges (px)")
    parser.add_argument("--overlay-output", default=config.DEFAULT_OVERLAY_OUTPUT, help="Composited output file")
    parser.add_argument("--profile", choices=["preview", "social", "quality"], default="social", help="Export preset")
    parser.add_argument("--codec", choices=["h264", "hevc"], default="h264", help="Video codec")
    parser.add_argument("--jobs", type=int, default=1, help="Parallel frame transforms")
    parser.add_argument("--validate", action="store_true", help="Validate arguments and exit")
    parser.add_argument("--deterministic", action="store_true", help="Force deterministic build")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--magick", help="Path to ImageMagick binary")
    parser.add_argument("--ffmpeg", help="Path to ffmpeg binary")
    parser.add_argument("--ffprobe", help="Path to ffprobe binary")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )

    prelim, _ = parser.parse_known_args(argv)
    for path in prelim.preset:
        with open(path, "r", encoding="utf8") as fh:
            data = yaml.safe_load(fh) or {}
        parser.set_defaults(**{k.replace("-", "_"): v for k, v in data.items()})

    return parser.parse_args(argv)


def _run(args: argparse.Namespace) -> None:
    magick = resolve_imagemagick(args.magick)
    if not magick:
        raise SystemExit("ImageMagick binary not found. Install it or pass --magick.")
    ffmpeg = resolve_ffmpeg(args.ffmpeg)
    if not ffmpeg:
        raise SystemExit("ffmpeg binary not found. Install it or pass --ffmpeg.")

    catalog = find_frames(args.dir, args.frames)
    print(f"✓ Found {len(catalog)} frames")
    for i, frame in enumerate(catalog, 1):
        print(f"  {i}. {frame.name}")

    reel = make_glitch_reel(
        catalog,
        args.output,
        magick=magick,
        ffmpeg=ffmpeg,
        duration=args.duration,
        size=args.size,
        min_frame_duration=args.min_frame_duration,
        max_frame_duration=args.max_frame_duration,
        max_rotation=args.rotation,
        glitch_level=args.glitch,
        profile=args.profile,
        codec=args.codec,
        seed=args.seed if args.deterministic else None,
        workers=args.jobs,
    )
    if args.overlay:
        overlay_on_video(
            args.overlay,
            reel.output,
            reel.duration,
            args.overlay_output,
            ffmpeg=ffmpeg,
            ffprobe=resolve_ffprobe(args.ffprobe),
            position=args.position,
            margin=args.margin,
            profile=args.profile,
            codec=args.codec,
        )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    if args.deterministic:
        logging.info("deterministic build seed=%s", args.seed)
    errs = validate_args(args)
    if errs:
        for e in errs:
            print(f"validation error: {e}", file=sys.stderr)
        raise SystemExit(1)
    if args.validate:
        return
    try:
        _run(args)
    except (RenderError, EncodeError, CompositeError) as e:
        print(f"💥 Error: {e}", file=sys.stderr)
        if e.diagnostics:
            print(e.diagnostics, file=sys.stderr)
        raise SystemExit(1) from e
    except GlitchReelError as e:
        print(f"💥 Error: {e}", file=sys.stderr)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
