"""Argument validation helpers for the glitch_reel CLI."""
from __future__ import annotations

from argparse import Namespace
from typing import List


def validate_args(args: Namespace) -> List[str]:
    """Validate parsed CLI arguments.

    Returns a list of human readable error messages. The caller should abort
    if the list is non-empty.
    """
    errors: List[str] = []
    if args.duration <= 0:
        errors.append(f"--duration {args.duration:g}s must be > 0")
    if args.min_frame_duration <= 0:
        errors.append("--min-frame-duration must be > 0")
    if args.min_frame_duration > args.max_frame_duration:
        errors.append(
            f"--min-frame-duration {args.min_frame_duration:g}s > "
            f"--max-frame-duration {args.max_frame_duration:g}s"
        )
    if args.size <= 0:
        errors.append("--size must be > 0")
    if args.rotation < 0:
        errors.append("--rotation must be >= 0")
    if not (0 <= args.glitch <= 3):
        errors.append("--glitch must be within 0..3")
    if args.margin < 0:
        errors.append("--margin must be >= 0")
    if args.jobs < 1:
        errors.append("--jobs must be >= 1")
    if args.overlay and args.overlay_output == args.overlay:
        errors.append("--overlay-output must differ from --overlay")
    return errors
