"""Configuration defaults for glitch_reel."""
from __future__ import annotations

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".webp", ".gif", ".tif", ".tiff"}

# Defaults mirrored by the CLI (can be overridden with YAML presets)
DEFAULT_FRAME_PATTERN = "w-*.jpg"
DEFAULT_FRAME_DIR = "samples"
DEFAULT_OUTPUT = "glitch_reel.mp4"
DEFAULT_OVERLAY_OUTPUT = "output-with-glitch.mp4"
DEFAULT_DURATION = 15.0
DEFAULT_SIZE = 128
DEFAULT_MIN_FRAME_DURATION = 0.1
DEFAULT_MAX_FRAME_DURATION = 0.8
DEFAULT_MAX_ROTATION = 15.0
DEFAULT_GLITCH_LEVEL = 1
DEFAULT_POSITION = "bottom-right"
DEFAULT_MARGIN = 20

POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right")

# Loop count used when the target video's duration cannot be probed.
FALLBACK_LOOP_COUNT = 50
COMPOSITE_FPS = 25
