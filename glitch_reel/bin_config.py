"""Helpers to resolve external binary paths.

This module centralizes discovery of the ImageMagick, ffmpeg and ffprobe
executables without requiring hard coded paths. Each resolver honors an
explicit CLI argument, an environment variable and finally a search on
``PATH``.
"""
from __future__ import annotations

import logging
import os
import shutil
from typing import Optional


def _validate_binary(path: str | None) -> Optional[str]:
    """Return *path* if it points to an existing executable."""
    if not path:
        return None
    if os.path.isfile(path) or shutil.which(path):
        return path
    return None


def _resolve(candidates, env_name: str) -> Optional[str]:
    for cand in candidates:
        path = _validate_binary(cand)
        if path:
            os.environ[env_name] = path
            return path
    return None


def resolve_imagemagick(cli_path: str | None = None) -> Optional[str]:
    """Resolve path to the ImageMagick executable.

    Resolution order:
    1. explicit ``cli_path`` argument (e.g. ``--magick``)
    2. ``IMAGEMAGICK_BINARY`` environment variable
    3. ``magick`` discovered on ``PATH``
    4. legacy ``convert`` discovered on ``PATH`` (ImageMagick 6)
    The returned path is validated and stored in ``os.environ``. Returns
    ``None`` if no candidate is found.
    """
    candidates = [
        cli_path,
        os.environ.get("IMAGEMAGICK_BINARY"),
        shutil.which("magick"),
        shutil.which("convert"),
    ]
    return _resolve(candidates, "IMAGEMAGICK_BINARY")


def _moviepy_ffmpeg() -> Optional[str]:
    # moviepy checks FFMPEG_BINARY on import and raises when it is broken
    try:
        from moviepy.config import FFMPEG_BINARY
    except (ImportError, OSError) as e:
        logging.warning("moviepy ffmpeg binary unavailable: %s", e)
        return None

    return FFMPEG_BINARY


def resolve_ffmpeg(cli_path: str | None = None) -> Optional[str]:
    """Resolve path to ``ffmpeg``.

    Resolution order mirrors :func:`resolve_imagemagick`; as a last resort
    the binary bundled with moviepy (via imageio-ffmpeg) is used.
    """
    candidates = [
        cli_path,
        os.environ.get("FFMPEG_BINARY"),
        shutil.which("ffmpeg"),
    ]
    found = _resolve(candidates, "FFMPEG_BINARY")
    if found:
        return found
    return _resolve([_moviepy_ffmpeg()], "FFMPEG_BINARY")


def resolve_ffprobe(cli_path: str | None = None) -> Optional[str]:
    """Resolve path to ``ffprobe``.

    A missing ffprobe is not fatal: overlay falls back to a fixed loop count.
    """
    candidates = [
        cli_path,
        os.environ.get("FFPROBE_BINARY"),
        shutil.which("ffprobe"),
    ]
    return _resolve(candidates, "FFPROBE_BINARY")
