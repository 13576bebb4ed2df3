"""Glitch reel package."""

__all__ = ["make_glitch_reel", "overlay_on_video"]


def make_glitch_reel(*args, **kwargs):
    from .builder import make_glitch_reel as _make_glitch_reel

    return _make_glitch_reel(*args, **kwargs)


def overlay_on_video(*args, **kwargs):
    from .builder import overlay_on_video as _overlay_on_video

    return _overlay_on_video(*args, **kwargs)
