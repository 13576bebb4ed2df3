import os

import pytest

from glitch_reel.builder import _export_profile, make_glitch_reel, overlay_on_video
from glitch_reel.catalog import FrameCatalog
from glitch_reel.errors import CompositeError, ConfigurationError, EncodeError, ProbeWarning, RenderError
from glitch_reel.jobs import JobResult


def _reel(catalog, out, runner, **kw):
    opts = dict(magick="magick", ffmpeg="ffmpeg", duration=5.0, seed=7, runner=runner)
    opts.update(kw)
    return make_glitch_reel(catalog, out, **opts)


def test_reel_encodes_concat_with_filter_graph(tmp_path, frame_files, fake_runner):
    out = str(tmp_path / "reel.mp4")
    concat_seen = {}

    def fail(command, args):
        if command == "ffmpeg":
            concat = args[args.index("-i") + 1]
            concat_seen["text"] = open(concat, encoding="utf8").read()
        return 0

    fake_runner.fail = fail
    result = _reel(FrameCatalog(frame_files), out, fake_runner, glitch_level=2)

    magick_calls = [c for c in fake_runner.calls if c[0] == "magick"]
    ffmpeg_calls = [c for c in fake_runner.calls if c[0] == "ffmpeg"]
    assert len(magick_calls) == len(result.events)
    assert len(ffmpeg_calls) == 1
    args = ffmpeg_calls[0][1]
    assert args[:4] == ["-f", "concat", "-safe", "0"]
    assert "noise=alls=10:allf=t+u" in args[args.index("-vf") + 1]
    assert args[args.index("-c:v") + 1] == "libx264"
    assert args[-1] == out
    assert concat_seen["text"].count("file ") == len(result.events) + 1
    assert os.path.exists(out)
    assert sum(e.duration for e in result.events) == pytest.approx(5.0)


def test_reel_scratch_is_removed(tmp_path, frame_files, fake_runner):
    _reel(FrameCatalog(frame_files), str(tmp_path / "reel.mp4"), fake_runner)
    artifact = fake_runner.calls[0][1][-1]
    assert not os.path.exists(os.path.dirname(artifact))
    assert f"glitch_reel_{os.getpid()}_" in artifact


def test_configuration_checked_before_jobs(tmp_path, frame_files, fake_runner):
    with pytest.raises(ConfigurationError):
        _reel(FrameCatalog(frame_files), str(tmp_path / "r.mp4"), fake_runner, min_frame_duration=0)
    with pytest.raises(ConfigurationError):
        _reel(FrameCatalog([]), str(tmp_path / "r.mp4"), fake_runner)
    with pytest.raises(ConfigurationError):
        _reel(FrameCatalog(frame_files), str(tmp_path / "r.mp4"), fake_runner, glitch_level=9)
    assert fake_runner.calls == []


def test_render_failure_skips_encode(tmp_path, frame_files, make_runner):
    runner = make_runner(fail=lambda cmd, args: 1 if cmd == "magick" else 0)
    out = tmp_path / "reel.mp4"
    with pytest.raises(RenderError) as exc:
        _reel(FrameCatalog(frame_files), str(out), runner)
    assert exc.value.index == 0
    assert all(c[0] == "magick" for c in runner.calls)
    assert not out.exists()


def test_encode_failure_removes_partial_output(tmp_path, frame_files, make_runner):
    out = tmp_path / "reel.mp4"

    def fail(cmd, args):
        if cmd == "ffmpeg":
            out.write_bytes(b"partial")
            return 1
        return 0

    with pytest.raises(EncodeError) as exc:
        _reel(FrameCatalog(frame_files), str(out), make_runner(fail=fail))
    assert "ffmpeg failed" in exc.value.diagnostics
    assert not out.exists()


def test_overlay_uses_measured_duration(tmp_path, make_runner):
    runner = make_runner(output="42.0\n")
    out = str(tmp_path / "final.mp4")
    placement = overlay_on_video(
        "in.mp4", "reel.mp4", 15.0, out, ffmpeg="ffmpeg", ffprobe="ffprobe", margin=20, runner=runner
    )
    assert placement.loop_count == 3
    assert [c[0] for c in runner.calls] == ["ffprobe", "ffmpeg"]
    args = runner.calls[1][1]
    assert args[args.index("-t") + 1] == "42.0"
    assert "main_w-overlay_w-20:main_h-overlay_h-20" in args[args.index("-filter_complex") + 1]


def test_overlay_without_ffprobe_falls_back(tmp_path, fake_runner):
    with pytest.warns(ProbeWarning):
        placement = overlay_on_video(
            "in.mp4", "reel.mp4", 15.0, str(tmp_path / "o.mp4"), ffmpeg="ffmpeg", runner=fake_runner
        )
    assert placement.loop_count == 50
    assert "-t" not in fake_runner.calls[0][1]


def test_overlay_failure_raises(tmp_path, make_runner):
    out = tmp_path / "o.mp4"
    runner = make_runner(output="10\n", fail=lambda cmd, args: 1 if cmd == "ffmpeg" else 0)
    with pytest.raises(CompositeError):
        overlay_on_video("in.mp4", "reel.mp4", 5.0, str(out), ffmpeg="ffmpeg", ffprobe="ffprobe", runner=runner)
    assert not out.exists()


def test_export_profiles():
    prof = _export_profile("quality", "hevc")
    assert prof["codec"] == "libx265"
    assert prof["crf"] == "18"
    assert "hvc1" in prof["extra"]
    with pytest.raises(ConfigurationError):
        _export_profile("cinema", "h264")


def test_package_level_entry_points(tmp_path, make_runner):
    import glitch_reel

    placement = glitch_reel.overlay_on_video(
        "in.mp4", "reel.mp4", 4.0, str(tmp_path / "o.mp4"),
        ffmpeg="ffmpeg", ffprobe="ffprobe", position="top-right", runner=make_runner(output="9.5\n"),
    )
    assert placement.loop_count == 3
    assert placement.position == "top-right"


class _InterruptingRunner:
    """Writes a partial output for ffmpeg jobs, then gets interrupted."""

    def __init__(self, duration_output=""):
        self.calls = []
        self.duration_output = duration_output

    def run(self, command, args, on_progress=None):
        args = [str(a) for a in args]
        self.calls.append((command, args))
        if command == "ffmpeg":
            with open(args[-1], "wb") as fh:
                fh.write(b"partial")
            raise KeyboardInterrupt
        return JobResult(0, "", self.duration_output)


def test_interrupted_encode_removes_output_and_scratch(tmp_path, frame_files):
    out = tmp_path / "reel.mp4"
    runner = _InterruptingRunner()
    with pytest.raises(KeyboardInterrupt):
        _reel(FrameCatalog(frame_files), str(out), runner)
    assert not out.exists()
    scratch = os.path.dirname(runner.calls[0][1][-1])
    assert not os.path.exists(scratch)


def test_interrupted_overlay_removes_output(tmp_path):
    out = tmp_path / "final.mp4"
    runner = _InterruptingRunner(duration_output="30.0\n")
    with pytest.raises(KeyboardInterrupt):
        overlay_on_video("in.mp4", "reel.mp4", 15.0, str(out), ffmpeg="ffmpeg", ffprobe="ffprobe", runner=runner)
    assert not out.exists()
    assert [c[0] for c in runner.calls] == ["ffprobe", "ffmpeg"]
