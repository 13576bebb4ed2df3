import pytest

from glitch_reel.jobs import JobResult


class FakeRunner:
    """Records jobs instead of spawning processes."""

    def __init__(self, fail=None, output=""):
        self.calls = []
        self.fail = fail or (lambda command, args: None)
        self.output = output

    def run(self, command, args, on_progress=None):
        args = [str(a) for a in args]
        self.calls.append((command, args))
        status = self.fail(command, args)
        if status:
            return JobResult(status, f"{command} failed")
        if command == "ffmpeg" and args[-1].endswith(".mp4"):
            with open(args[-1], "wb") as fh:
                fh.write(b"\x00" * 16)
        if on_progress:
            on_progress()
        return JobResult(0, "frame=  10", self.output)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def frame_files(tmp_path):
    paths = []
    for name in ("w-1.jpg", "w-2.jpg", "w-3.jpg"):
        p = tmp_path / name
        p.write_bytes(b"")
        paths.append(str(p))
    return paths


@pytest.fixture
def make_runner():
    return FakeRunner
