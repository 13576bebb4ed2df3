"""External process runner.

Everything that spawns ImageMagick, ffmpeg or ffprobe goes through
:class:`JobRunner`, which has a single ``(command, args) -> JobResult``
contract. Core modules never spawn processes themselves, so tests swap in a
recording fake.
"""
from __future__ import annotations

import logging
import subprocess
import warnings
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .errors import ProbeWarning

ProgressCallback = Callable[[], None]

MISSING_BINARY_STATUS = 127


def _decode(data: Optional[bytes]) -> str:
    return (data or b"").decode("utf8", errors="replace")


@dataclass(frozen=True)
class JobResult:
    exit_status: int
    diagnostics: str = ""
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class JobRunner:
    """Run one external job at a time and collect its diagnostics."""

    chunk_size = 256

    def run(
        self,
        command: str,
        args: Sequence[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> JobResult:
        cmd = [command, *[str(a) for a in args]]
        logging.debug("run: %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE if on_progress is None else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            # missing tool: report as a failed job instead of hiding it
            return JobResult(exit_status=MISSING_BINARY_STATUS, diagnostics=str(e))

        chunks = []
        try:
            if on_progress is None:
                stdout, stderr = proc.communicate()
                return JobResult(proc.returncode, _decode(stderr), _decode(stdout))
            # read1 returns as soon as any diagnostics are available
            for chunk in iter(lambda: proc.stderr.read1(self.chunk_size), b""):
                chunks.append(chunk)
                if b"frame=" in chunk:
                    on_progress()
            proc.wait()
        except KeyboardInterrupt:
            proc.terminate()
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
            raise
        finally:
            for stream in (proc.stdout, proc.stderr):
                if stream is not None:
                    stream.close()
        return JobResult(proc.returncode, _decode(b"".join(chunks)))


def probe_duration(runner: JobRunner, ffprobe: Optional[str], path: str) -> Optional[float]:
    """Return the duration of *path* in seconds, or ``None`` if unknown.

    Any failure issues a :class:`ProbeWarning` instead of raising.
    """
    if not ffprobe:
        warnings.warn("ffprobe not available; duration unknown", ProbeWarning)
        return None
    result = runner.run(
        ffprobe,
        [
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            path,
        ],
    )
    if not result.ok:
        warnings.warn(
            f"could not probe duration of {path}: {result.diagnostics.strip()}",
            ProbeWarning,
        )
        return None
    try:
        duration = float(result.output.strip())
    except ValueError:
        warnings.warn(
            f"unparsable duration for {path}: {result.output.strip()!r}",
            ProbeWarning,
        )
        return None
    if duration != duration or duration <= 0:  # NaN or empty stream
        warnings.warn(f"no usable duration for {path}", ProbeWarning)
        return None
    return duration
