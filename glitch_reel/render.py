"""Prepared frames and the ffmpeg concat descriptor."""
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .effects import TransformSpec, transform_for
from .errors import RenderError
from .jobs import JobResult, JobRunner
from .planner import SequenceEvent


@dataclass(frozen=True)
class TransformRequest:
    index: int
    source: str
    spec: TransformSpec
    artifact: str


@dataclass(frozen=True)
class PreparedFrame:
    index: int
    event: SequenceEvent
    artifact: str
    spec: TransformSpec


@dataclass(frozen=True)
class ConcatEntry:
    artifact: str
    duration: Optional[float] = None


def _quote(path: str) -> str:
    return "'" + path.replace("'", r"'\''") + "'"


@dataclass(frozen=True)
class ConcatDescriptor:
    """Ordered ``(artifact, duration)`` list for the ffmpeg concat demuxer.

    The demuxer gives the last listed file the duration of the entry before
    it, so the final frame is listed a second time without a duration.
    """

    entries: Tuple[ConcatEntry, ...]

    @classmethod
    def from_prepared(cls, prepared: Sequence[PreparedFrame]) -> "ConcatDescriptor":
        if not prepared:
            raise ValueError("ConcatDescriptor: no prepared frames")
        entries = [ConcatEntry(p.artifact, p.event.duration) for p in prepared]
        entries.append(ConcatEntry(prepared[-1].artifact))
        return cls(tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)

    def to_text(self) -> str:
        lines: List[str] = []
        for entry in self.entries:
            lines.append(f"file {_quote(entry.artifact)}")
            if entry.duration is not None:
                lines.append(f"duration {entry.duration!r}")
        return "\n".join(lines) + "\n"

    def write(self, path: str) -> str:
        with open(path, "w", encoding="utf8") as fh:
            fh.write(self.to_text())
        return path


class MagickTransformer:
    """Raster collaborator backed by ImageMagick."""

    def __init__(self, runner: JobRunner, binary: str):
        self.runner = runner
        self.binary = binary

    def __call__(self, request: TransformRequest) -> JobResult:
        args = [request.source, *request.spec.magick_args(), request.artifact]
        return self.runner.run(self.binary, args)


class RenderAssembler:
    """Turn planned events into prepared frames and a concat descriptor."""

    def __init__(self, size: int, scratch_dir: str, transformer, workers: int = 1):
        self.size = size
        self.scratch_dir = scratch_dir
        self.transformer = transformer
        self.workers = max(1, int(workers))

    def artifact_path(self, index: int) -> str:
        return os.path.join(self.scratch_dir, f"frame-{index:04d}.png")

    def requests(self, events: Sequence[SequenceEvent], level) -> List[TransformRequest]:
        return [
            TransformRequest(
                index=i,
                source=event.frame.path,
                spec=transform_for(event, level, self.size),
                artifact=self.artifact_path(i),
            )
            for i, event in enumerate(events)
        ]

    def _run_all(self, requests: Sequence[TransformRequest], on_frame=None) -> Dict[int, JobResult]:
        results: Dict[int, JobResult] = {}
        if self.workers == 1 or len(requests) < 2:
            for req in requests:
                res = self.transformer(req)
                if not res.ok:
                    raise RenderError(req.index, res.diagnostics)
                results[req.index] = res
                if on_frame:
                    on_frame(req)
            return results

        with ThreadPoolExecutor(max_workers=min(self.workers, len(requests))) as executor:
            future_to_req = {executor.submit(self.transformer, req): req for req in requests}
            failed: List[Tuple[int, str]] = []
            for future in as_completed(future_to_req):
                if future.cancelled():
                    continue
                req = future_to_req[future]
                res = future.result()
                if not res.ok:
                    if not failed:
                        # stop queued transforms; running ones still finish
                        for pending in future_to_req:
                            pending.cancel()
                    failed.append((req.index, res.diagnostics))
                    continue
                results[req.index] = res
                if on_frame:
                    on_frame(req)
        if failed:
            index, diagnostics = min(failed)
            raise RenderError(index, diagnostics)
        return results

    def assemble(
        self,
        events: Sequence[SequenceEvent],
        level,
        on_frame=None,
    ) -> Tuple[List[PreparedFrame], ConcatDescriptor]:
        """Run every transform request and build the concat descriptor.

        Raises :class:`RenderError` for the first (lowest index) failed
        request; no descriptor is produced in that case.
        """
        reqs = self.requests(events, level)
        self._run_all(reqs, on_frame=on_frame)
        prepared = [
            PreparedFrame(index=req.index, event=events[req.index], artifact=req.artifact, spec=req.spec)
            for req in reqs
        ]
        logging.info("prepared %d frames in %s", len(prepared), self.scratch_dir)
        return prepared, ConcatDescriptor.from_prepared(prepared)
