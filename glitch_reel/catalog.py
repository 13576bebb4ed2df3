"""Frame catalog: the still images a reel is cut from."""
from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from .config import IMAGE_EXTS
from .errors import ConfigurationError


@dataclass(frozen=True)
class FrameAsset:
    path: str
    name: str

    @classmethod
    def from_path(cls, path: str) -> "FrameAsset":
        return cls(path=path, name=os.path.basename(path))


class FrameCatalog:
    """Ordered, deduplicated set of frames usable by the planner.

    Candidates are sorted by path; two candidates that normalise to the same
    absolute path are kept once.
    """

    def __init__(self, candidates: Iterable[str]):
        seen = set()
        frames: List[FrameAsset] = []
        for path in sorted(str(c) for c in candidates):
            key = os.path.normcase(os.path.abspath(path))
            if key in seen:
                continue
            seen.add(key)
            frames.append(FrameAsset.from_path(path))
        self._frames: Tuple[FrameAsset, ...] = tuple(frames)

    @property
    def frames(self) -> Tuple[FrameAsset, ...]:
        return self._frames

    def require_frames(self) -> Tuple[FrameAsset, ...]:
        """Return the frames or raise if the catalog is empty."""
        if not self._frames:
            raise ConfigurationError("frame catalog is empty")
        return self._frames

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[FrameAsset]:
        return iter(self._frames)

    def __getitem__(self, index: int) -> FrameAsset:
        return self._frames[index]


def find_frames(frame_dir: str, pattern: str) -> FrameCatalog:
    """Glob *pattern* inside *frame_dir* and catalog the image files found."""
    full_pattern = os.path.join(frame_dir, pattern)
    files = [
        f
        for f in glob.glob(full_pattern)
        if os.path.isfile(f) and os.path.splitext(f)[1].lower() in IMAGE_EXTS
    ]
    catalog = FrameCatalog(files)
    if not catalog:
        raise ConfigurationError(f"No frames found matching: {full_pattern}")
    logging.info("found %d frames matching %s", len(catalog), full_pattern)
    return catalog
