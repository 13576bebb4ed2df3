"""Timed sequence planning.

A plan is a list of :class:`SequenceEvent` covering exactly the requested
total duration. It is produced as a fold: :func:`next_event` takes the
current :class:`PlanState` and returns the next event together with the
updated state, so no mutable counters are shared between calls.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .catalog import FrameAsset
from .errors import ConfigurationError


@dataclass(frozen=True)
class SequenceEvent:
    frame: FrameAsset
    start_time: float
    duration: float
    rotation: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


@dataclass(frozen=True)
class PlanState:
    current_time: float = 0.0
    index: int = 0


@dataclass(frozen=True)
class Timing:
    total_duration: float
    min_duration: float
    max_duration: float
    max_rotation: float

    def validate(self) -> None:
        if self.total_duration <= 0:
            raise ConfigurationError(
                f"total duration must be > 0 (got {self.total_duration})"
            )
        if self.min_duration <= 0:
            raise ConfigurationError(
                f"minimum frame duration must be > 0 (got {self.min_duration})"
            )
        if self.min_duration > self.max_duration:
            raise ConfigurationError(
                "minimum frame duration "
                f"{self.min_duration} exceeds maximum {self.max_duration}"
            )
        if self.max_rotation < 0:
            raise ConfigurationError(
                f"maximum rotation must be >= 0 (got {self.max_rotation})"
            )


def next_event(
    state: PlanState,
    frames: Sequence[FrameAsset],
    timing: Timing,
    rng: np.random.Generator,
) -> Tuple[SequenceEvent, PlanState]:
    """Draw the event starting at ``state.current_time``.

    The final event always takes the exact remainder and the returned state
    is pinned to ``timing.total_duration`` so rounding cannot accumulate.
    """
    total = timing.total_duration
    remaining = total - state.current_time
    if remaining <= timing.max_duration:
        duration = remaining
        last = True
    else:
        duration = float(rng.uniform(timing.min_duration, timing.max_duration))
        last = state.current_time + duration >= total
        if last:
            duration = remaining

    frame = frames[int(rng.integers(0, len(frames)))]
    rotation = float(rng.uniform(-timing.max_rotation, timing.max_rotation))

    event = SequenceEvent(
        frame=frame,
        start_time=state.current_time,
        duration=duration,
        rotation=rotation,
    )
    new_time = total if last else state.current_time + duration
    return event, PlanState(current_time=new_time, index=state.index + 1)


def plan(
    frames: Sequence[FrameAsset],
    total_duration: float,
    min_duration: float,
    max_duration: float,
    max_rotation: float,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> List[SequenceEvent]:
    """Partition *total_duration* into randomly timed, rotated frame events.

    Parameters
    ----------
    frames:
        Non-empty sequence of frames; each event draws one uniformly, with
        replacement.
    total_duration:
        Length of the reel in seconds.
    min_duration, max_duration:
        Bounds of the per-event duration draw. The last event takes whatever
        remains and may be shorter than ``min_duration``.
    max_rotation:
        Rotation is drawn uniformly from ``[-max_rotation, max_rotation]``.
    rng, seed:
        Source of randomness. ``seed`` is used only when ``rng`` is not given.
    """
    if not frames:
        raise ConfigurationError("cannot plan a sequence without frames")
    timing = Timing(
        total_duration=float(total_duration),
        min_duration=float(min_duration),
        max_duration=float(max_duration),
        max_rotation=float(max_rotation),
    )
    timing.validate()
    if rng is None:
        rng = np.random.default_rng(seed)

    events: List[SequenceEvent] = []
    state = PlanState()
    while state.current_time < timing.total_duration:
        event, state = next_event(state, frames, timing, rng)
        events.append(event)
    return events


def total_planned(events: Sequence[SequenceEvent]) -> float:
    return float(sum(e.duration for e in events))
