"""Pipeline lifecycle states and a lock-free view of the current one."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable


class PipelineState(Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    RUNNING = "running"
    STOPPING = "stopping"
    RELEASED = "released"


@dataclass(frozen=True)
class PipelineStatus:
    """One committed snapshot. Replaced wholesale, never mutated."""

    state: PipelineState = PipelineState.IDLE
    running_since: float | None = None
    frames_emitted: int = 0
    voiced_frames: int = 0
    dropped_frames: int = 0
    dropped_samples: int = 0


@dataclass(frozen=True)
class RecordingState:
    state: PipelineState
    duration_ms: int
    frames_emitted: int = 0
    voiced_frames: int = 0
    dropped_frames: int = 0
    dropped_samples: int = 0

    @property
    def is_recording(self) -> bool:
        return self.state is PipelineState.RUNNING


class StatusCell:
    """Single-slot holder. Writers serialize among themselves; reads take no lock."""

    def __init__(self) -> None:
        self._status = PipelineStatus()

    def read(self) -> PipelineStatus:
        return self._status

    def publish(self, status: PipelineStatus) -> None:
        self._status = status


class RecordingStateAccessor:
    def __init__(self, cell: StatusCell, clock: Callable[[], float] = time.monotonic) -> None:
        self._cell = cell
        self._clock = clock

    def current_state(self) -> RecordingState:
        status = self._cell.read()
        duration_ms = 0
        if (
            status.state in (PipelineState.RUNNING, PipelineState.STOPPING)
            and status.running_since is not None
        ):
            duration_ms = max(0, int((self._clock() - status.running_since) * 1000))
        return RecordingState(
            state=status.state,
            duration_ms=duration_ms,
            frames_emitted=status.frames_emitted,
            voiced_frames=status.voiced_frames,
            dropped_frames=status.dropped_frames,
            dropped_samples=status.dropped_samples,
        )
