"""VAD pipeline: audio source, frame segmenter and classifier behind one iterator."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Any, Callable

import numpy as np

from solace_vad.config.settings import PipelineConfig
from solace_vad.domain.frame_segmenter import FrameSegmenter
from solace_vad.domain.handoff import ChunkHandoff
from solace_vad.domain.recording_state import (
    PipelineState,
    RecordingState,
    RecordingStateAccessor,
    StatusCell,
)
from solace_vad.errors import (
    AcquisitionError,
    CaptureError,
    ClassificationFailure,
    PipelineStateError,
)
from solace_vad.ports.audio_source import IAudioSource
from solace_vad.ports.frame_classifier import IFrameClassifier

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifiedFrame:
    frame: np.ndarray
    timestamp_ms: int
    has_voice: bool


class VADPipeline:
    """Drives the IDLE → ACQUIRING → RUNNING → STOPPING → RELEASED lifecycle.

    ``start()`` returns the pipeline itself as an iterator of
    :class:`ClassifiedFrame`. Iteration ends with ``StopIteration`` after
    ``stop()`` or when the source runs dry, and with :class:`CaptureError`
    when the source fails. ``stop()`` may be called from any thread; the
    audio source is released exactly once. A pipeline runs once.
    """

    def __init__(
        self,
        config: PipelineConfig,
        source: IAudioSource,
        classifier: IFrameClassifier,
        *,
        max_pending_chunks: int = 64,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._source = source
        self._classifier = classifier
        self._clock = clock

        self._segmenter = FrameSegmenter(config.frame_length)
        self._handoff = ChunkHandoff(max_pending_chunks)
        self._pending: deque[ClassifiedFrame] = deque()

        # guards state transitions, the segmenter and the pending queue
        self._lock = threading.Lock()
        self._released = threading.Event()
        self._cell = StatusCell()
        self._accessor = RecordingStateAccessor(self._cell, clock)

        self._handle: Any = None
        self._error: CaptureError | None = None
        self._frame_index = 0
        self._next_frame_start = 0
        self._seen_dropped = 0

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def state(self) -> PipelineState:
        return self._cell.read().state

    @property
    def error(self) -> CaptureError | None:
        """The capture failure that ended the run, if any."""
        return self._error

    @property
    def state_accessor(self) -> RecordingStateAccessor:
        return self._accessor

    def current_state(self) -> RecordingState:
        return self._accessor.current_state()

    # -- lifecycle --

    def start(self) -> VADPipeline:
        with self._lock:
            state = self._cell.read().state
            if state is not PipelineState.IDLE:
                raise PipelineStateError(f"Cannot start a pipeline in state '{state.value}'")
            self._commit(state=PipelineState.ACQUIRING)

        log.info(
            "Acquiring audio source (rate=%d, frame=%d ms, aggressiveness=%d)",
            self._config.sample_rate,
            self._config.frame_duration_ms,
            self._config.aggressiveness,
        )
        try:
            handle = self._source.acquire(self._config.sample_rate, self._handoff, channels=1)
        except AcquisitionError:
            self._abandon()
            raise
        except Exception as e:
            self._abandon()
            raise AcquisitionError(f"Could not acquire audio source: {e}") from e

        with self._lock:
            if self._cell.read().state is PipelineState.ACQUIRING:
                self._handle = handle
                self._commit(state=PipelineState.RUNNING, running_since=self._clock())
                log.info("Pipeline running")
                return self

        log.info("Stop requested during acquisition")
        self._finalize(handle)
        return self

    def stop(self) -> None:
        with self._lock:
            state = self._cell.read().state
            if state is PipelineState.RELEASED:
                return
            if state is PipelineState.IDLE:
                self._commit(state=PipelineState.RELEASED)
                self._released.set()
                return
            if state is PipelineState.RUNNING:
                self._commit(state=PipelineState.STOPPING)
                handle, self._handle = self._handle, None
                owner = True
            else:
                if state is PipelineState.ACQUIRING:
                    # start() sees this and performs the release itself
                    self._commit(state=PipelineState.STOPPING)
                owner = False

        if owner:
            self._finalize(handle)
        else:
            self._released.wait()

    def __enter__(self) -> VADPipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # -- iteration --

    def __iter__(self) -> Iterator[ClassifiedFrame]:
        return self

    def __next__(self) -> ClassifiedFrame:
        while True:
            with self._lock:
                if self._cell.read().state is not PipelineState.RUNNING:
                    raise StopIteration
                if self._pending:
                    return self._emit(self._pending.popleft())

            taken = self._handoff.take()
            if taken is None:
                self._end_of_input()
            self._ingest(*taken)

    # -- internals --

    def _commit(self, **changes: Any) -> None:
        # caller holds self._lock
        self._cell.publish(replace(self._cell.read(), **changes))

    def _emit(self, classified: ClassifiedFrame) -> ClassifiedFrame:
        status = self._cell.read()
        self._commit(
            frames_emitted=status.frames_emitted + 1,
            voiced_frames=status.voiced_frames + int(classified.has_voice),
        )
        log.debug("Frame at %d ms: voice=%s", classified.timestamp_ms, classified.has_voice)
        return classified

    def _ingest(self, chunk: np.ndarray, dropped: int) -> None:
        n = self._config.frame_length
        with self._lock:
            if self._cell.read().state is not PipelineState.RUNNING:
                return
            if dropped != self._seen_dropped:
                self._next_frame_start += dropped - self._seen_dropped
                self._seen_dropped = dropped
                self._commit(dropped_samples=dropped)
            frames = self._segmenter.push(chunk)
            first_index = self._frame_index
            first_start = self._next_frame_start
            self._frame_index += len(frames)
            self._next_frame_start += len(frames) * n

        classified: list[ClassifiedFrame] = []
        for i, frame in enumerate(frames):
            index = first_index + i
            try:
                has_voice = self._classify(frame, index)
            except ClassificationFailure as failure:
                log.warning("%s; frame dropped", failure)
                with self._lock:
                    self._commit(dropped_frames=self._cell.read().dropped_frames + 1)
                continue
            frame.setflags(write=False)
            timestamp_ms = (first_start + i * n) * 1000 // self._config.sample_rate
            classified.append(ClassifiedFrame(frame=frame, timestamp_ms=timestamp_ms, has_voice=has_voice))

        with self._lock:
            if self._cell.read().state is PipelineState.RUNNING:
                self._pending.extend(classified)

    def _classify(self, frame: np.ndarray, index: int) -> bool:
        try:
            return bool(self._classifier.classify(frame, self._config.sample_rate))
        except Exception as e:
            raise ClassificationFailure(f"Classifier failed on frame {index}: {e}", index) from e

    def _end_of_input(self) -> None:
        error = self._handoff.error
        if self._handoff.closed or error is None:
            if not self._handoff.closed:
                log.info("Audio source exhausted")
            self.stop()
            raise StopIteration

        if isinstance(error, CaptureError):
            capture_error = error
        else:
            capture_error = CaptureError(f"Audio capture failed: {error}")
            capture_error.__cause__ = error
        self._error = capture_error
        log.error("Capture failed, stopping pipeline: %s", error)
        self.stop()
        raise capture_error

    def _abandon(self) -> None:
        self._handoff.close()
        with self._lock:
            self._commit(state=PipelineState.RELEASED)
        self._released.set()

    def _finalize(self, handle: Any) -> None:
        self._handoff.close()
        try:
            if handle is not None:
                self._source.release(handle)
        finally:
            with self._lock:
                self._segmenter.reset()
                self._pending.clear()
                self._commit(state=PipelineState.RELEASED)
            self._released.set()
            log.info("Audio source released")


def record_and_detect_voice(
    source: IAudioSource,
    classifier: IFrameClassifier,
    config: PipelineConfig | None = None,
    **kwargs: Any,
) -> Iterator[ClassifiedFrame]:
    """Generator form: acquires on first ``next()``, releases when closed."""
    pipeline = VADPipeline(config or PipelineConfig(), source, classifier, **kwargs)
    with pipeline:
        yield from pipeline.start()
