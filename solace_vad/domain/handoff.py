"""Bounded handoff between the capture callback and the consuming iterator.

The capture side must never block, so when the consumer falls behind the
oldest pending chunk is evicted and its samples are counted as dropped.
"""

from __future__ import annotations

import logging
import threading
from collections import deque

import numpy as np

from solace_vad.domain.frame_segmenter import as_samples
from solace_vad.ports.audio_source import IChunkSink

log = logging.getLogger(__name__)


class ChunkHandoff(IChunkSink):
    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._chunks: deque[np.ndarray] = deque()
        self._cond = threading.Condition()
        self._error: BaseException | None = None
        self._ended = False
        self._closed = False
        self._dropped_samples = 0
        self._dropped_chunks = 0

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def dropped_samples(self) -> int:
        return self._dropped_samples

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._chunks)

    # -- producer side --

    def push(self, chunk: np.ndarray | bytes) -> None:
        samples = as_samples(chunk).copy()
        with self._cond:
            if self._closed or self._ended or self._error is not None:
                return
            if len(self._chunks) >= self._capacity:
                evicted = self._chunks.popleft()
                self._dropped_samples += len(evicted)
                self._dropped_chunks += 1
                if self._dropped_chunks == 1:
                    log.warning("Consumer is falling behind, dropping oldest audio chunks")
                else:
                    log.debug("Dropped chunk #%d (%d samples)", self._dropped_chunks, len(evicted))
            self._chunks.append(samples)
            self._cond.notify()

    def fail(self, error: BaseException) -> None:
        with self._cond:
            if self._error is None and not self._closed:
                self._error = error
            self._cond.notify_all()

    def finish(self) -> None:
        with self._cond:
            self._ended = True
            self._cond.notify_all()

    # -- consumer side --

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._chunks.clear()
            self._cond.notify_all()

    def take(self) -> tuple[np.ndarray, int] | None:
        """Block until a chunk is available.

        Returns the chunk with the number of samples dropped ahead of it, read
        under the same lock so later evictions are never counted against it.

        Returns None once nothing more will arrive: after close(), after a
        failure, or after finish() once pending chunks are drained.
        """
        with self._cond:
            while True:
                if self._closed:
                    return None
                if self._chunks:
                    return self._chunks.popleft(), self._dropped_samples
                if self._error is not None or self._ended:
                    return None
                self._cond.wait()
