"""Slices variable-length sample chunks into fixed-length frames."""

from __future__ import annotations

import numpy as np


def as_samples(chunk: np.ndarray | bytes) -> np.ndarray:
    """View a raw chunk as 1-D int16 samples, taking channel 0 of 2-D input.

    Float input is treated as normalized audio in [-1, 1] and scaled to the
    int16 range.
    """
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return np.frombuffer(chunk, dtype="<i2")
    samples = np.asarray(chunk)
    if samples.ndim == 2:
        samples = samples[:, 0]
    if np.issubdtype(samples.dtype, np.floating):
        samples = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    elif samples.dtype != np.int16:
        samples = samples.astype(np.int16)
    return samples


class FrameSegmenter:
    """Buffers a partial frame between pushes.

    The residue never holds more than ``frame_length - 1`` samples and is
    stored in a buffer allocated once at construction.
    """

    def __init__(self, frame_length: int) -> None:
        if frame_length <= 0:
            raise ValueError(f"frame_length must be positive, got {frame_length}")
        self._frame_length = frame_length
        self._residue = np.zeros(frame_length, dtype=np.int16)
        self._fill = 0

    @property
    def frame_length(self) -> int:
        return self._frame_length

    @property
    def residue_length(self) -> int:
        return self._fill

    def push(self, chunk: np.ndarray | bytes) -> list[np.ndarray]:
        samples = as_samples(chunk)
        if self._fill:
            samples = np.concatenate((self._residue[: self._fill], samples))

        n = self._frame_length
        usable = (len(samples) // n) * n
        frames = [samples[i : i + n].copy() for i in range(0, usable, n)]

        tail = len(samples) - usable
        self._residue[:tail] = samples[usable:]
        self._fill = tail
        return frames

    def reset(self) -> None:
        self._residue.fill(0)
        self._fill = 0
