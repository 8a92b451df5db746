from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np


class IChunkSink(ABC):
    """Receives raw sample chunks from a capture thread."""

    @abstractmethod
    def push(self, chunk: np.ndarray | bytes) -> None: ...

    @abstractmethod
    def fail(self, error: BaseException) -> None:
        """Report a fatal read failure."""

    @abstractmethod
    def finish(self) -> None:
        """Report that the source has no more audio."""


class IAudioSource(ABC):
    @abstractmethod
    def acquire(self, sample_rate: int, sink: IChunkSink, channels: int = 1) -> Any:
        """Open the device and start delivering chunks to ``sink``.

        Returns an opaque handle. Raises AcquisitionError on failure, leaving
        nothing held.
        """

    @abstractmethod
    def release(self, handle: Any) -> None:
        """Stop delivery and free the handle. Safe to call twice."""
