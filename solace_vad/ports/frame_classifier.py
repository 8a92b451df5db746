from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


class IFrameClassifier(ABC):
    @abstractmethod
    def classify(self, frame: np.ndarray, sample_rate: int) -> bool:
        """Returns True if the frame contains voice. Must not keep the frame."""
