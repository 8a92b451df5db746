"""RMS energy-threshold frame classifier. Needs nothing beyond numpy."""

from __future__ import annotations

import numpy as np

from solace_vad.ports.frame_classifier import IFrameClassifier

# int16 RMS needed per aggressiveness level
THRESHOLDS = (1000.0, 650.0, 400.0, 250.0)


def rms(frame: np.ndarray) -> float:
    if len(frame) == 0:
        return 0.0
    return float(np.sqrt(np.mean(frame.astype(np.float64) ** 2)))


class EnergyClassifier(IFrameClassifier):
    def __init__(self, aggressiveness: int = 1, threshold: float | None = None) -> None:
        self.threshold = THRESHOLDS[aggressiveness] if threshold is None else threshold

    def classify(self, frame: np.ndarray, sample_rate: int) -> bool:
        return rms(frame) > self.threshold
