"""WebRTC VAD frame classifier."""

from __future__ import annotations

import numpy as np
import webrtcvad

from solace_vad.ports.frame_classifier import IFrameClassifier


class WebRTCClassifier(IFrameClassifier):
    """Wraps one ``webrtcvad.Vad`` per pipeline.

    WebRTC modes count filtering strength, so the most sensitive
    aggressiveness (3) maps to mode 0.
    """

    def __init__(self, aggressiveness: int = 1) -> None:
        self._mode = 3 - aggressiveness
        self._vad = webrtcvad.Vad(self._mode)

    @property
    def mode(self) -> int:
        return self._mode

    def classify(self, frame: np.ndarray, sample_rate: int) -> bool:
        pcm = np.ascontiguousarray(frame, dtype="<i2").tobytes()
        return bool(self._vad.is_speech(pcm, sample_rate))
