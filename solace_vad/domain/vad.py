"""Silero VAD frame classifier using ONNX runtime (no torch dependency)."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import numpy as np
import onnxruntime

from solace_vad.ports.frame_classifier import IFrameClassifier

log = logging.getLogger(__name__)

# speech probability needed per aggressiveness level
THRESHOLDS = (0.7, 0.55, 0.4, 0.25)

# samples per model window at each natively supported rate
_WINDOWS = {8000: 256, 16000: 512}


class SileroClassifier(IFrameClassifier):
    """Silero VAD with its LSTM state zeroed before every frame.

    Frames at 32 or 48 kHz are decimated to 16 kHz; every frame is
    zero-padded to the model window.
    """

    def __init__(self, model_path: str, aggressiveness: int = 1) -> None:
        self.threshold = THRESHOLDS[aggressiveness]
        opts = onnxruntime.SessionOptions()
        opts.inter_op_num_threads = 1
        opts.intra_op_num_threads = 1
        self._session = onnxruntime.InferenceSession(model_path, sess_options=opts)

    def probability(self, frame: np.ndarray, sample_rate: int) -> float:
        """Run the model on one frame and return speech probability."""
        audio, rate = _prepare(frame, sample_rate)
        ort_inputs = {
            "input": audio.reshape(1, -1),
            "h": np.zeros((2, 1, 64), dtype=np.float32),
            "c": np.zeros((2, 1, 64), dtype=np.float32),
            "sr": np.array(rate, dtype=np.int64),
        }
        out, _h, _c = self._session.run(None, ort_inputs)
        return float(out[0][0])

    def classify(self, frame: np.ndarray, sample_rate: int) -> bool:
        return self.probability(frame, sample_rate) >= self.threshold


def _prepare(frame: np.ndarray, sample_rate: int) -> tuple[np.ndarray, int]:
    if frame.dtype == np.int16:
        audio = frame.astype(np.float32) / 32767.0
    else:
        audio = frame.astype(np.float32)

    rate = sample_rate
    if rate not in _WINDOWS:
        audio = audio[:: rate // 16000]
        rate = 16000

    window = _WINDOWS[rate]
    if len(audio) < window:
        audio = np.pad(audio, (0, window - len(audio)))
    return audio, rate


def find_silero_vad_model(explicit: str | None = None) -> str:
    """Locate the Silero VAD ONNX model.

    Checks an explicit path, then $SILERO_VAD_MODEL, then the copy bundled
    with openwakeword, then anything under the active prefix.

    Raises:
        FileNotFoundError: If no model file can be found.
    """
    for candidate in (explicit, os.environ.get("SILERO_VAD_MODEL")):
        if candidate:
            if os.path.exists(candidate):
                return candidate
            raise FileNotFoundError(f"Silero VAD model not found at {candidate}")

    try:
        import openwakeword

        pkg_dir = os.path.dirname(openwakeword.__file__)
        path = os.path.join(pkg_dir, "resources", "models", "silero_vad.onnx")
        if os.path.exists(path):
            return path
    except ImportError:
        log.debug("openwakeword not installed, searching %s", sys.prefix)

    venv = Path(sys.prefix)
    for p in venv.rglob("silero_vad.onnx"):
        return str(p)

    raise FileNotFoundError("silero_vad.onnx not found. Install openwakeword or set SILERO_VAD_MODEL.")
