"""Error taxonomy for the capture pipeline."""

from __future__ import annotations


class VADError(Exception):
    """Base error with a machine-readable code."""

    code = "VAD_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigError(VADError, ValueError):
    code = "CONFIG_ERROR"


class AcquisitionError(VADError):
    """Audio device unavailable or access denied."""

    code = "ACQUISITION_ERROR"


class CaptureError(VADError):
    """Mid-stream read failure on the audio source."""

    code = "CAPTURE_ERROR"


class ClassificationFailure(VADError):
    """A single frame could not be classified. Never surfaced to consumers."""

    code = "CLASSIFICATION_FAILURE"

    def __init__(self, message: str, frame_index: int) -> None:
        super().__init__(message)
        self.frame_index = frame_index


class PipelineStateError(VADError, RuntimeError):
    code = "PIPELINE_STATE_ERROR"
