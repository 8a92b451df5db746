"""Domain layer: pipeline state machine, segmenter, handoff, classifiers."""

from solace_vad.domain.frame_segmenter import FrameSegmenter
from solace_vad.domain.handoff import ChunkHandoff
from solace_vad.domain.pipeline import ClassifiedFrame, VADPipeline, record_and_detect_voice
from solace_vad.domain.recording_state import (
    PipelineState,
    RecordingState,
    RecordingStateAccessor,
)

__all__ = [
    "ChunkHandoff",
    "ClassifiedFrame",
    "FrameSegmenter",
    "PipelineState",
    "RecordingState",
    "RecordingStateAccessor",
    "VADPipeline",
    "record_and_detect_voice",
]
