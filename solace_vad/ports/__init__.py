"""Port interfaces (ABCs) for the hexagonal architecture."""

from solace_vad.ports.audio_source import IAudioSource, IChunkSink
from solace_vad.ports.envelope_codec import Envelope, IEnvelopeCodec
from solace_vad.ports.frame_classifier import IFrameClassifier

__all__ = [
    "Envelope",
    "IAudioSource",
    "IChunkSink",
    "IEnvelopeCodec",
    "IFrameClassifier",
]
