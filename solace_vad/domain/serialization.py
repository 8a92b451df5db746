"""Plaintext encoding of classified frames for the downstream envelope codec."""

from __future__ import annotations

import base64
import json
from collections.abc import Iterable

import numpy as np

from solace_vad.config.settings import PipelineConfig
from solace_vad.domain.pipeline import ClassifiedFrame

FORMAT_VERSION = 1


def encode_frames(frames: Iterable[ClassifiedFrame], config: PipelineConfig) -> bytes:
    """Serialize frames as UTF-8 JSON with base64 little-endian PCM."""
    payload = {
        "version": FORMAT_VERSION,
        "sampleRate": config.sample_rate,
        "frameDurationMs": config.frame_duration_ms,
        "frames": [
            {
                "timestampMs": f.timestamp_ms,
                "hasVoice": f.has_voice,
                "pcm": base64.b64encode(np.ascontiguousarray(f.frame, dtype="<i2").tobytes()).decode("ascii"),
            }
            for f in frames
        ],
    }
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def decode_frames(data: bytes) -> tuple[PipelineConfig, list[ClassifiedFrame]]:
    payload = json.loads(data.decode("utf-8"))
    if payload.get("version") != FORMAT_VERSION:
        raise ValueError(f"Unsupported frame payload version: {payload.get('version')!r}")
    config = PipelineConfig(
        sample_rate=payload["sampleRate"],
        frame_duration_ms=payload["frameDurationMs"],
    )
    frames = []
    for item in payload["frames"]:
        pcm = np.frombuffer(base64.b64decode(item["pcm"]), dtype="<i2").astype(np.int16)
        pcm.setflags(write=False)
        frames.append(ClassifiedFrame(frame=pcm, timestamp_ms=item["timestampMs"], has_voice=item["hasVoice"]))
    return config, frames
