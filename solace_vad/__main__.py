"""Entry point: wire adapters to ports and run the frame classification pipeline."""

from __future__ import annotations

import logging
import sys

import numpy as np

from solace_vad.adapters.classifier_factory import build_classifier
from solace_vad.adapters.sounddevice_input import SoundDeviceSource
from solace_vad.adapters.wav_file import WavFileSource, save_wav
from solace_vad.config.logging_config import setup_logging
from solace_vad.config.settings import Settings
from solace_vad.domain.pipeline import ClassifiedFrame, VADPipeline
from solace_vad.domain.serialization import encode_frames
from solace_vad.errors import AcquisitionError, CaptureError
from solace_vad.ports.audio_source import IAudioSource

log = logging.getLogger(__name__)


def build_source(settings: Settings) -> IAudioSource:
    if settings.audio.input_file:
        return WavFileSource(
            settings.audio.input_file,
            block_size=settings.audio.block_size,
            realtime=settings.audio.realtime,
        )
    return SoundDeviceSource(settings.audio)


def run(pipeline: VADPipeline, settings: Settings) -> list[ClassifiedFrame]:
    """Consume the pipeline, logging speech boundaries.

    Frames are kept only when ``--save-wav`` or ``--dump`` will write them.
    Ctrl-C ends the run normally so those outputs are still produced.
    """
    collected: list[ClassifiedFrame] = []
    keep = bool(settings.save_wav or settings.dump)
    limit_ms = settings.duration * 1000 if settings.duration is not None else None
    in_speech = False

    with pipeline:
        try:
            for classified in pipeline.start():
                if limit_ms is not None and classified.timestamp_ms >= limit_ms:
                    log.info("Duration limit reached (%.1fs)", settings.duration)
                    break
                if keep:
                    collected.append(classified)
                if classified.has_voice and not in_speech:
                    log.info("Speech started at %d ms", classified.timestamp_ms)
                elif in_speech and not classified.has_voice:
                    log.info("Speech ended at %d ms", classified.timestamp_ms)
                in_speech = classified.has_voice
        except KeyboardInterrupt:
            log.info("Interrupted")

    state = pipeline.current_state()
    log.info(
        "Captured %d frames (%d voiced, %d dropped)",
        state.frames_emitted,
        state.voiced_frames,
        state.dropped_frames,
    )
    return collected


def main(settings: Settings | None = None) -> int:
    if settings is None:
        settings = Settings.from_args()

    setup_logging(settings.debug)

    classifier = build_classifier(settings.pipeline, settings.classifier)
    source = build_source(settings)
    pipeline = VADPipeline(
        settings.pipeline,
        source,
        classifier,
        max_pending_chunks=settings.audio.max_pending_chunks,
    )

    try:
        frames = run(pipeline, settings)
    except (AcquisitionError, CaptureError) as e:
        log.error("%s: %s", e.code, e)
        return 1

    if settings.save_wav:
        voiced = [f.frame for f in frames if f.has_voice]
        audio = np.concatenate(voiced) if voiced else np.array([], dtype=np.int16)
        save_wav(audio, settings.save_wav, settings.pipeline.sample_rate)
        log.info("Wrote %.2fs of voiced audio to %s", len(audio) / settings.pipeline.sample_rate, settings.save_wav)

    if settings.dump:
        with open(settings.dump, "wb") as f:
            f.write(encode_frames(frames, settings.pipeline))
        log.info("Wrote %d serialized frames to %s", len(frames), settings.dump)

    return 0


if __name__ == "__main__":
    sys.exit(main())
