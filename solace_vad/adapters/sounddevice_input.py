"""SoundDevice microphone source."""

from __future__ import annotations

import logging
import threading

import numpy as np
import sounddevice as sd

from solace_vad.config.settings import AudioConfig
from solace_vad.errors import AcquisitionError, CaptureError
from solace_vad.ports.audio_source import IAudioSource, IChunkSink

log = logging.getLogger(__name__)


class _Capture:
    """Handle for one open input stream."""

    def __init__(self, sink: IChunkSink) -> None:
        self.sink = sink
        self.stream: sd.InputStream | None = None
        self.released = threading.Event()

    def on_audio(
        self,
        indata: np.ndarray,
        frames: int,
        time_info: object,
        status: sd.CallbackFlags,
    ) -> None:
        if status:
            log.debug("Audio status: %s", status)
        try:
            self.sink.push(indata[:, 0].copy())
        except Exception as e:
            self.sink.fail(CaptureError(f"Could not deliver audio block: {e}"))
            raise sd.CallbackAbort from e

    def on_finished(self) -> None:
        if not self.released.is_set():
            self.sink.fail(CaptureError("Input stream finished unexpectedly"))


class SoundDeviceSource(IAudioSource):
    def __init__(self, config: AudioConfig) -> None:
        self._config = config

    def acquire(self, sample_rate: int, sink: IChunkSink, channels: int = 1) -> _Capture:
        device_kwargs: dict = {}
        if self._config.device is not None:
            device_kwargs["device"] = self._config.device

        capture = _Capture(sink)
        try:
            stream = sd.InputStream(
                samplerate=sample_rate,
                channels=channels,
                blocksize=self._config.block_size,
                dtype="int16",
                callback=capture.on_audio,
                finished_callback=capture.on_finished,
                **device_kwargs,
            )
        except (sd.PortAudioError, ValueError) as e:
            raise AcquisitionError(f"Could not open input device: {e}") from e

        capture.stream = stream
        started = False
        try:
            stream.start()
            started = True
        except sd.PortAudioError as e:
            raise AcquisitionError(f"Could not start input stream: {e}") from e
        finally:
            if not started:
                capture.released.set()
                capture.stream = None
                stream.close()

        log.info(
            "Audio stream started (rate=%d, block=%d)",
            sample_rate,
            self._config.block_size,
        )
        return capture

    def release(self, handle: _Capture) -> None:
        if handle.released.is_set():
            return
        handle.released.set()
        stream, handle.stream = handle.stream, None
        if stream is not None:
            try:
                stream.stop()
            finally:
                stream.close()
        log.info("Audio stream closed")
