"""WAV file replay source and WAV writing."""

from __future__ import annotations

import logging
import threading
import time
import wave

import numpy as np

from solace_vad.errors import AcquisitionError, CaptureError
from solace_vad.ports.audio_source import IAudioSource, IChunkSink

log = logging.getLogger(__name__)


class _Playback:
    def __init__(self, reader: wave.Wave_read, sink: IChunkSink) -> None:
        self.reader = reader
        self.sink = sink
        self.released = threading.Event()
        self.thread: threading.Thread | None = None


class WavFileSource(IAudioSource):
    """Replays a 16-bit mono WAV file in fixed blocks on a background thread.

    With ``realtime`` set, blocks are paced at the file's own rate so the
    pipeline sees the same cadence a microphone would produce.
    """

    def __init__(self, path: str, block_size: int = 480, realtime: bool = True) -> None:
        self._path = path
        self._block_size = block_size
        self._realtime = realtime

    def acquire(self, sample_rate: int, sink: IChunkSink, channels: int = 1) -> _Playback:
        try:
            reader = wave.open(self._path, "rb")
        except (OSError, EOFError, wave.Error) as e:
            raise AcquisitionError(f"Could not open {self._path}: {e}") from e

        problem = None
        if reader.getsampwidth() != 2:
            problem = f"expected 16-bit samples, got {reader.getsampwidth() * 8}-bit"
        elif reader.getnchannels() != channels:
            problem = f"expected {channels} channel(s), got {reader.getnchannels()}"
        elif reader.getframerate() != sample_rate:
            problem = f"expected {sample_rate} Hz, got {reader.getframerate()} Hz"
        if problem:
            reader.close()
            raise AcquisitionError(f"{self._path}: {problem}")

        playback = _Playback(reader, sink)
        playback.thread = threading.Thread(
            target=self._run,
            args=(playback, sample_rate),
            name="wav-replay",
            daemon=True,
        )
        playback.thread.start()
        log.info("Replaying %s (rate=%d, block=%d)", self._path, sample_rate, self._block_size)
        return playback

    def release(self, handle: _Playback) -> None:
        if handle.released.is_set():
            return
        handle.released.set()
        thread = handle.thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)
        handle.reader.close()

    def _run(self, playback: _Playback, sample_rate: int) -> None:
        block_sec = self._block_size / sample_rate
        next_due = time.monotonic()
        try:
            while not playback.released.is_set():
                data = playback.reader.readframes(self._block_size)
                if not data:
                    playback.sink.finish()
                    return
                playback.sink.push(np.frombuffer(data, dtype="<i2"))
                if self._realtime:
                    next_due += block_sec
                    delay = next_due - time.monotonic()
                    if delay > 0:
                        playback.released.wait(delay)
        except (OSError, EOFError, wave.Error, ValueError) as e:
            if not playback.released.is_set():
                playback.sink.fail(CaptureError(f"Reading {self._path} failed: {e}"))


def save_wav(audio_data: np.ndarray, path: str, sample_rate: int, channels: int = 1) -> None:
    """Save int16 numpy array as WAV file."""
    with wave.open(path, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(np.ascontiguousarray(audio_data, dtype="<i2").tobytes())
