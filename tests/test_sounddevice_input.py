"""Tests for the SoundDevice microphone source, with sounddevice stubbed out."""

from __future__ import annotations

import importlib
import sys
import types
from unittest.mock import MagicMock

import numpy as np
import pytest

from solace_vad.config.settings import AudioConfig
from solace_vad.errors import AcquisitionError, CaptureError

MODULE = "solace_vad.adapters.sounddevice_input"


@pytest.fixture
def sd_env(monkeypatch):
    fake = types.ModuleType("sounddevice")
    fake.InputStream = MagicMock()  # type: ignore[attr-defined]
    fake.PortAudioError = type("PortAudioError", (Exception,), {})  # type: ignore[attr-defined]
    fake.CallbackAbort = type("CallbackAbort", (Exception,), {})  # type: ignore[attr-defined]
    fake.CallbackFlags = object  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "sounddevice", fake)
    monkeypatch.delitem(sys.modules, MODULE, raising=False)
    module = importlib.import_module(MODULE)
    yield module, fake
    sys.modules.pop(MODULE, None)


def _open(sd_env, device=None):
    module, fake = sd_env
    source = module.SoundDeviceSource(AudioConfig(device=device, block_size=480))
    sink = MagicMock()
    handle = source.acquire(16000, sink)
    kwargs = fake.InputStream.call_args.kwargs
    return source, sink, handle, kwargs


class TestAcquire:
    def test_opens_int16_stream(self, sd_env):
        _, fake = sd_env
        _source, _sink, handle, kwargs = _open(sd_env)
        assert kwargs["samplerate"] == 16000
        assert kwargs["channels"] == 1
        assert kwargs["blocksize"] == 480
        assert kwargs["dtype"] == "int16"
        assert "device" not in kwargs
        fake.InputStream.return_value.start.assert_called_once()
        assert handle.stream is fake.InputStream.return_value

    def test_passes_device(self, sd_env):
        _source, _sink, _handle, kwargs = _open(sd_env, device=4)
        assert kwargs["device"] == 4

    def test_open_failure(self, sd_env):
        module, fake = sd_env
        fake.InputStream.side_effect = fake.PortAudioError("Error querying device -1")
        source = module.SoundDeviceSource(AudioConfig())
        with pytest.raises(AcquisitionError):
            source.acquire(16000, MagicMock())

    def test_invalid_settings(self, sd_env):
        module, fake = sd_env
        fake.InputStream.side_effect = ValueError("No input device matching 'usb'")
        with pytest.raises(AcquisitionError):
            module.SoundDeviceSource(AudioConfig()).acquire(16000, MagicMock())

    def test_start_failure_closes_stream(self, sd_env):
        module, fake = sd_env
        stream = fake.InputStream.return_value
        stream.start.side_effect = fake.PortAudioError("Device unavailable")
        sink = MagicMock()
        with pytest.raises(AcquisitionError):
            module.SoundDeviceSource(AudioConfig()).acquire(16000, sink)
        stream.close.assert_called_once()
        # the finished callback firing during close must not report a capture error
        fake.InputStream.call_args.kwargs["finished_callback"]()
        sink.fail.assert_not_called()

    def test_unexpected_start_error_still_closes_stream(self, sd_env):
        module, fake = sd_env
        stream = fake.InputStream.return_value
        stream.start.side_effect = RuntimeError("host API gone")
        with pytest.raises(RuntimeError):
            module.SoundDeviceSource(AudioConfig()).acquire(16000, MagicMock())
        stream.close.assert_called_once()


class TestCallbacks:
    def test_audio_forwarded_as_mono(self, sd_env):
        _source, sink, _handle, kwargs = _open(sd_env)
        block = np.arange(960, dtype=np.int16).reshape(480, 2)
        kwargs["callback"](block, 480, None, 0)
        pushed = sink.push.call_args[0][0]
        np.testing.assert_array_equal(pushed, block[:, 0])

    def test_push_failure_aborts_stream(self, sd_env):
        _, fake = sd_env
        _source, sink, _handle, kwargs = _open(sd_env)
        sink.push.side_effect = RuntimeError("boom")
        with pytest.raises(fake.CallbackAbort):
            kwargs["callback"](np.zeros((480, 1), dtype=np.int16), 480, None, 0)
        assert isinstance(sink.fail.call_args[0][0], CaptureError)

    def test_unexpected_finish_reports_capture_error(self, sd_env):
        _source, sink, _handle, kwargs = _open(sd_env)
        kwargs["finished_callback"]()
        assert isinstance(sink.fail.call_args[0][0], CaptureError)

    def test_finish_after_release_is_quiet(self, sd_env):
        source, sink, handle, kwargs = _open(sd_env)
        source.release(handle)
        kwargs["finished_callback"]()
        sink.fail.assert_not_called()


class TestRelease:
    def test_stops_and_closes_once(self, sd_env):
        _, fake = sd_env
        source, _sink, handle, _kwargs = _open(sd_env)
        stream = fake.InputStream.return_value
        source.release(handle)
        source.release(handle)
        stream.stop.assert_called_once()
        stream.close.assert_called_once()
        assert handle.stream is None

    def test_close_runs_when_stop_fails(self, sd_env):
        _, fake = sd_env
        source, _sink, handle, _kwargs = _open(sd_env)
        stream = fake.InputStream.return_value
        stream.stop.side_effect = fake.PortAudioError("Stream is not active")
        with pytest.raises(fake.PortAudioError):
            source.release(handle)
        stream.close.assert_called_once()
        assert handle.stream is None
        source.release(handle)
        stream.close.assert_called_once()
