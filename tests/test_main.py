"""End-to-end tests for the command line entry point."""

from __future__ import annotations

import importlib
import json
import sys
import types
import wave
from unittest.mock import MagicMock

import numpy as np
import pytest

from solace_vad.adapters.energy_classifier import EnergyClassifier
from solace_vad.adapters.wav_file import save_wav
from solace_vad.config.settings import AudioConfig, ClassifierConfig, PipelineConfig, Settings


@pytest.fixture
def main_module(monkeypatch):
    fake = types.ModuleType("sounddevice")
    fake.InputStream = MagicMock()  # type: ignore[attr-defined]
    fake.PortAudioError = type("PortAudioError", (Exception,), {})  # type: ignore[attr-defined]
    fake.CallbackAbort = type("CallbackAbort", (Exception,), {})  # type: ignore[attr-defined]
    fake.CallbackFlags = object  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "sounddevice", fake)
    for name in ("solace_vad.__main__", "solace_vad.adapters.sounddevice_input"):
        monkeypatch.delitem(sys.modules, name, raising=False)
    module = importlib.import_module("solace_vad.__main__")
    yield module
    for name in ("solace_vad.__main__", "solace_vad.adapters.sounddevice_input"):
        sys.modules.pop(name, None)


def _settings(input_file: str, **kwargs) -> Settings:
    return Settings(
        pipeline=PipelineConfig(),
        audio=AudioConfig(input_file=input_file, block_size=200, realtime=False),
        classifier=ClassifierConfig(backend="energy"),
        **kwargs,
    )


@pytest.fixture
def clip(tmp_path):
    audio = np.concatenate([np.full(960, 3000, dtype=np.int16), np.zeros(480, dtype=np.int16)])
    path = tmp_path / "clip.wav"
    save_wav(audio, str(path), 16000)
    return str(path)


class TestMain:
    def test_writes_voiced_audio_and_dump(self, main_module, clip, tmp_path):
        out_wav = tmp_path / "voiced.wav"
        dump = tmp_path / "frames.json"

        code = main_module.main(_settings(clip, save_wav=str(out_wav), dump=str(dump)))

        assert code == 0
        with wave.open(str(out_wav), "rb") as wf:
            assert wf.getnframes() == 960
        payload = json.loads(dump.read_bytes())
        assert [f["hasVoice"] for f in payload["frames"]] == [True, True, False]

    def test_duration_limit(self, main_module, clip, tmp_path):
        dump = tmp_path / "frames.json"
        code = main_module.main(_settings(clip, duration=0.05, dump=str(dump)))
        assert code == 0
        payload = json.loads(dump.read_bytes())
        assert [f["timestampMs"] for f in payload["frames"]] == [0, 30]

    def test_missing_input_file(self, main_module, tmp_path):
        assert main_module.main(_settings(str(tmp_path / "nope.wav"))) == 1

    def test_microphone_source_when_no_file(self, main_module):
        settings = Settings(audio=AudioConfig(device=2))
        source = main_module.build_source(settings)
        assert type(source).__name__ == "SoundDeviceSource"

    def test_interrupt_still_writes_outputs(self, main_module, clip, tmp_path, monkeypatch):
        classifier = MagicMock()
        classifier.classify.side_effect = [True, True, KeyboardInterrupt()]
        monkeypatch.setattr(main_module, "build_classifier", lambda *args: classifier)
        out_wav = tmp_path / "voiced.wav"
        dump = tmp_path / "frames.json"

        code = main_module.main(_settings(clip, save_wav=str(out_wav), dump=str(dump)))

        assert code == 0
        with wave.open(str(out_wav), "rb") as wf:
            assert wf.getnframes() == 960
        payload = json.loads(dump.read_bytes())
        assert [f["timestampMs"] for f in payload["frames"]] == [0, 30]


class TestRun:
    def test_frames_not_kept_without_outputs(self, main_module, clip):
        settings = _settings(clip)
        pipeline = main_module.VADPipeline(
            settings.pipeline,
            main_module.build_source(settings),
            EnergyClassifier(1),
        )

        assert main_module.run(pipeline, settings) == []
        assert pipeline.current_state().frames_emitted == 3
