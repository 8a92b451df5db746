"""Settings dataclasses with nested sub-configs for solace-vad."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field

from solace_vad.errors import ConfigError

AGGRESSIVENESS_LEVELS = (0, 1, 2, 3)
FRAME_DURATIONS_MS = (10, 20, 30)
SAMPLE_RATES = (8000, 16000, 32000, 48000)
CLASSIFIER_BACKENDS = ("auto", "webrtc", "silero", "energy")


@dataclass(frozen=True)
class PipelineConfig:
    aggressiveness: int = 1
    frame_duration_ms: int = 30
    sample_rate: int = 16000

    def __post_init__(self) -> None:
        if self.aggressiveness not in AGGRESSIVENESS_LEVELS:
            raise ConfigError(f"aggressiveness must be one of {AGGRESSIVENESS_LEVELS}, got {self.aggressiveness!r}")
        if self.frame_duration_ms not in FRAME_DURATIONS_MS:
            raise ConfigError(
                f"frame_duration_ms must be one of {FRAME_DURATIONS_MS}, got {self.frame_duration_ms!r}"
            )
        if self.sample_rate not in SAMPLE_RATES:
            raise ConfigError(f"sample_rate must be one of {SAMPLE_RATES}, got {self.sample_rate!r}")
        if (self.sample_rate * self.frame_duration_ms) % 1000:
            raise ConfigError(
                f"{self.frame_duration_ms} ms at {self.sample_rate} Hz is not a whole number of samples"
            )

    @property
    def frame_length(self) -> int:
        """Samples per frame."""
        return self.sample_rate * self.frame_duration_ms // 1000


@dataclass(frozen=True)
class AudioConfig:
    device: int | None = None
    block_size: int = 480
    max_pending_chunks: int = 64
    input_file: str | None = None
    realtime: bool = True

    def __post_init__(self) -> None:
        if self.block_size <= 0:
            raise ConfigError(f"block_size must be positive, got {self.block_size!r}")
        if self.max_pending_chunks <= 0:
            raise ConfigError(f"max_pending_chunks must be positive, got {self.max_pending_chunks!r}")


@dataclass(frozen=True)
class ClassifierConfig:
    backend: str = "auto"
    model_path: str | None = None

    def __post_init__(self) -> None:
        if self.backend not in CLASSIFIER_BACKENDS:
            raise ConfigError(f"backend must be one of {CLASSIFIER_BACKENDS}, got {self.backend!r}")


@dataclass(frozen=True)
class Settings:
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    duration: float | None = None
    save_wav: str | None = None
    dump: str | None = None
    debug: bool = False

    @classmethod
    def from_args(cls, argv: list[str] | None = None) -> Settings:
        parser = argparse.ArgumentParser(description="Classify live audio frames as voiced or unvoiced")
        parser.add_argument(
            "--list-devices",
            action="store_true",
            help="List audio devices and exit",
        )
        parser.add_argument(
            "--device",
            type=int,
            default=None,
            help="Input device index (default: $VAD_INPUT_DEVICE or system default)",
        )
        parser.add_argument(
            "--input-file",
            type=str,
            default=None,
            help="Replay a 16-bit mono WAV file instead of the microphone",
        )
        parser.add_argument(
            "--no-realtime",
            action="store_true",
            help="Replay --input-file as fast as possible",
        )
        parser.add_argument(
            "--aggressiveness",
            type=int,
            choices=AGGRESSIVENESS_LEVELS,
            default=PipelineConfig.aggressiveness,
            help="Classifier sensitivity, higher marks more frames voiced (default: %(default)s)",
        )
        parser.add_argument(
            "--frame-ms",
            type=int,
            choices=FRAME_DURATIONS_MS,
            default=PipelineConfig.frame_duration_ms,
            help="Frame duration in milliseconds (default: %(default)s)",
        )
        parser.add_argument(
            "--sample-rate",
            type=int,
            choices=SAMPLE_RATES,
            default=PipelineConfig.sample_rate,
            help="Capture sample rate (default: %(default)s)",
        )
        parser.add_argument(
            "--block-size",
            type=int,
            default=AudioConfig.block_size,
            help="Samples per device callback (default: %(default)s)",
        )
        parser.add_argument(
            "--classifier",
            choices=CLASSIFIER_BACKENDS,
            default=ClassifierConfig.backend,
            help="Frame classifier backend (default: %(default)s)",
        )
        parser.add_argument(
            "--duration",
            type=float,
            default=None,
            help="Stop after this many seconds of audio",
        )
        parser.add_argument("--save-wav", type=str, default=None, help="Write voiced audio to this WAV file")
        parser.add_argument("--dump", type=str, default=None, help="Write serialized classified frames here")
        parser.add_argument("--debug", action="store_true")

        args = parser.parse_args(argv)

        if args.list_devices:
            import sounddevice as sd

            print(sd.query_devices())
            raise SystemExit(0)

        device = args.device
        if device is None and os.environ.get("VAD_INPUT_DEVICE"):
            try:
                device = int(os.environ["VAD_INPUT_DEVICE"])
            except ValueError as e:
                raise ConfigError(f"VAD_INPUT_DEVICE must be an integer: {e}") from e

        return cls(
            pipeline=PipelineConfig(
                aggressiveness=args.aggressiveness,
                frame_duration_ms=args.frame_ms,
                sample_rate=args.sample_rate,
            ),
            audio=AudioConfig(
                device=device,
                block_size=args.block_size,
                input_file=args.input_file,
                realtime=not args.no_realtime,
            ),
            classifier=ClassifierConfig(
                backend=args.classifier,
                model_path=os.environ.get("SILERO_VAD_MODEL"),
            ),
            duration=args.duration,
            save_wav=args.save_wav,
            dump=args.dump,
            debug=args.debug,
        )

    @classmethod
    def default(cls) -> Settings:
        return cls()
