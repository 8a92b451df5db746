"""Ranked selection of frame classifier backends."""

from __future__ import annotations

import logging
from typing import Callable

from solace_vad.config.settings import ClassifierConfig, PipelineConfig
from solace_vad.errors import ConfigError
from solace_vad.ports.frame_classifier import IFrameClassifier

log = logging.getLogger(__name__)


def _webrtc(pipeline: PipelineConfig, config: ClassifierConfig) -> IFrameClassifier:
    from solace_vad.adapters.webrtc_classifier import WebRTCClassifier

    return WebRTCClassifier(pipeline.aggressiveness)


def _silero(pipeline: PipelineConfig, config: ClassifierConfig) -> IFrameClassifier:
    from solace_vad.domain.vad import SileroClassifier, find_silero_vad_model

    model_path = find_silero_vad_model(config.model_path)
    log.info("Loading Silero VAD from: %s", model_path)
    return SileroClassifier(model_path, pipeline.aggressiveness)


def _energy(pipeline: PipelineConfig, config: ClassifierConfig) -> IFrameClassifier:
    from solace_vad.adapters.energy_classifier import EnergyClassifier

    return EnergyClassifier(pipeline.aggressiveness)


Provider = Callable[[PipelineConfig, ClassifierConfig], IFrameClassifier]

PROVIDERS: dict[str, Provider] = {
    "webrtc": _webrtc,
    "silero": _silero,
    "energy": _energy,
}

# tried in this order for backend="auto"
RANKING = ("webrtc", "silero", "energy")


def build_classifier(
    pipeline: PipelineConfig,
    config: ClassifierConfig | None = None,
    providers: dict[str, Provider] | None = None,
) -> IFrameClassifier:
    config = config or ClassifierConfig()
    providers = providers or PROVIDERS

    if config.backend != "auto":
        try:
            return providers[config.backend](pipeline, config)
        except Exception as e:
            raise ConfigError(f"Classifier backend '{config.backend}' unavailable: {e}") from e

    for name in RANKING:
        try:
            classifier = providers[name](pipeline, config)
        except Exception as e:
            log.warning("Classifier backend '%s' unavailable: %s", name, e)
            continue
        log.info("Using '%s' frame classifier", name)
        return classifier

    raise ConfigError("No frame classifier backend could be constructed")
