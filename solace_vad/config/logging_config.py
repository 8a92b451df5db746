"""Logging configuration for solace-vad."""

from __future__ import annotations

import logging


def setup_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    # per-frame pipeline detail is only wanted when debugging
    logging.getLogger("solace_vad.domain.pipeline").setLevel(logging.DEBUG if debug else logging.INFO)
