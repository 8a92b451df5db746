"""Continuous voice-activity classification of live audio frames."""

__version__ = "0.1.0"
