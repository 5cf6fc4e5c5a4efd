"""Inference backend factory and exports."""

from __future__ import annotations

from app.config import EngineConfig

from .base import (
    AUTO_LANGUAGE,
    EngineError,
    InferenceBackend,
    InferenceError,
    ModelLoadError,
    RawInferenceOutput,
    RawSegment,
)
from .faster_whisper import FasterWhisperBackend
from .handle import ModelHandle


def create_backend(config: EngineConfig) -> InferenceBackend:
    """Create an inference backend from configuration.

    This factory allows adding future backends without changing session logic.
    """

    backend = (config.backend or "").strip().lower()
    if backend in {"faster-whisper", "faster_whisper", "whisper"}:
        return FasterWhisperBackend(
            device=config.device,
            compute_type=config.compute_type,
            cpu_threads=config.cpu_threads,
            beam_size=config.beam_size,
        )
    raise ValueError(f"Unsupported engine backend: {config.backend!r}")


__all__ = [
    "AUTO_LANGUAGE",
    "EngineError",
    "FasterWhisperBackend",
    "InferenceBackend",
    "InferenceError",
    "ModelHandle",
    "ModelLoadError",
    "RawInferenceOutput",
    "RawSegment",
    "create_backend",
]
