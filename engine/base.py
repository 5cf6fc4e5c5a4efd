"""Base interfaces for inference backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import numpy as np


AUTO_LANGUAGE = "auto"


class EngineError(RuntimeError):
    """Base error for model loading and inference failures."""


class ModelLoadError(EngineError):
    """Raised when a model cannot be validated or loaded."""


class InferenceError(EngineError):
    """Raised when the inference capability fails on a request."""


@dataclass(frozen=True, slots=True)
class RawSegment:
    """One decoded span of text. Times are in seconds."""

    start: float
    end: float
    text: str


@dataclass(frozen=True, slots=True)
class RawInferenceOutput:
    """What a backend returns for a single inference pass."""

    segments: tuple[RawSegment, ...] = ()
    language: Optional[str] = None
    language_probability: Optional[float] = None


class InferenceBackend(ABC):
    """Interface for speech-to-text inference engines.

    A backend is stateless with respect to models: it hands out opaque
    resources from `load_model_file` and expects them back in `infer` and
    `release_model`. Ownership of those resources belongs to `ModelHandle`.
    """

    @abstractmethod
    def validate_container(self, path: Path) -> Path:
        """Check the model container's format before loading it.

        Args:
            path: User-supplied model path.

        Returns:
            The path to hand to `load_model_file`.

        Raises:
            ModelLoadError: If the container is malformed or unsupported.
        """

    @abstractmethod
    def load_model_file(self, path: Path) -> Any:
        """Load a validated model container and return an opaque resource."""

    @abstractmethod
    def release_model(self, model: Any) -> None:
        """Free a resource previously returned by `load_model_file`."""

    @abstractmethod
    def infer(self, model: Any, samples: np.ndarray, language: str) -> RawInferenceOutput:
        """Decode speech from 16kHz mono float32 samples.

        Args:
            model: Resource returned by `load_model_file`.
            samples: Normalized float32 PCM samples.
            language: Language code (e.g. "en") or "auto" to detect.
        """
