"""Ownership wrapper for a single loaded model."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import os
from pathlib import Path
from typing import Any

import numpy as np

from .base import InferenceBackend, InferenceError, ModelLoadError, RawInferenceOutput


logger = logging.getLogger(__name__)


class ModelHandle:
    """Exclusively owns one model resource obtained from a backend.

    The resource is released exactly once, by `release()` or on leaving a
    `with` block. Construction either yields a fully loaded handle or raises
    `ModelLoadError` with nothing left allocated.
    """

    def __init__(self, backend: InferenceBackend, source_path: Path | str) -> None:
        self._backend = backend
        self._model: Any = None
        self.source_path = Path(source_path)

        _check_readable(self.source_path)

        try:
            container = backend.validate_container(self.source_path)
        except ModelLoadError:
            raise
        except Exception as exc:  # noqa: BLE001 - backend validators may raise anything
            raise ModelLoadError(f"Invalid model container {self.source_path}: {exc}") from exc

        try:
            self._model = backend.load_model_file(container)
        except ModelLoadError:
            raise
        except MemoryError as exc:
            raise ModelLoadError(f"Out of memory while loading model {self.source_path}") from exc
        except Exception as exc:  # noqa: BLE001 - backend loaders may raise anything
            raise ModelLoadError(f"Failed to load model {self.source_path}: {exc}") from exc

        if self._model is None:
            raise ModelLoadError(f"Backend returned no model for {self.source_path}")

        self.loaded_at = datetime.now(timezone.utc)
        logger.debug("Model resource acquired: %s", self.source_path)

    @property
    def closed(self) -> bool:
        return self._model is None

    def infer(self, samples: np.ndarray, language: str) -> RawInferenceOutput:
        """Run the owned model on decoded samples.

        Raises:
            InferenceError: If the handle was released or the backend fails.
        """

        if self._model is None:
            raise InferenceError(f"Model {self.source_path} has been released")

        try:
            return self._backend.infer(self._model, samples, language)
        except InferenceError:
            raise
        except MemoryError as exc:
            raise InferenceError("Out of memory during inference") from exc
        except Exception as exc:  # noqa: BLE001 - wrap engine failures, keep the message
            raise InferenceError(str(exc) or type(exc).__name__) from exc

    def release(self) -> None:
        """Free the owned resource. Safe to call more than once."""

        model, self._model = self._model, None
        if model is None:
            return
        try:
            self._backend.release_model(model)
        except Exception as exc:  # noqa: BLE001 - the reference is dropped either way
            logger.warning("Error while releasing model %s: %s", self.source_path, exc)
        logger.debug("Model resource released: %s", self.source_path)

    def __enter__(self) -> "ModelHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.closed else "live"
        return f"ModelHandle({str(self.source_path)!r}, {state})"


def _check_readable(path: Path) -> None:
    """Reject paths that cannot possibly hold a model."""

    if not path.exists():
        raise ModelLoadError(f"Model file not found: {path}")
    if not (path.is_file() or path.is_dir()):
        raise ModelLoadError(f"Model path is not a file or directory: {path}")
    if not os.access(path, os.R_OK):
        raise ModelLoadError(f"Model file is not readable: {path}")
