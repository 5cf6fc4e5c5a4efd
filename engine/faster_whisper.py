"""faster-whisper inference backend implementation."""

from __future__ import annotations

import json
from pathlib import Path
import struct
from typing import Any

import numpy as np

from .base import AUTO_LANGUAGE, InferenceBackend, ModelLoadError, RawInferenceOutput, RawSegment


WEIGHTS_FILENAME = "model.bin"
CONFIG_FILENAME = "config.json"


class FasterWhisperBackend(InferenceBackend):
    """Inference backend backed by the `faster-whisper` library.

    Models are CTranslate2 Whisper conversions on local disk, addressed either
    by their directory or by the `model.bin` inside it. Nothing is downloaded.
    """

    def __init__(
        self,
        device: str = "cpu",
        compute_type: str = "default",
        cpu_threads: int = 4,
        beam_size: int = 5,
    ) -> None:
        """Create a FasterWhisperBackend.

        Args:
            device: Inference device string (default: "cpu").
            compute_type: CTranslate2 compute type; "default" picks int8 on CPU.
            cpu_threads: Threads used for CPU inference.
            beam_size: Beam width used while decoding.
        """

        self._device = device
        self._compute_type = compute_type
        self._cpu_threads = cpu_threads
        self._beam_size = beam_size

    def validate_container(self, path: Path) -> Path:
        """Check the CTranslate2 layout and weights header, returning the model directory."""

        if path.is_dir():
            model_dir = path
            weights = path / WEIGHTS_FILENAME
        else:
            model_dir = path.parent
            weights = path

        if not weights.is_file():
            raise ModelLoadError(f"Model weights not found: {weights}")

        with weights.open("rb") as f:
            header = f.read(4)
        if len(header) < 4:
            raise ModelLoadError(f"Model weights are truncated: {weights}")
        (binary_version,) = struct.unpack("<I", header)
        if binary_version == 0:
            raise ModelLoadError(f"Model weights have an invalid header: {weights}")

        config_path = model_dir / CONFIG_FILENAME
        if not config_path.is_file():
            raise ModelLoadError(f"Model config not found: {config_path}")
        try:
            config = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            raise ModelLoadError(f"Model config is not valid JSON: {config_path}") from exc
        if not isinstance(config, dict):
            raise ModelLoadError(f"Model config must be a JSON object: {config_path}")

        return model_dir

    def load_model_file(self, path: Path) -> Any:
        """Construct the underlying faster-whisper model."""

        try:
            from faster_whisper import WhisperModel
        except ModuleNotFoundError as exc:
            raise ModuleNotFoundError(
                "Missing dependency: faster-whisper. Install with `pip install -e .`."
            ) from exc

        compute_type = self._compute_type
        if compute_type == "default" and self._device.strip().lower() == "cpu":
            compute_type = "int8"

        return WhisperModel(
            str(path),
            device=self._device,
            compute_type=compute_type,
            cpu_threads=self._cpu_threads,
            local_files_only=True,
        )

    def release_model(self, model: Any) -> None:
        """Unload CTranslate2 weights eagerly instead of waiting for garbage collection."""

        inner = getattr(model, "model", None)
        unload = getattr(inner, "unload_model", None)
        if callable(unload):
            unload()

    def infer(self, model: Any, samples: np.ndarray, language: str) -> RawInferenceOutput:
        """Transcribe samples and collect every segment before returning."""

        auto = language == AUTO_LANGUAGE
        segments, info = model.transcribe(
            samples,
            language=None if auto else language,
            beam_size=self._beam_size,
        )

        # faster-whisper decodes lazily; draining here keeps all work inside the caller's lock.
        collected = tuple(
            RawSegment(start=float(seg.start), end=float(seg.end), text=seg.text)
            for seg in segments
            if isinstance(getattr(seg, "text", None), str)
        )

        if not auto:
            return RawInferenceOutput(segments=collected)

        return RawInferenceOutput(
            segments=collected,
            language=getattr(info, "language", None),
            language_probability=getattr(info, "language_probability", None),
        )
