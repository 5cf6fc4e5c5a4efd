from __future__ import annotations

from pathlib import Path
import struct
import threading
import time
from typing import Any, Callable, Optional
import wave

import numpy as np
import pytest

from engine.base import (
    AUTO_LANGUAGE,
    InferenceBackend,
    ModelLoadError,
    RawInferenceOutput,
    RawSegment,
)
from session import SessionManager


FAKE_MAGIC = b"FAKEMODEL"


class FakeModel:
    def __init__(self, path: Path) -> None:
        self.path = path


class FakeBackend(InferenceBackend):
    """In-memory backend that records how it is driven.

    The transcript echoes the number of samples it was given, so results can
    be matched back to the request that produced them.
    """

    def __init__(
        self,
        language: str = "tr",
        probability: Optional[float] = 0.87,
        infer_error: Optional[BaseException] = None,
        load_error: Optional[BaseException] = None,
        delay: float = 0.0,
        text: Optional[str] = None,
    ) -> None:
        self.language = language
        self.probability = probability
        self.infer_error = infer_error
        self.load_error = load_error
        self.delay = delay
        self.text = text
        self.loaded: list[FakeModel] = []
        self.released: list[FakeModel] = []
        self.infer_calls: list[tuple[FakeModel, int, str]] = []
        self.max_live = 0
        self.max_concurrent_inferences = 0
        self._active = 0
        self._lock = threading.Lock()

    @property
    def live(self) -> int:
        return len(self.loaded) - len(self.released)

    def validate_container(self, path: Path) -> Path:
        with path.open("rb") as f:
            if f.read(len(FAKE_MAGIC)) != FAKE_MAGIC:
                raise ModelLoadError(f"Not a fake model: {path}")
        return path

    def load_model_file(self, path: Path) -> Any:
        if self.load_error is not None:
            raise self.load_error
        model = FakeModel(path)
        self.loaded.append(model)
        self.max_live = max(self.max_live, self.live)
        return model

    def release_model(self, model: Any) -> None:
        self.released.append(model)

    def infer(self, model: Any, samples: np.ndarray, language: str) -> RawInferenceOutput:
        with self._lock:
            self._active += 1
            self.max_concurrent_inferences = max(self.max_concurrent_inferences, self._active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.infer_error is not None:
                raise self.infer_error
            self.infer_calls.append((model, len(samples), language))
            text = self.text if self.text is not None else f" heard {len(samples)} samples"
            segments = (RawSegment(start=0.0, end=len(samples) / 16000, text=text),)
            if language != AUTO_LANGUAGE:
                return RawInferenceOutput(segments=segments)
            return RawInferenceOutput(
                segments=segments,
                language=self.language,
                language_probability=self.probability,
            )
        finally:
            with self._lock:
                self._active -= 1


def write_wav(
    path: Path,
    seconds: float = 0.5,
    rate: int = 16000,
    channels: int = 1,
    sampwidth: int = 2,
    amplitude: float = 0.5,
) -> Path:
    """Write a sine tone WAV with the given format."""

    frames = int(seconds * rate)
    t = np.arange(frames) / rate
    tone = amplitude * np.sin(2 * np.pi * 440.0 * t)
    if channels > 1:
        tone = np.repeat(tone[:, None], channels, axis=1).reshape(-1)

    if sampwidth == 1:
        data = (tone * 127 + 128).astype(np.uint8).tobytes()
    elif sampwidth == 2:
        data = (tone * 32767).astype("<i2").tobytes()
    elif sampwidth == 3:
        ints = (tone * 8388607).astype("<i4")
        data = b"".join(int(v).to_bytes(3, "little", signed=True) for v in ints)
    else:
        data = (tone * 2147483647).astype("<i4").tobytes()

    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sampwidth)
        wav.setframerate(rate)
        wav.writeframes(data)
    return path


def write_truncated_wav(path: Path, sampwidth: int, payload: bytes, claimed_size: int = 1000) -> Path:
    """Write a 16kHz mono PCM WAV whose data chunk claims more bytes than follow it."""

    fmt = struct.pack("<HHIIHH", 1, 1, 16000, 16000 * sampwidth, sampwidth, sampwidth * 8)
    header = (
        b"RIFF"
        + struct.pack("<I", 36 + claimed_size)
        + b"WAVE"
        + b"fmt "
        + struct.pack("<I", len(fmt))
        + fmt
        + b"data"
        + struct.pack("<I", claimed_size)
    )
    path.write_bytes(header + payload)
    return path


@pytest.fixture
def make_wav(tmp_path: Path) -> Callable[..., Path]:
    def factory(name: str = "audio.wav", **kwargs: Any) -> Path:
        return write_wav(tmp_path / name, **kwargs)

    return factory


@pytest.fixture
def fake_model(tmp_path: Path) -> Path:
    path = tmp_path / "model.bin"
    path.write_bytes(FAKE_MAGIC + b"\x00" * 16)
    return path


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def session(backend: FakeBackend) -> SessionManager:
    manager = SessionManager(backend)
    yield manager
    manager.close()
