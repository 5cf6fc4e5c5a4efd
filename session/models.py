"""Request and result types exchanged with `SessionManager`."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal, Optional, Union

from engine.base import AUTO_LANGUAGE


class SessionState(str, Enum):
    """Lifecycle of the model owned by a `SessionManager`."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


class ErrorKind(str, Enum):
    """Why a request produced no transcript."""

    MODEL_LOAD_FAILURE = "model_load_failure"
    MODEL_NOT_LOADED = "model_not_loaded"
    INVALID_AUDIO = "invalid_audio"
    INFERENCE_ERROR = "inference_error"
    NO_SPEECH = "no_speech"


@dataclass(frozen=True, slots=True)
class TranscriptionRequest:
    """A WAV file to transcribe and the language to decode it as.

    `language` is an ISO-639-1 style code or "auto". Empty values mean "auto".
    """

    wav_path: Path
    language: str = AUTO_LANGUAGE

    def __post_init__(self) -> None:
        object.__setattr__(self, "wav_path", Path(self.wav_path))
        language = (self.language or "").strip().lower()
        object.__setattr__(self, "language", language or AUTO_LANGUAGE)

    @property
    def auto_detect(self) -> bool:
        return self.language == AUTO_LANGUAGE


@dataclass(frozen=True, slots=True)
class Segment:
    """A span of decoded text with millisecond offsets from the start of the file."""

    start_ms: int
    end_ms: int
    text: str


@dataclass(frozen=True, slots=True)
class TranscriptionError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True, slots=True)
class TranscriptionSuccess:
    """Decoded text for a request.

    `detected_language` and `detected_probability` are set only when the
    request asked for auto-detection and the backend reported a language.
    """

    text: str
    duration_ms: int
    segments: tuple[Segment, ...] = ()
    detected_language: Optional[str] = None
    detected_probability: Optional[float] = None

    ok: Literal[True] = field(default=True, init=False)
    error: None = field(default=None, init=False)


@dataclass(frozen=True, slots=True)
class TranscriptionFailure:
    """A request that produced no transcript, with the reason."""

    error: TranscriptionError
    duration_ms: int = 0

    ok: Literal[False] = field(default=False, init=False)
    text: str = field(default="", init=False)
    segments: tuple[Segment, ...] = field(default=(), init=False)
    detected_language: None = field(default=None, init=False)
    detected_probability: None = field(default=None, init=False)

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return self.error.message


TranscriptionResult = Union[TranscriptionSuccess, TranscriptionFailure]
