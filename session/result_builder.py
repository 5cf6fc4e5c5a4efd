"""Pure mapping from inference output or failures to `TranscriptionResult`."""

from __future__ import annotations

from typing import Optional

from engine.base import RawInferenceOutput

from .models import (
    ErrorKind,
    Segment,
    TranscriptionError,
    TranscriptionFailure,
    TranscriptionResult,
    TranscriptionSuccess,
)


def build_failure(kind: ErrorKind, message: str, duration_ms: int = 0) -> TranscriptionFailure:
    """Return a failed result carrying `kind` and a diagnostic message."""

    return TranscriptionFailure(
        error=TranscriptionError(kind=kind, message=message or kind.value),
        duration_ms=max(0, int(duration_ms)),
    )


def build_result(output: RawInferenceOutput, duration_ms: int, auto_detect: bool) -> TranscriptionResult:
    """Map one inference pass to a result.

    Segment texts are concatenated and stripped. A pass that decodes no text
    at all is reported as a `NO_SPEECH` failure, so a success always carries
    non-empty text.

    Args:
        output: What the backend returned.
        duration_ms: Length of the input audio.
        auto_detect: Whether the request asked for language detection.
    """

    duration_ms = max(0, int(duration_ms))
    text = "".join(seg.text for seg in output.segments).strip()
    if not text:
        return build_failure(
            ErrorKind.NO_SPEECH,
            "Inference produced no text; the audio may be silent or the language hint wrong.",
            duration_ms,
        )

    segments = tuple(
        Segment(
            start_ms=max(0, round(seg.start * 1000)),
            end_ms=max(0, round(seg.end * 1000)),
            text=seg.text.strip(),
        )
        for seg in output.segments
        if seg.text.strip()
    )

    language: Optional[str] = None
    probability: Optional[float] = None
    if auto_detect and output.language:
        language = output.language
        probability = _clamp_probability(output.language_probability)

    return TranscriptionSuccess(
        text=text,
        duration_ms=duration_ms,
        segments=segments,
        detected_language=language,
        detected_probability=probability,
    )


def _clamp_probability(value: Optional[float]) -> float:
    if value is None or value != value:  # NaN
        return 0.0
    return min(1.0, max(0.0, float(value)))
