"""Transcript rendering and file output."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from session.models import TranscriptionResult


def result_to_dict(result: TranscriptionResult) -> dict[str, Any]:
    """Return a JSON-serializable view of a result."""

    payload: dict[str, Any] = {
        "text": result.text,
        "durationMs": result.duration_ms,
        "detectedLanguage": result.detected_language,
        "detectedProbability": result.detected_probability,
        "segments": [
            {"startMs": seg.start_ms, "endMs": seg.end_ms, "text": seg.text}
            for seg in result.segments
        ],
        "error": None,
    }
    if result.error is not None:
        payload["error"] = {"kind": result.error.kind.value, "message": result.error.message}
    return payload


def render_result(result: TranscriptionResult, fmt: str = "text") -> str:
    """Render a result as plain text (transcript only) or JSON.

    Args:
        result: A completed transcription.
        fmt: "text" or "json".
    """

    if fmt == "json":
        return json.dumps(result_to_dict(result), ensure_ascii=False, indent=2) + "\n"
    if fmt != "text":
        raise ValueError(f"Unsupported output format: {fmt!r}")
    return f"{result.text}\n" if result.text else ""


def write_text_file(output_path: Path, text: str) -> None:
    """Write rendered output to disk.

    Args:
        output_path: Destination path.
        text: Rendered content.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
