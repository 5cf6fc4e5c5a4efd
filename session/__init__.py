"""Transcription session manager and result types."""

from __future__ import annotations

import atexit
import threading
from typing import Optional

from engine.base import InferenceBackend

from .manager import SessionManager
from .models import (
    ErrorKind,
    Segment,
    SessionState,
    TranscriptionError,
    TranscriptionFailure,
    TranscriptionRequest,
    TranscriptionResult,
    TranscriptionSuccess,
)


_shared: Optional[SessionManager] = None
_shared_lock = threading.Lock()


def get_shared_instance(backend: Optional[InferenceBackend] = None) -> SessionManager:
    """Return the process-wide session, creating it on first use.

    Prefer constructing a `SessionManager` and passing it around; this exists
    for callers that need one session per process without plumbing it.

    Args:
        backend: Backend for the session if it does not exist yet. Ignored
            afterwards. Defaults to faster-whisper with default settings.
    """

    global _shared
    with _shared_lock:
        if _shared is None:
            if backend is None:
                from app.config import EngineConfig
                from engine import create_backend

                backend = create_backend(EngineConfig())
            _shared = SessionManager(backend)
            atexit.register(_shared.close)
        return _shared


__all__ = [
    "ErrorKind",
    "Segment",
    "SessionManager",
    "SessionState",
    "TranscriptionError",
    "TranscriptionFailure",
    "TranscriptionRequest",
    "TranscriptionResult",
    "TranscriptionSuccess",
    "get_shared_instance",
]
