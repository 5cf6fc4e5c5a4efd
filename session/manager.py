"""Transcription session: model lifecycle and serialized access to inference."""

from __future__ import annotations

import logging
from pathlib import Path
import threading
from typing import Callable, Optional

from engine.base import AUTO_LANGUAGE, InferenceBackend, InferenceError, ModelLoadError
from engine.handle import ModelHandle
from media.audio import AudioError, PcmAudio, decode_wav

from .gate import FifoLock
from .models import ErrorKind, SessionState, TranscriptionRequest, TranscriptionResult
from .result_builder import build_failure, build_result


logger = logging.getLogger(__name__)

SILENCE_PEAK = 0.001

AudioDecoder = Callable[[Path], PcmAudio]


class SessionManager:
    """Owns at most one loaded model and runs transcriptions one at a time.

    `load`, `unload` and `transcribe` share one FIFO gate, so a model is never
    swapped or released while an inference is running and queued requests run
    in arrival order. `is_loaded` only takes a short state lock and never
    waits behind an inference.

    Failures never escape as exceptions: `load` returns False and
    `transcribe` returns a `TranscriptionFailure`.
    """

    def __init__(self, backend: InferenceBackend, decoder: AudioDecoder = decode_wav) -> None:
        self._backend = backend
        self._decode = decoder
        self._gate = FifoLock()
        self._state_lock = threading.Lock()
        self._state = SessionState.UNLOADED
        self._handle: Optional[ModelHandle] = None

    @property
    def state(self) -> SessionState:
        with self._state_lock:
            return self._state

    @property
    def model_path(self) -> Optional[Path]:
        with self._state_lock:
            return self._handle.source_path if self._handle is not None else None

    def is_loaded(self) -> bool:
        with self._state_lock:
            return self._state is SessionState.LOADED

    def load(self, model_path: Path | str) -> bool:
        """Load a model, replacing any model already loaded.

        Blocks until every earlier `load`, `unload` or `transcribe` finishes.

        Returns:
            True if the model is now loaded, False otherwise. After False the
            session is unloaded and `load` can simply be called again.
        """

        path = Path(model_path)
        with self._gate:
            if self._handle is not None:
                logger.info("Replacing model %s with %s", self._handle.source_path, path)
            self._release_locked()
            self._set_state(SessionState.LOADING)
            handle: Optional[ModelHandle] = None
            try:
                handle = ModelHandle(self._backend, path)
            except ModelLoadError as exc:
                logger.error("Model load failed: %s", exc)
                return False
            finally:
                # Runs on interrupts too: LOADING never outlives this call.
                with self._state_lock:
                    if handle is None:
                        self._state = SessionState.UNLOADED
                    else:
                        self._handle = handle
                        self._state = SessionState.LOADED

            logger.info("Model loaded: %s", path)
            return True

    def unload(self) -> None:
        """Release the loaded model, if any. Unloading twice is a no-op."""

        with self._gate:
            self._release_locked()

    def transcribe_file(self, wav_path: Path | str, language: str = AUTO_LANGUAGE) -> TranscriptionResult:
        """Shorthand for `transcribe(TranscriptionRequest(wav_path, language))`."""

        return self.transcribe(TranscriptionRequest(wav_path=Path(wav_path), language=language))

    def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        """Decode the request's WAV file and run it through the loaded model."""

        with self._gate:
            handle = self._handle
            if handle is None:
                logger.warning("Transcription requested with no model loaded")
                return build_failure(ErrorKind.MODEL_NOT_LOADED, "No model loaded")

            try:
                audio = self._decode(request.wav_path)
            except AudioError as exc:
                logger.warning("Rejected audio %s: %s", request.wav_path, exc)
                return build_failure(ErrorKind.INVALID_AUDIO, str(exc))

            if audio.peak_amplitude < SILENCE_PEAK:
                logger.warning("Audio appears to be silent: %s", request.wav_path)

            logger.debug(
                "Running inference on %s (%d ms, language=%s)",
                request.wav_path,
                audio.duration_ms,
                request.language,
            )
            try:
                output = handle.infer(audio.samples, request.language)
            except InferenceError as exc:
                logger.error("Inference failed for %s: %s", request.wav_path, exc)
                return build_failure(ErrorKind.INFERENCE_ERROR, str(exc), audio.duration_ms)

            return build_result(output, audio.duration_ms, auto_detect=request.auto_detect)

    def close(self) -> None:
        """Tear down the session, releasing the model."""

        self.unload()

    def __enter__(self) -> "SessionManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _release_locked(self) -> None:
        """Drop the current handle. Caller must hold the gate."""

        with self._state_lock:
            handle, self._handle = self._handle, None
            self._state = SessionState.UNLOADED
        if handle is not None:
            logger.info("Unloading model %s", handle.source_path)
            handle.release()

    def _set_state(self, state: SessionState) -> None:
        with self._state_lock:
            self._state = state
