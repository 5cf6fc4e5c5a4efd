"""WAV ingestion: validate a 16kHz mono PCM file and decode it to float32 samples.

Nothing here resamples or downmixes. Input that does not already match the
model's format is rejected with an error naming the mismatch; conversion is
the caller's job (see `media.convert`).
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import wave

import numpy as np


logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1
SUPPORTED_BIT_DEPTHS = (16, 24, 32)


class AudioError(RuntimeError):
    """Base error for audio ingestion failures."""


class AudioNotFoundError(AudioError):
    """Raised when the WAV path does not point to a file."""


class AudioReadError(AudioError):
    """Raised when the WAV file exists but cannot be read."""


class InvalidContainerError(AudioError):
    """Raised when the file is not a PCM RIFF/WAVE container."""


class SampleRateMismatchError(AudioError):
    """Raised when the sample rate is not 16kHz."""


class ChannelCountMismatchError(AudioError):
    """Raised when the audio is not mono."""


class UnsupportedBitDepthError(AudioError):
    """Raised when the PCM sample width is not supported."""


class EmptyAudioError(AudioError):
    """Raised when the WAV file holds no sample frames."""


@dataclass(frozen=True, slots=True)
class PcmAudio:
    """Decoded mono PCM audio, normalized to [-1.0, 1.0)."""

    samples: np.ndarray
    sample_rate: int
    bit_depth: int

    @property
    def duration_ms(self) -> int:
        return len(self.samples) * 1000 // self.sample_rate

    @property
    def peak_amplitude(self) -> float:
        if len(self.samples) == 0:
            return 0.0
        return float(np.max(np.abs(self.samples)))


def decode_wav(path: Path | str) -> PcmAudio:
    """Read and validate a WAV file.

    Args:
        path: Path to a 16kHz mono linear PCM WAV file.

    Returns:
        The decoded samples as float32.

    Raises:
        AudioNotFoundError: If the file does not exist.
        AudioReadError: If the file cannot be opened.
        InvalidContainerError: If it is not a PCM WAV file.
        SampleRateMismatchError: If the sample rate is not 16000 Hz.
        ChannelCountMismatchError: If the audio is not mono.
        UnsupportedBitDepthError: If the sample width is not 16, 24 or 32 bits.
        EmptyAudioError: If there are no samples.
    """

    wav_path = Path(path)
    if not wav_path.is_file():
        raise AudioNotFoundError(f"WAV file not found: {wav_path}")
    if not os.access(wav_path, os.R_OK):
        raise AudioReadError(f"WAV file is not readable: {wav_path}")

    try:
        with wave.open(str(wav_path), "rb") as wav:
            sample_rate = wav.getframerate()
            channels = wav.getnchannels()
            bit_depth = wav.getsampwidth() * 8
            _check_format(sample_rate, channels, bit_depth)
            frames = wav.readframes(wav.getnframes())
    except wave.Error as exc:
        raise InvalidContainerError(f"Not a PCM WAV file ({exc}): {wav_path}") from exc
    except EOFError as exc:
        raise InvalidContainerError(f"WAV header is truncated: {wav_path}") from exc
    except OSError as exc:
        raise AudioReadError(f"Failed to read WAV file {wav_path}: {exc}") from exc

    # A data chunk that claims more bytes than the file holds yields a partial last sample.
    width = bit_depth // 8
    if len(frames) % width:
        logger.warning("WAV data chunk is truncated, dropping partial sample: %s", wav_path)
        frames = frames[: len(frames) - len(frames) % width]

    samples = _to_float32(frames, bit_depth)
    if len(samples) == 0:
        raise EmptyAudioError(f"WAV file contains no samples: {wav_path}")

    logger.debug(
        "Decoded %s: %d samples, %d-bit, %d ms",
        wav_path.name,
        len(samples),
        bit_depth,
        len(samples) * 1000 // sample_rate,
    )
    return PcmAudio(samples=samples, sample_rate=sample_rate, bit_depth=bit_depth)


def _check_format(sample_rate: int, channels: int, bit_depth: int) -> None:
    """Reject anything the model cannot consume as-is."""

    if sample_rate != SAMPLE_RATE:
        raise SampleRateMismatchError(
            f"Unsupported sample rate: {sample_rate} Hz (expected {SAMPLE_RATE} Hz)"
        )
    if channels != CHANNELS:
        raise ChannelCountMismatchError(
            f"Unsupported channel count: {channels} (expected mono)"
        )
    if bit_depth not in SUPPORTED_BIT_DEPTHS:
        raise UnsupportedBitDepthError(
            f"Unsupported bit depth: {bit_depth} bits (supported: {list(SUPPORTED_BIT_DEPTHS)})"
        )


def _to_float32(frames: bytes, bit_depth: int) -> np.ndarray:
    """Convert little-endian signed PCM bytes to normalized float32."""

    if bit_depth == 16:
        ints = np.frombuffer(frames, dtype="<i2")
        return (ints / 32768.0).astype(np.float32)

    if bit_depth == 24:
        raw = np.frombuffer(frames, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        ints = raw[:, 0] | (raw[:, 1] << 8) | (raw[:, 2] << 16)
        ints = np.where(ints & 0x800000, ints - 0x1000000, ints)
        return (ints / 8388608.0).astype(np.float32)

    ints = np.frombuffer(frames, dtype="<i4")
    return (ints / 2147483648.0).astype(np.float32)
