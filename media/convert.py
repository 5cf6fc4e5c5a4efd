"""Upstream conversion of arbitrary media into model-ready WAV via FFmpeg.

Used by the CLI's `--convert` flag only. The transcription session never
converts audio itself.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import shutil
import subprocess
import tempfile
from typing import Iterator

from .audio import AudioError, CHANNELS, SAMPLE_RATE


class FfmpegNotFoundError(AudioError):
    """Raised when FFmpeg is not available on PATH."""


class FfmpegFailedError(AudioError):
    """Raised when an FFmpeg command fails."""


def find_ffmpeg() -> str:
    """Return the FFmpeg executable path (or raise if missing)."""

    ffmpeg = shutil.which("ffmpeg")
    if not ffmpeg:
        raise FfmpegNotFoundError(
            "FFmpeg not found on PATH. Install FFmpeg and ensure `ffmpeg` is available."
        )
    return ffmpeg


def build_ffmpeg_command(ffmpeg: str, input_path: Path, output_wav: Path) -> list[str]:
    """Return the argument list that produces 16kHz mono 16-bit PCM."""

    return [
        ffmpeg,
        "-hide_banner",
        "-nostdin",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(input_path),
        "-vn",
        "-ac",
        str(CHANNELS),
        "-ar",
        str(SAMPLE_RATE),
        "-c:a",
        "pcm_s16le",
        str(output_wav),
    ]


def convert_to_wav(input_path: Path, output_wav: Path) -> None:
    """Convert any FFmpeg-readable file into a 16kHz mono WAV.

    Raises:
        FileNotFoundError: If the input file does not exist.
        FfmpegNotFoundError: If ffmpeg is not found.
        FfmpegFailedError: If ffmpeg returns a non-zero exit code.
    """

    if not input_path.is_file():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    cmd = build_ffmpeg_command(find_ffmpeg(), input_path, output_wav)
    try:
        subprocess.run(
            cmd,
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        details = (exc.stderr or "").strip()
        extra = f"\n\nDetails:\n{details}" if details else ""
        raise FfmpegFailedError(
            f"FFmpeg failed to convert {input_path.name}.\n\nCommand: {' '.join(cmd)}{extra}"
        ) from exc


@contextmanager
def prepared_wav(input_path: Path) -> Iterator[Path]:
    """Yield a temporary model-ready WAV converted from `input_path`."""

    with tempfile.TemporaryDirectory(prefix="voxsession-") as tmpdir:
        wav_path = Path(tmpdir) / "audio.wav"
        convert_to_wav(input_path, wav_path)
        yield wav_path
