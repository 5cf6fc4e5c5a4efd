"""CLI commands for voxsession."""

from __future__ import annotations

from contextlib import ExitStack
import logging
from pathlib import Path
from typing import Optional

import typer

from .config import OUTPUT_FORMATS, AppConfig, get_config_path, load_config, save_config
from .logging import configure_logging
from engine import ModelHandle, ModelLoadError, create_backend
from media.audio import AudioError, decode_wav
from media.convert import prepared_wav
from output.text import render_result, write_text_file
from session import SessionManager, TranscriptionRequest


def _load_config_or_exit() -> AppConfig:
    try:
        return load_config()
    except ValueError as exc:
        typer.secho(f"Config error: {exc}", fg=typer.colors.RED, err=True)
        typer.secho(f"Config path: {get_config_path()}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc


def create_cli_app() -> typer.Typer:
    """Create the Typer CLI app (kept as a factory to avoid global state)."""

    app = typer.Typer(
        add_completion=False,
        help="Offline transcription of 16kHz mono WAV files using faster-whisper.",
        no_args_is_help=True,
    )

    @app.command("transcribe")
    def transcribe(
        input_file: Path = typer.Argument(
            ...,
            exists=True,
            readable=True,
            dir_okay=False,
            help="Path to a 16kHz mono PCM .wav file (any media with --convert).",
        ),
        model: Optional[str] = typer.Option(
            None,
            "--model",
            "-m",
            help="CTranslate2 Whisper model directory or its model.bin (overrides config).",
        ),
        language: Optional[str] = typer.Option(
            None,
            "--language",
            "-l",
            help='Language code such as "en", or "auto" to detect (overrides config).',
        ),
        fmt: Optional[str] = typer.Option(
            None,
            "--format",
            "-f",
            help="Output format: text or json (overrides config).",
        ),
        out: Optional[Path] = typer.Option(
            None,
            "--out",
            "-o",
            dir_okay=False,
            help="Write output to this file instead of stdout.",
        ),
        convert: bool = typer.Option(
            False,
            "--convert",
            help="Convert the input to 16kHz mono WAV with FFmpeg first.",
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            help="Enable debug logging.",
        ),
    ) -> None:
        """Transcribe a single WAV file."""

        configure_logging(verbose=verbose)
        logger = logging.getLogger("voxsession")
        config = _load_config_or_exit()

        model_path = model or config.session.model
        if not model_path:
            typer.secho(
                "No model given. Pass --model or set [session].model in the config.",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=2)

        output_format = (fmt or config.output.format).lower()
        if output_format not in OUTPUT_FORMATS:
            typer.secho(f"Unsupported format: {output_format!r}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2)

        try:
            backend = create_backend(config.engine)
        except ValueError as exc:
            typer.secho(f"Config error: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc

        with ExitStack() as stack, SessionManager(backend) as session:
            # Convert first so a bad input never costs a model load.
            wav_path = input_file
            if convert:
                try:
                    wav_path = stack.enter_context(prepared_wav(input_file))
                except AudioError as exc:
                    typer.secho(f"Media error: {exc}", fg=typer.colors.RED, err=True)
                    raise typer.Exit(code=2) from exc

            if not session.load(model_path):
                typer.secho(f"Failed to load model: {model_path}", fg=typer.colors.RED, err=True)
                raise typer.Exit(code=2)

            logger.info("Transcribing: %s", input_file.name)
            result = session.transcribe(
                TranscriptionRequest(wav_path=wav_path, language=language or config.session.language)
            )

        rendered = render_result(result, output_format)
        if out is not None:
            write_text_file(out, rendered)
        elif rendered:
            typer.echo(rendered, nl=False)

        if result.error is not None and output_format == "text":
            typer.secho(
                f"Error ({result.error.kind.value}): {result.error.message}",
                fg=typer.colors.RED,
                err=True,
            )
        if result.error is not None:
            raise typer.Exit(code=1)
        if out is not None:
            typer.echo(str(out))

    @app.command("probe")
    def probe(
        input_file: Path = typer.Argument(..., dir_okay=False, help="Path to a .wav file."),
    ) -> None:
        """Check whether a WAV file can be transcribed as-is."""

        try:
            audio = decode_wav(input_file)
        except AudioError as exc:
            typer.secho(f"Invalid audio: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc

        typer.echo(f"sample_rate: {audio.sample_rate}")
        typer.echo("channels: 1")
        typer.echo(f"bit_depth: {audio.bit_depth}")
        typer.echo(f"duration_ms: {audio.duration_ms}")
        typer.echo(f"peak_amplitude: {audio.peak_amplitude:.4f}")

    @app.command("check-model")
    def check_model(
        model_path: Path = typer.Argument(..., help="Model directory or model.bin."),
        verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    ) -> None:
        """Load a model once and release it, reporting whether it is usable."""

        configure_logging(verbose=verbose)
        config = _load_config_or_exit()
        try:
            backend = create_backend(config.engine)
            with ModelHandle(backend, model_path) as handle:
                typer.echo(f"OK: {handle.source_path}")
        except (ValueError, ModelLoadError) as exc:
            typer.secho(f"Model error: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc

    @app.command("init-config")
    def init_config(
        force: bool = typer.Option(False, "--force", help="Overwrite an existing config file."),
    ) -> None:
        """Write a default config file."""

        path = get_config_path()
        if path.exists() and not force:
            typer.secho(f"Config already exists: {path} (use --force)", fg=typer.colors.YELLOW, err=True)
            raise typer.Exit(code=1)
        typer.echo(str(save_config(AppConfig(), path)))

    return app
