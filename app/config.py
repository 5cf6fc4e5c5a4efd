"""Configuration handling for voxsession.

voxsession loads an optional TOML file from OS-specific locations:

- Linux: ~/.config/voxsession/config.toml
- Windows: %APPDATA%\\voxsession\\config.toml

Only the CLI reads configuration. `session.SessionManager` takes its backend
and model path as arguments.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
import platform
from typing import Any

try:  # Python 3.11+
    import tomllib  # type: ignore
except ModuleNotFoundError:  # Python 3.10
    import tomli as tomllib  # type: ignore


OUTPUT_FORMATS = ("text", "json")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Configuration for the inference backend."""

    backend: str = "faster-whisper"
    device: str = "cpu"
    compute_type: str = "default"
    cpu_threads: int = 4
    beam_size: int = 5


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Defaults applied to CLI transcription requests."""

    model: str = ""
    language: str = "auto"


@dataclass(frozen=True, slots=True)
class OutputConfig:
    """Configuration for transcript output."""

    format: str = "text"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def get_config_path() -> Path:
    """Return the default configuration file path for the current OS."""

    system = platform.system().lower()
    if system == "windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "voxsession" / "config.toml"

        return Path.home() / "AppData" / "Roaming" / "voxsession" / "config.toml"

    return Path.home() / ".config" / "voxsession" / "config.toml"


def load_config(path: Path | None = None) -> AppConfig:
    """Load config from a TOML file, falling back to defaults if missing.

    Args:
        path: Optional explicit config path. When None, uses the OS default.

    Raises:
        ValueError: If the config is not valid TOML or contains unsupported values.
    """

    config_path = path or get_config_path()
    if not config_path.exists():
        return AppConfig()

    try:
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid config: {exc}") from exc

    engine_raw = _get_table(raw, "engine")
    session_raw = _get_table(raw, "session")
    output_raw = _get_table(raw, "output")

    engine = EngineConfig(
        backend=_get_str(engine_raw, "backend", default=EngineConfig.backend),
        device=_get_str(engine_raw, "device", default=EngineConfig.device),
        compute_type=_get_str(engine_raw, "compute_type", default=EngineConfig.compute_type),
        cpu_threads=_get_positive_int(engine_raw, "cpu_threads", default=EngineConfig.cpu_threads),
        beam_size=_get_positive_int(engine_raw, "beam_size", default=EngineConfig.beam_size),
    )

    model = session_raw.get("model", SessionConfig.model)
    if not isinstance(model, str):
        raise ValueError("Invalid config: model must be a string.")
    session = SessionConfig(
        model=model.strip(),
        language=_get_str(session_raw, "language", default=SessionConfig.language).lower(),
    )

    output_format = _get_str(output_raw, "format", default=OutputConfig.format).lower()
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Invalid config: [output].format must be one of {list(OUTPUT_FORMATS)}.")

    return AppConfig(engine=engine, session=session, output=OutputConfig(format=output_format))


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    Args:
        config: Configuration values to persist.
        path: Optional explicit config path. When None, uses the OS default.

    Returns:
        The path that was written.

    Raises:
        ValueError: If unsupported values are provided.
    """

    if config.output.format not in OUTPUT_FORMATS:
        raise ValueError(f"Invalid config: [output].format must be one of {list(OUTPUT_FORMATS)}.")

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    content = _to_toml(config)
    config_path.write_text(content, encoding="utf-8")
    return config_path


def _get_table(raw: dict[str, Any], key: str) -> dict[str, Any]:
    """Internal helper to get a TOML table as a dict."""

    value = raw.get(key)
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    raise ValueError(f"Invalid config: [{key}] must be a table.")


def _get_str(raw: dict[str, Any], key: str, default: str) -> str:
    """Internal helper to get a TOML string with a default."""

    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ValueError(f"Invalid config: {key} must be a non-empty string.")


def _get_positive_int(raw: dict[str, Any], key: str, default: int) -> int:
    """Internal helper to get a TOML integer greater than zero."""

    value = raw.get(key)
    if value is None:
        return default
    # bool is an int subclass
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    raise ValueError(f"Invalid config: {key} must be a positive integer.")


def _to_toml(config: AppConfig) -> str:
    """Serialize config data to TOML."""

    return (
        "[engine]\n"
        f'backend = "{config.engine.backend}"\n'
        f'device = "{config.engine.device}"\n'
        f'compute_type = "{config.engine.compute_type}"\n'
        f"cpu_threads = {config.engine.cpu_threads}\n"
        f"beam_size = {config.engine.beam_size}\n"
        "\n"
        "[session]\n"
        f"model = {_quote(config.session.model)}\n"
        f'language = "{config.session.language}"\n'
        "\n"
        "[output]\n"
        f'format = "{config.output.format}"\n'
    )


def _quote(value: str) -> str:
    """Quote a string as a TOML literal (paths may contain backslashes)."""

    if "'" not in value and not any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
        return f"'{value}'"

    escaped = []
    for ch in value:
        if ch == "\\":
            escaped.append("\\\\")
        elif ch == '"':
            escaped.append('\\"')
        elif ch == "\n":
            escaped.append("\\n")
        elif ch == "\t":
            escaped.append("\\t")
        elif ch == "\r":
            escaped.append("\\r")
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            escaped.append(f"\\u{ord(ch):04x}")
        else:
            escaped.append(ch)
    return '"' + "".join(escaped) + '"'
