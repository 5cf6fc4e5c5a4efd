from __future__ import annotations

from pathlib import Path
import platform

import pytest

from app.config import AppConfig, EngineConfig, SessionConfig, get_config_path, load_config, save_config


def test_get_config_path_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Windows")
    monkeypatch.setenv("APPDATA", r"C:\Temp\AppData")
    assert get_config_path() == Path(r"C:\Temp\AppData") / "voxsession" / "config.toml"


def test_get_config_path_linux(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Linux")
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: Path("/home/testuser")))
    assert get_config_path() == Path("/home/testuser") / ".config" / "voxsession" / "config.toml"


def test_load_config_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path / "config.toml")
    assert config.engine.backend == "faster-whisper"
    assert config.engine.cpu_threads == 4
    assert config.session.language == "auto"
    assert config.output.format == "text"


def test_load_config_reads_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
[engine]
device = "cuda"
beam_size = 1

[session]
model = "/models/whisper-small-ct2"
language = "TR"

[output]
format = "json"
""".lstrip(),
        encoding="utf-8",
    )
    config = load_config(config_path)
    assert config.engine.device == "cuda"
    assert config.engine.beam_size == 1
    assert config.session.model == "/models/whisper-small-ct2"
    assert config.session.language == "tr"
    assert config.output.format == "json"


def test_load_config_rejects_unknown_format(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[output]\nformat = "srt"\n', encoding="utf-8")
    with pytest.raises(ValueError, match="format must be one of"):
        load_config(config_path)


@pytest.mark.parametrize("value", ["0", "-2", "true", '"four"'])
def test_load_config_rejects_bad_threads(tmp_path: Path, value: str) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(f"[engine]\ncpu_threads = {value}\n", encoding="utf-8")
    with pytest.raises(ValueError, match="cpu_threads"):
        load_config(config_path)


def test_load_config_rejects_invalid_toml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[engine\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid config"):
        load_config(config_path)


def test_save_config_round_trips(tmp_path: Path) -> None:
    config = AppConfig(
        engine=EngineConfig(device="cuda", cpu_threads=8),
        session=SessionConfig(model=r"C:\models\whisper's-ct2", language="en"),
    )
    path = save_config(config, tmp_path / "nested" / "config.toml")
    assert load_config(path) == config


@pytest.mark.parametrize("model", ["/models/line\nbreak", "/models/tab\there", "C:\\models\\bell\x07"])
def test_save_config_escapes_control_characters(tmp_path: Path, model: str) -> None:
    config = AppConfig(session=SessionConfig(model=model))
    path = save_config(config, tmp_path / "config.toml")
    assert load_config(path).session.model == model
