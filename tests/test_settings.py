from __future__ import annotations

from pathlib import Path

import pytest

from sketch_topology.exceptions import ConfigurationError
from sketch_topology.settings import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, CleanupOptions, Settings


def test_bundled_config_matches_defaults(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    settings = Settings.load()
    assert DEFAULT_CONFIG_PATH.exists()
    assert settings.cleanup == CleanupOptions()
    assert settings.service.max_segments == 20000
    assert settings.logging.level == "INFO"


def test_load_reads_camel_case_options(tmp_path: Path):
    config = tmp_path / "settings.yaml"
    config.write_text(
        "cleanup:\n  minRoomArea: 250\n  use45Deg: true\nservice:\n  max_segments: 10\n",
        encoding="utf-8",
    )
    settings = Settings.load(config)
    assert settings.cleanup.min_room_area == 250
    assert settings.cleanup.use_45_deg is True
    assert settings.cleanup.max_gap == 5
    assert settings.service.max_segments == 10


def test_environment_variable_selects_config(tmp_path: Path, monkeypatch):
    config = tmp_path / "env.yaml"
    config.write_text("logging:\n  level: debug\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config))
    assert Settings.load().logging.level == "DEBUG"


def test_missing_config_raises(tmp_path: Path):
    with pytest.raises(ConfigurationError) as exc_info:
        Settings.load(tmp_path / "missing.yaml")
    assert exc_info.value.details["path"].endswith("missing.yaml")


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "cleanup:\n  snapToleranceDeg: 90\n",
        "cleanup:\n  unknownOption: 1\n",
        "logging:\n  level: LOUD\n",
        "cleanup: [unclosed\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, content: str):
    config = tmp_path / "bad.yaml"
    config.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        Settings.load(config)


def test_empty_config_uses_defaults(tmp_path: Path):
    config = tmp_path / "empty.yaml"
    config.write_text("", encoding="utf-8")
    assert Settings.load(config) == Settings()
