from __future__ import annotations

import pytest

from btctl.config import (
    AdapterConfig,
    ScanningConfig,
    Settings,
    get_settings,
    load_settings,
    resolve_config_path,
    write_settings,
)


def test_config_roundtrip(tmp_path):
    path = tmp_path / "config.toml"
    settings = Settings(
        adapter=AdapterConfig(path="/org/bluez/hci1", call_timeout=3.5),
        scanning=ScanningConfig(duration=12, tick_interval=0.25),
    )
    write_settings(settings, path)

    assert load_settings(path) == settings


def test_defaults_when_default_file_missing():
    settings = get_settings()

    assert settings.adapter.path == "/org/bluez/hci0"
    assert settings.scanning.duration == 5
    assert settings.scanning.tick_interval == 0.5


def test_env_var_selects_config_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.toml"
    path.write_text("[scanning]\nduration = 20\n")
    monkeypatch.setenv("BTCTL_CONFIG", str(path))

    assert get_settings().scanning.duration == 20


def test_env_var_pointing_at_missing_file_is_an_error(tmp_path, monkeypatch):
    monkeypatch.setenv("BTCTL_CONFIG", str(tmp_path / "nope.toml"))

    with pytest.raises(FileNotFoundError):
        resolve_config_path()
    path, exists = resolve_config_path(allow_missing=True)
    assert not exists
    assert path.name == "nope.toml"


@pytest.mark.parametrize(
    "content",
    [
        "[scanning]\nduration = 0\n",
        "[scanning]\nduration = 61\n",
        "[adapter]\ncall_timeout = 0\n",
        "[adapter]\nunknown = 1\n",
        "[scanning\n",
    ],
)
def test_invalid_config_raises_value_error(tmp_path, content):
    path = tmp_path / "config.toml"
    path.write_text(content)

    with pytest.raises(ValueError, match="config"):
        load_settings(path)
