import json
import os

import pytest

from config.settings import (
    ANTENNA_IDS,
    CONFIG_ENV_VAR,
    DEFAULT_POWER,
    TOKEN_ENV_VAR,
    ApiSettings,
    ReaderSettings,
    Settings,
    default_config_path,
)


def test_missing_file_is_created_with_defaults(tmp_path):
    path = tmp_path / "nested" / "config.json"

    settings = Settings.load_from_file(str(path))

    assert path.exists()
    assert settings.reader.port == 5084
    assert settings.reader.power_settings == {ant: DEFAULT_POWER for ant in ANTENNA_IDS}
    data = json.loads(path.read_text())
    assert data["reader"]["ip"] == settings.reader.ip_address


def test_save_and_load(tmp_path):
    path = str(tmp_path / "config.json")
    settings = Settings()
    settings.reader.ip_address = "10.1.1.20"
    settings.reader.power_settings[2] = 275
    settings.reader.antenna_enabled[3] = True
    settings.api.base_url = "https://example.test/api"
    settings.printer.host = "10.1.1.30"
    settings.theme = "dark"
    settings.save_to_file(path)

    loaded = Settings.load_from_file(path)

    assert loaded.reader.ip_address == "10.1.1.20"
    assert loaded.reader.power_settings[2] == 275
    assert loaded.reader.antenna_enabled[3] is True
    assert loaded.api.base_url == "https://example.test/api"
    assert loaded.printer.host == "10.1.1.30"
    assert loaded.theme == "dark"


def test_unreadable_file_returns_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    settings = Settings.load_from_file(str(path))

    assert settings.reader.ip_address == ReaderSettings().ip_address
    assert path.read_text() == "{not json"


@pytest.mark.parametrize("data", [
    {"reader": None},
    {"reader": {"port": "abc"}},
    {"reader": {"power_settings": {"one": 100}}},
    {"app": None},
    ["not", "a", "mapping"],
])
def test_invalid_values_return_defaults(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))

    settings = Settings.load_from_file(str(path))

    assert settings.reader.port == ReaderSettings().port
    assert settings.reader.power_settings == ReaderSettings().power_settings
    assert settings.theme == Settings().theme


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"api": {"timeout_s": 2.5, "bogus": 1}}))

    settings = Settings.load_from_file(str(path))

    assert settings.api.timeout_s == 2.5
    assert not hasattr(settings.api, "bogus")


def test_save_power_settings(tmp_path):
    path = str(tmp_path / "config.json")
    settings = Settings()

    settings.save_power_settings({1: 300}, {1: True}, filepath=path)

    loaded = Settings.load_from_file(path)
    assert loaded.reader.power_settings[1] == 300
    assert loaded.reader.enabled_antennas == [1]


def test_enabled_antennas_default_to_all():
    reader = ReaderSettings()
    assert reader.enabled_antennas == list(ANTENNA_IDS)
    assert reader.get_power_dbm(1) == DEFAULT_POWER / 10.0


def test_token_from_environment(monkeypatch):
    api = ApiSettings(token="from-config")
    monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)
    assert api.resolve_token() == "from-config"

    monkeypatch.setenv(TOKEN_ENV_VAR, "from-env")
    assert api.resolve_token() == "from-env"


def test_config_path_from_environment(monkeypatch, tmp_path):
    path = str(tmp_path / "custom.json")
    monkeypatch.setenv(CONFIG_ENV_VAR, path)
    assert default_config_path() == path

    monkeypatch.delenv(CONFIG_ENV_VAR)
    assert default_config_path().endswith(os.path.join("linen-rfid-dashboard", "config.json"))
