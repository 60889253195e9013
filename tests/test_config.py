import logging

import pytest

from extender.config import Settings, load_config_file, parse_log_level
from extender.errors import StartupError


@pytest.mark.parametrize("name,level", [
    ("trace", logging.DEBUG),
    ("DEBUG", logging.DEBUG),
    ("info", logging.INFO),
    ("Warning", logging.WARNING),
    ("ERROR", logging.ERROR),
    ("alert", logging.CRITICAL),
])
def test_parse_log_level(name, level):
    assert parse_log_level(name) == level


@pytest.mark.parametrize("name", ["", None, "verbose"])
def test_invalid_log_level_falls_back_to_info(name):
    assert parse_log_level(name) == logging.INFO


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("EXTENDER_PORT", "8888")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("EXTENDER_VERSION", "v0.1.0")
    monkeypatch.setenv("EXTENDER_RESYNC_SECONDS", "60")
    monkeypatch.delenv("EXTENDER_CONFIG", raising=False)
    monkeypatch.delenv("KUBECONFIG", raising=False)

    settings = Settings.from_env()

    assert settings.port == 8888
    assert settings.log_level == "DEBUG"
    assert settings.version == "v0.1.0"
    assert settings.resync_interval_s == 60.0
    assert settings.kubeconfig is None


def test_defaults(monkeypatch):
    for var in ("EXTENDER_PORT", "EXTENDER_RESYNC_SECONDS", "EXTENDER_CONFIG", "EXTENDER_SYNC_TIMEOUT_SECONDS"):
        monkeypatch.delenv(var, raising=False)

    settings = Settings.from_env()

    assert settings.port == 80
    assert settings.resync_interval_s == 24 * 60 * 60
    assert settings.sync_timeout_s == 0.0


def test_yaml_file_overrides_env(monkeypatch, tmp_path):
    path = tmp_path / "extender.yaml"
    path.write_text("port: 9000\nresync_interval_s: 3600\nunknown_key: 1\n", encoding="utf-8")
    monkeypatch.setenv("EXTENDER_PORT", "8888")
    monkeypatch.setenv("EXTENDER_CONFIG", str(path))

    settings = Settings.from_env()

    assert settings.port == 9000
    assert settings.resync_interval_s == 3600.0


def test_unreadable_config_is_a_startup_error(tmp_path):
    with pytest.raises(StartupError):
        load_config_file(str(tmp_path / "missing.yaml"))

    bad = tmp_path / "list.yaml"
    bad.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(StartupError):
        load_config_file(str(bad))
