"""Tests de la configuración por variables de entorno."""

import os

import pytest

from common.config import get_settings

_VARS = (
    "LIVE_API_URL",
    "LIVE_POLL_ENTITIES_S",
    "LIVE_POLL_HEALTH_S",
    "LIVE_SESSION_TOKEN",
    "LIVE_API_KEY",
    "LIVE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.setenv("LIVE_ENV_FILE", str(tmp_path / "missing.env"))
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv escribe directo en os.environ
    for name in _VARS:
        os.environ.pop(name, None)


def test_defaults():
    s = get_settings()

    assert s.api_base_url == "http://localhost:8330"
    assert s.session_token is None
    assert s.session_cookie == "mc1session"
    assert s.entities_interval_s == 5.0
    assert s.health_history_interval_s == 60.0
    assert s.bandwidth_points == 30
    assert s.health_points == 60
    assert s.control_refresh_delay_s == 0.0


def test_env_file_does_not_override_real_env(monkeypatch, tmp_path):
    env_file = tmp_path / "live.env"
    env_file.write_text("LIVE_API_URL=http://from-file:9000/\nLIVE_POLL_HEALTH_S=2\n")
    monkeypatch.setenv("LIVE_ENV_FILE", str(env_file))
    monkeypatch.setenv("LIVE_API_URL", "http://from-env:8330")

    s = get_settings()

    assert s.api_base_url == "http://from-env:8330"
    assert s.health_interval_s == 2.0


def test_blank_secrets_are_none(monkeypatch):
    monkeypatch.setenv("LIVE_SESSION_TOKEN", "   ")
    monkeypatch.setenv("LIVE_API_KEY", "k-123")
    monkeypatch.setenv("LIVE_LOG_LEVEL", "debug")

    s = get_settings()

    assert s.session_token is None
    assert s.api_key == "k-123"
    assert s.log_level == "DEBUG"
