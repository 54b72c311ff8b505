from __future__ import annotations

import pytest

from roomwire.runtime.settings_loader import load_tokens, load_settings
from roomwire.config.websocket import MAX_PING_INTERVAL_MS, MIN_PING_INTERVAL_MS


def test_defaults() -> None:
    settings = load_settings()
    assert settings.socket_url == "wss://api.dogehouse.tv/socket"
    assert settings.api_url == "https://api.dogehouse.tv"
    assert settings.auto_reconnect is True
    assert settings.reconnect_on_auth_failure is False
    assert settings.connection_timeout_ms == 30000
    assert settings.callback_timeout_ms == 2000
    assert settings.callback_timeout_s == pytest.approx(2.0)
    assert settings.ping_interval_ms == 8000
    assert settings.log_unhandled_packets is False


def test_env_values_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROOMWIRE_API_URL", "https://example.test/")
    monkeypatch.setenv("ROOMWIRE_AUTO_RECONNECT", "no")
    monkeypatch.setenv("ROOMWIRE_CALLBACK_TIMEOUT_MS", "500")
    monkeypatch.setenv("ROOMWIRE_LOG_UNHANDLED_PACKETS", "yes")
    monkeypatch.setenv("ROOMWIRE_CONNECTION_TIMEOUT_MS", "garbage")

    settings = load_settings()

    assert settings.api_url == "https://example.test"
    assert settings.auto_reconnect is False
    assert settings.callback_timeout_ms == 500
    assert settings.log_unhandled_packets is True
    assert settings.connection_timeout_ms == 30000


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROOMWIRE_SOCKET_URL", "wss://env.test/socket")
    settings = load_settings(socket_url="wss://override.test/socket")
    assert settings.socket_url == "wss://override.test/socket"


@pytest.mark.parametrize(
    ("requested", "expected"),
    [(20000, MAX_PING_INTERVAL_MS), (5000, 5000), (1, MIN_PING_INTERVAL_MS)],
)
def test_ping_interval_is_clamped(requested: int, expected: int) -> None:
    assert load_settings(ping_interval_ms=requested).ping_interval_ms == expected


def test_non_positive_timeouts_are_rejected() -> None:
    with pytest.raises(ValueError):
        load_settings(callback_timeout_ms=0)


def test_unknown_override_is_rejected() -> None:
    with pytest.raises(TypeError):
        load_settings(nope=True)


def test_tokens_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROOMWIRE_ACCESS_TOKEN", "a")
    monkeypatch.setenv("ROOMWIRE_REFRESH_TOKEN", "r")
    tokens = load_tokens()
    assert tokens.access_token == "a"
    assert tokens.refresh_token == "r"
    assert not tokens.needs_exchange


def test_api_key_from_env_needs_exchange(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROOMWIRE_API_KEY", "k")
    assert load_tokens().needs_exchange


def test_missing_credentials() -> None:
    with pytest.raises(ValueError):
        load_tokens()
