"""Tests for environment-driven settings."""

import pytest

from app.core.config import AppSettings, Settings, SocketSettings, parse_csv


def test_parse_csv_trims_and_drops_blanks() -> None:
    assert parse_csv(" a, b ,, c ") == ["a", "b", "c"]
    assert parse_csv("") == []
    assert parse_csv(None) == []


def test_socket_defaults() -> None:
    socket = SocketSettings()

    assert socket.path == "socket.io"
    assert socket.ping_interval_seconds == 25
    assert socket.ping_timeout_seconds == 20
    assert socket.join_rate_limit_capacity == 10
    assert socket.join_rate_limit_refill_seconds == 1.0


def test_non_production_allows_any_origin() -> None:
    cfg = Settings(app_env="development")

    assert cfg.is_production is False
    assert cfg.cors_allowed_origins() == "*"


def test_production_pins_origins() -> None:
    cfg = Settings(
        app_env="production",
        socket=SocketSettings(
            production_domain="https://club.example",
            allowed_origins="https://club.example, https://alt.example",
        ),
    )

    assert cfg.cors_allowed_origins() == ["https://club.example", "https://alt.example"]


def test_port_reads_platform_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_PORT", raising=False)
    monkeypatch.setenv("PORT", "8080")

    assert AppSettings().port == 8080


def test_app_port_wins_over_platform_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_PORT", "9000")
    monkeypatch.setenv("PORT", "8080")

    assert AppSettings().port == 9000


@pytest.mark.parametrize("capacity", ["0", "-3"])
def test_capacity_must_be_positive(monkeypatch: pytest.MonkeyPatch, capacity: str) -> None:
    monkeypatch.setenv("SOCKET_JOIN_RATE_LIMIT_CAPACITY", capacity)

    with pytest.raises(ValueError):
        SocketSettings()
