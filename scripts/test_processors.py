#!/usr/bin/env python3
# Test Processors, Helpers and Configuration
# Usage: python scripts/test_processors.py

"""
Processors Test Script

Tests:
1. parse_message - status message decoding
2. Helpers - prefixes, points, timestamps
3. Token loader
4. Configuration loading and validation
5. Logger - SUCCESS level, singleton, ANSI-free log file

Uses mock data (no API key required)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from teneo_fleet.accounts.token_loader import TokenFileError, load_tokens, parse_tokens
from teneo_fleet.processors.message_parser import (
    MessageParseError,
    MessageType,
    parse_message,
)
from teneo_fleet.utils.config import DEFAULT_CONFIG, load_config, merge_config, validate_config
from teneo_fleet.utils.helpers import (
    format_account_prefix,
    format_message,
    format_points,
    format_time,
    parse_timestamp,
)
from teneo_fleet.utils.logger import SUCCESS, log_success, setup_logger

MOCK_PULSE = {
    "message": "Pulse from server",
    "date": "2024-05-01T09:30:00.000Z",
    "pointsToday": 75,
    "pointsTotal": 15025,
}


# =============================================================================
# parse_message
# =============================================================================

def test_parse_pulse():
    parsed = parse_message(json.dumps(MOCK_PULSE))
    assert parsed.message_type is MessageType.PULSE
    assert parsed.points_today == 75
    assert parsed.points_total == 15025
    assert parsed.date == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def test_parse_connected_with_epoch_millis():
    parsed = parse_message(json.dumps({
        "message": "Connected successfully",
        "date": 1714555800000,
        "pointsToday": 0,
        "pointsTotal": 10.5,
    }))
    assert parsed.message_type is MessageType.CONNECTED
    assert parsed.date == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    assert parsed.points_total == 10.5


@pytest.mark.parametrize("payload", [
    {"message": "Heartbeat ack"},
    {"type": "PONG"},
    {"message": None, "date": "garbage"},
])
def test_parse_ignores_other_kinds(payload):
    assert parse_message(json.dumps(payload)) is None


@pytest.mark.parametrize("raw", [
    "{ this is not valid json",
    "[1, 2, 3]",
    "42",
    json.dumps({**MOCK_PULSE, "date": "yesterday"}),
    json.dumps({**MOCK_PULSE, "pointsTotal": None}),
    json.dumps({**MOCK_PULSE, "pointsToday": True}),
    json.dumps({k: v for k, v in MOCK_PULSE.items() if k != "date"}),
])
def test_parse_rejects_malformed(raw):
    with pytest.raises(MessageParseError):
        parse_message(raw)


# =============================================================================
# Helpers
# =============================================================================

def test_account_prefix_is_zero_padded():
    assert "Account 07" in format_account_prefix(7)
    assert "Account 123" in format_account_prefix(123)


def test_points_right_aligned():
    assert "    42" in format_points(42)
    assert "123456" in format_points(123456)
    assert "   100" in format_points(100.0)


def test_format_message():
    assert format_message("Account 01", "Ping sent") == "Account 01 > Ping sent"


def test_format_time_uses_local_24h_clock():
    moment = datetime(2024, 5, 1, 21, 5, 9, tzinfo=timezone.utc)
    assert format_time(moment) == moment.astimezone().strftime("%H:%M:%S")
    assert len(format_time()) == 8


def test_parse_timestamp_naive_iso_is_utc():
    assert parse_timestamp("2024-05-01T09:30:00") == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["", "not a date", None, True, [1]])
def test_parse_timestamp_rejects(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


# =============================================================================
# Token loader
# =============================================================================

def test_parse_tokens_filters_blank_lines():
    assert parse_tokens("  a \r\n\r\n\tb\n   \nc") == ["a", "b", "c"]


def test_load_tokens(tmp_path):
    token_file = tmp_path / "data.txt"
    token_file.write_text("tok1\n\ntok2\n", encoding="utf-8")
    assert load_tokens(token_file) == ["tok1", "tok2"]


def test_load_tokens_missing_file(tmp_path):
    with pytest.raises(TokenFileError):
        load_tokens(tmp_path / "nope.txt")


def test_load_tokens_empty_file(tmp_path):
    token_file = tmp_path / "data.txt"
    token_file.write_text("\n \n", encoding="utf-8")
    with pytest.raises(TokenFileError, match="no tokens"):
        load_tokens(token_file)


# =============================================================================
# Configuration
# =============================================================================

def test_default_config_is_valid():
    assert validate_config(DEFAULT_CONFIG) == (True, [])


def test_load_config_merges_yaml_and_env(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "reconnect:\n  max_attempts: 2\nwebsocket:\n  ping_interval: 5\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TENEO_TOKEN_FILE", "accounts.txt")
    monkeypatch.delenv("TENEO_LOG_LEVEL", raising=False)

    config = load_config(config_file, tmp_path / "missing.env")

    assert config['reconnect']['max_attempts'] == 2
    assert config['reconnect']['max_delay'] == 30.0
    assert config['websocket']['ping_interval'] == 5
    assert config['websocket']['headers']['Pragma'] == "no-cache"
    assert config['files']['token_file'] == "accounts.txt"


def test_load_config_without_yaml_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("TENEO_TOKEN_FILE", raising=False)
    config = load_config(tmp_path / "absent.yaml", tmp_path / "absent.env")
    assert config['websocket']['url'] == "wss://secure.ws.teneo.pro/websocket"
    assert config['files']['token_file'] == "data.txt"


def test_load_config_reads_dotenv(tmp_path, monkeypatch):
    monkeypatch.delenv("TENEO_LOG_LEVEL", raising=False)
    env_file = tmp_path / "secrets.env"
    env_file.write_text("TENEO_LOG_LEVEL=DEBUG\n", encoding="utf-8")
    try:
        config = load_config(tmp_path / "absent.yaml", env_file)
    finally:
        monkeypatch.delenv("TENEO_LOG_LEVEL", raising=False)
    assert config['logging']['level'] == "DEBUG"


def test_validate_config_reports_errors():
    config = merge_config(DEFAULT_CONFIG, {
        'websocket': {'url': "https://example.com", 'ping_interval': 0},
        'reconnect': {'max_attempts': -1},
        'logging': {'level': "LOUD"},
    })
    is_valid, errors = validate_config(config)
    assert not is_valid
    assert len(errors) == 4


def test_validate_config_missing_section():
    config = {k: v for k, v in DEFAULT_CONFIG.items() if k != 'reconnect'}
    is_valid, errors = validate_config(config)
    assert not is_valid
    assert errors == ["Missing config section: reconnect"]


# =============================================================================
# Logger
# =============================================================================

def test_setup_logger_is_singleton():
    first = setup_logger("TestSingleton", "DEBUG")
    second = setup_logger("TestSingleton", "ERROR")
    assert first is second
    assert len(first.handlers) == 1
    assert first.level == logging.DEBUG


def test_log_file_has_no_color_codes(tmp_path):
    log_file = tmp_path / "fleet.log"
    logger = setup_logger("TestFileLogger", "INFO", str(log_file))
    log_success(logger, format_message(format_account_prefix(1), "Connected"))
    for handler in logger.handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "SUCCESS" in content
    assert "Account 01 > Connected" in content
    assert "\x1b[" not in content


def test_unknown_level_falls_back_to_info():
    logger = setup_logger("TestBadLevel", "LOUD")
    assert logger.level == logging.INFO
    assert logging.getLevelName(SUCCESS) == "SUCCESS"


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
