# Config - Configuration Loading
# YAML configuration with .env secrets and environment overrides

"""
Config Module

Responsibilities:
- Load secrets/overrides from config/secrets.env
- Load config/config.yaml (falls back to built-in defaults)
- Apply environment overrides
- Validate config structure and ranges
"""

import os
from copy import deepcopy
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

DEFAULT_CONFIG = {
    'websocket': {
        'url': "wss://secure.ws.teneo.pro/websocket",
        'version': "v0.2",
        'ping_interval': 10,
        'open_timeout': 10,
        'close_timeout': 10,
        'origin': "chrome-extension://emcdcoaglgspoogqfiggmhnhgabhppkm",
        'user_agent': USER_AGENT,
        'headers': {
            'Accept-Encoding': "gzip, deflate, br, zstd",
            'Accept-Language': "en-US,en;q=0.9",
            'Cache-Control': "no-cache",
            'Pragma': "no-cache",
        },
    },
    'reconnect': {
        'max_attempts': 5,
        'base_delay': 1.0,
        'max_delay': 30.0,
    },
    'files': {
        'token_file': "data.txt",
    },
    'logging': {
        'level': "INFO",
        'log_file': "logs/teneo_fleet.log",
    },
    'shutdown': {
        'close_timeout': 5.0,
    },
}

ENV_OVERRIDES = {
    'TENEO_TOKEN_FILE': ('files', 'token_file'),
    'TENEO_LOG_LEVEL': ('logging', 'level'),
    'TENEO_LOG_FILE': ('logging', 'log_file'),
}

LOG_LEVELS = ('DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL')


def merge_config(base: dict, override: dict) -> dict:
    """Recursively merge override into a copy of base"""
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None, env_path: Optional[Path] = None) -> dict:
    """
    Load configuration from YAML file and environment

    Args:
        config_path: YAML file (defaults to config/config.yaml)
        env_path: dotenv file (defaults to config/secrets.env)

    Returns:
        Configuration dictionary
    """
    load_dotenv(env_path or PROJECT_ROOT / "config" / "secrets.env")

    config_path = Path(config_path or PROJECT_ROOT / "config" / "config.yaml")
    config = deepcopy(DEFAULT_CONFIG)
    if config_path.exists():
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
        config = merge_config(config, loaded)

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config.setdefault(section, {})[key] = value

    return config


def validate_config(config: dict) -> tuple[bool, list[str]]:
    """
    Validate configuration structure and values

    Returns:
        (is_valid, errors)
    """
    errors = []

    required_sections = ['websocket', 'reconnect', 'files', 'logging', 'shutdown']
    for section in required_sections:
        if not isinstance(config.get(section), dict):
            errors.append(f"Missing config section: {section}")
    if errors:
        return False, errors

    ws = config['websocket']
    if not str(ws.get('url', '')).startswith(('ws://', 'wss://')):
        errors.append(f"websocket.url must be a ws:// or wss:// URL, got {ws.get('url')!r}")
    if not ws.get('version'):
        errors.append("websocket.version is required")
    if not isinstance(ws.get('headers', {}), dict):
        errors.append("websocket.headers must be a mapping")

    positive_values = [
        ('websocket.ping_interval', ws.get('ping_interval')),
        ('websocket.open_timeout', ws.get('open_timeout')),
        ('websocket.close_timeout', ws.get('close_timeout')),
        ('reconnect.base_delay', config['reconnect'].get('base_delay')),
        ('reconnect.max_delay', config['reconnect'].get('max_delay')),
        ('shutdown.close_timeout', config['shutdown'].get('close_timeout')),
    ]
    for name, value in positive_values:
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
            errors.append(f"{name} must be a positive number, got {value!r}")

    max_attempts = config['reconnect'].get('max_attempts')
    if not isinstance(max_attempts, int) or isinstance(max_attempts, bool) or max_attempts < 0:
        errors.append(f"reconnect.max_attempts must be a non-negative integer, got {max_attempts!r}")

    if not config['files'].get('token_file'):
        errors.append("files.token_file is required")

    level = str(config['logging'].get('level', '')).upper()
    if level not in LOG_LEVELS:
        errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")

    return len(errors) == 0, errors
