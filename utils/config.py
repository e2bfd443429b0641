"""
╔══════════════════════════════════════════╗
║   Apple Mail Bridge — Utilities: Config  ║
╚══════════════════════════════════════════╝

config.yaml merged over built-in defaults, then env var overrides:
  APPLE_MAIL_CONFIG           →  path to the yaml file
  APPLE_MAIL_DEFAULT_ACCOUNT  →  mail.default_account
  APPLE_MAIL_LOG_LEVEL        →  logging.log_level
"""

import copy
import os

import yaml

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_PATH = os.path.join(BASE_DIR, "config.yaml")

DEFAULTS = {
    "mail": {
        "default_account": "",
        "fallback_account": "iCloud",
        "default_limit": 50,
    },
    "applescript": {
        "timeout": 30,
        "search_timeout": 60,
        "max_retries": 2,
        "retry_delay": 1.0,
    },
    "logging": {
        "log_level": "INFO",
        "log_file": "logs/apple_mail.log",
    },
    "mailbox_aliases": {},
}


def _merge(base, override):
    """Recursive dict merge — override wins, nested dicts are merged."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path=None):
    """Load configuration from config.yaml with env var overrides.

    A missing file is not an error — the defaults are complete.
    """
    path = path or os.environ.get("APPLE_MAIL_CONFIG") or CONFIG_PATH
    user_config = {}
    if os.path.exists(path):
        with open(path, "r") as f:
            user_config = yaml.safe_load(f) or {}

    config = _merge(DEFAULTS, user_config)

    if os.environ.get("APPLE_MAIL_DEFAULT_ACCOUNT"):
        config["mail"]["default_account"] = os.environ["APPLE_MAIL_DEFAULT_ACCOUNT"]
    if os.environ.get("APPLE_MAIL_LOG_LEVEL"):
        config["logging"]["log_level"] = os.environ["APPLE_MAIL_LOG_LEVEL"]

    return config
