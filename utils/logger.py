"""
╔══════════════════════════════════════════╗
║   Apple Mail Bridge — Utilities: Logger  ║
╚══════════════════════════════════════════╝

Console (stderr) + rotating file logging.
stdout belongs to the MCP transport — nothing may log there.
"""

import logging
import logging.handlers
import os
import sys

LOGGER_NAME = "mailbridge"


def setup_logger(config, base_dir):
    """Set up the bridge logger with stderr and rotating file handlers."""
    log_cfg = config.get("logging", {})
    log_level = getattr(logging, str(log_cfg.get("log_level", "INFO")).upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger  # Already configured — avoid duplicate handlers
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(log_level)
    console.setFormatter(logging.Formatter("  %(message)s"))
    logger.addHandler(console)

    log_file = log_cfg.get("log_file")
    if log_file:
        log_path = os.path.join(base_dir, os.path.expanduser(log_file))
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        # Rotating file handler — 5MB max, keep 3 backups
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)

    return logger
