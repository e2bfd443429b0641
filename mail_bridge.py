#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════╗
║                                                          ║
║            Apple Mail Bridge — MCP Server                ║
║      Search, send and organize Apple Mail from any       ║
║                  MCP-capable assistant                   ║
║                                                          ║
╚══════════════════════════════════════════════════════════╝

Usage:
    python mail_bridge.py             # Serve MCP over stdio
    python mail_bridge.py --version   # Print version and exit

Client config (e.g. Claude Desktop):
    "apple-mail": {"command": "apple-mail-bridge"}
"""

import os
import sys
import asyncio
import logging

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, BASE_DIR)

from applemail import AppleMailManager
from bridge.server import MailBridgeServer, SERVER_VERSION
from utils.config import load_config
from utils.logger import setup_logger

logger = logging.getLogger("mailbridge")


def main():
    if "--version" in sys.argv[1:]:
        print(f"apple-mail-bridge {SERVER_VERSION}")
        return

    config = load_config()
    setup_logger(config, BASE_DIR)
    logger.info("  ⚙️  Config loaded")

    if sys.platform != "darwin":
        logger.warning("  ⚠️ Not running on macOS — every Mail.app call will fail")

    manager = AppleMailManager(config)
    server = MailBridgeServer(manager)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("  👋 Shutting down")


if __name__ == "__main__":
    main()
