"""Quick health check — verify Mail.app is reachable and scriptable."""
import os
import sys

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, BASE_DIR)

from applemail import AppleMailManager
from utils.config import load_config
from utils.logger import setup_logger


def main():
    config = load_config()
    setup_logger(config, BASE_DIR)
    manager = AppleMailManager(config)
    result = manager.health_check()

    print("=" * 50)
    print("  APPLE MAIL BRIDGE HEALTH CHECK")
    print("=" * 50)
    for check in result.checks:
        mark = "✅" if check.passed else "❌"
        print(f"  {mark} {check.name}: {check.message}")
    print("=" * 50)
    print(f"  {'ALL SYSTEMS GO' if result.healthy else 'ISSUES FOUND'}")
    print("=" * 50)
    return 0 if result.healthy else 1


if __name__ == "__main__":
    sys.exit(main())
