"""
╔══════════════════════════════════════════════════════════════╗
║      Apple Mail Bridge — AppleScript Runner                  ║
╠══════════════════════════════════════════════════════════════╣
║  The only place that spawns osascript. Scripts go in over    ║
║  stdin (no shell escaping), results come back as a tagged    ║
║  ScriptResult — callers never look at return codes or        ║
║  sniff "error:" prefixes themselves.                         ║
║                                                              ║
║  Transient failures (timeouts, Mail.app not answering) are   ║
║  retried with a linear backoff.                              ║
╚══════════════════════════════════════════════════════════════╝
"""

import subprocess
import time
import logging

from applemail.models import ErrorKind, ScriptResult

logger = logging.getLogger("mailbridge.runner")

DEFAULT_TIMEOUT = 30
DEFAULT_SEARCH_TIMEOUT = 60
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 1.0

# Kinds worth another attempt — everything else fails fast
_RETRYABLE = {ErrorKind.TIMEOUT, ErrorKind.UNREACHABLE}

# osascript stderr fragments → error kind (checked in order)
_STDERR_KINDS = [
    (("-1743", "not authorized", "not permitted"), ErrorKind.NOT_AUTHORIZED),
    (("-1712", "timed out"), ErrorKind.TIMEOUT),
    (("-600", "-609", "isn't running", "connection is invalid"), ErrorKind.UNREACHABLE),
    (("-1728", "can't get"), ErrorKind.NOT_FOUND),
]


def classify_stderr(stderr):
    """Map osascript's stderr text to an ErrorKind."""
    lowered = (stderr or "").lower()
    for needles, kind in _STDERR_KINDS:
        if any(n in lowered for n in needles):
            return kind
    return ErrorKind.LOGICAL


def classify_output(output):
    """Turn a script's own ``error:...`` report into a failed ScriptResult.

    Scripts that complete but cannot perform the action (message not found,
    mailbox missing) return text starting with ``error:`` or ``ERROR:``.
    Anything else is a success.
    """
    if output[:6].lower() != "error:":
        return ScriptResult.success(output)
    message = output[6:].strip()
    kind = ErrorKind.NOT_FOUND if "not found" in message.lower() else ErrorKind.LOGICAL
    return ScriptResult.failure(kind, message or "Unknown AppleScript error")


class ScriptRunner:
    """Runs AppleScript through osascript with timeout + retry."""

    def __init__(self, config=None):
        cfg = (config or {}).get("applescript", {})
        self.timeout = cfg.get("timeout", DEFAULT_TIMEOUT)
        self.search_timeout = cfg.get("search_timeout", DEFAULT_SEARCH_TIMEOUT)
        self.max_retries = cfg.get("max_retries", DEFAULT_MAX_RETRIES)
        self.retry_delay = cfg.get("retry_delay", DEFAULT_RETRY_DELAY)

    def run(self, script, timeout=None):
        """Execute ``script`` and return a ScriptResult.

        Args:
            script:  AppleScript source text.
            timeout: Seconds before the osascript process is killed.
                     Defaults to the configured ``applescript.timeout``.
        """
        timeout = timeout or self.timeout
        result = None
        for attempt in range(self.max_retries + 1):
            try:
                result = self._run_once(script, timeout)
            except FileNotFoundError:
                logger.error("  ❌ osascript not found (macOS only)")
                return ScriptResult.failure(ErrorKind.UNREACHABLE, "osascript not found (macOS only)")
            if result.ok or result.kind not in _RETRYABLE:
                return result
            if attempt < self.max_retries:
                delay = self.retry_delay * (attempt + 1)
                logger.debug(f"  ↻ AppleScript {result.kind.value}, retrying in {delay:.1f}s "
                             f"({attempt + 1}/{self.max_retries})")
                time.sleep(delay)

        logger.warning(f"  ⚠️ AppleScript failed after {self.max_retries + 1} attempts: {result.error}")
        return result

    def run_search(self, script):
        """Execute a script that scans every mailbox, with the longer timeout."""
        return self.run(script, timeout=self.search_timeout)

    def _run_once(self, script, timeout):
        try:
            proc = subprocess.run(
                ["osascript", "-"],
                input=script, capture_output=True, text=True, timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return ScriptResult.failure(ErrorKind.TIMEOUT, f"AppleScript timed out ({timeout}s)")
        except FileNotFoundError:
            raise  # no osascript on this machine, never retried
        except OSError as e:
            return ScriptResult.failure(ErrorKind.UNREACHABLE, f"AppleScript exception: {e}")

        if proc.returncode != 0:
            stderr = proc.stderr.strip()
            return ScriptResult.failure(classify_stderr(stderr), f"AppleScript error: {stderr}")

        return classify_output(proc.stdout.strip())
