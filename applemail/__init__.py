"""
╔══════════════════════════════════════════╗
║     Apple Mail Bridge — Mail Core        ║
╚══════════════════════════════════════════╝

Everything that talks to Mail.app:
  - runner    — osascript execution, tagged results
  - scripts   — AppleScript builders
  - resolver  — account / mailbox name resolution
  - parser    — script output → models
  - manager   — AppleMailManager, one method per operation
"""

from applemail.manager import AppleMailManager
from applemail.resolver import MailContext
from applemail.runner import ScriptRunner
