"""
╔══════════════════════════════════════════════════════════════╗
║      Apple Mail Bridge — Data Models                         ║
╠══════════════════════════════════════════════════════════════╣
║  Transient projections of Mail.app state. Nothing here is    ║
║  persisted; every record is rebuilt from script output on    ║
║  each call and is only valid for that call.                  ║
╚══════════════════════════════════════════════════════════════╝
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


# ─── Mail Entities ───────────────────────────────────

@dataclass
class Message:
    """An email message in Mail.app."""
    id: str
    subject: str
    sender: str
    date_received: datetime
    mailbox: str
    account: str
    recipients: List[str] = field(default_factory=list)
    cc_recipients: List[str] = field(default_factory=list)
    date_sent: Optional[datetime] = None
    is_read: bool = False
    is_flagged: bool = False
    is_junk: bool = False
    is_deleted: bool = False
    has_attachments: bool = False


@dataclass
class MessageContent:
    """Subject and plain-text body of a message."""
    id: str
    subject: str
    plain_text: str


@dataclass
class Mailbox:
    name: str
    account: str
    unread_count: int = 0
    message_count: int = 0


@dataclass
class Account:
    name: str
    email: str           # first address of the account, "" if none
    enabled: bool = True


@dataclass
class Attachment:
    """A file attached to a message. id is synthetic: <messageId>-<name>."""
    id: str
    name: str
    mime_type: str
    size: int = 0


@dataclass
class BatchOperationResult:
    id: str
    success: bool
    error: Optional[str] = None


# ─── Diagnostics ─────────────────────────────────────

@dataclass
class HealthCheckItem:
    name: str            # mail_app, permissions, accounts, operations
    passed: bool
    message: str


@dataclass
class HealthCheckResult:
    healthy: bool
    checks: List[HealthCheckItem] = field(default_factory=list)


@dataclass
class MailboxStats:
    name: str
    message_count: int
    unread_count: int


@dataclass
class AccountStats:
    name: str
    total_messages: int = 0
    unread_messages: int = 0
    mailbox_count: int = 0
    mailboxes: List[MailboxStats] = field(default_factory=list)


@dataclass
class RecentlyReceivedStats:
    """Inbox-only counts of messages received in a trailing window."""
    last_24h: int = 0
    last_7d: int = 0
    last_30d: int = 0


@dataclass
class MailStats:
    total_messages: int = 0
    total_unread: int = 0
    accounts: List[AccountStats] = field(default_factory=list)
    recently_received: Optional[RecentlyReceivedStats] = None


@dataclass
class SyncStatus:
    sync_detected: bool = False
    pending_upload: int = 0          # not exposed by Mail.app, always 0
    recent_activity: bool = False
    seconds_since_last_change: int = -1
    error: Optional[str] = None


# ─── Execution Boundary ──────────────────────────────

class ErrorKind(str, Enum):
    """Why a script call did not produce a usable result."""
    UNREACHABLE = "unreachable"
    NOT_AUTHORIZED = "not_authorized"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    LOGICAL = "logical"


@dataclass
class ScriptResult:
    """Tagged outcome of one osascript invocation.

    Either ``ok`` with the script's stdout in ``output``, or not ok with an
    ``ErrorKind`` and a message. Logical failures reported by the script
    itself (``error:...`` output) arrive here already classified.
    """
    ok: bool
    output: str = ""
    kind: Optional[ErrorKind] = None
    error: str = ""

    @classmethod
    def success(cls, output: str) -> "ScriptResult":
        return cls(ok=True, output=output)

    @classmethod
    def failure(cls, kind: ErrorKind, error: str) -> "ScriptResult":
        return cls(ok=False, kind=kind, error=error)

    def __bool__(self):
        return self.ok
