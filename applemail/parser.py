"""
Response parsing — script text output back into model records.

Rows that come back short (a message whose subject failed to coerce, a
truncated line) are dropped, never raised on.
"""

import re
import logging
from datetime import datetime

from dateutil import parser as date_parser
from dateutil.parser import ParserError

from applemail.models import (
    Account, Attachment, Mailbox, Message, MessageContent, RecentlyReceivedStats,
)
from applemail.scripts import CONTENT_SEP, FIELD_SEP, ITEM_SEP

logger = logging.getLogger("mailbridge.parser")

_DATE_PREFIX = re.compile(r"^date\s+")


# ─── Scalars ─────────────────────────────────────────

def parse_date(text):
    """Parse AppleScript's verbose date, e.g.
    "date Saturday, December 27, 2025 at 3:44:02 PM".

    Unparseable input yields the current time.
    """
    normalized = _DATE_PREFIX.sub("", (text or "").strip()).replace(" at ", " ")
    try:
        return date_parser.parse(normalized)
    except (ParserError, ValueError, OverflowError):
        logger.debug(f"Unparseable AppleScript date {text!r}, using now")
        return datetime.now()


def parse_optional_date(text):
    if not text or not text.strip():
        return None
    return parse_date(text)


def parse_bool(text):
    return text == "true"


def parse_int(text):
    try:
        return int(str(text).strip())
    except (TypeError, ValueError):
        return 0


def parse_names(output):
    """Names joined by the field separator: "INBOX|||Sent|||Drafts"."""
    if not output or not output.strip():
        return []
    return [name for name in output.split(FIELD_SEP) if name]


# ─── Records ─────────────────────────────────────────

def split_records(output, min_fields):
    """Split ``output`` into rows of at least ``min_fields`` fields."""
    if not output or not output.strip():
        return []
    rows = []
    for item in output.split(ITEM_SEP):
        parts = item.split(FIELD_SEP)
        if len(parts) < min_fields:
            continue
        rows.append(parts)
    return rows


def parse_message_list(output, mailbox, account):
    """Rows: id, subject, sender, date received, read, flagged."""
    return [
        Message(
            id=parts[0].strip(),
            subject=parts[1],
            sender=parts[2],
            date_received=parse_date(parts[3]),
            is_read=parse_bool(parts[4]),
            is_flagged=parse_bool(parts[5]),
            mailbox=mailbox,
            account=account,
        )
        for parts in split_records(output, 6)
    ]


def parse_message_detail(output):
    """One message from message_by_id_script, or None when malformed."""
    rows = split_records(output, 12)
    if not rows:
        return None
    parts = rows[0]
    return Message(
        id=parts[0].strip(),
        subject=parts[1],
        sender=parts[2],
        date_received=parse_date(parts[3]),
        date_sent=parse_optional_date(parts[4]),
        is_read=parse_bool(parts[5]),
        is_flagged=parse_bool(parts[6]),
        is_junk=parse_bool(parts[7]),
        is_deleted=parse_bool(parts[8]),
        mailbox=parts[9],
        account=parts[10],
        has_attachments=parse_int(parts[11]) > 0,
    )


def parse_message_content(output):
    # Body text may itself contain the separator; only split twice
    parts = (output or "").split(CONTENT_SEP, 2)
    if len(parts) < 3:
        return None
    return MessageContent(id=parts[0].strip(), subject=parts[1], plain_text=parts[2])


def parse_attachments(output, message_id):
    """Rows: name, MIME type, size. The leading marker row is skipped."""
    return [
        Attachment(
            id=f"{message_id}-{parts[0]}",
            name=parts[0],
            mime_type=parts[1],
            size=parse_int(parts[2]),
        )
        for parts in split_records(output, 3)
    ]


def parse_mailboxes(output, account):
    """Rows: name, unread count, message count."""
    return [
        Mailbox(
            name=parts[0],
            account=account,
            unread_count=parse_int(parts[1]),
            message_count=parse_int(parts[2]),
        )
        for parts in split_records(output, 3)
    ]


def parse_accounts(output):
    """Rows: name, first email address, enabled."""
    return [
        Account(name=parts[0], email=parts[1], enabled=parse_bool(parts[2]))
        for parts in split_records(output, 3)
    ]


def parse_recent_counts(output):
    rows = split_records(output, 3)
    if not rows:
        return RecentlyReceivedStats()
    parts = rows[0]
    return RecentlyReceivedStats(
        last_24h=parse_int(parts[0]),
        last_7d=parse_int(parts[1]),
        last_30d=parse_int(parts[2]),
    )
