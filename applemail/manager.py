"""
╔══════════════════════════════════════════════════════════════╗
║      Apple Mail Bridge — Mail Manager                        ║
╠══════════════════════════════════════════════════════════════╣
║  One method per operation. Every method follows the same     ║
║  path:  resolve names → build script → run → parse.          ║
║                                                              ║
║  Nothing here raises to the caller. Failure comes back as    ║
║  None / False / [] / 0 and the cause goes to the log.        ║
║  Message lookups by id scan every mailbox of every account,  ║
║  so they run with the longer search timeout.                 ║
╚══════════════════════════════════════════════════════════════╝
"""

import logging
from datetime import datetime
from typing import List, Optional

from applemail import parser, scripts
from applemail.models import (
    AccountStats, BatchOperationResult, ErrorKind, HealthCheckItem,
    HealthCheckResult, MailboxStats, MailStats, RecentlyReceivedStats, SyncStatus,
)
from applemail.resolver import MailContext
from applemail.runner import ScriptRunner

logger = logging.getLogger("mailbridge.manager")

DEFAULT_LIMIT = 50
DEFAULT_MAILBOX = "INBOX"


class AppleMailManager:
    """Apple Mail operations over AppleScript."""

    def __init__(self, config=None, runner=None, context=None):
        self.config = config or {}
        self.runner = runner or ScriptRunner(self.config)
        self.context = context or MailContext.from_config(self.config)
        self.default_limit = self.config.get("mail", {}).get("default_limit", DEFAULT_LIMIT)

    # ═══════════════════════════════════════════════════
    #  Name Resolution
    # ═══════════════════════════════════════════════════

    def resolve_account(self, account=None):
        return self.context.resolve_account(
            account, lambda: [a.name for a in self.list_accounts()]
        )

    def resolve_mailbox(self, mailbox, account):
        """Actual mailbox name in ``account`` for ``mailbox``.

        Falls back to the requested name when the live list can't be read.
        """
        result = self.runner.run(scripts.mailbox_names_script(account))
        if not result.ok or not result.output.strip():
            return mailbox
        return self.context.resolve_mailbox(mailbox, parser.parse_names(result.output))

    def _target(self, mailbox, account):
        target_account = self.resolve_account(account)
        target_mailbox = self.resolve_mailbox(mailbox or DEFAULT_MAILBOX, target_account)
        return target_mailbox, target_account

    # ═══════════════════════════════════════════════════
    #  Reading
    # ═══════════════════════════════════════════════════

    def list_messages(self, mailbox=None, account=None, limit=None, unread_only=False):
        """Newest-first messages of a mailbox (default INBOX)."""
        target_mailbox, target_account = self._target(mailbox, account)
        script = scripts.list_messages_script(
            target_account, target_mailbox, limit or self.default_limit, unread_only
        )
        result = self.runner.run(script)
        if not result.ok:
            logger.error(f"Failed to list messages in {target_mailbox!r}: {result.error}")
            return []
        return parser.parse_message_list(result.output, target_mailbox, target_account)

    def search_messages(self, query=None, mailbox=None, account=None, limit=None,
                        sender=None, subject=None, is_read=None, is_flagged=None,
                        date_from=None, date_to=None):
        """Messages in one mailbox matching every given filter.

        ``query`` matches subject or sender; the other filters narrow further.
        """
        target_mailbox, target_account = self._target(mailbox, account)
        script = scripts.search_messages_script(
            target_account, target_mailbox, limit or self.default_limit,
            query=query, sender=sender, subject=subject, is_read=is_read,
            is_flagged=is_flagged, date_from=date_from, date_to=date_to,
        )
        result = self.runner.run(script)
        if not result.ok:
            logger.error(f"Failed to search messages: {result.error}")
            return []
        return parser.parse_message_list(result.output, target_mailbox, target_account)

    def get_message_by_id(self, message_id):
        if not self._valid_id(message_id, "get message"):
            return None
        result = self.runner.run_search(scripts.message_by_id_script(message_id))
        if not result.ok:
            logger.error(f"Failed to get message {message_id}: {result.error}")
            return None
        return parser.parse_message_detail(result.output)

    def get_message_content(self, message_id):
        if not self._valid_id(message_id, "get message content"):
            return None
        result = self.runner.run_search(scripts.message_content_script(message_id))
        if not result.ok:
            logger.error(f"Failed to get message content {message_id}: {result.error}")
            return None
        return parser.parse_message_content(result.output)

    def list_attachments(self, message_id):
        if not self._valid_id(message_id, "list attachments"):
            return []
        result = self.runner.run_search(scripts.attachments_script(message_id))
        if not result.ok:
            logger.error(f"Failed to list attachments of {message_id}: {result.error}")
            return []
        return parser.parse_attachments(result.output, message_id)

    # ═══════════════════════════════════════════════════
    #  Composing
    # ═══════════════════════════════════════════════════

    def send_email(self, to, subject, body, cc=None, bcc=None, account=None):
        """Send a plain-text email. True when Mail.app confirms the send."""
        script = scripts.compose_script(to, subject, body, cc, bcc, account, send=True)
        result = self.runner.run(script)
        if not result.ok:
            logger.error(f"Failed to send email: {result.error}")
            return False
        if "sent" not in result.output:
            logger.error(f"Mail.app did not confirm the send: {result.output!r}")
            return False
        logger.info(f"  📤 Email sent to {', '.join(to)}")
        return True

    def create_draft(self, to, subject, body, cc=None, bcc=None, account=None):
        """Create an unsent outgoing message instead of sending it."""
        script = scripts.compose_script(to, subject, body, cc, bcc, account, send=False)
        result = self.runner.run(script)
        if not result.ok:
            logger.error(f"Failed to create draft: {result.error}")
            return False
        return "draft created" in result.output

    def reply_to_message(self, message_id, body, reply_all=False, send=True):
        if not self._valid_id(message_id, "reply"):
            return False
        return self._run_message_op(
            scripts.reply_script(message_id, body, reply_all, send), "reply to message", message_id
        )

    def forward_message(self, message_id, to, body=None, send=True):
        if not self._valid_id(message_id, "forward"):
            return False
        return self._run_message_op(
            scripts.forward_script(message_id, to, body, send), "forward message", message_id
        )

    # ═══════════════════════════════════════════════════
    #  Organizing
    # ═══════════════════════════════════════════════════

    def mark_as_read(self, message_id):
        return self._message_op(message_id, scripts.set_read_script, "mark as read", True)

    def mark_as_unread(self, message_id):
        return self._message_op(message_id, scripts.set_read_script, "mark as unread", False)

    def flag_message(self, message_id):
        return self._message_op(message_id, scripts.set_flagged_script, "flag message", True)

    def unflag_message(self, message_id):
        return self._message_op(message_id, scripts.set_flagged_script, "unflag message", False)

    def delete_message(self, message_id):
        return self._message_op(message_id, scripts.delete_script, "delete message")

    def move_message(self, message_id, mailbox, account=None):
        """Move a message to ``mailbox`` of ``account`` (default account if omitted)."""
        if not self._valid_id(message_id, "move message"):
            return False
        target_account = self.resolve_account(account)
        target_mailbox = self.resolve_mailbox(mailbox, target_account)
        return self._run_message_op(
            scripts.move_script(message_id, target_mailbox, target_account),
            "move message", message_id,
        )

    # ─── Batch ───────────────────────────────────────
    # No rollback: each id succeeds or fails on its own.

    def batch_delete_messages(self, ids):
        return self._batch(ids, self.delete_message, "Failed to delete message")

    def batch_move_messages(self, ids, mailbox, account=None):
        return self._batch(
            ids, lambda mid: self.move_message(mid, mailbox, account), "Failed to move message"
        )

    def batch_mark_as_read(self, ids):
        return self._batch(ids, self.mark_as_read, "Failed to mark message as read")

    def _batch(self, ids, operation, error_text) -> List[BatchOperationResult]:
        results = []
        for mid in ids:
            success = bool(operation(mid))
            results.append(BatchOperationResult(
                id=mid, success=success, error=None if success else error_text,
            ))
        return results

    # ─── Helpers ─────────────────────────────────────

    def _valid_id(self, message_id, action):
        if scripts.is_valid_message_id(message_id):
            return True
        logger.warning(f"Refusing to {action}: invalid message id {message_id!r}")
        return False

    def _message_op(self, message_id, build, action, *args):
        if not self._valid_id(message_id, action):
            return False
        return self._run_message_op(build(message_id, *args), action, message_id)

    def _run_message_op(self, script, action, message_id):
        result = self.runner.run_search(script)
        if not result.ok:
            logger.error(f"Failed to {action} {message_id}: {result.error}")
            return False
        return True

    # ═══════════════════════════════════════════════════
    #  Mailboxes & Accounts
    # ═══════════════════════════════════════════════════

    def list_mailboxes(self, account=None):
        target_account = self.resolve_account(account)
        result = self.runner.run(scripts.list_mailboxes_script(target_account))
        if not result.ok:
            logger.error(f"Failed to list mailboxes of {target_account!r}: {result.error}")
            return []
        return parser.parse_mailboxes(result.output, target_account)

    def get_unread_count(self, mailbox=None, account=None):
        """Unread count of one mailbox, or of the whole account when omitted."""
        target_account = self.resolve_account(account)
        target_mailbox = self.resolve_mailbox(mailbox, target_account) if mailbox else None
        result = self.runner.run(scripts.unread_count_script(target_account, target_mailbox))
        if not result.ok:
            logger.error(f"Failed to get unread count: {result.error}")
            return 0
        return parser.parse_int(result.output)

    def list_accounts(self):
        result = self.runner.run(scripts.list_accounts_script())
        if not result.ok:
            logger.error(f"Failed to list accounts: {result.error}")
            return []
        return parser.parse_accounts(result.output)

    # ═══════════════════════════════════════════════════
    #  Diagnostics
    # ═══════════════════════════════════════════════════

    def health_check(self):
        """Four probes in order; the first three stop the run on failure."""
        checks = []

        # 1. Mail.app reachable
        ping = self.runner.run(scripts.PING_SCRIPT)
        if ping.ok and ping.output == "ok":
            checks.append(HealthCheckItem("mail_app", True, "Mail.app is accessible"))
        else:
            hint = ""
            if ping.kind == ErrorKind.NOT_AUTHORIZED:
                hint = " (check Automation permissions in System Settings)"
            checks.append(HealthCheckItem("mail_app", False, f"Mail.app is not accessible{hint}"))
            return HealthCheckResult(healthy=False, checks=checks)

        # 2. Automation permission
        perm = self.runner.run(scripts.PERMISSION_SCRIPT)
        if perm.ok:
            checks.append(HealthCheckItem(
                "permissions", True, "AppleScript automation permissions granted"))
        elif perm.kind == ErrorKind.NOT_AUTHORIZED:
            checks.append(HealthCheckItem(
                "permissions", False,
                "AppleScript permissions denied. Grant access in "
                "System Settings > Privacy & Security > Automation"))
            return HealthCheckResult(healthy=False, checks=checks)
        else:
            # e.g. no account 1 yet — the accounts probe reports that
            checks.append(HealthCheckItem(
                "permissions", True, f"Permission check returned: {perm.error}"))

        # 3. At least one account
        accounts = self.list_accounts()
        if not accounts:
            checks.append(HealthCheckItem(
                "accounts", False, "No Mail accounts found. Set up an account in Mail.app first."))
            return HealthCheckResult(healthy=False, checks=checks)
        names = ", ".join(a.name for a in accounts)
        checks.append(HealthCheckItem(
            "accounts", True, f"Found {len(accounts)} account(s): {names}"))

        # 4. Basic listing
        first = accounts[0].name
        mailboxes = self.list_mailboxes(first)
        checks.append(HealthCheckItem(
            "operations", True,
            f"Basic operations working ({len(mailboxes)} mailbox(es) in {first})"))

        return HealthCheckResult(healthy=all(c.passed for c in checks), checks=checks)

    def get_mail_stats(self):
        """Totals across all accounts and mailboxes, plus inbox-only recent counts."""
        stats = MailStats()
        for account in self.list_accounts():
            mailboxes = self.list_mailboxes(account.name)
            acct = AccountStats(name=account.name, mailbox_count=len(mailboxes))
            for mb in mailboxes:
                acct.total_messages += mb.message_count
                acct.unread_messages += mb.unread_count
                acct.mailboxes.append(MailboxStats(mb.name, mb.message_count, mb.unread_count))
            stats.total_messages += acct.total_messages
            stats.total_unread += acct.unread_messages
            stats.accounts.append(acct)

        stats.recently_received = self.get_recently_received_stats()
        return stats

    def get_recently_received_stats(self, now: Optional[datetime] = None):
        script = scripts.recently_received_script(
            now or datetime.now(), self.context.aliases.get("inbox", ["INBOX"])
        )
        result = self.runner.run_search(script)
        if not result.ok:
            logger.error(f"Failed to get recently received stats: {result.error}")
            return RecentlyReceivedStats()
        return parser.parse_recent_counts(result.output)

    def get_sync_status(self):
        """Best-effort sync indicator — Mail.app exposes no real sync state."""
        result = self.runner.run(scripts.SYNC_STATUS_SCRIPT)
        if not result.ok:
            return SyncStatus(error=result.error)
        if result.output == "not_running":
            return SyncStatus(error="Mail.app is not running")

        parts = result.output.split(scripts.FIELD_SEP)
        running = parts[0] == "running"
        account_count = parser.parse_int(parts[1]) if len(parts) > 1 else 0
        return SyncStatus(
            sync_detected=running and account_count > 0,
            recent_activity=running,
            seconds_since_last_change=0,
        )
