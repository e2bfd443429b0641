"""
╔══════════════════════════════════════════════════════════════╗
║     Apple Mail Bridge — Tool Dispatcher                      ║
╠══════════════════════════════════════════════════════════════╣
║  Routes tool calls to AppleMailManager and renders the       ║
║  result as text. Arguments are validated against the tool    ║
║  schema before anything reaches Mail.app.                    ║
║                                                              ║
║  Every call returns a ToolResponse — failures are rendered   ║
║  as "<prefix>: <reason>" with is_error set, never raised.    ║
╚══════════════════════════════════════════════════════════════╝
"""

import logging
from dataclasses import dataclass

from dateutil import parser as date_parser
from dateutil.parser import ParserError

from applemail.scripts import is_valid_message_id
from bridge.tool_defs import TOOLS_BY_NAME

logger = logging.getLogger("mailbridge.tools")

_JSON_TYPES = {
    "string": str,
    "boolean": bool,
    "integer": int,
    "array": list,
}

# Tool name → prefix used when the call fails
ERROR_PREFIXES = {
    "search-messages": "Error searching messages",
    "get-message": "Error retrieving message",
    "list-messages": "Error listing messages",
    "send-email": "Error sending email",
    "create-draft": "Error creating draft",
    "reply-to-message": "Error replying to message",
    "forward-message": "Error forwarding message",
    "mark-as-read": "Error marking message as read",
    "mark-as-unread": "Error marking message as unread",
    "flag-message": "Error flagging message",
    "unflag-message": "Error unflagging message",
    "delete-message": "Error deleting message",
    "move-message": "Error moving message",
    "batch-delete-messages": "Error batch deleting messages",
    "batch-move-messages": "Error batch moving messages",
    "batch-mark-as-read": "Error batch marking messages as read",
    "list-attachments": "Error listing attachments",
    "list-mailboxes": "Error listing mailboxes",
    "get-unread-count": "Error getting unread count",
    "list-accounts": "Error listing accounts",
    "health-check": "Error running health check",
    "get-mail-stats": "Error getting mail statistics",
    "get-sync-status": "Error getting sync status",
}


class ToolValidationError(ValueError):
    """Tool arguments rejected before any script is built."""


@dataclass
class ToolResponse:
    text: str
    is_error: bool = False


def success(text):
    return ToolResponse(text)


def error(text):
    return ToolResponse(text, is_error=True)


# ═══════════════════════════════════════════════════
#  Argument Validation
# ═══════════════════════════════════════════════════

def _check_type(key, value, prop):
    expected = _JSON_TYPES.get(prop.get("type"))
    if expected is None:
        return
    # bool is an int subclass — don't let True pass as an integer
    if expected is int and isinstance(value, bool):
        raise ToolValidationError(f"'{key}' must be an integer")
    if not isinstance(value, expected):
        raise ToolValidationError(f"'{key}' must be of type {prop['type']}")
    if expected is list:
        item_type = _JSON_TYPES.get(prop.get("items", {}).get("type"))
        if item_type and not all(isinstance(v, item_type) for v in value):
            raise ToolValidationError(f"'{key}' must contain only {prop['items']['type']} values")


def validate_arguments(tool, arguments):
    """Check ``arguments`` against ``tool['input_schema']``.

    Returns a copy without None values. Raises ToolValidationError.
    """
    schema = tool["input_schema"]
    properties = schema.get("properties", {})
    args = {k: v for k, v in (arguments or {}).items() if v is not None}

    for key in schema.get("required", []):
        if key not in args:
            raise ToolValidationError(f"'{key}' is required")

    for key, value in args.items():
        prop = properties.get(key)
        if prop is None:
            continue
        _check_type(key, value, prop)
        if key in schema.get("required", []):
            if isinstance(value, str) and not value.strip():
                raise ToolValidationError(f"'{key}' must not be empty")
            if isinstance(value, list) and not value:
                raise ToolValidationError(f"'{key}' needs at least one entry")

    if "id" in args and not is_valid_message_id(args["id"]):
        raise ToolValidationError(f"Invalid message id: {args['id']!r}")
    for mid in args.get("ids", []):
        if not is_valid_message_id(mid):
            raise ToolValidationError(f"Invalid message id: {mid!r}")
    if "limit" in args and args["limit"] < 1:
        raise ToolValidationError("'limit' must be at least 1")
    for key in ("dateFrom", "dateTo"):
        if key in args:
            try:
                args[key] = date_parser.parse(args[key])
            except (ParserError, ValueError, OverflowError):
                raise ToolValidationError(f"'{key}' is not a recognizable date: {args[key]!r}")

    return args


# ═══════════════════════════════════════════════════
#  Rendering helpers
# ═══════════════════════════════════════════════════

def _batch_summary(results, verb, suffix=""):
    """Text for a batch result: all ok, all failed, or partial."""
    ok = sum(1 for r in results if r.success)
    failed = len(results) - ok
    if failed == 0:
        return success(f"Successfully {verb} {ok} message(s){suffix}")
    if ok == 0:
        return error(f"Failed: none of the {failed} message(s) could be {verb}{suffix}")
    failed_ids = ", ".join(r.id for r in results if not r.success)
    return success(f"{verb.capitalize()} {ok} message(s){suffix}, {failed} failed ({failed_ids})")


def _message_lines(messages, with_status=False):
    lines = []
    for m in messages:
        line = f"  - [{m.id}] {m.subject} (from: {m.sender})"
        if with_status:
            line += f" [{'read' if m.is_read else 'unread'}]"
        lines.append(line)
    return "\n".join(lines)


# ═══════════════════════════════════════════════════
#  Dispatcher
# ═══════════════════════════════════════════════════

class MailToolDispatcher:
    """Maps tool names to AppleMailManager calls."""

    def __init__(self, manager):
        self.manager = manager
        self._handlers = {
            "search-messages": self._search_messages,
            "get-message": self._get_message,
            "list-messages": self._list_messages,
            "send-email": self._send_email,
            "create-draft": self._create_draft,
            "reply-to-message": self._reply_to_message,
            "forward-message": self._forward_message,
            "mark-as-read": self._mark_as_read,
            "mark-as-unread": self._mark_as_unread,
            "flag-message": self._flag_message,
            "unflag-message": self._unflag_message,
            "delete-message": self._delete_message,
            "move-message": self._move_message,
            "batch-delete-messages": self._batch_delete,
            "batch-move-messages": self._batch_move,
            "batch-mark-as-read": self._batch_mark_as_read,
            "list-attachments": self._list_attachments,
            "list-mailboxes": self._list_mailboxes,
            "get-unread-count": self._get_unread_count,
            "list-accounts": self._list_accounts,
            "health-check": self._health_check,
            "get-mail-stats": self._get_mail_stats,
            "get-sync-status": self._get_sync_status,
        }

    @property
    def tool_names(self):
        return list(self._handlers)

    def dispatch(self, name, arguments=None):
        """Validate, run and render one tool call."""
        handler = self._handlers.get(name)
        tool = TOOLS_BY_NAME.get(name)
        if handler is None or tool is None:
            return error(f"Unknown tool: {name}")

        prefix = ERROR_PREFIXES.get(name, "Error")
        try:
            args = validate_arguments(tool, arguments)
            return handler(args)
        except ToolValidationError as e:
            logger.warning(f"  ✋ {name}: {e}")
            return error(f"{prefix}: {e}")
        except Exception as e:
            logger.exception(f"  ❌ {name} failed")
            return error(f"{prefix}: {e}")

    # ── Messages ──

    def _search_messages(self, args):
        messages = self.manager.search_messages(
            query=args.get("query"),
            mailbox=args.get("mailbox"),
            account=args.get("account"),
            limit=args.get("limit"),
            sender=args.get("from"),
            subject=args.get("subject"),
            is_read=args.get("isRead"),
            is_flagged=args.get("isFlagged"),
            date_from=args.get("dateFrom"),
            date_to=args.get("dateTo"),
        )
        if not messages:
            return success("No messages found matching criteria")
        return success(f"Found {len(messages)} message(s):\n{_message_lines(messages, with_status=True)}")

    def _get_message(self, args):
        content = self.manager.get_message_content(args["id"])
        if not content:
            return error(f'Message with ID "{args["id"]}" not found')
        return success(f"Subject: {content.subject}\n\n{content.plain_text}")

    def _list_messages(self, args):
        messages = self.manager.list_messages(
            mailbox=args.get("mailbox"),
            account=args.get("account"),
            limit=args.get("limit"),
            unread_only=args.get("unreadOnly", False),
        )
        if not messages:
            return success("No messages found")
        return success(f"Found {len(messages)} message(s):\n{_message_lines(messages)}")

    # ── Compose ──

    def _send_email(self, args):
        ok = self.manager.send_email(
            args["to"], args["subject"], args["body"],
            cc=args.get("cc"), bcc=args.get("bcc"), account=args.get("account"),
        )
        if not ok:
            return error("Failed to send email. Check Mail.app configuration.")
        return success(f"Email sent to {', '.join(args['to'])}")

    def _create_draft(self, args):
        ok = self.manager.create_draft(
            args["to"], args["subject"], args["body"],
            cc=args.get("cc"), bcc=args.get("bcc"), account=args.get("account"),
        )
        if not ok:
            return error("Failed to create draft. Check Mail.app configuration.")
        return success(f"Draft created for {', '.join(args['to'])}")

    def _reply_to_message(self, args):
        send = args.get("send", True)
        ok = self.manager.reply_to_message(
            args["id"], args["body"], reply_all=args.get("replyAll", False), send=send,
        )
        if not ok:
            return error(f'Failed to reply to message "{args["id"]}"')
        return success("Reply sent" if send else "Reply saved as draft")

    def _forward_message(self, args):
        send = args.get("send", True)
        ok = self.manager.forward_message(args["id"], args["to"], body=args.get("body"), send=send)
        if not ok:
            return error(f'Failed to forward message "{args["id"]}"')
        if send:
            return success(f"Message forwarded to {', '.join(args['to'])}")
        return success("Forward saved as draft")

    # ── Organize ──

    def _single(self, ok, done, failed):
        return success(done) if ok else error(failed)

    def _mark_as_read(self, args):
        mid = args["id"]
        return self._single(self.manager.mark_as_read(mid),
                            "Message marked as read", f'Failed to mark message "{mid}" as read')

    def _mark_as_unread(self, args):
        mid = args["id"]
        return self._single(self.manager.mark_as_unread(mid),
                            "Message marked as unread", f'Failed to mark message "{mid}" as unread')

    def _flag_message(self, args):
        mid = args["id"]
        return self._single(self.manager.flag_message(mid),
                            "Message flagged", f'Failed to flag message "{mid}"')

    def _unflag_message(self, args):
        mid = args["id"]
        return self._single(self.manager.unflag_message(mid),
                            "Message unflagged", f'Failed to unflag message "{mid}"')

    def _delete_message(self, args):
        mid = args["id"]
        return self._single(self.manager.delete_message(mid),
                            "Message deleted", f'Failed to delete message "{mid}"')

    def _move_message(self, args):
        mailbox = args["mailbox"]
        ok = self.manager.move_message(args["id"], mailbox, args.get("account"))
        return self._single(ok, f'Message moved to "{mailbox}"', f'Failed to move message to "{mailbox}"')

    def _batch_delete(self, args):
        return _batch_summary(self.manager.batch_delete_messages(args["ids"]), "deleted")

    def _batch_move(self, args):
        mailbox = args["mailbox"]
        results = self.manager.batch_move_messages(args["ids"], mailbox, args.get("account"))
        return _batch_summary(results, "moved", f' to "{mailbox}"')

    def _batch_mark_as_read(self, args):
        return _batch_summary(self.manager.batch_mark_as_read(args["ids"]), "marked", " as read")

    def _list_attachments(self, args):
        attachments = self.manager.list_attachments(args["id"])
        if not attachments:
            return success("No attachments found")
        lines = "\n".join(
            f"  - {a.name} ({a.mime_type}, {round(a.size / 1024)} KB)" for a in attachments
        )
        return success(f"Found {len(attachments)} attachment(s):\n{lines}")

    # ── Mailboxes & Accounts ──

    def _list_mailboxes(self, args):
        mailboxes = self.manager.list_mailboxes(args.get("account"))
        if not mailboxes:
            return success("No mailboxes found")
        lines = "\n".join(f"  - {m.name} ({m.unread_count} unread)" for m in mailboxes)
        return success(f"Found {len(mailboxes)} mailbox(es):\n{lines}")

    def _get_unread_count(self, args):
        mailbox = args.get("mailbox")
        count = self.manager.get_unread_count(mailbox, args.get("account"))
        location = f' in "{mailbox}"' if mailbox else ""
        return success(f"{count} unread message(s){location}")

    def _list_accounts(self, args):
        accounts = self.manager.list_accounts()
        if not accounts:
            return success("No Mail accounts found")
        lines = "\n".join(
            f"  - {a.name}" + (f" <{a.email}>" if a.email else "") + ("" if a.enabled else " (disabled)")
            for a in accounts
        )
        return success(f"Found {len(accounts)} account(s):\n{lines}")

    # ── Diagnostics ──

    def _health_check(self, args):
        result = self.manager.health_check()
        status = "✓ All checks passed" if result.healthy else "✗ Issues detected"
        lines = "\n".join(
            f"  {'✓' if c.passed else '✗'} {c.name}: {c.message}" for c in result.checks
        )
        return success(f"{status}\n\n{lines}")

    def _get_mail_stats(self, args):
        stats = self.manager.get_mail_stats()
        lines = [
            "📊 Mail Statistics",
            "══════════════════",
            f"Total messages: {stats.total_messages}",
            f"Unread messages: {stats.total_unread}",
            "",
        ]
        recent = stats.recently_received
        if recent:
            lines += [
                "📥 Recently Received:",
                f"  Last 24 hours: {recent.last_24h}",
                f"  Last 7 days: {recent.last_7d}",
                f"  Last 30 days: {recent.last_30d}",
                "",
            ]
        if stats.accounts:
            lines.append("📁 By Account:")
            for acct in stats.accounts:
                lines.append(f"  {acct.name}: {acct.total_messages} messages ({acct.unread_messages} unread)")
        return success("\n".join(lines))

    def _get_sync_status(self, args):
        status = self.manager.get_sync_status()
        lines = ["🔄 Mail Sync Status", "═══════════════════"]
        if status.error:
            lines.append(f"Status: ⚠️ {status.error}")
        else:
            lines.append(f"Mail.app: {'Running' if status.recent_activity else 'Not running'}")
            lines.append(f"Sync active: {'Yes' if status.sync_detected else 'No'}")
        return success("\n".join(lines))
