"""
╔══════════════════════════════════════════════════════════════╗
║     Apple Mail Bridge — Tool Definitions                     ║
╠══════════════════════════════════════════════════════════════╣
║  One schema per tool exposed over MCP.                       ║
║  Single source of truth — the server lists these, the        ║
║  dispatcher validates arguments against them.                ║
╚══════════════════════════════════════════════════════════════╝
"""


def _id_param():
    return {"type": "string", "description": "Mail.app message id (numeric)"}


def _ids_param():
    return {
        "type": "array",
        "items": {"type": "string"},
        "minItems": 1,
        "description": "Message ids to operate on",
    }


def _recipients(description):
    return {"type": "array", "items": {"type": "string"}, "description": description}


# ─────────────────────────────────────────────
#  Message Tools
# ─────────────────────────────────────────────

TOOL_SEARCH_MESSAGES = {
    "name": "search-messages",
    "description": "Search messages in one mailbox by text, sender, subject, status or received date.",
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Text to search for in subject or sender"},
            "from": {"type": "string", "description": "Filter by sender email address"},
            "subject": {"type": "string", "description": "Filter by subject line"},
            "mailbox": {"type": "string", "description": "Mailbox to search in (default: INBOX)"},
            "account": {"type": "string", "description": "Account to search in"},
            "isRead": {"type": "boolean", "description": "Filter by read status"},
            "isFlagged": {"type": "boolean", "description": "Filter by flagged status"},
            "dateFrom": {"type": "string", "description": "Received on or after this date (e.g. 2025-01-31)"},
            "dateTo": {"type": "string", "description": "Received on or before this date"},
            "limit": {"type": "integer", "description": "Maximum number of results (default: 50)"},
        },
        "required": [],
    },
}

TOOL_GET_MESSAGE = {
    "name": "get-message",
    "description": "Read the subject and plain-text body of a message by id.",
    "input_schema": {
        "type": "object",
        "properties": {"id": _id_param()},
        "required": ["id"],
    },
}

TOOL_LIST_MESSAGES = {
    "name": "list-messages",
    "description": "List the newest messages in a mailbox.",
    "input_schema": {
        "type": "object",
        "properties": {
            "mailbox": {"type": "string", "description": "Mailbox to list messages from (default: INBOX)"},
            "account": {"type": "string", "description": "Account to list messages from"},
            "limit": {"type": "integer", "description": "Maximum number of messages (default: 50)"},
            "unreadOnly": {"type": "boolean", "description": "Only show unread messages"},
        },
        "required": [],
    },
}

_COMPOSE_PROPERTIES = {
    "to": _recipients("Recipient email addresses"),
    "subject": {"type": "string", "description": "Email subject line"},
    "body": {"type": "string", "description": "Plain-text email body"},
    "cc": _recipients("CC recipients"),
    "bcc": _recipients("BCC recipients"),
}

TOOL_SEND_EMAIL = {
    "name": "send-email",
    "description": "Send a plain-text email through Mail.app.",
    "input_schema": {
        "type": "object",
        "properties": dict(_COMPOSE_PROPERTIES, account={"type": "string", "description": "Account to send from"}),
        "required": ["to", "subject", "body"],
    },
}

TOOL_CREATE_DRAFT = {
    "name": "create-draft",
    "description": "Create an unsent draft email in Mail.app.",
    "input_schema": {
        "type": "object",
        "properties": dict(_COMPOSE_PROPERTIES, account={"type": "string", "description": "Account to create the draft in"}),
        "required": ["to", "subject", "body"],
    },
}

TOOL_REPLY_TO_MESSAGE = {
    "name": "reply-to-message",
    "description": "Reply to a message. Sends immediately unless send is false.",
    "input_schema": {
        "type": "object",
        "properties": {
            "id": _id_param(),
            "body": {"type": "string", "description": "Reply text, placed above the quoted original"},
            "replyAll": {"type": "boolean", "description": "Reply to all recipients (default: false)"},
            "send": {"type": "boolean", "description": "Send immediately (false = save as draft, default: true)"},
        },
        "required": ["id", "body"],
    },
}

TOOL_FORWARD_MESSAGE = {
    "name": "forward-message",
    "description": "Forward a message. Sends immediately unless send is false.",
    "input_schema": {
        "type": "object",
        "properties": {
            "id": _id_param(),
            "to": _recipients("Recipients to forward to"),
            "body": {"type": "string", "description": "Optional message to prepend"},
            "send": {"type": "boolean", "description": "Send immediately (false = save as draft, default: true)"},
        },
        "required": ["id", "to"],
    },
}


def _single_id_tool(name, description):
    return {
        "name": name,
        "description": description,
        "input_schema": {
            "type": "object",
            "properties": {"id": _id_param()},
            "required": ["id"],
        },
    }


TOOL_MARK_AS_READ = _single_id_tool("mark-as-read", "Mark a message as read.")
TOOL_MARK_AS_UNREAD = _single_id_tool("mark-as-unread", "Mark a message as unread.")
TOOL_FLAG_MESSAGE = _single_id_tool("flag-message", "Flag a message.")
TOOL_UNFLAG_MESSAGE = _single_id_tool("unflag-message", "Remove the flag from a message.")
TOOL_DELETE_MESSAGE = _single_id_tool("delete-message", "Delete a message (moves it to Trash).")
TOOL_LIST_ATTACHMENTS = _single_id_tool("list-attachments", "List the attachments of a message.")

TOOL_MOVE_MESSAGE = {
    "name": "move-message",
    "description": "Move a message to another mailbox. Common names (Sent, Trash, Archive...) are matched to the account's own naming.",
    "input_schema": {
        "type": "object",
        "properties": {
            "id": _id_param(),
            "mailbox": {"type": "string", "description": "Destination mailbox name"},
            "account": {"type": "string", "description": "Account containing the destination mailbox"},
        },
        "required": ["id", "mailbox"],
    },
}

TOOL_BATCH_DELETE_MESSAGES = {
    "name": "batch-delete-messages",
    "description": "Delete several messages. Each id succeeds or fails on its own.",
    "input_schema": {
        "type": "object",
        "properties": {"ids": _ids_param()},
        "required": ["ids"],
    },
}

TOOL_BATCH_MOVE_MESSAGES = {
    "name": "batch-move-messages",
    "description": "Move several messages to one mailbox. Each id succeeds or fails on its own.",
    "input_schema": {
        "type": "object",
        "properties": {
            "ids": _ids_param(),
            "mailbox": {"type": "string", "description": "Destination mailbox name"},
            "account": {"type": "string", "description": "Account containing the destination mailbox"},
        },
        "required": ["ids", "mailbox"],
    },
}

TOOL_BATCH_MARK_AS_READ = {
    "name": "batch-mark-as-read",
    "description": "Mark several messages as read. Each id succeeds or fails on its own.",
    "input_schema": {
        "type": "object",
        "properties": {"ids": _ids_param()},
        "required": ["ids"],
    },
}


# ─────────────────────────────────────────────
#  Mailbox & Account Tools
# ─────────────────────────────────────────────

TOOL_LIST_MAILBOXES = {
    "name": "list-mailboxes",
    "description": "List the mailboxes of an account with unread counts.",
    "input_schema": {
        "type": "object",
        "properties": {
            "account": {"type": "string", "description": "Account to list mailboxes from"},
        },
        "required": [],
    },
}

TOOL_GET_UNREAD_COUNT = {
    "name": "get-unread-count",
    "description": "Count unread messages in one mailbox, or across an account.",
    "input_schema": {
        "type": "object",
        "properties": {
            "mailbox": {"type": "string", "description": "Mailbox to check (default: all)"},
            "account": {"type": "string", "description": "Account to check"},
        },
        "required": [],
    },
}

_NO_PARAMS = {"type": "object", "properties": {}, "required": []}

TOOL_LIST_ACCOUNTS = {
    "name": "list-accounts",
    "description": "List the accounts configured in Mail.app.",
    "input_schema": _NO_PARAMS,
}


# ─────────────────────────────────────────────
#  Diagnostics Tools
# ─────────────────────────────────────────────

TOOL_HEALTH_CHECK = {
    "name": "health-check",
    "description": "Check that Mail.app is reachable, automation is permitted and accounts exist.",
    "input_schema": _NO_PARAMS,
}

TOOL_GET_MAIL_STATS = {
    "name": "get-mail-stats",
    "description": "Message and unread totals per account, plus inbox arrivals in the last 24h / 7d / 30d.",
    "input_schema": _NO_PARAMS,
}

TOOL_GET_SYNC_STATUS = {
    "name": "get-sync-status",
    "description": "Whether Mail.app is running and syncing.",
    "input_schema": _NO_PARAMS,
}


ALL_TOOLS = [
    TOOL_SEARCH_MESSAGES, TOOL_GET_MESSAGE, TOOL_LIST_MESSAGES,
    TOOL_SEND_EMAIL, TOOL_CREATE_DRAFT, TOOL_REPLY_TO_MESSAGE, TOOL_FORWARD_MESSAGE,
    TOOL_MARK_AS_READ, TOOL_MARK_AS_UNREAD, TOOL_FLAG_MESSAGE, TOOL_UNFLAG_MESSAGE,
    TOOL_DELETE_MESSAGE, TOOL_MOVE_MESSAGE,
    TOOL_BATCH_DELETE_MESSAGES, TOOL_BATCH_MOVE_MESSAGES, TOOL_BATCH_MARK_AS_READ,
    TOOL_LIST_ATTACHMENTS,
    TOOL_LIST_MAILBOXES, TOOL_GET_UNREAD_COUNT, TOOL_LIST_ACCOUNTS,
    TOOL_HEALTH_CHECK, TOOL_GET_MAIL_STATS, TOOL_GET_SYNC_STATUS,
]

TOOLS_BY_NAME = {tool["name"]: tool for tool in ALL_TOOLS}
