"""
╔══════════════════════════════════════════════════════════════╗
║      Apple Mail Bridge — AppleScript Builders                ║
╠══════════════════════════════════════════════════════════════╣
║  Pure string functions: parameters in, AppleScript out.      ║
║  No I/O. Every piece of free text passes through             ║
║  escape_applescript() before it lands inside a literal.      ║
║                                                              ║
║  Output wire format (parsed by applemail.parser):            ║
║    fields  separated by  |||                                 ║
║    records separated by  |||ITEM|||                          ║
╚══════════════════════════════════════════════════════════════╝
"""

from datetime import datetime, timedelta

FIELD_SEP = "|||"
ITEM_SEP = "|||ITEM|||"
CONTENT_SEP = "|||CONTENT|||"

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


# ═══════════════════════════════════════════════════
#  Escaping & Scoping
# ═══════════════════════════════════════════════════

def escape_applescript(text):
    """Escape text for embedding in an AppleScript string literal.

    Backslashes first, then double quotes. Empty/None → "".
    """
    if not text:
        return ""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def app_script(command):
    """Wrap a command in a Mail.app tell block."""
    return f'''
    tell application "Mail"
        {command}
    end tell
    '''


def account_script(account, command):
    """Wrap a command in a tell block scoped to one account."""
    return f'''
    tell application "Mail"
        tell account "{escape_applescript(account)}"
            {command}
        end tell
    end tell
    '''


def is_valid_message_id(message_id):
    """Mail.app ids are integers; they are spliced into scripts unquoted."""
    return str(message_id).strip().isdigit()


def _message_id(message_id):
    if not is_valid_message_id(message_id):
        raise ValueError(f"Invalid message id: {message_id!r}")
    return str(message_id).strip()


def applescript_date(d: datetime):
    """Render a date literal Mail.app will compare against (day precision)."""
    return f'date "{MONTHS[d.month - 1]} {d.day}, {d.year}"'


# ═══════════════════════════════════════════════════
#  Message Lookup by ID
# ═══════════════════════════════════════════════════

def find_message_script(message_id, operation):
    """Scan every mailbox of every account for ``message_id`` and run
    ``operation`` against it (bound to ``msg``, its mailbox to ``mb`` and
    account to ``acct``).

    Returns "ok" unless the operation returns its own value, or
    "error:<reason>" when the message is missing or the operation fails.
    """
    mid = _message_id(message_id)
    return app_script(f'''
        try
            repeat with acct in accounts
                repeat with mb in mailboxes of acct
                    set matchingMsgs to {{}}
                    try
                        set matchingMsgs to (messages of mb whose id is {mid})
                    end try
                    if (count of matchingMsgs) > 0 then
                        set msg to item 1 of matchingMsgs
                        {operation}
                        return "ok"
                    end if
                end repeat
            end repeat
            return "error:Message not found"
        on error errMsg
            return "error:" & errMsg
        end try
    ''')


def message_by_id_script(message_id):
    """Metadata for one message: id, subject, sender, received, sent, read,
    flagged, junk, deleted, mailbox, account, attachment count."""
    return find_message_script(message_id, '''
                        set msgSent to ""
                        try
                            set msgSent to date sent of msg as string
                        end try
                        set attCount to 0
                        try
                            set attCount to count of mail attachments of msg
                        end try
                        return (id of msg as string) & "|||" & (subject of msg) & "|||" & (sender of msg) & "|||" & (date received of msg as string) & "|||" & msgSent & "|||" & (read status of msg as string) & "|||" & (flagged status of msg as string) & "|||" & (junk mail status of msg as string) & "|||" & (deleted status of msg as string) & "|||" & (name of mb) & "|||" & (name of acct) & "|||" & (attCount as string)''')


def message_content_script(message_id):
    return find_message_script(message_id, '''
                        return (id of msg as string) & "|||CONTENT|||" & (subject of msg) & "|||CONTENT|||" & (content of msg)''')


def attachments_script(message_id):
    """Attachment rows (name, MIME type, size) for one message.

    The leading "attachments" marker keeps an attachment-less message
    distinguishable from a missing one.
    """
    return find_message_script(message_id, '''
                        set outputText to "attachments"
                        repeat with att in mail attachments of msg
                            set attSize to "0"
                            try
                                set attSize to file size of att as string
                            end try
                            set outputText to outputText & "|||ITEM|||" & (name of att) & "|||" & (MIME type of att) & "|||" & attSize
                        end repeat
                        return outputText''')


def set_read_script(message_id, read=True):
    return find_message_script(message_id, f"set read status of msg to {'true' if read else 'false'}")


def set_flagged_script(message_id, flagged=True):
    return find_message_script(message_id, f"set flagged status of msg to {'true' if flagged else 'false'}")


def delete_script(message_id):
    return find_message_script(message_id, "delete msg")


def move_script(message_id, mailbox, account):
    return find_message_script(message_id, f'''
                        set destMailbox to mailbox "{escape_applescript(mailbox)}" of account "{escape_applescript(account)}"
                        move msg to destMailbox''')


def reply_script(message_id, body, reply_all=False, send=True):
    reply_all_clause = " with reply to all" if reply_all else ""
    send_action = "send theReply" if send else ""
    return find_message_script(message_id, f'''
                        set theReply to reply msg with opening window{reply_all_clause}
                        set content of theReply to "{escape_applescript(body)}" & return & return & content of theReply
                        {send_action}''')


def forward_script(message_id, to, body=None, send=True):
    recipients = "\n".join(
        f'make new to recipient at end of to recipients of theForward with properties {{address:"{escape_applescript(addr)}"}}'
        for addr in to
    )
    prepend = ""
    if body:
        prepend = f'set content of theForward to "{escape_applescript(body)}" & return & return & content of theForward'
    send_action = "send theForward" if send else ""
    return find_message_script(message_id, f'''
                        set theForward to forward msg with opening window
                        {recipients}
                        {prepend}
                        {send_action}''')


# ═══════════════════════════════════════════════════
#  Listing & Search (account scoped)
# ═══════════════════════════════════════════════════

_MESSAGE_ROW = '''
                if msgCount >= {limit} then exit repeat
                try
                    set msgId to id of msg as string
                    set msgSubject to subject of msg
                    set msgSender to sender of msg
                    set msgDate to date received of msg as string
                    set msgRead to read status of msg as string
                    set msgFlagged to flagged status of msg as string
                    if msgCount > 0 then set outputText to outputText & "|||ITEM|||"
                    set outputText to outputText & msgId & "|||" & msgSubject & "|||" & msgSender & "|||" & msgDate & "|||" & msgRead & "|||" & msgFlagged
                    set msgCount to msgCount + 1
                end try'''


def _message_rows(account, mailbox, limit, where=""):
    command = f'''
            set outputText to ""
            set theMailbox to mailbox "{escape_applescript(mailbox)}"
            set msgCount to 0
            repeat with msg in (messages of theMailbox{where})
                {_MESSAGE_ROW.format(limit=int(limit))}
            end repeat
            return outputText
    '''
    return account_script(account, command)


def list_messages_script(account, mailbox, limit=50, unread_only=False):
    where = " whose read status is false" if unread_only else ""
    return _message_rows(account, mailbox, limit, where)


def search_condition(query=None, sender=None, subject=None, is_read=None,
                     is_flagged=None, date_from=None, date_to=None):
    """Build the ``whose`` clause for a search, or "" when unfiltered."""
    clauses = []
    if query:
        q = escape_applescript(query)
        clauses.append(f'(subject contains "{q}" or sender contains "{q}")')
    if sender:
        clauses.append(f'sender contains "{escape_applescript(sender)}"')
    if subject:
        clauses.append(f'subject contains "{escape_applescript(subject)}"')
    if is_read is not None:
        clauses.append(f"read status is {'true' if is_read else 'false'}")
    if is_flagged is not None:
        clauses.append(f"flagged status is {'true' if is_flagged else 'false'}")
    if date_from is not None:
        clauses.append(f"date received >= {applescript_date(date_from)}")
    if date_to is not None:
        # day-precision literal is midnight; include the whole named day
        clauses.append(f"date received < {applescript_date(date_to + timedelta(days=1))}")
    if not clauses:
        return ""
    return " whose " + " and ".join(clauses)


def search_messages_script(account, mailbox, limit=50, **filters):
    return _message_rows(account, mailbox, limit, search_condition(**filters))


# ═══════════════════════════════════════════════════
#  Compose
# ═══════════════════════════════════════════════════

def _recipient_commands(to, cc=None, bcc=None):
    lines = []
    for kind, addrs in (("to", to), ("cc", cc), ("bcc", bcc)):
        for addr in addrs or []:
            lines.append(
                f'make new {kind} recipient at end of {kind} recipients '
                f'with properties {{address:"{escape_applescript(addr)}"}}'
            )
    return "\n                ".join(lines)


def compose_script(to, subject, body, cc=None, bcc=None, account=None, send=True):
    """Outgoing message: sent immediately, or left unsent (draft)."""
    visible = "true" if send else "false"
    sender_line = f'set sender to "{escape_applescript(account)}"' if account else ""
    finish = 'send newMessage\n            return "sent"' if send else 'return "draft created"'
    return app_script(f'''
            set newMessage to make new outgoing message with properties {{subject:"{escape_applescript(subject)}", content:"{escape_applescript(body)}", visible:{visible}}}
            tell newMessage
                {_recipient_commands(to, cc, bcc)}
                {sender_line}
            end tell
            {finish}
    ''')


# ═══════════════════════════════════════════════════
#  Mailboxes & Accounts
# ═══════════════════════════════════════════════════

def mailbox_names_script(account):
    return account_script(account, '''
            set mbNames to {}
            repeat with mb in mailboxes
                set end of mbNames to name of mb
            end repeat
            set AppleScript's text item delimiters to "|||"
            return mbNames as text
    ''')


def list_mailboxes_script(account):
    return account_script(account, '''
            set mailboxList to {}
            repeat with mb in mailboxes
                set mbName to name of mb
                set mbUnread to unread count of mb
                set mbCount to count of messages of mb
                set end of mailboxList to mbName & "|||" & mbUnread & "|||" & mbCount
            end repeat
            set AppleScript's text item delimiters to "|||ITEM|||"
            return mailboxList as text
    ''')


def unread_count_script(account, mailbox=None):
    """Unread count of one mailbox, or the total across the account."""
    if mailbox:
        return account_script(account, f'return unread count of mailbox "{escape_applescript(mailbox)}"')
    return account_script(account, '''
            set total to 0
            repeat with mb in mailboxes
                set total to total + (unread count of mb)
            end repeat
            return total
    ''')


def list_accounts_script():
    return app_script('''
            set accountList to {}
            repeat with acct in accounts
                set acctName to name of acct
                set acctEmail to email addresses of acct
                set acctEnabled to enabled of acct
                set emailStr to ""
                if (count of acctEmail) > 0 then
                    set emailStr to item 1 of acctEmail
                end if
                set end of accountList to acctName & "|||" & emailStr & "|||" & acctEnabled
            end repeat
            set AppleScript's text item delimiters to "|||ITEM|||"
            return accountList as text
    ''')


# ═══════════════════════════════════════════════════
#  Diagnostics
# ═══════════════════════════════════════════════════

PING_SCRIPT = 'tell application "Mail" to return "ok"'
PERMISSION_SCRIPT = 'tell application "Mail" to get name of account 1'


def recently_received_script(now: datetime, inbox_names=("INBOX", "Inbox", "inbox")):
    """Counts over each account's inbox only — scanning every mailbox is
    far too slow on large accounts."""

    names = ", ".join(f'"{escape_applescript(n)}"' for n in inbox_names)
    return app_script(f'''
            set last24h to 0
            set last7d to 0
            set last30d to 0
            set oneDayAgo to {applescript_date(now - timedelta(days=1))}
            set sevenDaysAgo to {applescript_date(now - timedelta(days=7))}
            set thirtyDaysAgo to {applescript_date(now - timedelta(days=30))}

            repeat with acct in accounts
                try
                    set inboxNames to {{{names}}}
                    repeat with inboxName in inboxNames
                        try
                            set theInbox to mailbox inboxName of acct
                            set last24h to last24h + (count of (messages of theInbox whose date received >= oneDayAgo))
                            set last7d to last7d + (count of (messages of theInbox whose date received >= sevenDaysAgo))
                            set last30d to last30d + (count of (messages of theInbox whose date received >= thirtyDaysAgo))
                            exit repeat
                        end try
                    end repeat
                end try
            end repeat

            return (last24h as string) & "|||" & (last7d as string) & "|||" & (last30d as string)
    ''')


SYNC_STATUS_SCRIPT = '''
    tell application "System Events"
        set mailRunning to (name of processes) contains "Mail"
    end tell

    if not mailRunning then
        return "not_running"
    end if

    tell application "Mail"
        set accountCount to count of accounts
        set totalMailboxes to 0
        repeat with acct in accounts
            set totalMailboxes to totalMailboxes + (count of mailboxes of acct)
        end repeat
    end tell

    return "running|||" & accountCount & "|||" & totalMailboxes
'''
