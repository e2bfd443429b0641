"""
╔══════════════════════════════════════════════════════════════╗
║      Apple Mail Bridge — Account & Mailbox Name Resolution   ║
╠══════════════════════════════════════════════════════════════╣
║  Account types disagree on mailbox names:                    ║
║    IMAP/Gmail:  "INBOX", "Sent", "Drafts"                    ║
║    Exchange:    "Inbox", "Sent Items", "Deleted Items"       ║
║    iCloud:      "INBOX", "Sent Messages", "Trash"            ║
║                                                              ║
║  resolve_mailbox() maps what the caller asked for onto what  ║
║  the account actually has. resolve_account() fills in the    ║
║  session's default account.                                  ║
╚══════════════════════════════════════════════════════════════╝
"""

import logging
from typing import Callable, Dict, List, Optional

logger = logging.getLogger("mailbridge.resolver")

DEFAULT_FALLBACK_ACCOUNT = "iCloud"

# canonical role (lowercase) → known real-world names, tried in order
MAILBOX_ALIASES: Dict[str, List[str]] = {
    "inbox": ["INBOX", "Inbox", "inbox"],
    "sent": ["Sent", "Sent Items", "Sent Messages", "SENT", "sent"],
    "drafts": ["Drafts", "DRAFTS", "drafts", "Draft"],
    "trash": ["Trash", "Deleted Items", "Deleted Messages", "TRASH", "trash"],
    "junk": ["Junk", "Junk Email", "Spam", "JUNK", "junk"],
    "archive": ["Archive", "ARCHIVE", "archive", "All Mail"],
}


def merge_aliases(extra=None):
    """Built-in alias table plus ``extra`` (config), extras tried last."""
    table = {role: list(names) for role, names in MAILBOX_ALIASES.items()}
    for role, names in (extra or {}).items():
        known = table.setdefault(role.lower(), [])
        for name in names or []:
            if name not in known:
                known.append(name)
    return table


def _case_insensitive(name, available):
    lowered = name.lower()
    for candidate in available:
        if candidate.lower() == lowered:
            return candidate
    return None


def resolve_mailbox(requested, available, aliases=None):
    """Map a requested mailbox name onto one present in ``available``.

    Order, first hit wins:
      1. exact match
      2. case-insensitive match
      3. alias table (keyed by the lowercased request), each alias exact
         then case-insensitive
      4. the request unchanged — Mail.app reports the miss later
    """
    if requested in available:
        return requested

    match = _case_insensitive(requested, available)
    if match:
        return match

    table = MAILBOX_ALIASES if aliases is None else aliases
    for alias in table.get(requested.lower(), []):
        if alias in available:
            return alias
        match = _case_insensitive(alias, available)
        if match:
            return match

    logger.debug(f"No mailbox matching {requested!r} among {available}")
    return requested


class MailContext:
    """Per-session name-resolution state.

    Holds the default account so it is looked up at most once per session,
    and the alias table in force. Built once by the manager and passed
    explicitly; call reset() to pick up account changes.
    """

    def __init__(self, default_account: Optional[str] = None,
                 fallback_account: str = DEFAULT_FALLBACK_ACCOUNT,
                 aliases: Optional[Dict[str, List[str]]] = None):
        self.configured_account = default_account or None
        self.fallback_account = fallback_account or DEFAULT_FALLBACK_ACCOUNT
        self.aliases = aliases if aliases is not None else merge_aliases()
        self._default_account = self.configured_account

    @classmethod
    def from_config(cls, config):
        mail_cfg = (config or {}).get("mail", {})
        return cls(
            default_account=mail_cfg.get("default_account"),
            fallback_account=mail_cfg.get("fallback_account", DEFAULT_FALLBACK_ACCOUNT),
            aliases=merge_aliases((config or {}).get("mailbox_aliases")),
        )

    def reset(self):
        """Forget the discovered default account."""
        self._default_account = self.configured_account

    def resolve_account(self, requested: Optional[str],
                        list_account_names: Callable[[], List[str]]) -> str:
        """Requested account, else the session default, else the fallback.

        ``list_account_names`` is only called when no default is known yet;
        its first entry becomes the default for the rest of the session.
        """
        if requested:
            return requested
        if self._default_account:
            return self._default_account

        names = list_account_names()
        if names:
            self._default_account = names[0]
            logger.info(f"  📬 Default account: {self._default_account}")
            return self._default_account

        logger.warning(f"  ⚠️ No Mail accounts found, falling back to {self.fallback_account!r}")
        return self.fallback_account

    def resolve_mailbox(self, requested, available):
        return resolve_mailbox(requested, available, self.aliases)
