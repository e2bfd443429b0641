"""
╔══════════════════════════════════════════╗
║   Test Suite: Name Resolution             ║
╚══════════════════════════════════════════╝

Mailbox alias matching and the session's default account.
"""

import unittest
import sys
import os
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from applemail.resolver import MailContext, merge_aliases, resolve_mailbox, MAILBOX_ALIASES


class TestResolveMailbox(unittest.TestCase):

    def test_exact_match_wins(self):
        self.assertEqual(resolve_mailbox("Inbox", ["INBOX", "Inbox"]), "Inbox")

    def test_case_insensitive(self):
        self.assertEqual(resolve_mailbox("archive", ["INBOX", "Archive"]), "Archive")

    def test_alias_exchange_sent(self):
        self.assertEqual(resolve_mailbox("Sent", ["Inbox", "Sent Items"]), "Sent Items")

    def test_alias_icloud_trash_variants(self):
        self.assertEqual(resolve_mailbox("trash", ["INBOX", "Deleted Messages"]), "Deleted Messages")

    def test_alias_case_insensitive_fallback(self):
        self.assertEqual(resolve_mailbox("junk", ["INBOX", "spam"]), "spam")

    def test_inbox_always_found_when_present(self):
        for variant in ["INBOX", "Inbox", "inbox"]:
            self.assertEqual(resolve_mailbox("inbox", ["Sent", variant]), variant)

    def test_unknown_passes_through(self):
        self.assertEqual(resolve_mailbox("Receipts", ["INBOX", "Sent"]), "Receipts")

    def test_empty_available(self):
        self.assertEqual(resolve_mailbox("INBOX", []), "INBOX")


class TestMergeAliases(unittest.TestCase):

    def test_builtins_untouched(self):
        table = merge_aliases({"sent": ["Gesendet"]})
        self.assertEqual(table["sent"][-1], "Gesendet")
        self.assertNotIn("Gesendet", MAILBOX_ALIASES["sent"])

    def test_new_role_lowercased(self):
        table = merge_aliases({"Receipts": ["Belege"]})
        self.assertEqual(table["receipts"], ["Belege"])

    def test_custom_alias_resolves(self):
        table = merge_aliases({"sent": ["Gesendet"]})
        self.assertEqual(resolve_mailbox("sent", ["Posteingang", "Gesendet"], table), "Gesendet")


class TestMailContext(unittest.TestCase):

    def test_requested_account_used_as_is(self):
        lister = MagicMock(return_value=["iCloud"])
        ctx = MailContext()
        self.assertEqual(ctx.resolve_account("Work", lister), "Work")
        lister.assert_not_called()

    def test_first_account_cached(self):
        lister = MagicMock(return_value=["Gmail", "iCloud"])
        ctx = MailContext()
        self.assertEqual(ctx.resolve_account(None, lister), "Gmail")
        self.assertEqual(ctx.resolve_account(None, lister), "Gmail")
        lister.assert_called_once()

    def test_configured_default_skips_lookup(self):
        lister = MagicMock(return_value=["Gmail"])
        ctx = MailContext(default_account="Work")
        self.assertEqual(ctx.resolve_account(None, lister), "Work")
        lister.assert_not_called()

    def test_fallback_when_no_accounts(self):
        lister = MagicMock(return_value=[])
        ctx = MailContext(fallback_account="Local")
        self.assertEqual(ctx.resolve_account(None, lister), "Local")
        # the fallback is not cached; the next call looks again
        self.assertEqual(ctx.resolve_account(None, lister), "Local")
        self.assertEqual(lister.call_count, 2)

    def test_reset_forgets_discovered_default(self):
        lister = MagicMock(side_effect=[["Gmail"], ["iCloud"]])
        ctx = MailContext()
        self.assertEqual(ctx.resolve_account(None, lister), "Gmail")
        ctx.reset()
        self.assertEqual(ctx.resolve_account(None, lister), "iCloud")

    def test_from_config(self):
        ctx = MailContext.from_config({
            "mail": {"default_account": "", "fallback_account": "Home"},
            "mailbox_aliases": {"archive": ["Archiv"]},
        })
        lister = MagicMock(return_value=["Gmail"])
        self.assertEqual(ctx.resolve_account(None, lister), "Gmail")
        lister.assert_called_once()
        self.assertEqual(ctx.fallback_account, "Home")
        self.assertEqual(ctx.resolve_mailbox("archive", ["Archiv"]), "Archiv")


if __name__ == "__main__":
    unittest.main()
