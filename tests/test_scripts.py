"""
╔══════════════════════════════════════════╗
║   Test Suite: AppleScript Builders        ║
╚══════════════════════════════════════════╝

Escaping, scoping and the generated script text.
Pure string tests — nothing is executed.
"""

import re
import unittest
import sys
import os
from datetime import datetime

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from applemail import scripts
from applemail.scripts import escape_applescript


def _unescape(literal):
    """Read an AppleScript string literal body back the way osascript does."""
    out, i = [], 0
    while i < len(literal):
        ch = literal[i]
        if ch == "\\" and i + 1 < len(literal):
            out.append(literal[i + 1])
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _literal_after(script, prefix):
    """Extract the string literal following ``prefix`` in ``script``."""
    match = re.search(re.escape(prefix) + r'"((?:[^"\\]|\\.)*)"', script)
    assert match, f"no literal after {prefix!r}"
    return match.group(1)


class TestEscaping(unittest.TestCase):

    def test_plain_text_unchanged(self):
        self.assertEqual(escape_applescript("Hello world"), "Hello world")

    def test_quotes_escaped(self):
        self.assertEqual(escape_applescript('say "hi"'), 'say \\"hi\\"')

    def test_backslash_escaped_before_quotes(self):
        # a quote preceded by a backslash must not collapse into \\"
        self.assertEqual(escape_applescript('a\\"b'), 'a\\\\\\"b')

    def test_empty_and_none(self):
        self.assertEqual(escape_applescript(""), "")
        self.assertEqual(escape_applescript(None), "")

    def test_round_trip_through_embedded_literal(self):
        samples = [
            'plain',
            'C:\\Users\\me',
            'he said "no"',
            'trailing backslash \\',
            '\\"already escaped\\"',
            '" & do shell script "rm -rf ~" & "',
        ]
        for text in samples:
            script = scripts.compose_script(["a@x.com"], text, "body")
            extracted = _literal_after(script, "subject:")
            self.assertEqual(_unescape(extracted), text)

    def test_injection_stays_inside_literal(self):
        evil = '" & do shell script "echo pwned" & "'
        script = scripts.compose_script(["a@x.com"], "S", evil)
        body = _literal_after(script, "content:")
        self.assertEqual(_unescape(body), evil)


class TestScoping(unittest.TestCase):

    def test_app_level(self):
        script = scripts.app_script("return 1")
        self.assertIn('tell application "Mail"', script)
        self.assertNotIn("tell account", script)

    def test_account_scoped_escapes_name(self):
        script = scripts.account_script('Work "Main"', "return 1")
        self.assertIn('tell account "Work \\"Main\\""', script)


class TestMessageIds(unittest.TestCase):

    def test_numeric_ids_valid(self):
        self.assertTrue(scripts.is_valid_message_id("12345"))
        self.assertTrue(scripts.is_valid_message_id(42))

    def test_non_numeric_ids_invalid(self):
        for bad in ["", "abc", "12 or true", "1; delete", "-5", None]:
            self.assertFalse(scripts.is_valid_message_id(bad), bad)

    def test_builder_rejects_invalid_id(self):
        with self.assertRaises(ValueError):
            scripts.delete_script("1 or id > 0")

    def test_find_message_scans_all_mailboxes(self):
        script = scripts.set_read_script("77", read=False)
        self.assertIn("repeat with acct in accounts", script)
        self.assertIn("whose id is 77", script)
        self.assertIn("set read status of msg to false", script)
        self.assertIn('return "error:Message not found"', script)


class TestListingScripts(unittest.TestCase):

    def test_list_messages_limit_and_mailbox(self):
        script = scripts.list_messages_script("iCloud", "INBOX", limit=2)
        self.assertIn('tell account "iCloud"', script)
        self.assertIn('mailbox "INBOX"', script)
        self.assertIn("if msgCount >= 2 then exit repeat", script)
        self.assertNotIn("whose", script)

    def test_list_unread_only(self):
        script = scripts.list_messages_script("iCloud", "INBOX", unread_only=True)
        self.assertIn("whose read status is false", script)

    def test_search_condition_empty(self):
        self.assertEqual(scripts.search_condition(), "")

    def test_search_condition_query_matches_subject_or_sender(self):
        cond = scripts.search_condition(query='in"voice')
        self.assertEqual(cond, ' whose (subject contains "in\\"voice" or sender contains "in\\"voice")')

    def test_search_condition_combines_filters(self):
        cond = scripts.search_condition(
            sender="boss@x.com", is_read=False, is_flagged=True,
            date_from=datetime(2025, 3, 1),
        )
        self.assertIn('sender contains "boss@x.com"', cond)
        self.assertIn("read status is false", cond)
        self.assertIn("flagged status is true", cond)
        self.assertIn('date received >= date "March 1, 2025"', cond)
        self.assertEqual(cond.count(" and "), 3)

    def test_date_to_includes_whole_day(self):
        cond = scripts.search_condition(date_to=datetime(2026, 10, 19))
        self.assertEqual(cond, ' whose date received < date "October 20, 2026"')

    def test_date_to_month_end_rolls_over(self):
        cond = scripts.search_condition(date_to=datetime(2025, 12, 31, 18, 30))
        self.assertIn('date received < date "January 1, 2026"', cond)

    def test_mailbox_names_joined_by_field_separator(self):
        script = scripts.mailbox_names_script("iCloud")
        self.assertIn('set AppleScript\'s text item delimiters to "|||"', script)
        self.assertIn("return mbNames as text", script)


class TestComposeScripts(unittest.TestCase):

    def test_send_adds_all_recipient_kinds(self):
        script = scripts.compose_script(
            ["a@x.com", "b@x.com"], "S", "B", cc=["c@x.com"], bcc=["d@x.com"],
        )
        self.assertEqual(script.count("make new to recipient"), 2)
        self.assertIn("make new cc recipient", script)
        self.assertIn("make new bcc recipient", script)
        self.assertIn("send newMessage", script)
        self.assertIn("visible:true", script)

    def test_draft_is_not_sent(self):
        script = scripts.compose_script(["a@x.com"], "S", "B", send=False)
        self.assertNotIn("send newMessage", script)
        self.assertIn('return "draft created"', script)

    def test_sender_account_only_when_given(self):
        self.assertNotIn("set sender", scripts.compose_script(["a@x.com"], "S", "B"))
        script = scripts.compose_script(["a@x.com"], "S", "B", account="me@icloud.com")
        self.assertIn('set sender to "me@icloud.com"', script)

    def test_reply_all_and_draft(self):
        script = scripts.reply_script("9", "Thanks", reply_all=True, send=False)
        self.assertIn("with reply to all", script)
        self.assertNotIn("send theReply", script)

    def test_forward_without_body_leaves_content(self):
        script = scripts.forward_script("9", ["z@x.com"])
        self.assertNotIn("set content of theForward", script)
        self.assertIn("send theForward", script)

    def test_move_targets_account_mailbox(self):
        script = scripts.move_script("9", "Sent Items", "Work")
        self.assertIn('mailbox "Sent Items" of account "Work"', script)


class TestDiagnosticScripts(unittest.TestCase):

    def test_recent_windows(self):
        script = scripts.recently_received_script(datetime(2025, 3, 31, 12, 0))
        self.assertIn('set oneDayAgo to date "March 30, 2025"', script)
        self.assertIn('set sevenDaysAgo to date "March 24, 2025"', script)
        self.assertIn('set thirtyDaysAgo to date "March 1, 2025"', script)
        self.assertIn('{"INBOX", "Inbox", "inbox"}', script)


if __name__ == "__main__":
    unittest.main()
