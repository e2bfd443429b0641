"""
╔══════════════════════════════════════════╗
║   Test Suite: MCP Server                  ║
╚══════════════════════════════════════════╝

Tool listing and call routing through MailBridgeServer.
The stdio transport itself is not exercised.
"""

import unittest
from unittest.mock import MagicMock, patch
import asyncio
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from bridge.server import MailBridgeServer, ToolCallError, to_mcp_tool
from bridge.tool_defs import ALL_TOOLS, TOOLS_BY_NAME
from applemail.models import Account
from mcp.types import CallToolRequest, ListToolsRequest


def _run_async(coro):
    """Run an async function synchronously for testing."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestToolListing(unittest.TestCase):

    def test_every_tool_has_a_handler(self):
        server = MailBridgeServer(MagicMock())
        self.assertEqual(sorted(server.dispatcher.tool_names), sorted(TOOLS_BY_NAME))
        self.assertEqual(len(ALL_TOOLS), 23)

    def test_handlers_registered_with_sdk(self):
        server = MailBridgeServer(MagicMock())
        self.assertIn(ListToolsRequest, server.server.request_handlers)
        self.assertIn(CallToolRequest, server.server.request_handlers)

    @patch("bridge.server.Server")
    def test_sdk_schema_validation_disabled(self, server_cls):
        MailBridgeServer(MagicMock())
        server_cls.return_value.call_tool.assert_called_once_with(validate_input=False)

    def test_empty_ids_error_keeps_tool_prefix(self):
        server = MailBridgeServer(MagicMock())
        with self.assertRaises(ToolCallError) as ctx:
            _run_async(server.handle_call("batch-delete-messages", {"ids": []}))
        self.assertTrue(str(ctx.exception).startswith("Error batch deleting messages: "))

    def test_mcp_tool_conversion(self):
        tool = to_mcp_tool(TOOLS_BY_NAME["send-email"])
        self.assertEqual(tool.name, "send-email")
        self.assertEqual(tool.inputSchema["required"], ["to", "subject", "body"])


class TestHandleCall(unittest.TestCase):

    def setUp(self):
        self.manager = MagicMock()
        self.server = MailBridgeServer(self.manager)

    def test_success_is_text_content(self):
        self.manager.list_accounts.return_value = [Account("iCloud", "me@icloud.com", True)]
        content = _run_async(self.server.handle_call("list-accounts", {}))
        self.assertEqual(len(content), 1)
        self.assertEqual(content[0].type, "text")
        self.assertIn("iCloud <me@icloud.com>", content[0].text)

    def test_missing_arguments_treated_as_empty(self):
        self.manager.list_accounts.return_value = []
        content = _run_async(self.server.handle_call("list-accounts", None))
        self.assertEqual(content[0].text, "No Mail accounts found")

    def test_error_raised_for_sdk(self):
        self.manager.send_email.return_value = False
        with self.assertRaises(ToolCallError) as ctx:
            _run_async(self.server.handle_call(
                "send-email", {"to": ["a@x.com"], "subject": "S", "body": "B"}))
        self.assertIn("Failed to send email", str(ctx.exception))

    def test_unknown_tool(self):
        with self.assertRaises(ToolCallError) as ctx:
            _run_async(self.server.handle_call("launch-rockets", {}))
        self.assertEqual(str(ctx.exception), "Unknown tool: launch-rockets")

    def test_call_sync_serializes(self):
        self.manager.get_unread_count.return_value = 4
        response = self.server.call_sync("get-unread-count", {})
        self.assertFalse(response.is_error)
        self.assertEqual(response.text, "4 unread message(s)")
        self.assertFalse(self.server._call_lock.locked())


if __name__ == "__main__":
    unittest.main()
