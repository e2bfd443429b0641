"""
╔══════════════════════════════════════════╗
║   Apple Mail Bridge — MCP Server         ║
╚══════════════════════════════════════════╝

MCP (Model Context Protocol) server on stdio.
Lists the tools from bridge.tool_defs and routes calls
to MailToolDispatcher. Tool calls run in a worker thread,
one at a time — Mail.app handles one AppleScript conversation
at a time anyway.
"""

import asyncio
import logging
import threading

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from bridge.handlers import MailToolDispatcher
from bridge.tool_defs import ALL_TOOLS

logger = logging.getLogger("mailbridge.server")

SERVER_NAME = "apple-mail"
SERVER_VERSION = "1.0.0"
SERVER_INSTRUCTIONS = "Read, search, send, and organize email in Apple Mail on macOS."


class ToolCallError(Exception):
    """A tool call that completed with an error payload."""


def to_mcp_tool(tool):
    """Convert a tool definition dict to an MCP Tool."""
    return Tool(
        name=tool["name"],
        description=tool["description"],
        inputSchema=tool["input_schema"],
    )


class MailBridgeServer:
    """Wires an AppleMailManager to an MCP stdio server."""

    def __init__(self, manager):
        self.dispatcher = MailToolDispatcher(manager)
        self._call_lock = threading.Lock()
        self.server = Server(SERVER_NAME, version=SERVER_VERSION, instructions=SERVER_INSTRUCTIONS)
        self._register()

    def _register(self):
        @self.server.list_tools()
        async def list_tools():
            return [to_mcp_tool(t) for t in ALL_TOOLS]

        # MailToolDispatcher validates arguments and prefixes the error text
        @self.server.call_tool(validate_input=False)
        async def call_tool(name, arguments):
            return await self.handle_call(name, arguments)

    def call_sync(self, name, arguments):
        """Dispatch one tool call, serialized with every other call."""
        with self._call_lock:
            logger.info(f"  🔧 {name}")
            return self.dispatcher.dispatch(name, arguments)

    async def handle_call(self, name, arguments):
        """Run a tool call; errors are raised so the SDK marks the result isError."""
        response = await asyncio.to_thread(self.call_sync, name, arguments or {})
        if response.is_error:
            raise ToolCallError(response.text)
        return [TextContent(type="text", text=response.text)]

    async def run(self):
        """Serve over stdin/stdout until the client disconnects."""
        logger.info(f"  📬 {SERVER_NAME} MCP server v{SERVER_VERSION} on stdio "
                    f"({len(ALL_TOOLS)} tools)")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )
