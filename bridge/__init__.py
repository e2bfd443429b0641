"""
╔══════════════════════════════════════════╗
║   Apple Mail Bridge — Tool Layer         ║
╚══════════════════════════════════════════╝

MCP-facing side of the bridge:
  - tool_defs  — tool schemas
  - handlers   — argument validation, dispatch, text rendering
  - server     — MCP stdio server
"""
