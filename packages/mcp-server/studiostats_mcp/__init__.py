"""
StudioStats MCP Server - Model Context Protocol server for studio analytics.

Exposes the trial-client pipeline to MCP clients:
- Analyze new-client, bookings and payments exports
- Summarize, filter and roll up teacher metrics
- Column synonyms accepted for each export

Usage:
    # Via CLI
    studiostats-mcp

    # Via Python
    from studiostats_mcp import server
    server.main()

    # Via an MCP client config (.mcp.json)
    {
        "mcpServers": {
            "studiostats": {
                "command": "studiostats-mcp"
            }
        }
    }
"""

__version__ = "0.1.0"
