"""scrappey-mcp: MCP tools over the Scrappey browser-automation API."""

__version__ = "0.2.0"
