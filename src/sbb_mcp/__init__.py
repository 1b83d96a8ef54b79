"""SBB Transport: an MCP server for Swiss public transport connections."""

__version__ = "1.0.0"
