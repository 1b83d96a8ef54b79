"""MCP Content Types - Content block types used in prompts, resources and tool results."""

from typing import Literal

from sbb_mcp.types.base import MCPModel


class TextContent(MCPModel):
    """Text provided to or from an LLM."""

    type: Literal["text"] = "text"
    text: str


# Only text blocks are produced by this server
ContentBlock = TextContent
