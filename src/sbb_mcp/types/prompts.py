"""MCP Prompt Types - Types for prompt listing and rendering."""

from typing import Literal

from sbb_mcp.types.base import MCPModel, RequestParams, Result
from sbb_mcp.types.content import ContentBlock


class PromptArgument(MCPModel):
    """An argument that a prompt template accepts."""

    name: str
    description: str | None = None
    required: bool | None = None


class Prompt(MCPModel):
    """A prompt or prompt template that the server offers."""

    name: str
    title: str | None = None
    description: str | None = None
    arguments: list[PromptArgument] | None = None


class PromptMessage(MCPModel):
    """Describes a message returned as part of a prompt."""

    role: Literal["user", "assistant"]
    content: ContentBlock


class ListPromptsResult(Result):
    prompts: list[Prompt]


class GetPromptRequestParams(RequestParams):
    """Parameters for prompts/get request."""

    name: str
    arguments: dict[str, str] | None = None


class GetPromptResult(Result):
    description: str | None = None
    messages: list[PromptMessage]
