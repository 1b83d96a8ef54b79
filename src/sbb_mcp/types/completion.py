"""MCP Completion Types - Types for argument autocompletion."""

from typing import Annotated

from pydantic import Field

from sbb_mcp.types.base import MCPModel, RequestParams, Result


class CompletionReference(MCPModel):
    """Reference to a prompt or resource the completion applies to.

    ``type`` is one of ``ref/prompt``, ``ref/resource`` (legacy) or
    ``ref/resource-template``; kept as a plain string so unsupported reference
    types reach the handler and can be rejected there.
    """

    type: str
    uri: str | None = None
    name: str | None = None


class CompletionArgument(MCPModel):
    name: str
    value: str


class CompleteRequestParams(RequestParams):
    ref: CompletionReference
    argument: CompletionArgument


class Completion(MCPModel):
    values: list[str]
    total: int | None = None
    has_more: Annotated[bool | None, Field(alias="hasMore")] = None


class CompleteResult(Result):
    completion: Completion
