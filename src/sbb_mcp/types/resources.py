"""MCP Resource Types - Types for resources."""

from typing import Annotated

from pydantic import Field

from sbb_mcp.types.base import MCPModel, RequestParams, Result


class TextResourceContents(MCPModel):
    """Text contents of a resource."""

    uri: str
    mime_type: Annotated[str | None, Field(alias="mimeType")] = None
    text: str


class Resource(MCPModel):
    """A known resource that the server is capable of reading."""

    uri: str
    name: str
    description: str | None = None
    mime_type: Annotated[str | None, Field(alias="mimeType")] = None


class ResourceTemplate(MCPModel):
    """A template description for resources available on the server."""

    uri_template: Annotated[str, Field(alias="uriTemplate")]
    name: str
    description: str | None = None
    mime_type: Annotated[str | None, Field(alias="mimeType")] = None


class ListResourcesResult(Result):
    resources: list[Resource]
    next_cursor: Annotated[str | None, Field(alias="nextCursor")] = None


class ListResourceTemplatesResult(Result):
    resource_templates: Annotated[list[ResourceTemplate], Field(alias="resourceTemplates")]
    next_cursor: Annotated[str | None, Field(alias="nextCursor")] = None


class ReadResourceRequestParams(RequestParams):
    """Parameters for resources/read request."""

    uri: str


class ReadResourceResult(Result):
    contents: list[TextResourceContents]
