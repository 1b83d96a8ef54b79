"""Echo capabilities: a tool, a resource (with its URI template) and a prompt."""

import json

from pydantic import Field

from sbb_mcp.context import RequestContext
from sbb_mcp.dispatch import DispatchTable
from sbb_mcp.registry import ArgumentsModel, CapabilityCategory, CapabilityDescriptor


class EchoArguments(ArgumentsModel):
    message: str = Field(description="The message to echo")


class EchoPromptArguments(ArgumentsModel):
    message: str = Field(description="The message to process")


ECHO_TOOL = CapabilityDescriptor(
    category=CapabilityCategory.TOOL,
    name="echo",
    description="Echo tool that repeats the input message",
    arguments_model=EchoArguments,
)

ECHO_RESOURCE = CapabilityDescriptor(
    category=CapabilityCategory.RESOURCE,
    name="echo",
    description="Echo resource that returns the input message",
    arguments_model=EchoArguments,
    uri="echo://",
)

ECHO_RESOURCE_TEMPLATE = CapabilityDescriptor(
    category=CapabilityCategory.RESOURCE_TEMPLATE,
    name="echo",
    description="Echo resource template that returns the input message",
    arguments_model=EchoArguments,
    uri_template="echo://{message}",
)

ECHO_PROMPT = CapabilityDescriptor(
    category=CapabilityCategory.PROMPT,
    name="echo",
    description="Echo prompt that processes the input message",
    arguments_model=EchoPromptArguments,
    title="Echo prompt",
)

DESCRIPTORS = (ECHO_TOOL, ECHO_RESOURCE, ECHO_RESOURCE_TEMPLATE, ECHO_PROMPT)


async def echo_tool(ctx: RequestContext, args: EchoArguments) -> str:
    await ctx.send_log_message("info", "Echo tool " + json.dumps(args.model_dump(by_alias=True)))
    return f"Tool echo: {args.message}"


async def echo_resource(ctx: RequestContext, args: EchoArguments) -> str:
    return f"Resource echo: {args.message}"


async def echo_prompt(ctx: RequestContext, args: EchoPromptArguments) -> str:
    return f"Please process this message: {args.message}"


def register(table: DispatchTable) -> None:
    table.register(CapabilityCategory.TOOL, "echo", echo_tool)
    table.register(CapabilityCategory.RESOURCE, "echo", echo_resource)
    table.register(CapabilityCategory.PROMPT, "echo", echo_prompt)
