"""Handler dispatch table.

Maps a (category, name) pair to the coroutine that serves it, validates the
request arguments against the capability's declared shape before calling the
handler, and turns domain failures into renderable results.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import ValidationError

from sbb_mcp.context import RequestContext
from sbb_mcp.exceptions import ConfigurationError, DomainError, InvalidArgumentsError, NotFoundError
from sbb_mcp.registry import ArgumentsModel, CapabilityCategory, CapabilityDescriptor, CapabilityRegistry
from sbb_mcp.types import Completion, CompletionArgument, CompletionReference, ContentBlock, TextContent

logger = logging.getLogger(__name__)

HandlerResult = str | Sequence[ContentBlock]
Handler = Callable[[RequestContext, Any], Awaitable[HandlerResult]]

# Categories that own a handler; resource templates are served by the
# resource handler of the same name.
HANDLER_CATEGORIES = (CapabilityCategory.TOOL, CapabilityCategory.RESOURCE, CapabilityCategory.PROMPT)

COMPLETABLE_REFERENCES = ("ref/resource", "ref/resource-template")


@dataclass(frozen=True)
class CapabilityRequest:
    """A request for one capability, decoded from a protocol message."""

    category: CapabilityCategory
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    session_id: str | None = None


@dataclass(frozen=True)
class HandlerOutcome:
    """Result of a dispatch. Both kinds are delivered to the client as results.

    ``content`` carries the handler's blocks; ``error`` carries a text block
    describing a domain failure, so clients render it instead of aborting.
    """

    kind: Literal["content", "error"]
    content: tuple[ContentBlock, ...]

    @classmethod
    def ok(cls, result: HandlerResult) -> HandlerOutcome:
        if isinstance(result, str):
            return cls(kind="content", content=(TextContent(text=result),))
        return cls(kind="content", content=tuple(result))

    @classmethod
    def error(cls, message: str) -> HandlerOutcome:
        return cls(kind="error", content=(TextContent(text=message),))

    @property
    def is_error(self) -> bool:
        return self.kind == "error"


def validate_arguments(descriptor: CapabilityDescriptor, arguments: Mapping[str, Any] | None) -> ArgumentsModel:
    """Validate raw arguments against a descriptor's shape.

    Returns the frozen argument record, or raises InvalidArgumentsError naming
    the first offending field. Unknown fields are ignored.
    """
    try:
        return descriptor.arguments_model.model_validate(dict(arguments or {}))
    except ValidationError as e:
        error = e.errors()[0]
        field_name = str(error["loc"][0]) if error["loc"] else "arguments"
        if error["type"] == "missing":
            message = f"Missing required argument '{field_name}'"
        else:
            message = f"Invalid argument '{field_name}': {error['msg']}"
        raise InvalidArgumentsError(field_name, message) from e


class DispatchTable:
    """Routes capability requests to registered handlers.

    Usage:
        table = DispatchTable(registry)

        @table.handler(CapabilityCategory.TOOL, "echo")
        async def echo(ctx: RequestContext, args: EchoArguments) -> str:
            return f"Tool echo: {args.message}"

        table.check()
    """

    def __init__(self, registry: CapabilityRegistry) -> None:
        self.registry = registry
        self._handlers: dict[tuple[CapabilityCategory, str], Handler] = {}

    def register(self, category: CapabilityCategory, name: str, handler: Handler) -> None:
        if category not in HANDLER_CATEGORIES:
            raise ConfigurationError(f"Handlers cannot be registered for category {category.value}")
        if self.registry.get(category, name) is None:
            raise ConfigurationError(f"Handler registered for undeclared {category.value}: {name}")
        if (category, name) in self._handlers:
            raise ConfigurationError(f"Duplicate handler for {category.value}: {name}")
        self._handlers[(category, name)] = handler
        logger.debug("Registered handler for %s %r", category.value, name)

    def handler(self, category: CapabilityCategory, name: str) -> Callable[[Handler], Handler]:
        """Decorator to register a handler for a declared capability."""

        def decorator(fn: Handler) -> Handler:
            self.register(category, name, fn)
            return fn

        return decorator

    def check(self) -> None:
        """Raise ConfigurationError unless every declared capability has exactly one handler."""
        missing: list[str] = []
        for descriptor in self.registry:
            key = (self._handler_category(descriptor.category), descriptor.name)
            if key not in self._handlers:
                missing.append(f"{descriptor.category.value} {descriptor.name!r}")
        if missing:
            raise ConfigurationError(f"No handler registered for: {', '.join(missing)}")

    @staticmethod
    def _handler_category(category: CapabilityCategory) -> CapabilityCategory:
        if category is CapabilityCategory.RESOURCE_TEMPLATE:
            return CapabilityCategory.RESOURCE
        return category

    async def dispatch(self, request: CapabilityRequest, ctx: RequestContext) -> HandlerOutcome:
        descriptor = self.registry.get(request.category, request.name)
        if descriptor is None:
            raise NotFoundError(f"Unknown {request.category.value}: {request.name}")

        handler = self._handlers[(self._handler_category(request.category), request.name)]
        arguments = validate_arguments(descriptor, request.arguments)

        try:
            result = await handler(ctx, arguments)
        except DomainError as e:
            logger.warning("%s %r failed: %s", request.category.value, request.name, e)
            return HandlerOutcome.error(str(e))
        return HandlerOutcome.ok(result)

    def complete(self, reference: CompletionReference, argument: CompletionArgument) -> Completion:
        """Suggest a completion for a resource reference.

        The suggestion is the reference key followed by the partial value; only
        resource references are supported.
        """
        if reference.type in COMPLETABLE_REFERENCES and reference.uri is not None:
            key = self.registry.resolve_completion_reference(reference.uri)
            if key is not None:
                return Completion(values=[f"{key}{argument.value}"], total=1, has_more=False)
        raise NotFoundError(f"Unsupported reference type: {reference.type}")
