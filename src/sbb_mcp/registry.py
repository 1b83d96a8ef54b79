"""Schema registry: static descriptors for every capability the server exposes.

Each descriptor names a capability within its category and carries the shape
of the arguments it accepts. The shape is declared once, as a frozen pydantic
model, and both the JSON Schema advertised to clients and the validation pass
in the dispatch table are derived from it.
"""

from __future__ import annotations

import re
import types
import urllib.parse
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict

from sbb_mcp.exceptions import ConfigurationError


class CapabilityCategory(str, Enum):
    TOOL = "tool"
    RESOURCE = "resource"
    RESOURCE_TEMPLATE = "resource-template"
    PROMPT = "prompt"


class ArgumentsModel(BaseModel):
    """Base class for capability argument records.

    Strict so that a string never passes for a boolean, frozen so handlers get
    an immutable record, and unknown fields are dropped rather than rejected.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")


class NoArguments(ArgumentsModel):
    pass


_JSON_TYPES: dict[type, str] = {
    str: "string",
    bool: "boolean",
    int: "integer",
    float: "number",
}


def _json_type(annotation: Any) -> str:
    # Optional[X] and X | None both collapse to X
    if get_origin(annotation) in (Union, types.UnionType):
        annotation = next(arg for arg in get_args(annotation) if arg is not type(None))
    try:
        return _JSON_TYPES[annotation]
    except KeyError:
        raise ConfigurationError(f"Unsupported argument type: {annotation!r}") from None


@dataclass(frozen=True)
class InputField:
    """One entry of a capability's input shape."""

    type: str
    required: bool
    description: str | None = None


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Immutable description of a single capability."""

    category: CapabilityCategory
    name: str
    description: str
    arguments_model: type[ArgumentsModel] = NoArguments
    uri: str | None = None
    uri_template: str | None = None
    mime_type: str | None = None
    title: str | None = None
    """Short human-readable label, used when rendering a prompt."""
    _pattern: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.category is CapabilityCategory.RESOURCE and self.uri is None:
            raise ConfigurationError(f"Resource {self.name!r} needs a uri")
        if self.category is CapabilityCategory.RESOURCE_TEMPLATE:
            if self.uri_template is None:
                raise ConfigurationError(f"Resource template {self.name!r} needs a uri_template")
            object.__setattr__(self, "_pattern", _compile_template(self.uri_template))

    @property
    def input_shape(self) -> dict[str, InputField]:
        """Field name -> InputField, keyed by the wire name of each argument."""
        shape: dict[str, InputField] = {}
        for name, info in self.arguments_model.model_fields.items():
            shape[info.alias or name] = InputField(
                type=_json_type(info.annotation),
                required=info.is_required(),
                description=info.description,
            )
        return shape

    def json_schema(self) -> dict[str, Any]:
        """The input shape as a JSON Schema object, as advertised in ``inputSchema``."""
        properties: dict[str, Any] = {}
        required: list[str] = []
        for name, input_field in self.input_shape.items():
            prop: dict[str, Any] = {"type": input_field.type}
            if input_field.description:
                prop["description"] = input_field.description
            properties[name] = prop
            if input_field.required:
                required.append(name)
        return {"type": "object", "properties": properties, "required": required}

    @property
    def uri_prefix(self) -> str | None:
        """Literal part of the URI template before the first variable (e.g. ``echo://``)."""
        if self.uri_template is None:
            return None
        return self.uri_template.split("{", 1)[0]

    def match(self, uri: str) -> dict[str, str] | None:
        """Match a concrete URI against this template and extract its variables."""
        if self._pattern is None:
            return None
        match = self._pattern.fullmatch(uri)
        if match is None:
            return None
        return {key: urllib.parse.unquote(value) for key, value in match.groupdict().items()}


def _compile_template(uri_template: str) -> re.Pattern[str]:
    pattern_parts: list[str] = []
    for part in re.split(r"(\{\w+\})", uri_template):
        variable = re.fullmatch(r"\{(\w+)\}", part)
        if variable:
            pattern_parts.append(f"(?P<{variable.group(1)}>[^/]*)")
        else:
            pattern_parts.append(re.escape(part))
    return re.compile("".join(pattern_parts))


class CapabilityRegistry:
    """Holds capability descriptors in declaration order, per category."""

    def __init__(self, descriptors: Iterable[CapabilityDescriptor] = ()) -> None:
        self._descriptors: dict[CapabilityCategory, dict[str, CapabilityDescriptor]] = {
            category: {} for category in CapabilityCategory
        }
        for descriptor in descriptors:
            self.add(descriptor)

    def add(self, descriptor: CapabilityDescriptor) -> CapabilityDescriptor:
        by_name = self._descriptors[descriptor.category]
        if descriptor.name in by_name:
            raise ConfigurationError(f"Duplicate {descriptor.category.value}: {descriptor.name}")
        by_name[descriptor.name] = descriptor
        return descriptor

    def list_capabilities(self, category: CapabilityCategory) -> list[CapabilityDescriptor]:
        return list(self._descriptors[category].values())

    def get(self, category: CapabilityCategory, name: str) -> CapabilityDescriptor | None:
        return self._descriptors[category].get(name)

    def match_resource(self, uri: str) -> tuple[CapabilityDescriptor, dict[str, str]] | None:
        """Resolve a concrete resource URI against the registered resource templates.

        Returns the matching template descriptor and the extracted template
        variables, or None if no template matches.
        """
        for template in self.list_capabilities(CapabilityCategory.RESOURCE_TEMPLATE):
            arguments = template.match(uri)
            if arguments is not None:
                return template, arguments
        return None

    def resolve_completion_reference(self, uri: str) -> str | None:
        """Return the reference key (template prefix) that ``uri`` falls under."""
        for template in self.list_capabilities(CapabilityCategory.RESOURCE_TEMPLATE):
            prefix = template.uri_prefix
            if prefix and uri.startswith(prefix):
                return prefix
        return None

    def __iter__(self) -> Iterator[CapabilityDescriptor]:
        for by_name in self._descriptors.values():
            yield from by_name.values()
