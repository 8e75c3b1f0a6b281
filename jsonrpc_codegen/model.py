"""In-memory schema model shared by every emitter.

Nodes are frozen so the finished :class:`SchemaModel` can be handed to
each emitter without any of them being able to change what the others see.
References are kept as edges (``kind == "reference"``), which is what lets
cyclic schemas exist in a finite model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping

PRIMITIVE = "primitive"
OBJECT = "object"
ARRAY = "array"
UNION = "union"
ENUM = "enum"
REFERENCE = "reference"

KINDS = (PRIMITIVE, OBJECT, ARRAY, UNION, ENUM, REFERENCE)

# Primitive base tags. ``bytes`` travels as base64 text, ``map`` is a
# free-form JSON object and ``unknown`` accepts anything.
STRING = "string"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
BYTES = "bytes"
NULL = "null"
MAP = "map"
UNKNOWN = "unknown"

PRIMITIVES = (STRING, INTEGER, NUMBER, BOOLEAN, BYTES, NULL, MAP, UNKNOWN)


@dataclass(frozen=True)
class SchemaNode:
    kind: str
    nullable: bool = False
    primitive: str | None = None
    fields: tuple["Field", ...] = ()
    items: "SchemaNode | None" = None
    members: tuple["SchemaNode", ...] = ()
    discriminant: str | None = None
    tags: tuple[str, ...] = ()
    values: tuple[Any, ...] = ()
    ref: str | None = None
    title: str | None = field(default=None, compare=False)
    description: str | None = field(default=None, compare=False)

    @property
    def is_tagged(self) -> bool:
        return self.kind == UNION and self.discriminant is not None

    @property
    def variants(self) -> dict[str, "SchemaNode"]:
        """Tag value -> member, for discriminated unions."""
        return dict(zip(self.tags, self.members))

    def get_field(self, name: str) -> "Field | None":
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class Field:
    """One object field, keyed by its wire name."""

    name: str
    node: SchemaNode
    required: bool = True

    @property
    def optional(self) -> bool:
        return not self.required


@dataclass(frozen=True)
class Operation:
    """A JSON-RPC method and the named schemas it exchanges."""

    name: str
    request: SchemaNode
    response: SchemaNode
    error: SchemaNode
    description: str | None = None

    @property
    def request_type(self) -> str:
        return self.request.ref or ""

    @property
    def response_type(self) -> str:
        return self.response.ref or ""

    @property
    def error_type(self) -> str:
        return self.error.ref or ""


@dataclass(frozen=True)
class SchemaModel:
    title: str
    version: str
    schemas: Mapping[str, SchemaNode]
    operations: tuple[Operation, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.schemas, MappingProxyType):
            object.__setattr__(self, "schemas", MappingProxyType(dict(self.schemas)))

    def resolve(self, node: SchemaNode) -> SchemaNode:
        """Follow reference edges until a non-reference node is reached."""
        seen: set[str] = set()
        while node.kind == REFERENCE and node.ref not in seen:
            seen.add(node.ref)
            node = self.schemas[node.ref]
        return node

    def objects(self) -> Iterator[tuple[str, SchemaNode]]:
        for name, node in self.schemas.items():
            if node.kind == OBJECT:
                yield name, node

    def tagged_unions(self) -> Iterator[tuple[str, SchemaNode]]:
        for name, node in self.schemas.items():
            if node.is_tagged:
                yield name, node


def primitive(tag: str, nullable: bool = False, **extra: Any) -> SchemaNode:
    return SchemaNode(kind=PRIMITIVE, primitive=tag, nullable=nullable, **extra)


def reference(name: str, nullable: bool = False) -> SchemaNode:
    return SchemaNode(kind=REFERENCE, ref=name, nullable=nullable)


def references(node: SchemaNode) -> Iterator[str]:
    """Yield the names of the schemas ``node`` points at directly."""
    if node.kind == REFERENCE:
        yield node.ref
    elif node.kind == OBJECT:
        for f in node.fields:
            yield from references(f.node)
    elif node.kind == ARRAY and node.items is not None:
        yield from references(node.items)
    elif node.kind == UNION:
        for member in node.members:
            yield from references(member)
