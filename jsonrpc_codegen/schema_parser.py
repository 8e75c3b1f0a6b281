"""Classify OpenAPI schema objects into SchemaNodes.

Handles:
- $ref edges (kept as references, never unfolded)
- allOf composition by structural merge
- oneOf/anyOf unions, with null members folded into nullability
- sibling properties next to oneOf/anyOf (distributed into every member)
- discriminant detection for tagged unions
- nullable: true, type lists containing "null", enums containing null
- enum/const literals
- string formats byte/binary as base64 byte sequences

Reference targets are only built when a merge or discriminant detection has
to look through them, and that walk keeps a visited set, so cyclic schemas
terminate.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Mapping

from .errors import ConflictingComposition, MalformedDocument, UnresolvedReference
from .loader import ref_name
from .model import (
    ARRAY,
    BOOLEAN,
    BYTES,
    ENUM,
    INTEGER,
    MAP,
    NULL,
    NUMBER,
    OBJECT,
    PRIMITIVE,
    REFERENCE,
    STRING,
    UNION,
    UNKNOWN,
    Field,
    SchemaNode,
    primitive,
    reference,
)

logger = logging.getLogger(__name__)

_TYPE_TAGS: dict[str, str] = {
    "string": STRING,
    "integer": INTEGER,
    "number": NUMBER,
    "boolean": BOOLEAN,
    "null": NULL,
}

_BYTE_FORMATS = {"byte", "binary"}
_UNION_KEYS = ("oneOf", "anyOf")


def _strip_html(text: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def _description(schema: Mapping[str, Any]) -> str | None:
    description = schema.get("description")
    if not isinstance(description, str) or not description.strip():
        return None
    return _strip_html(description)


def describe(node: SchemaNode) -> str:
    """Short human-readable shape, used in error messages."""
    if node.kind == PRIMITIVE:
        text = node.primitive or UNKNOWN
    elif node.kind == REFERENCE:
        text = node.ref or "?"
    elif node.kind == ENUM:
        text = "enum(" + ", ".join(repr(v) for v in node.values) + ")"
    elif node.kind == ARRAY:
        text = f"array of {describe(node.items)}" if node.items else "array"
    else:
        text = node.kind
    return f"nullable {text}" if node.nullable else text


class SchemaParser:
    """Build SchemaNodes for one document's named schema table.

    ``names`` maps every raw schema name to the identifier it is known by in
    the model; references are rewritten through it.
    """

    def __init__(self, raw_schemas: Mapping[str, Any], names: Mapping[str, str]) -> None:
        self._raw = raw_schemas
        self._names = names
        self._raw_by_name = {names[raw]: raw for raw in raw_schemas}
        self._built: dict[str, SchemaNode] = {}
        self._building: set[str] = set()

    # -- named schemas ---------------------------------------------------

    def named(self, name: str) -> SchemaNode:
        """Return the node for a named schema, building it on first use."""
        if name in self._built:
            return self._built[name]
        raw = self._raw[self._raw_by_name[name]]
        self._building.add(name)
        try:
            node = self.parse(raw, owner=name)
        finally:
            self._building.discard(name)
        self._built[name] = node
        return node

    def reference(self, ref: str, referrer: str) -> SchemaNode:
        raw = ref_name(ref)
        if raw not in self._names:
            raise UnresolvedReference(raw, referrer)
        return reference(self._names[raw])

    # -- classification --------------------------------------------------

    def parse(self, schema: Any, owner: str) -> SchemaNode:
        """Classify one schema object."""
        if isinstance(schema, bool) or schema == {}:
            return primitive(UNKNOWN)
        if not isinstance(schema, dict):
            raise MalformedDocument(f"{owner}: schema must be an object, got {schema!r}")

        if "$ref" in schema:
            node = self.reference(schema["$ref"], owner)
        elif any(key in schema for key in ("allOf", *_UNION_KEYS)):
            node = self._composition(schema, owner)
        elif "const" in schema:
            node = self._enum([schema["const"]], owner)
        elif "enum" in schema:
            node = self._enum(schema["enum"], owner)
        else:
            node = self._typed(schema, owner)

        if schema.get("nullable") and not node.nullable:
            node = replace(node, nullable=True)
        title = schema.get("title") if isinstance(schema.get("title"), str) else None
        return replace(
            node,
            title=node.title or title,
            description=_description(schema) or node.description,
        )

    def _composition(self, schema: dict[str, Any], owner: str) -> SchemaNode:
        parts: list[SchemaNode] = []
        if "properties" in schema:
            own = {k: v for k, v in schema.items() if k not in ("allOf", *_UNION_KEYS)}
            parts.append(self._object(own, owner))

        fragments = schema.get("allOf", [])
        if not isinstance(fragments, list):
            raise MalformedDocument(f"{owner}: allOf must be a list")
        parts.extend(self.parse(fragment, owner) for fragment in fragments)

        for key in _UNION_KEYS:
            if key in schema:
                members = schema[key]
                if not isinstance(members, list) or not members:
                    raise MalformedDocument(f"{owner}: {key} must be a non-empty list")
                parts.append(self.make_union(
                    [self.parse(member, owner) for member in members], owner,
                ))

        node = parts[0]
        for part in parts[1:]:
            node = self.merge(node, part, owner)
        return node

    def _enum(self, values: Any, owner: str) -> SchemaNode:
        if not isinstance(values, list):
            raise MalformedDocument(f"{owner}: enum must be a list")
        literals: list[Any] = []
        for value in values:
            if value is not None and not isinstance(value, (str, int, float)):
                raise MalformedDocument(f"{owner}: enum value {value!r} is not a scalar")
            if value is not None and value not in literals:
                literals.append(value)
        nullable = None in values
        if not literals:
            return primitive(NULL)
        return SchemaNode(kind=ENUM, values=tuple(literals), nullable=nullable)

    def _typed(self, schema: dict[str, Any], owner: str) -> SchemaNode:
        schema_type = schema.get("type")
        nullable = False
        if isinstance(schema_type, list):
            nullable = "null" in schema_type
            types = [t for t in schema_type if t != "null"]
            if not types:
                return primitive(NULL)
            if len(types) > 1:
                members = [self._typed({**schema, "type": t}, owner) for t in types]
                return replace(self.make_union(members, owner), nullable=nullable)
            schema_type = types[0]

        if schema_type is None:
            if "properties" in schema:
                schema_type = "object"
            elif "items" in schema:
                schema_type = "array"
            else:
                return primitive(UNKNOWN, nullable=nullable)

        if schema_type == "object":
            if "properties" not in schema:
                return primitive(MAP, nullable=nullable)
            node = self._object(schema, owner)
        elif schema_type == "array":
            items = schema.get("items", {})
            item = self.parse(items, owner) if isinstance(items, dict) else primitive(UNKNOWN)
            node = SchemaNode(kind=ARRAY, items=item)
        elif schema_type == "string" and schema.get("format") in _BYTE_FORMATS:
            node = primitive(BYTES)
        elif schema_type in _TYPE_TAGS:
            node = primitive(_TYPE_TAGS[schema_type])
        else:
            raise MalformedDocument(f"{owner}: unsupported type {schema_type!r}")
        return replace(node, nullable=nullable) if nullable else node

    def _object(self, schema: dict[str, Any], owner: str) -> SchemaNode:
        properties = schema.get("properties", {})
        if not isinstance(properties, dict):
            raise MalformedDocument(f"{owner}: properties must be an object")
        required = set(schema.get("required", []))
        fields = tuple(
            Field(name=name, node=self.parse(prop, owner), required=name in required)
            for name, prop in properties.items()
        )
        return SchemaNode(kind=OBJECT, fields=fields)

    # -- unions ----------------------------------------------------------

    def make_union(self, members: list[SchemaNode], owner: str, nullable: bool = False) -> SchemaNode:
        """Build a union, folding null members and detecting a discriminant."""
        kept: list[SchemaNode] = []
        for member in members:
            if member.kind == PRIMITIVE and member.primitive == NULL:
                nullable = True
            elif member not in kept:
                kept.append(member)

        if not kept:
            return primitive(NULL)
        if len(kept) == 1:
            only = kept[0]
            return replace(only, nullable=True) if nullable and not only.nullable else only

        discriminant, tags = self._detect_discriminant(kept)
        if discriminant is not None:
            logger.debug("%s: union discriminated by %r", owner, discriminant)
        return SchemaNode(
            kind=UNION,
            members=tuple(kept),
            discriminant=discriminant,
            tags=tags,
            nullable=nullable,
        )

    def _detect_discriminant(self, members: list[SchemaNode]) -> tuple[str | None, tuple[str, ...]]:
        literals = [self._literal_fields(m) for m in members]
        for candidate in literals[0]:
            tags = [fields.get(candidate) for fields in literals]
            if None in tags:
                continue
            if len(set(tags)) == len(tags):
                return candidate, tuple(tags)
        return None, ()

    def _literal_fields(self, node: SchemaNode) -> dict[str, str]:
        """Required single-literal string fields of a member, in field order."""
        node = self._peek(node)
        if node is None or node.nullable:
            return {}
        if node.kind == OBJECT:
            found = {}
            for f in node.fields:
                value = self._peek(f.node)
                if (
                    f.required
                    and value is not None
                    and value.kind == ENUM
                    and not value.nullable
                    and len(value.values) == 1
                    and isinstance(value.values[0], str)
                ):
                    found[f.name] = value.values[0]
            return found
        if node.kind == UNION:
            nested = [self._literal_fields(m) for m in node.members]
            return {
                key: value for key, value in nested[0].items()
                if all(other.get(key) == value for other in nested[1:])
            }
        return {}

    def _peek(self, node: SchemaNode) -> SchemaNode | None:
        """Look through references; None when a target is still being built."""
        seen: set[str] = set()
        while node.kind == REFERENCE:
            if node.ref in self._building or node.ref in seen:
                return None
            seen.add(node.ref)
            node = self.named(node.ref)
        return node

    # -- composition -----------------------------------------------------

    def _look_through(self, node: SchemaNode, owner: str) -> SchemaNode:
        seen: set[str] = set()
        nullable = node.nullable
        while node.kind == REFERENCE:
            name = node.ref
            if name in self._building or name in seen:
                raise ConflictingComposition(owner, f"schema {name!r} is composed into itself")
            seen.add(name)
            node = replace(self.named(name), title=name)
            nullable = nullable or node.nullable
        return replace(node, nullable=nullable) if nullable != node.nullable else node

    def merge(self, left: SchemaNode, right: SchemaNode, owner: str) -> SchemaNode:
        """Structurally merge two allOf fragments."""
        if left == right:
            return left
        if _is_unknown(left):
            return right
        if _is_unknown(right):
            return left

        a = self._look_through(left, owner)
        b = self._look_through(right, owner)
        if a == b:
            return a
        nullable = a.nullable and b.nullable

        if a.kind == UNION:
            merged = [self.merge(m, b, owner) for m in a.members]
            return self.make_union(merged, owner, nullable=nullable)
        if b.kind == UNION:
            merged = [self.merge(a, m, owner) for m in b.members]
            return self.make_union(merged, owner, nullable=nullable)
        if a.kind == OBJECT and b.kind == OBJECT:
            return SchemaNode(
                kind=OBJECT,
                fields=_merge_fields(a.fields, b.fields, owner),
                nullable=nullable,
                title=a.title or b.title,
                description=a.description or b.description,
            )
        raise ConflictingComposition(owner, f"cannot combine {describe(a)} with {describe(b)}")


def _is_unknown(node: SchemaNode) -> bool:
    return node.kind == PRIMITIVE and node.primitive == UNKNOWN


def _merge_fields(left: tuple[Field, ...], right: tuple[Field, ...], owner: str) -> tuple[Field, ...]:
    merged: dict[str, Field] = {f.name: f for f in left}
    for f in right:
        existing = merged.get(f.name)
        if existing is None:
            merged[f.name] = f
            continue
        if existing.node != f.node:
            raise ConflictingComposition(
                owner,
                f"field {f.name!r} is {describe(existing.node)} in one fragment"
                f" and {describe(f.node)} in another",
            )
        merged[f.name] = replace(existing, required=existing.required or f.required)
    return tuple(merged.values())
