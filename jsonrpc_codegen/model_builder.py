"""Assemble the immutable SchemaModel from a raw document.

Builds every named schema through SchemaParser, unwraps the JSON-RPC
request/response envelopes of each operation, and hoists inline objects
and unions to derived top-level names so that every emitter refers to the
same declarations:

  object field     -> <Owner><Field>        (BlockHeader.inner -> BlockHeaderInner)
  array item       -> <Owner>Item
  tagged member    -> <Owner><Tag>          (RpcError "HANDLER_ERROR" -> RpcErrorHandlerError)
  titled member    -> <Owner><Title>
  other member     -> <Owner>Variant<N>
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import replace
from typing import Any, Mapping

from .errors import MalformedDocument, UnresolvedReference
from .loader import RawDocument, RawOperation, ref_name
from .model import (
    ARRAY,
    OBJECT,
    REFERENCE,
    UNION,
    UNKNOWN,
    Operation,
    SchemaModel,
    SchemaNode,
    primitive,
    reference,
    references,
)
from .naming import to_type_name
from .schema_parser import SchemaParser

logger = logging.getLogger(__name__)

# Names the generated modules bind themselves; schemas may not shadow them.
RESERVED_NAMES = frozenset({
    "Annotated", "Any", "Base64", "Field", "Literal", "NamedTuple", "NotRequired",
    "Optional", "TypeAlias", "TypedDict", "Union", "Method", "MappingProxyType", "METHODS",
    "TypeAdapter", "Validator", "KeyMap", "KEYS", "VALIDATORS",
    "WIRE_TO_IDIOMATIC", "IDIOMATIC_TO_WIRE", "WIRE_TO_IDIOMATIC_KEYS", "IDIOMATIC_TO_WIRE_KEYS",
    "bool", "bytes", "dict", "float", "int", "list", "object", "str",
})

_TITLE_RE = re.compile(r"[A-Za-z][A-Za-z0-9_\- ]{0,63}")


def sanitize_names(raw_names: list[str]) -> dict[str, str]:
    """Map raw schema names to unique Python identifiers."""
    names: dict[str, str] = {}
    owners: dict[str, str] = {}
    for raw in raw_names:
        name = raw if raw.isidentifier() else to_type_name(raw)
        if name in RESERVED_NAMES or keyword.iskeyword(name) or not name.isidentifier():
            name = f"{name}_"
        if name in owners:
            raise MalformedDocument(
                f"schema names {owners[name]!r} and {raw!r} both map to {name!r}"
            )
        owners[name] = raw
        names[raw] = name
    return names


class ModelBuilder:
    def __init__(self, document: RawDocument) -> None:
        self._document = document
        self._names = sanitize_names(list(document.schemas))
        self._parser = SchemaParser(document.schemas, self._names)
        self._schemas: dict[str, SchemaNode] = {}

    def build(self) -> SchemaModel:
        for name in self._names.values():
            self._schemas[name] = self._parser.named(name)

        operations = [self._operation(raw) for raw in self._document.operations]
        _check_unique_methods(operations)

        schemas, operations = _lift_nullable(_Hoister(self._schemas).run(), operations)
        _check_references(schemas, operations)

        logger.debug(
            "built model: %d schemas (%d hoisted), %d operations",
            len(schemas), len(schemas) - len(self._schemas), len(operations),
        )
        return SchemaModel(
            title=self._document.title,
            version=self._document.version,
            schemas=schemas,
            operations=tuple(operations),
        )

    # -- operations ------------------------------------------------------

    def _raw_target(self, schema: Any, referrer: str) -> dict[str, Any]:
        """Follow raw ``$ref`` pointers to the schema they designate."""
        seen: set[str] = set()
        while isinstance(schema, dict) and "$ref" in schema:
            name = ref_name(schema["$ref"])
            if name not in self._document.schemas:
                raise UnresolvedReference(name, referrer)
            if name in seen:
                break
            seen.add(name)
            schema = self._document.schemas[name]
        return schema if isinstance(schema, dict) else {}

    def _operation(self, raw: RawOperation) -> Operation:
        envelope = self._raw_target(raw.request, raw.name)
        properties = envelope.get("properties", {})
        method = _method_name(properties.get("method")) or raw.name
        stem = to_type_name(method)

        params = properties.get("params")
        request = params if isinstance(params, dict) else raw.request

        result, error = _response_branches(
            self._raw_target(raw.response, method),
            lambda schema: self._raw_target(schema, method),
        )
        response = result if result is not None else raw.response

        return Operation(
            name=method,
            request=self._named_node(request, f"{stem}Request", method),
            response=self._named_node(response, f"{stem}Response", method),
            error=self._named_node(error if error is not None else {}, f"{stem}Error", method),
            description=raw.description,
        )

    def _named_node(self, schema: dict[str, Any], fallback: str, method: str) -> SchemaNode:
        """Return a reference for an operation schema, naming it if inline."""
        node = self._parser.parse(schema, owner=method)
        if node.kind == REFERENCE:
            return node
        name = _unique(fallback, self._schemas)
        self._schemas[name] = replace(node, nullable=False)
        return reference(name, nullable=node.nullable)


def _method_name(schema: Any) -> str | None:
    if not isinstance(schema, dict):
        return None
    if isinstance(schema.get("const"), str):
        return schema["const"]
    values = schema.get("enum")
    if isinstance(values, list) and len(values) == 1 and isinstance(values[0], str):
        return values[0]
    return None


def _response_branches(envelope: dict[str, Any], resolve) -> tuple[Any, Any]:
    """Find the ``result`` and ``error`` schemas inside a response envelope."""
    result = error = None
    candidates = [envelope]
    for key in ("oneOf", "anyOf", "allOf"):
        members = envelope.get(key, [])
        if isinstance(members, list):
            candidates.extend(members)
    for candidate in candidates:
        properties = resolve(candidate).get("properties", {})
        if result is None and "result" in properties:
            result = properties["result"]
        if error is None and "error" in properties:
            error = properties["error"]
    return result, error


def _unique(name: str, taken: Mapping[str, Any]) -> str:
    if name not in taken and name not in RESERVED_NAMES:
        return name
    n = 2
    while f"{name}{n}" in taken:
        n += 1
    return f"{name}{n}"


def _check_unique_methods(operations: list[Operation]) -> None:
    seen: set[str] = set()
    for op in operations:
        if op.name in seen:
            raise MalformedDocument(f"method {op.name!r} is declared twice")
        seen.add(op.name)


def _check_references(schemas: Mapping[str, SchemaNode], operations: list[Operation]) -> None:
    for name, node in schemas.items():
        for target in references(node):
            if target not in schemas:
                raise UnresolvedReference(target, name)
    for op in operations:
        for node in (op.request, op.response, op.error):
            if node.ref not in schemas:
                raise UnresolvedReference(node.ref, op.name)


class _Hoister:
    """Give every inline object and union a top-level name."""

    def __init__(self, schemas: Mapping[str, SchemaNode]) -> None:
        self._named = schemas
        self._out: dict[str, SchemaNode] = {}

    def run(self) -> dict[str, SchemaNode]:
        for name, node in self._named.items():
            self._out[name] = node
            self._out[name] = self._top(name, node)
        return self._out

    def _taken(self) -> dict[str, Any]:
        return {**self._named, **self._out}

    def _top(self, owner: str, node: SchemaNode) -> SchemaNode:
        if node.kind == OBJECT:
            fields = tuple(
                replace(f, node=self._inline(f.node, owner + to_type_name(f.name)))
                for f in node.fields
            )
            return replace(node, fields=fields)
        if node.kind == ARRAY:
            return replace(node, items=self._inline(node.items, f"{owner}Item"))
        if node.kind == UNION:
            members = tuple(
                self._inline(member, _member_name(owner, node, index, member))
                for index, member in enumerate(node.members)
            )
            return replace(node, members=members)
        return node

    def _inline(self, node: SchemaNode | None, suggested: str) -> SchemaNode:
        if node is None:
            return primitive(UNKNOWN)
        if node.kind == ARRAY:
            return replace(node, items=self._inline(node.items, f"{suggested}Item"))
        if node.kind not in (OBJECT, UNION):
            return node
        name = _unique(suggested, self._taken())
        hoisted = replace(node, nullable=False)
        self._out[name] = hoisted
        self._out[name] = self._top(name, hoisted)
        return replace(reference(name, nullable=node.nullable), description=node.description)


def _lift_nullable(
    schemas: Mapping[str, SchemaNode],
    operations: list[Operation],
) -> tuple[dict[str, SchemaNode], list[Operation]]:
    """Move ``nullable`` from named objects onto the references to them.

    A TypedDict class cannot admit None, so a nullable object schema is
    declared as a plain object and every use of it becomes Optional.
    """
    lifted = {name for name, node in schemas.items() if node.kind == OBJECT and node.nullable}
    if not lifted:
        return dict(schemas), operations

    def lift(node: SchemaNode) -> SchemaNode:
        if node.kind == REFERENCE:
            return replace(node, nullable=True) if node.ref in lifted else node
        if node.kind == OBJECT:
            return replace(node, fields=tuple(replace(f, node=lift(f.node)) for f in node.fields))
        if node.kind == ARRAY and node.items is not None:
            return replace(node, items=lift(node.items))
        if node.kind == UNION:
            return replace(node, members=tuple(lift(m) for m in node.members))
        return node

    logger.debug("nullable objects lifted to their references: %s", ", ".join(sorted(lifted)))
    out = {
        name: lift(replace(node, nullable=False) if name in lifted else node)
        for name, node in schemas.items()
    }
    ops = [
        replace(op, request=lift(op.request), response=lift(op.response), error=lift(op.error))
        for op in operations
    ]
    return out, ops


def _member_name(owner: str, union: SchemaNode, index: int, member: SchemaNode) -> str:
    if union.is_tagged:
        return owner + to_type_name(union.tags[index])
    if member.title and _TITLE_RE.fullmatch(member.title):
        return owner + to_type_name(member.title)
    return f"{owner}Variant{index + 1}"


def build_model(document: RawDocument) -> SchemaModel:
    """Resolve a raw document into the model every emitter consumes."""
    return ModelBuilder(document).build()
