"""Emit schemas.py: one static type declaration per named schema.

Objects become TypedDict classes keyed by idiomatic field names, everything
else a TypeAlias. Wire names, tag fields and union matching are attached as
pydantic ``Field`` metadata so validators.py can adapt the declarations
directly. Named types are always referred to by quoted name, so
declaration order never matters and cycles need no special casing.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

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
    SchemaModel,
    SchemaNode,
)
from .naming import NameTable, to_identifier
from .rendering import comment, docstring, literal, render

logger = logging.getLogger(__name__)

PYTHON_TYPES = {
    STRING: "str",
    INTEGER: "int",
    NUMBER: "float",
    BOOLEAN: "bool",
    BYTES: "Base64",
    NULL: "None",
    MAP: "dict[str, Any]",
}


def type_expr(node: SchemaNode, model: SchemaModel) -> str:
    """Annotation source for a node."""
    if node.kind == REFERENCE:
        expr = f'"{node.ref}"'
    elif node.kind == PRIMITIVE:
        expr = PYTHON_TYPES.get(node.primitive, "Any")
        if expr in ("Any", "None"):
            return expr
    elif node.kind == ENUM:
        expr = "Literal[" + ", ".join(literal(v) for v in node.values) + "]"
    elif node.kind == ARRAY:
        item = type_expr(node.items, model) if node.items is not None else "Any"
        expr = f"list[{item}]"
    elif node.kind == UNION:
        expr = union_expr(node, model)
    else:
        # inline objects are hoisted before emission
        expr = "dict[str, Any]"
    return f"Optional[{expr}]" if node.nullable else expr


def union_expr(node: SchemaNode, model: SchemaModel) -> str:
    members = [type_expr(m, model) for m in node.members]
    expr = "Union[" + ", ".join(members) + "]"
    distinct = {type_expr(replace(m, nullable=False), model) for m in node.members} - {"None"}
    if len(distinct) < 2:
        return expr
    if node.is_tagged and all(model.resolve(m).kind == OBJECT for m in node.members):
        field = literal(to_identifier(node.discriminant))
        return f"Annotated[{expr}, Field(discriminator={field})]"
    # first member that matches wins
    return f'Annotated[{expr}, Field(union_mode="left_to_right")]'


def _object_context(name: str, node: SchemaNode, model: SchemaModel, names: NameTable) -> dict[str, Any]:
    mapping = names[name]
    fields = []
    for f in node.fields:
        annotation = type_expr(f.node, model)
        ident = mapping.idiomatic(f.name)
        if ident != f.name:
            annotation = f"Annotated[{annotation}, Field(alias={literal(f.name)})]"
        if f.optional:
            annotation = f"NotRequired[{annotation}]"
        fields.append({
            "name": ident,
            "annotation": annotation,
            "comment": comment(f.node.description, 4),
        })
    return {
        "kind": "class",
        "name": name,
        "docstring": docstring(node.description, 4),
        "fields": fields,
    }


def _alias_context(name: str, node: SchemaNode, model: SchemaModel) -> dict[str, Any]:
    return {
        "kind": "alias",
        "name": name,
        "comment": comment(node.description),
        "annotation": type_expr(node, model),
    }


def emit_types(model: SchemaModel, names: NameTable) -> str:
    """Render the text of schemas.py."""
    declarations = []
    for name, node in model.schemas.items():
        if node.kind == OBJECT:
            declarations.append(_object_context(name, node, model, names))
        else:
            declarations.append(_alias_context(name, node, model))
    logger.debug("emitting %d type declarations", len(declarations))
    return render(
        "schemas.py.j2",
        title=model.title,
        version=model.version,
        declarations=declarations,
    )
