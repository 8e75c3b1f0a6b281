"""Emit methods.py: the method registry.

Every operation becomes one module-level ``Method``. When an operation's
request is a tagged union, each tag also gets its own variant method
(``query`` -> ``query_view_account``, ...) whose request type is the
selected variant and which sets the tag itself.
"""

from __future__ import annotations

import logging
from typing import Any

from jsonrpc_client.client import RpcClient

from .errors import FieldNameCollision
from .model import Operation, SchemaModel, SchemaNode
from .naming import NameTable, to_identifier
from .rendering import literal, render

logger = logging.getLogger(__name__)

# names methods.py binds itself
MODULE_NAMES = ("ALL_METHODS", "METHODS", "METHOD_VARIANTS", "MappingProxyType", "Method", "_validators")

# attributes every client already has
CLIENT_NAMES = tuple(sorted(name for name in dir(RpcClient) if not name.startswith("__")))


def _validator_ref(node: SchemaNode) -> str:
    expr = f"_validators.VALIDATORS[{literal(node.ref)}]"
    return f"{expr}.or_none()" if node.nullable else expr


def _method_context(op: Operation, attribute: str, request: SchemaNode, tag: tuple[str, str] | None = None) -> dict[str, Any]:
    return {
        "attribute": attribute,
        "key": literal(attribute),
        "name": literal(op.name),
        "request_type": literal(request.ref),
        "response_type": literal(op.response_type),
        "error_type": literal(op.error_type),
        "request": _validator_ref(request),
        "response": _validator_ref(op.response),
        "error": _validator_ref(op.error),
        "tag": f"({literal(tag[0])}, {literal(tag[1])})" if tag else None,
        "description": literal(op.description) if op.description else None,
    }


def collect_methods(model: SchemaModel) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Build (methods, variants) template contexts, checking attribute names."""
    methods = []
    variants = []
    taken: dict[str, str] = {name: name for name in (*MODULE_NAMES, *CLIENT_NAMES)}

    def claim(source: str) -> str:
        attribute = to_identifier(source)
        if attribute in taken:
            raise FieldNameCollision("methods", (taken[attribute], source), attribute)
        taken[attribute] = source
        return attribute

    for op in model.operations:
        methods.append(_method_context(op, claim(op.name), op.request))

    for op in model.operations:
        union = model.resolve(op.request)
        if not union.is_tagged:
            continue
        field = to_identifier(union.discriminant)
        for tag, member in union.variants.items():
            attribute = claim(f"{op.name}_{tag}")
            variants.append(_method_context(op, attribute, member, (field, tag)))
    return methods, variants


def emit_methods(model: SchemaModel, names: NameTable) -> str:
    """Render the text of methods.py."""
    methods, variants = collect_methods(model)
    logger.debug("emitting %d methods and %d variants", len(methods), len(variants))
    return render(
        "methods.py.j2",
        title=model.title,
        version=model.version,
        methods=methods,
        variants=variants,
    )
