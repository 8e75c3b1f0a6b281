"""Emit discriminators.py: narrowing helpers for tagged unions.

For a tagged union ``RpcError`` the module gets::

    class RpcErrorVariants(NamedTuple):
        handler_error: Optional[schemas.RpcErrorHandlerError] = None
        ...

    def discriminate_rpc_error(value) -> RpcErrorVariants: ...

Exactly one attribute is set for a value whose tag is known; none for
anything else. The helpers read the idiomatic tag field, so they apply to
values that have already been through a validator or translate().
"""

from __future__ import annotations

import logging
from typing import Any

from .model import SchemaModel
from .naming import NameTable, to_identifier, unique_identifiers
from .rendering import literal, render

logger = logging.getLogger(__name__)


def _field_names(owner: str, tags: tuple[str, ...]) -> dict[str, str]:
    # NamedTuple fields may not start with an underscore
    attributes = unique_identifiers(owner, tags)
    return {tag: f"tag{ident}" if ident.startswith("_") else ident for tag, ident in attributes.items()}


def collect_helpers(model: SchemaModel) -> list[dict[str, Any]]:
    unions = list(model.tagged_unions())
    functions = unique_identifiers("discriminators", [name for name, _ in unions])
    helpers = []
    for name, union in unions:
        attributes = _field_names(f"{name}Variants", union.tags)
        helpers.append({
            "union": name,
            "class_name": f"{name}Variants",
            "function": f"discriminate_{functions[name]}",
            "field": literal(to_identifier(union.discriminant)),
            "variants": [
                {
                    "attribute": attributes[tag],
                    "tag": literal(tag),
                    "type": member.ref,
                }
                for tag, member in union.variants.items()
            ],
        })
    return helpers


def emit_discriminators(model: SchemaModel, names: NameTable) -> str:
    """Render the text of discriminators.py."""
    helpers = collect_helpers(model)
    logger.debug("emitting %d discriminator helpers", len(helpers))
    return render(
        "discriminators.py.j2",
        title=model.title,
        version=model.version,
        helpers=helpers,
    )
