"""Emit validators.py: one runtime validator per named schema.

Each declaration in schemas.py is wrapped in a pydantic ``TypeAdapter`` and
registered in ``VALIDATORS`` under its schema name. Every declaration is
imported, so forward references between them (cyclic ones included)
resolve when the adapters are built.
"""

from __future__ import annotations

import logging

from .model import SchemaModel
from .naming import NameTable
from .rendering import literal, render

logger = logging.getLogger(__name__)


def emit_validators(model: SchemaModel, names: NameTable) -> str:
    """Render the text of validators.py."""
    declarations = [{"name": name, "key": literal(name)} for name in model.schemas]
    logger.debug("emitting %d validators", len(declarations))
    return render(
        "validators.py.j2",
        title=model.title,
        version=model.version,
        declarations=declarations,
    )
