"""Emit mapped_properties.py: the field name tables."""

from __future__ import annotations

from .model import SchemaModel
from .naming import NameTable
from .rendering import literal, render


def emit_names(model: SchemaModel, names: NameTable) -> str:
    tables = [
        {
            "name": literal(type_name),
            "fields": [
                (literal(wire), literal(ident))
                for wire, ident in names[type_name].wire_to_idiomatic.items()
            ],
        }
        for type_name in names
    ]
    keys = [(literal(wire), literal(ident)) for wire, ident in names.renamed_keys().items()]
    return render(
        "mapped_properties.py.j2",
        title=model.title,
        version=model.version,
        tables=tables,
        keys=keys,
    )
