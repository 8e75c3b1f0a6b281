"""Convert wire names to Python identifiers.

Field names are split into tokens at separators and case transitions,
then reassembled as snake_case (fields, methods) or PascalCase (types):

  block_hash                    -> block_hash
  latestBlockHeight             -> latest_block_height
  EXPERIMENTAL_validators_ordered -> experimental_validators_ordered
  HTTPStatus                    -> http_status
  near-final                    -> near_final
  V1                            -> v1
  from                          -> from_
  0x                            -> _0x

The rule is pure, so the same wire name always gets the same identifier.
build_name_table checks the reverse: within an object and across the whole
package, an identifier stands for exactly one wire name.
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from .errors import FieldNameCollision
from .model import SchemaModel

logger = logging.getLogger(__name__)


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _tokens(name: str) -> list[str]:
    """Split a wire name into lower-case tokens."""
    tokens = []
    for chunk in re.split(r"[^A-Za-z0-9]+", name):
        if chunk:
            tokens.extend(t for t in _camel_to_snake(chunk).split("_") if t)
    return tokens


def to_identifier(name: str) -> str:
    """Return the snake_case identifier for a wire name."""
    ident = "_".join(_tokens(name))
    if not ident:
        return "_"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


def to_type_name(name: str) -> str:
    """Return the PascalCase type name for a wire name or tag value."""
    name = "".join(t.capitalize() for t in _tokens(name))
    if not name:
        return "Anonymous"
    if name[0].isdigit():
        name = f"_{name}"
    return name


def unique_identifiers(owner: str, names: Iterable[str]) -> dict[str, str]:
    """Map each wire name to its identifier, failing on collisions."""
    mapping: dict[str, str] = {}
    taken: dict[str, str] = {}
    for wire in names:
        ident = to_identifier(wire)
        if ident in taken and taken[ident] != wire:
            raise FieldNameCollision(owner, (taken[ident], wire), ident)
        taken[ident] = wire
        mapping[wire] = ident
    return mapping


@dataclass(frozen=True)
class NameMapping:
    """Wire <-> idiomatic field names for one object type."""

    type_name: str
    wire_to_idiomatic: Mapping[str, str]
    idiomatic_to_wire: Mapping[str, str]

    def idiomatic(self, wire: str) -> str:
        return self.wire_to_idiomatic[wire]

    def wire(self, idiomatic: str) -> str:
        return self.idiomatic_to_wire[idiomatic]


@dataclass(frozen=True)
class NameTable:
    """Per-object name mappings plus the package-wide key table.

    ``keys`` maps every idiomatic field name to its single wire name; the
    runtime renames payload keys through it without knowing their types.
    """

    mappings: Mapping[str, NameMapping]
    keys: Mapping[str, str] = field(default_factory=dict)

    def renamed_keys(self) -> dict[str, str]:
        """Wire -> idiomatic for the names that differ."""
        return {wire: ident for ident, wire in self.keys.items() if wire != ident}

    def __getitem__(self, type_name: str) -> NameMapping:
        return self.mappings[type_name]

    def __contains__(self, type_name: object) -> bool:
        return type_name in self.mappings

    def __iter__(self):
        return iter(self.mappings)

    def __len__(self) -> int:
        return len(self.mappings)


def build_name_mapping(type_name: str, wire_names: Iterable[str]) -> NameMapping:
    forward = unique_identifiers(type_name, wire_names)
    backward = {ident: wire for wire, ident in forward.items()}
    return NameMapping(
        type_name=type_name,
        wire_to_idiomatic=MappingProxyType(forward),
        idiomatic_to_wire=MappingProxyType(backward),
    )


def build_name_table(model: SchemaModel) -> NameTable:
    """Build the per-object field name bijections for the whole model."""
    mappings = {
        name: build_name_mapping(name, (f.name for f in node.fields))
        for name, node in model.objects()
    }
    logger.debug("normalized field names for %d object types", len(mappings))
    return NameTable(MappingProxyType(mappings), MappingProxyType(_package_keys(mappings)))


def _package_keys(mappings: Mapping[str, NameMapping]) -> dict[str, str]:
    """Idiomatic -> wire over all objects; one wire name per identifier."""
    owners: dict[str, tuple[str, str]] = {}
    for type_name, mapping in mappings.items():
        for wire, ident in mapping.wire_to_idiomatic.items():
            seen = owners.get(ident)
            if seen is not None and seen[1] != wire:
                raise FieldNameCollision(f"{seen[0]}/{type_name}", (seen[1], wire), ident)
            owners[ident] = (type_name, wire)
    return {ident: wire for ident, (_, wire) in owners.items()}
