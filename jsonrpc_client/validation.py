"""Validators used by generated ``validators.py`` modules.

Every generated schema becomes one :class:`Validator` wrapping a pydantic
``TypeAdapter`` over the declaration in ``schemas.py``. A validator reads a
payload in one of two directions:

- ``Direction.FROM_WIRE``: reads wire field names, produces idiomatic ones
  (responses and errors coming back from the node);
- ``Direction.TO_WIRE``: reads idiomatic field names, produces wire ones
  (requests on their way out).

Checking is strict JSON typing: no coercion between strings, numbers and
booleans. Checked payloads keep only declared object keys.

:meth:`Validator.translate` renames keys without checking anything, using
the package-wide :class:`KeyMap`, so a payload that would fail validation
is still renamed the same way as one that passes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, NamedTuple

import pydantic

from .errors import Issue, ValidationError


class Direction(str, enum.Enum):
    FROM_WIRE = "from_wire"
    TO_WIRE = "to_wire"


class Outcome(NamedTuple):
    value: Any = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class KeyMap:
    """Wire <-> idiomatic object keys shared by every type of a package."""

    wire_to_idiomatic: Mapping[str, str] = field(default_factory=dict)
    idiomatic_to_wire: Mapping[str, str] = field(default_factory=dict)

    def table(self, direction: Direction) -> Mapping[str, str]:
        if direction is Direction.FROM_WIRE:
            return self.wire_to_idiomatic
        return self.idiomatic_to_wire

    def rename(self, value: Any, direction: Direction) -> Any:
        """Rename every object key in ``value`` for ``direction``."""
        table = self.table(direction)

        def walk(item: Any) -> Any:
            if isinstance(item, dict):
                return {table.get(key, key): walk(inner) for key, inner in item.items()}
            if isinstance(item, (list, tuple)):
                return [walk(inner) for inner in item]
            return item

        return walk(value)

    def input_key(self, key: str, direction: Direction) -> str:
        """The spelling of ``key`` used by payloads read in ``direction``."""
        if direction is Direction.FROM_WIRE:
            return self.idiomatic_to_wire.get(key, key)
        return self.wire_to_idiomatic.get(key, key)


class Validator:
    """Direction-aware checks for one named schema."""

    def __init__(
        self,
        name: str,
        adapter: pydantic.TypeAdapter[Any],
        keys: KeyMap | None = None,
        allows_none: bool = False,
    ) -> None:
        self.name = name
        self.adapter = adapter
        self.keys = keys or KeyMap()
        self.allows_none = allows_none

    def __repr__(self) -> str:
        suffix = " or null" if self.allows_none else ""
        return f"<Validator {self.name}{suffix}>"

    def or_none(self) -> "Validator":
        """The same validator, also accepting ``None``."""
        return Validator(self.name, self.adapter, self.keys, allows_none=True)

    def validate(
        self,
        value: Any,
        direction: Direction = Direction.FROM_WIRE,
        collect_all: bool = False,
    ) -> Any:
        """Return the renamed, checked value or raise :class:`ValidationError`.

        Only the first mismatch is reported unless ``collect_all`` is set.
        """
        direction = Direction(direction)
        if value is None and self.allows_none:
            return None
        from_wire = direction is Direction.FROM_WIRE
        try:
            checked = self.adapter.validate_python(
                value, strict=True, by_alias=from_wire, by_name=not from_wire,
            )
        except pydantic.ValidationError as exc:
            raise self._error(exc, value, direction, collect_all) from exc
        # free-form values are renamed the same way unchecked payloads are
        return self.keys.rename(checked, direction)

    def check(
        self,
        value: Any,
        direction: Direction = Direction.FROM_WIRE,
        collect_all: bool = False,
    ) -> Outcome:
        """Like :meth:`validate` but returns the error instead of raising."""
        try:
            return Outcome(self.validate(value, direction, collect_all))
        except ValidationError as exc:
            return Outcome(error=exc)

    def translate(self, value: Any, direction: Direction = Direction.FROM_WIRE) -> Any:
        """Rename keys for ``direction`` without checking anything."""
        return self.keys.rename(value, Direction(direction))

    def accepts(self, value: Any, direction: Direction = Direction.FROM_WIRE) -> bool:
        return self.check(value, direction).ok

    def _error(
        self,
        exc: pydantic.ValidationError,
        value: Any,
        direction: Direction,
        collect_all: bool,
    ) -> ValidationError:
        errors = exc.errors(include_url=False)
        located = [_locate(error, value, self.keys, direction) for error in errors]
        if not collect_all:
            chosen = _first_failure(errors, [labels for _, labels in located])
            errors, located = [errors[chosen]], [located[chosen]]
        issues = [
            Issue(_pointer(tokens), _expected(error), _actual(error))
            for error, (tokens, _) in zip(errors, located)
        ]
        return ValidationError(issues)


_TAG_ERRORS = ("union_tag_invalid", "union_tag_not_found")


def _locate(
    error: Mapping[str, Any],
    value: Any,
    keys: KeyMap,
    direction: Direction,
) -> tuple[list[str], set[int]]:
    """Split a pydantic location into payload path tokens and union labels.

    Segments that do not address anything in the payload name the union
    member pydantic tried; their indexes are returned as labels.
    """
    loc = error["loc"]
    tokens: list[str] = []
    labels: set[int] = set()
    current = value
    for index, segment in enumerate(loc):
        if isinstance(current, dict) and isinstance(segment, str):
            key = segment if segment in current else keys.input_key(segment, direction)
            if key in current:
                tokens.append(key)
                current = current[key]
                continue
            if index == len(loc) - 1:
                tokens.append(key)
                continue
        elif isinstance(current, list) and isinstance(segment, int) and 0 <= segment < len(current):
            tokens.append(str(segment))
            current = current[segment]
            continue
        labels.add(index)
    if error["type"] in _TAG_ERRORS:
        discriminator = str(error.get("ctx", {}).get("discriminator", "")).strip("'")
        if discriminator:
            tokens.append(keys.input_key(discriminator, direction))
    return tokens, labels


def _first_failure(errors: list[Mapping[str, Any]], labels: list[set[int]]) -> int:
    """Index of the error to report in first-failure mode.

    Follows the first error down; where it went through an untagged union,
    switches to the last member pydantic tried.
    """
    group = list(range(len(errors)))
    chosen = 0
    start = 0
    while True:
        loc = errors[chosen]["loc"]
        branch = min((i for i in labels[chosen] if i >= start), default=None)
        if branch is None:
            return chosen
        prefix = loc[:branch]
        group = [k for k in group if len(errors[k]["loc"]) > branch and errors[k]["loc"][:branch] == prefix]
        member = errors[group[-1]]["loc"][branch]
        group = [k for k in group if errors[k]["loc"][branch] == member]
        chosen = group[0]
        start = branch + 1


def _pointer(tokens: list[str]) -> str:
    if not tokens:
        return "/"
    return "".join("/" + token.replace("~", "~0").replace("/", "~1") for token in tokens)


def _expected(error: Mapping[str, Any]) -> str:
    kind = error["type"]
    ctx = error.get("ctx", {})
    if kind == "missing":
        return "a value"
    if kind in _TAG_ERRORS:
        return f"one of {ctx['expected_tags']}" if "expected_tags" in ctx else "a tag"
    message = error["msg"]
    prefix = "Input should be "
    return message[len(prefix):] if message.startswith(prefix) else message


def _actual(error: Mapping[str, Any]) -> str:
    kind = error["type"]
    if kind in ("missing", "union_tag_not_found"):
        return "missing"
    if kind == "union_tag_invalid":
        return describe_value(error.get("ctx", {}).get("tag"))
    return describe_value(error.get("input"))


def describe_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return f"boolean {value!r}"
    if isinstance(value, int):
        return f"integer {value!r}"
    if isinstance(value, float):
        return f"number {value!r}"
    if isinstance(value, str):
        text = value if len(value) <= 32 else value[:29] + "..."
        return f"string {text!r}"
    if isinstance(value, (list, tuple)):
        return f"array of {len(value)}"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
