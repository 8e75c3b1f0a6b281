"""Generation-time failures.

Every error raised here is fatal to a generator run: nothing is written
when one of them escapes the pipeline.
"""

from __future__ import annotations


class GeneratorError(Exception):
    """Base class for errors that abort artifact generation."""


class MalformedDocument(GeneratorError):
    """The input document cannot be read as a schema table plus operations."""


class UnresolvedReference(GeneratorError):
    """A ``$ref`` points at a schema that is not in the document."""

    def __init__(self, name: str, referrer: str) -> None:
        self.name = name
        self.referrer = referrer
        super().__init__(f"{referrer}: reference to unknown schema {name!r}")


class ConflictingComposition(GeneratorError):
    """``allOf`` fragments disagree on the shape of a field."""

    def __init__(self, owner: str, detail: str) -> None:
        self.owner = owner
        self.detail = detail
        super().__init__(f"{owner}: {detail}")


class FieldNameCollision(GeneratorError):
    """Two wire names normalize to the same idiomatic identifier."""

    def __init__(self, owner: str, wire_names: tuple[str, str], identifier: str) -> None:
        self.owner = owner
        self.wire_names = wire_names
        self.identifier = identifier
        first, second = wire_names
        super().__init__(
            f"{owner}: fields {first!r} and {second!r} both normalize to {identifier!r}"
        )
