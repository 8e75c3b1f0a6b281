"""Structured failures surfaced by generated validators and the client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Issue:
    """One mismatch: where it happened, what was expected, what was found."""

    path: str
    expected: str
    actual: str

    def __str__(self) -> str:
        return f"at {self.path}: expected {self.expected}, got {self.actual}"


class ValidationError(Exception):
    """A payload does not match its schema.

    ``issues`` holds every mismatch that was collected; in the default
    first-failure mode it has exactly one entry. ``path``, ``expected`` and
    ``actual`` describe the first one.
    """

    def __init__(self, issues: list[Issue]) -> None:
        if not issues:
            raise ValueError("ValidationError needs at least one issue")
        self.issues = list(issues)
        super().__init__("; ".join(str(issue) for issue in self.issues))

    @property
    def path(self) -> str:
        return self.issues[0].path

    @property
    def expected(self) -> str:
        return self.issues[0].expected

    @property
    def actual(self) -> str:
        return self.issues[0].actual

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues": [
                {"path": i.path, "expected": i.expected, "actual": i.actual}
                for i in self.issues
            ],
        }


class TransportError(Exception):
    """The transporter could not obtain a JSON-RPC reply."""
