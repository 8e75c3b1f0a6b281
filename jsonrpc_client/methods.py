"""Method records bound by generated ``methods.py`` modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .validation import Validator


@dataclass(frozen=True)
class Method:
    """One callable RPC method and the types it exchanges.

    ``name`` is the JSON-RPC method sent on the wire and ``attribute`` the
    name the client exposes it under. Variant methods share ``name`` with
    their parent and carry ``tag`` (idiomatic tag field, tag value), which
    the client sets on every request.
    """

    attribute: str
    name: str
    request_type: str
    response_type: str
    error_type: str
    request: Validator
    response: Validator
    error: Validator
    tag: tuple[str, str] | None = None
    description: str | None = None

    def prepare(self, request: Any) -> Any:
        """Apply the variant tag, if any, to an idiomatic request value."""
        if self.tag is None:
            return request
        field, value = self.tag
        if request is None:
            return {field: value}
        if isinstance(request, dict):
            return {**request, field: value}
        return request
