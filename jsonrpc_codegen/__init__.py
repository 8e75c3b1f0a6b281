"""Generate typed Python client packages from JSON-RPC OpenAPI documents."""

from .codegen import generate, generate_artifacts, write_artifacts
from .errors import (
    ConflictingComposition,
    FieldNameCollision,
    GeneratorError,
    MalformedDocument,
    UnresolvedReference,
)
from .loader import load_document, parse_document
from .model_builder import build_model
from .naming import build_name_table, to_identifier

__all__ = [
    "ConflictingComposition",
    "FieldNameCollision",
    "GeneratorError",
    "MalformedDocument",
    "UnresolvedReference",
    "build_model",
    "build_name_table",
    "generate",
    "generate_artifacts",
    "load_document",
    "parse_document",
    "to_identifier",
    "write_artifacts",
]
