"""Load and parse the JSON-RPC OpenAPI document.

Reads spec/openapi.json (or ``JSONRPC_CODEGEN_SPEC``) and extracts the
named schema table plus one raw operation per path. Nothing here checks
that references resolve; that is the model builder's job.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import MalformedDocument

logger = logging.getLogger(__name__)

SPEC_PATH = Path(os.environ.get(
    "JSONRPC_CODEGEN_SPEC",
    Path(__file__).parent.parent / "spec" / "openapi.json",
))

SCHEMA_REF_PREFIX = "#/components/schemas/"

# Operations are posted; other verbs are only used when a path has no post.
_METHOD_PREFERENCE = ("post", "get", "put", "patch", "delete")
_JSON_CONTENT_TYPES = ("application/json", "text/json")


@dataclass(frozen=True)
class RawOperation:
    name: str
    path: str
    request: dict[str, Any]
    response: dict[str, Any]
    description: str | None = None


@dataclass(frozen=True)
class RawDocument:
    title: str
    version: str
    schemas: dict[str, Any]
    operations: list[RawOperation] = field(default_factory=list)


def load_spec(path: Path | None = None) -> bytes:
    """Read the OpenAPI document from disk."""
    spec_file = path or SPEC_PATH
    logger.debug("reading schema document from %s", spec_file)
    with open(spec_file, "rb") as f:
        return f.read()


def load_document(path: Path | None = None) -> RawDocument:
    return parse_document(load_spec(path))


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    paths = spec.get("paths", {})
    if not isinstance(paths, dict):
        raise MalformedDocument("'paths' must be an object")
    return paths


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    components = spec.get("components")
    if not isinstance(components, dict):
        raise MalformedDocument("document has no 'components' table")
    schemas = components.get("schemas")
    if not isinstance(schemas, dict):
        raise MalformedDocument("document has no 'components.schemas' table")
    for name, schema in schemas.items():
        if not isinstance(schema, (dict, bool)):
            raise MalformedDocument(f"schema {name!r} is not an object")
    return schemas


def ref_name(ref: str) -> str:
    """Return the schema name a ``$ref`` pointer designates."""
    if ref.startswith(SCHEMA_REF_PREFIX):
        return ref[len(SCHEMA_REF_PREFIX):]
    return ref.rsplit("/", 1)[-1]


def _json_schema(container: dict[str, Any]) -> dict[str, Any] | None:
    content = container.get("content", {})
    if not isinstance(content, dict):
        return None
    for ct in _JSON_CONTENT_TYPES:
        if ct in content:
            entry = content[ct]
            schema = entry.get("schema") if isinstance(entry, dict) else None
            if isinstance(schema, dict):
                return schema
    return None


def _operation_name(path: str, operation: dict[str, Any]) -> str:
    return operation.get("operationId") or path.strip("/").replace("/", "_")


def parse_operations(spec: dict[str, Any]) -> list[RawOperation]:
    """Extract one operation per path, in document order."""
    operations = []
    for path, path_item in get_paths(spec).items():
        if not isinstance(path_item, dict):
            raise MalformedDocument(f"path {path!r} is not an object")
        method = next((m for m in _METHOD_PREFERENCE if m in path_item), None)
        if method is None:
            continue
        operation = path_item[method]
        if not isinstance(operation, dict):
            raise MalformedDocument(f"{method} {path!r} is not an object")
        name = _operation_name(path, operation)

        request = _json_schema(operation.get("requestBody") or {})
        if request is None:
            raise MalformedDocument(f"operation {name!r} has no JSON request schema")

        responses = operation.get("responses") or {}
        success = responses.get("200", responses.get("201")) or {}
        response = _json_schema(success)
        if response is None:
            raise MalformedDocument(f"operation {name!r} has no JSON response schema")

        operations.append(RawOperation(
            name=name,
            path=path,
            request=request,
            response=response,
            description=operation.get("description") or operation.get("summary"),
        ))
    return operations


def parse_document(data: bytes | str) -> RawDocument:
    """Parse document bytes into the raw schema table and operation list."""
    try:
        spec = json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedDocument(f"document is not valid JSON: {exc}") from exc
    if not isinstance(spec, dict):
        raise MalformedDocument("document root must be an object")

    info = spec.get("info", {}) if isinstance(spec.get("info"), dict) else {}
    document = RawDocument(
        title=str(info.get("title", "")),
        version=str(info.get("version", "unknown")),
        schemas=get_schemas(spec),
        operations=parse_operations(spec),
    )
    logger.debug(
        "loaded %d schemas and %d operations",
        len(document.schemas), len(document.operations),
    )
    return document
