"""Shared fixtures: the sample NEAR document, its model, and generated packages.

Generated packages are written under a temporary directory and imported
under a unique package name, so tests can generate as many small
documents as they like without clobbering each other's modules.
"""

from __future__ import annotations

import importlib
import itertools
import json
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable

import pytest

from jsonrpc_codegen.codegen import generate_artifacts, write_artifacts
from jsonrpc_codegen.loader import load_document, parse_document
from jsonrpc_codegen.model_builder import build_model

SPEC_PATH = Path(__file__).parent.parent / "spec" / "openapi.json"

_MODULES = ("schemas", "validators", "methods", "mapped_properties", "discriminators")
_package_ids = itertools.count()


# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------

def ref(name: str) -> dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def make_document(
    schemas: dict[str, Any],
    methods: dict[str, tuple[dict[str, Any], dict[str, Any]]] | None = None,
) -> dict[str, Any]:
    """Build an OpenAPI document in the JSON-RPC envelope layout.

    ``methods`` maps a method name to its (params schema, result schema).
    Errors are free-form objects unless the document defines ``RpcError``.
    """
    error = ref("RpcError") if "RpcError" in schemas else {"type": "object"}
    paths = {}
    for name, (params, result) in (methods or {}).items():
        request = {
            "type": "object",
            "properties": {
                "id": {"type": "string"},
                "jsonrpc": {"type": "string"},
                "method": {"type": "string", "enum": [name]},
                "params": params,
            },
            "required": ["id", "jsonrpc", "method", "params"],
        }
        response = {
            "oneOf": [
                {"type": "object", "properties": {"result": result}, "required": ["result"]},
                {"type": "object", "properties": {"error": error}, "required": ["error"]},
            ],
        }
        paths[f"/{name}"] = {
            "post": {
                "operationId": name,
                "requestBody": {"content": {"application/json": {"schema": request}}},
                "responses": {
                    "200": {"description": "", "content": {"application/json": {"schema": response}}},
                },
            },
        }
    return {
        "openapi": "3.0.0",
        "info": {"title": "Test API", "version": "0.0.1"},
        "paths": paths,
        "components": {"schemas": schemas},
    }


def import_generated(root: Path, package: str) -> SimpleNamespace:
    """Import every module of a generated package written under ``root``."""
    importlib.invalidate_caches()
    sys.path.insert(0, str(root))
    try:
        modules = {name: importlib.import_module(f"{package}.{name}") for name in _MODULES}
        modules["package"] = importlib.import_module(package)
    finally:
        sys.path.remove(str(root))
    return SimpleNamespace(**modules)


# ---------------------------------------------------------------------------
# Sample document
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def near_document():
    return load_document(SPEC_PATH)


@pytest.fixture(scope="session")
def near_model(near_document):
    return build_model(near_document)


@pytest.fixture(scope="session")
def near(tmp_path_factory, near_model) -> SimpleNamespace:
    """The sample document generated and imported as ``near_client``."""
    root = tmp_path_factory.mktemp("generated")
    write_artifacts(generate_artifacts(near_model), root / "near_client")
    return import_generated(root, "near_client")


@pytest.fixture
def generate_package(tmp_path) -> Callable[[dict[str, Any]], SimpleNamespace]:
    """Return a callable that generates and imports a package for a document."""
    def _generate(document: dict[str, Any]) -> SimpleNamespace:
        package = f"generated_{next(_package_ids)}"
        model = build_model(parse_document(json.dumps(document)))
        write_artifacts(generate_artifacts(model), tmp_path / package)
        return import_generated(tmp_path, package)
    return _generate
