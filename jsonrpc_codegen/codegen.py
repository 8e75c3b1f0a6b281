"""Render every artifact and write the generated package.

Rendering happens entirely in memory first; files are then written to
temporary siblings and moved into place, so a failed run never leaves a
half-updated package behind.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .emit_discriminators import emit_discriminators
from .emit_methods import emit_methods
from .emit_names import emit_names
from .emit_types import emit_types
from .emit_validators import emit_validators
from .loader import RawDocument, load_document
from .model import SchemaModel
from .model_builder import build_model
from .naming import build_name_table
from .rendering import literal, render

logger = logging.getLogger(__name__)

OUTPUT_DIR = Path(os.environ.get(
    "JSONRPC_CODEGEN_OUTPUT",
    Path(__file__).parent.parent / "generated",
))

ARTIFACTS = (
    "schemas.py",
    "validators.py",
    "methods.py",
    "mapped_properties.py",
    "discriminators.py",
    "__init__.py",
)


def generate_artifacts(model: SchemaModel) -> dict[str, str]:
    """Render all artifact texts for a model, keyed by file name."""
    names = build_name_table(model)
    artifacts = {
        "schemas.py": emit_types(model, names),
        "validators.py": emit_validators(model, names),
        "methods.py": emit_methods(model, names),
        "mapped_properties.py": emit_names(model, names),
        "discriminators.py": emit_discriminators(model, names),
        "__init__.py": render(
            "__init__.py.j2",
            title=model.title,
            version=model.version,
            title_literal=literal(model.title),
            version_literal=literal(model.version),
        ),
    }
    return {name: artifacts[name] for name in ARTIFACTS}


def write_artifacts(artifacts: dict[str, str], output_dir: Path) -> list[Path]:
    """Write rendered artifacts into ``output_dir`` and return their paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    staged: list[tuple[Path, Path]] = []
    try:
        for filename, text in artifacts.items():
            target = output_dir / filename
            temp = target.with_name(f".{filename}.tmp")
            temp.write_text(text, encoding="utf-8")
            staged.append((temp, target))
    except OSError:
        for temp, _ in staged:
            temp.unlink(missing_ok=True)
        raise

    for temp, target in staged:
        os.replace(temp, target)
        logger.debug("wrote %s", target)
    return [target for _, target in staged]


def generate(document: RawDocument | None = None, output_dir: Path | None = None) -> list[Path]:
    """Load, build, render and write; the whole pipeline."""
    if document is None:
        document = load_document()
    output_dir = Path(output_dir) if output_dir is not None else OUTPUT_DIR

    model = build_model(document)
    artifacts = generate_artifacts(model)
    paths = write_artifacts(artifacts, output_dir)

    logger.info("wrote %d artifacts to %s", len(paths), output_dir)
    print(
        f"Generated {output_dir} ({len(model.schemas)} types,"
        f" {len(model.operations)} methods)"
    )
    return paths
