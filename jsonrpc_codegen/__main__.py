"""Entry point: python -m jsonrpc_codegen [SPEC] [OUTPUT_DIR]

Reads spec/openapi.json, generates the client package into generated/.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from .codegen import generate
from .errors import GeneratorError
from .loader import load_document

logger = logging.getLogger("jsonrpc_codegen")


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    logging.basicConfig(
        level=os.environ.get("JSONRPC_CODEGEN_LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    spec_path = Path(args[0]) if len(args) > 0 else None
    output_dir = Path(args[1]) if len(args) > 1 else None
    try:
        generate(load_document(spec_path), output_dir)
    except GeneratorError as exc:
        logger.error("generation failed: %s", exc)
        return 1
    except OSError as exc:
        logger.error("cannot read or write files: %s", exc)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
