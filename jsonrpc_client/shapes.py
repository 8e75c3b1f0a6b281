"""Shared annotations used by generated ``schemas.py`` modules."""

from __future__ import annotations

from typing import Annotated

from pydantic import StringConstraints

BASE64_PATTERN = r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$"

# Bytes stay base64 text on both sides of the wire.
Base64 = Annotated[str, StringConstraints(pattern=BASE64_PATTERN)]
