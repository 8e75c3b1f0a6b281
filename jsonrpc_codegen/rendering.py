"""Jinja2 environment and the small text helpers shared by the emitters."""

from __future__ import annotations

import functools
import json
import textwrap
from pathlib import Path
from typing import Any

import jinja2

TEMPLATE_DIR = Path(__file__).parent / "templates"

_WRAP_WIDTH = 79


@functools.lru_cache(maxsize=None)
def environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def render(template_name: str, **context: Any) -> str:
    """Render one artifact template."""
    return environment().get_template(template_name).render(**context)


def literal(value: Any) -> str:
    """Python source for a JSON scalar (strings in double quotes)."""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def docstring(text: str | None, indent: int = 0) -> list[str]:
    """Lines of a triple-quoted docstring, or [] when there is no text."""
    if not text:
        return []
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    pad = " " * indent
    width = max(_WRAP_WIDTH - indent, 40)
    lines = textwrap.wrap(text, width=width - 6) or [""]
    if len(lines) == 1:
        single = f'{pad}"""{lines[0]}"""'
        if single.endswith('\\"""') or single.endswith('""""'):
            return [f'{pad}"""{lines[0]} """']
        return [single]
    return [f'{pad}"""{lines[0]}', *(f"{pad}{line}" for line in lines[1:]), f'{pad}"""']


def comment(text: str | None, indent: int = 0) -> list[str]:
    """Lines of a ``#`` comment block, or [] when there is no text."""
    if not text:
        return []
    pad = " " * indent
    width = max(_WRAP_WIDTH - indent - 2, 40)
    return [f"{pad}# {line}" for line in textwrap.wrap(text, width=width)]
