"""
Code generation helpers.

This module contains:
- render (``{{name}}`` placeholder substitution)
- quote / literal (escaping of values substituted into generated code)
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any

from ..errors import MissingParameterError

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def render(template: str, params: Mapping[str, Any]) -> str:
    """Replace every ``{{name}}`` in *template* with ``str(params[name])``.

    Substituted values are inserted as-is. Anything derived from user input must
    already have gone through :func:`quote` or :func:`literal`.
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in params:
            raise MissingParameterError(name, template)
        return str(params[name])

    return _PLACEHOLDER.sub(_substitute, template)


def placeholders(template: str) -> set[str]:
    return set(_PLACEHOLDER.findall(template))


def quote(value: str) -> str:
    """Return *value* as a double-quoted string literal of the remote dialect."""
    if not isinstance(value, str):
        raise TypeError(f"quote() expects str, got {type(value).__name__}")
    # JSON string escaping is a valid JavaScript string literal; ensure_ascii
    # also escapes U+2028/U+2029, which older JS engines treat as line breaks.
    return json.dumps(value, ensure_ascii=True)


def literal(value: Any) -> str:
    """Render a plain Python value as a remote-dialect literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Cannot render non-finite float {value!r} as a literal")
        return repr(value)
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(literal(v) for v in value) + "]"
    if isinstance(value, Mapping):
        items = []
        for key, v in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Literal object keys must be str, got {type(key).__name__}")
            items.append(f"{quote(key)}:{literal(v)}")
        return "{" + ",".join(items) + "}"
    raise TypeError(f"Cannot render {type(value).__name__} as a literal")
