"""
Canonical string form of signed structures.

Both signatures in a policy bundle are computed over a canonical JSON
rendering of part of the bundle:

  - object keys sorted lexicographically at every level
  - no insignificant whitespace
  - absent optional fields omitted (never rendered as ``null``)
  - non-ASCII characters emitted as UTF-8
  - ``<``, ``>``, ``&``, U+2028 and U+2029 escaped as ``\\uXXXX``, the way
    the signing services' JSON encoder writes them

The result depends only on the data, never on the order fields happened
to arrive in or were declared.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_ESCAPE_TABLE = str.maketrans(_ESCAPES)


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


def to_canonical_string(value: BaseModel | dict[str, Any]) -> str:
    """Render a model or mapping in canonical form."""
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True, exclude_none=True)
    text = json.dumps(
        _prune(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    # The escaped characters cannot appear in JSON syntax outside strings
    return text.translate(_ESCAPE_TABLE)
