"""JSON output of package managers, read with a text-or-empty field policy."""

from __future__ import annotations

import json
from typing import Any

from ort_analyzer.exceptions import ParseError


def parse_json(content: str) -> Any:
    """Parse *content*, raising ParseError with the offending line on failure."""
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        lines = content.splitlines()
        fragment = lines[e.lineno - 1].strip()[:200] if 0 < e.lineno <= len(lines) else None
        raise ParseError(f"invalid JSON: {e.msg}", line=e.lineno, fragment=fragment) from e


def text_or_empty(node: Any, key: str) -> str:
    """Return ``node[key]`` as text; absent, null or non-scalar values give ``""``."""
    if not isinstance(node, dict):
        return ""
    value = node.get(key)
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def list_or_empty(node: Any, key: str) -> list[Any]:
    """Return ``node[key]`` as a list; a scalar is wrapped, absent or null gives ``[]``."""
    if not isinstance(node, dict):
        return []
    value = node.get(key)
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def texts_or_empty(node: Any, key: str) -> list[str]:
    """Like :func:`list_or_empty`, keeping only non-empty textual entries."""
    result = []
    for item in list_or_empty(node, key):
        if item is None or isinstance(item, (dict, list)):
            continue
        text = str(item)
        if text:
            result.append(text)
    return result
