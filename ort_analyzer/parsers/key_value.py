"""Indentation based ``key: value`` blocks as used by Cabal package descriptions.

Example (from a ``.cabal`` file):

    name:            transformers-compat
    license:         BSD3
    description:
      This package includes backported versions of types.
      .
      It has a second paragraph.

    source-repository head
      type: git
      location: https://github.com/ekmett/transformers-compat.git

parses to::

    {
        "name": "transformers-compat",
        "license": "BSD3",
        "description": "This package includes backported versions of types.\\n\\nIt has a second paragraph.",
        "source-repository-head-type": "git",
        "source-repository-head-location": "https://github.com/ekmett/transformers-compat.git",
    }
"""

from __future__ import annotations

from collections.abc import Iterable


class _Lines:
    """Bidirectional cursor over a list of lines."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._pos = 0

    def has_next(self) -> bool:
        return self._pos < len(self._lines)

    def next(self) -> str:
        line = self._lines[self._pos]
        self._pos += 1
        return line

    def previous(self) -> None:
        self._pos -= 1


def _indentation(line: str) -> int:
    return len(line) - len(line.lstrip())


def _is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("--")


def _parse_block(lines: _Lines, key_prefix: str) -> dict[str, str]:
    indentation: int | None = None
    result: dict[str, str] = {}

    while lines.has_next():
        line = lines.next()

        if _is_skippable(line):
            continue

        if indentation is None:
            indentation = _indentation(line)
        elif indentation != _indentation(line):
            # A change of indentation ends this block.
            lines.previous()
            break

        key, sep, value = line.partition(":")
        key = key.strip()
        value = value.strip()

        if not sep:
            # "source-repository head" opens a nested block.
            nested_prefix = key_prefix + key.replace(" ", "-") + "-"
            result.update(_parse_block(lines, nested_prefix))
            continue

        full_key = (key_prefix + key).lower()
        value_lines: list[str] = []
        is_block = False
        if value == "{":
            is_block = True
        elif value:
            value_lines.append(value)

        while lines.has_next():
            value_line = lines.next()

            if is_block:
                if value_line.strip() == "}":
                    break
            elif value_line.strip() and _indentation(value_line) <= indentation:
                lines.previous()
                break

            value_line = value_line.strip()
            if value_line == ".":
                # A lone dot marks an empty line inside a multi-line value.
                if value_lines:
                    value_lines.append("")
            else:
                value_lines.append(value_line)

        while value_lines and not value_lines[0].strip():
            value_lines.pop(0)
        while value_lines and not value_lines[-1].strip():
            value_lines.pop()

        result[full_key] = "\n".join(value_lines)

    return result


def parse_key_value(content: str | Iterable[str]) -> dict[str, str]:
    """Parse *content* (text or lines) into a flat dict of lower-cased keys."""
    if isinstance(content, str):
        lines = content.splitlines()
    else:
        lines = [line.rstrip("\r\n") for line in content]
    return _parse_block(_Lines(lines), "")
