"""Indented ``<indent><name> <version>`` dependency tree dumps.

``stack ls dependencies --tree`` prints one package per line, indenting each
nesting level by a fixed number of characters. The level of a line is the
raw count of characters before the package name.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from ort_analyzer.exceptions import ParseError

# The indent may contain tree-drawing characters as well as spaces.
_TREE_LINE_RE = re.compile(r"^(.*?)(\S+) (\S+)$")


@dataclass(frozen=True)
class TreeLine:
    level: int
    name: str
    version: str

    @classmethod
    def parse(cls, line: str, line_number: int | None = None) -> TreeLine:
        m = _TREE_LINE_RE.match(line.rstrip("\r\n"))
        if not m:
            raise ParseError("unparseable dependency tree line", line=line_number, fragment=line)
        return cls(len(m.group(1)), m.group(2), m.group(3))

    def render(self) -> str:
        return f"{' ' * self.level}{self.name} {self.version}"


class TreeLineCursor:
    """Forward-only cursor over tree lines with a single line of pushback."""

    def __init__(self, lines: Iterable[str], first_line_number: int = 1) -> None:
        self._lines = iter(lines)
        self._pushed: TreeLine | None = None
        self._peeked: str | None = None
        self._has_peeked = False
        self._line_number = first_line_number - 1

    @property
    def line_number(self) -> int:
        """Number of the line most recently returned by :meth:`next`."""
        return self._line_number

    def has_next(self) -> bool:
        if self._pushed is not None:
            return True
        if not self._has_peeked:
            self._peeked = next(self._lines, None)
            self._has_peeked = True
        return self._peeked is not None

    def next_raw(self) -> str:
        """Return the next line without parsing it."""
        if self._pushed is not None:
            raise ParseError("cannot read raw line after pushback", line=self._line_number)
        if not self.has_next():
            raise ParseError("unexpected end of dependency tree", line=self._line_number)
        line = self._peeked
        self._peeked = None
        self._has_peeked = False
        self._line_number += 1
        return line  # type: ignore[return-value]

    def next(self) -> TreeLine:
        if self._pushed is not None:
            line, self._pushed = self._pushed, None
            return line
        raw = self.next_raw()
        return TreeLine.parse(raw, self._line_number)

    def push_back(self, line: TreeLine) -> None:
        if self._pushed is not None:
            raise ParseError("only one line of pushback is supported", line=self._line_number)
        self._pushed = line
