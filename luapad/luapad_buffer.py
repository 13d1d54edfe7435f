"""
An in-memory text surface addressed by zero-based line index.

Every edit goes through `set_lines`, which swaps a whole half-open range in
one step, so a reader never observes a half-applied replacement.
"""

from typing import Iterable, List, Optional


class Surface:
    """A named list of text lines with a cursor."""

    def __init__(self, name: str, lines: Optional[Iterable[str]] = None):
        self.name = name
        self._lines: List[str] = list(lines) if lines is not None else [""]
        if not self._lines:
            self._lines = [""]
        self._cursor = 0

    @classmethod
    def from_text(cls, name: str, text: str) -> 'Surface':
        return cls(name, text.split("\n"))

    def __repr__(self):
        return f"Surface({self.name!r}, {len(self._lines)} lines)"

    def __len__(self):
        return len(self._lines)

    def line_count(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def _clamp(self, index: int) -> int:
        if index < 0:
            index += len(self._lines) + 1
        return max(0, min(index, len(self._lines)))

    def get_line(self, index: int) -> Optional[str]:
        if 0 <= index < len(self._lines):
            return self._lines[index]
        return None

    def get_lines(self, start: int, end: int) -> List[str]:
        """Lines in [start, end); a negative index counts from past the last line."""
        return self._lines[self._clamp(start):self._clamp(end)]

    def set_lines(self, start: int, end: int, replacement: Iterable[str]):
        """Replace the half-open range [start, end) with `replacement`."""
        start = self._clamp(start)
        end = max(start, self._clamp(end))
        self._lines[start:end] = [str(line) for line in replacement]
        if not self._lines:
            self._lines = [""]
        self._cursor = min(self._cursor, len(self._lines) - 1)

    def insert_lines(self, at: int, lines: Iterable[str]):
        self.set_lines(at, at, lines)

    def delete_lines(self, start: int, end: int):
        self.set_lines(start, end, [])

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_cursor(self, line: int) -> int:
        self._cursor = max(0, min(line, len(self._lines) - 1))
        return self._cursor
