"""Locates the contiguous run of non-blank lines around a cursor."""
from typing import Optional, Sequence, Tuple


def is_blank(line: Optional[str]) -> bool:
    return line is None or line.strip() == ""


def find_block(lines: Sequence[str], cursor: int) -> Optional[Tuple[int, int]]:
    """Return the closed (start, end) range of the paragraph touching `cursor`, or None."""
    if cursor < 0 or cursor >= len(lines) or is_blank(lines[cursor]):
        return None

    start = cursor
    while start > 0 and not is_blank(lines[start - 1]):
        start -= 1

    end = cursor
    while end < len(lines) - 1 and not is_blank(lines[end + 1]):
        end += 1

    return start, end
