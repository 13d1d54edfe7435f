import pytest

from luapad.luapad_blocks import find_block, is_blank

LINES = ["a=1", "b=2", "", "c=3"]


@pytest.mark.parametrize("cursor, expected", [
    (0, (0, 1)),
    (1, (0, 1)),
    (2, None),
    (3, (3, 3)),
    (4, None),
    (-1, None),
])
def test_find_block(cursor, expected):
    assert find_block(LINES, cursor) == expected


def test_whitespace_only_lines_are_blank():
    lines = ["x = 1", "   \t", "y = 2", "z = 3"]
    assert find_block(lines, 1) is None
    assert find_block(lines, 3) == (2, 3)


def test_single_block_spans_everything():
    assert find_block(["a", "b", "c"], 1) == (0, 2)


def test_is_blank():
    assert is_blank("")
    assert is_blank("  ")
    assert is_blank(None)
    assert not is_blank(" x ")
