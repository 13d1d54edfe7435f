from luapad.luapad_buffer import Surface


def test_new_surface_has_one_empty_line():
    s = Surface("s")
    assert s.lines == [""]
    assert s.line_count() == 1


def test_from_text():
    s = Surface.from_text("s", "a\nb\n")
    assert s.lines == ["a", "b", ""]


def test_get_lines_is_half_open_and_clamped():
    s = Surface("s", ["a", "b", "c"])
    assert s.get_lines(0, 2) == ["a", "b"]
    assert s.get_lines(1, 99) == ["b", "c"]
    assert s.get_lines(0, -1) == ["a", "b", "c"]
    assert s.get_line(3) is None


def test_set_lines_replaces_range():
    s = Surface("s", ["a", "b", "c"])
    s.set_lines(1, 2, ["x", "y"])
    assert s.lines == ["a", "x", "y", "c"]


def test_insert_and_delete():
    s = Surface("s", ["a", "b"])
    s.insert_lines(1, ["mid"])
    assert s.lines == ["a", "mid", "b"]
    s.delete_lines(0, 2)
    assert s.lines == ["b"]
    s.delete_lines(0, 1)
    assert s.lines == [""]


def test_cursor_is_clamped():
    s = Surface("s", ["a", "b"])
    assert s.set_cursor(10) == 1
    assert s.set_cursor(-3) == 0
    s.set_cursor(1)
    s.delete_lines(1, 2)
    assert s.cursor == 0
