"""
A structural pretty-printer for Lua values, in the style of `vim.inspect`.
"""
import collections.abc
import math
import re

from lupa import lua54

from luapad.luapad_transformer import is_identifier

_INTEGRAL = re.compile(r"-?\d+\Z")
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\0": "\\0",
}

# Depth limit for tables without a stable identity (no host to ask for an address).
_FALLBACK_DEPTH = 64


def format_number(value) -> str:
    """Format a number the way Lua 5.4's tostring does."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "nan" if math.copysign(1.0, value) > 0 else "-nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = "%.14g" % value
    if _INTEGRAL.match(text):
        text += ".0"
    return text


def quote_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 32 or ord(ch) == 127:
            out.append("\\%d" % ord(ch))
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def quote_bytes(value: bytes) -> str:
    """Quote a Lua string; bytes that are not valid UTF-8 print as `\\ddd`."""
    try:
        return quote_string(value.decode("utf-8"))
    except UnicodeDecodeError:
        pass
    out = []
    for byte in value:
        ch = chr(byte)
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif byte < 32 or byte >= 127:
            out.append("\\%d" % byte)
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _key_text(key):
    if isinstance(key, str):
        return key
    if isinstance(key, bytes):
        try:
            return key.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


class Inspector:
    """Formats Lua (and plain Python) values into readable, Lua-like text."""

    def __init__(self, host=None, indent_width=2, inline_width=72, max_depth=None):
        self.host = host
        self._indent_char = " " * indent_width
        self.inline_width = inline_width
        self.max_depth = max_depth

    def inspect(self, value) -> str:
        """Public entry point to format a value."""
        state = _InspectState()
        return self._format(value, 0, state)

    # --- classification ---

    def _lua_type(self, value):
        if self.host is not None:
            return self.host.lua_type(value)
        return lua54.lua_type(value)

    def _kind(self, value):
        if value is None:
            return "nil"
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, (int, float)):
            return "number"
        if isinstance(value, str):
            return "string"
        if isinstance(value, bytes):
            return "bytes"
        lua_type = self._lua_type(value)
        if lua_type is not None:
            return lua_type
        if isinstance(value, collections.abc.Mapping):
            return "table"
        if isinstance(value, (list, tuple)):
            return "table"
        if callable(value):
            return "function"
        return "userdata"

    def _identity(self, value):
        if self.host is not None and self._lua_type(value) is not None:
            return self.host.address(value)
        return id(value)

    # --- formatting ---

    def _format(self, value, level, state):
        kind = self._kind(value)
        if kind == "nil":
            return "nil"
        if kind in ("boolean", "number"):
            return format_number(value)
        if kind == "string":
            return quote_string(value)
        if kind == "bytes":
            return quote_bytes(value)
        if kind == "table":
            return self._format_table(value, level, state)
        return f"<{kind} {state.number(kind, self._identity(value))}>"

    def _entries(self, table):
        if isinstance(table, collections.abc.Mapping):
            return list(table.items())
        if isinstance(table, (list, tuple)):
            return [(i + 1, v) for i, v in enumerate(table)]
        return list(table.items())

    def _split_entries(self, entries):
        """Separate the 1..n sequence part from the remaining keyed entries."""
        by_key = {}
        others = []
        for key, value in entries:
            if isinstance(key, int) and not isinstance(key, bool) and key >= 1:
                by_key[key] = value
            else:
                others.append((key, value))
        sequence = []
        n = 1
        while n in by_key:
            sequence.append(by_key.pop(n))
            n += 1
        others.extend(by_key.items())
        others.sort(key=lambda kv: self._sort_key(kv[0]))
        return sequence, others

    def _sort_key(self, key):
        if isinstance(key, bool):
            return (2, str(key), 0)
        if isinstance(key, (int, float)):
            return (0, "", key)
        if isinstance(key, (str, bytes)):
            return (1, key if isinstance(key, str) else key.decode("utf-8", "replace"), 0)
        return (3, str(self._identity(key)), 0)

    def _format_key(self, key, level, state):
        text = _key_text(key)
        if text is not None and is_identifier(text):
            return text
        return f"[{self._format(key, level, state)}]"

    def _is_scalar(self, value):
        return self._kind(value) in ("nil", "boolean", "number", "string", "bytes")

    def _format_table(self, table, level, state):
        ident = self._identity(table)
        number = state.number("table", ident)
        if ident in state.path:
            return f"<table {number}>"
        if self.max_depth is not None and level >= self.max_depth:
            return "{...}"
        if level >= _FALLBACK_DEPTH:
            return "{...}"

        metatable = None
        if self.host is not None and self._lua_type(table) == "table":
            metatable = self.host.metatable(table)

        sequence, keyed = self._split_entries(self._entries(table))
        if not sequence and not keyed and metatable is None:
            return "{}"

        state.path.add(ident)
        try:
            inner = level + 1
            items = [self._format(v, inner, state) for v in sequence]
            items += [
                f"{self._format_key(k, inner, state)} = {self._format(v, inner, state)}"
                for k, v in keyed
            ]
            if metatable is not None:
                items.append(f"<metatable> = {self._format(metatable, inner, state)}")
        finally:
            state.path.discard(ident)

        all_scalar = metatable is None and all(
            self._is_scalar(v) for v in sequence + [v for _, v in keyed]
        )
        one_line = "{ " + ", ".join(items) + " }"
        if all_scalar and "\n" not in one_line and len(one_line) <= self.inline_width:
            return one_line

        outer_indent = self._indent_char * level
        inner_indent = self._indent_char * (level + 1)
        lines = [f"{inner_indent}{item}" for item in items]
        return "{\n" + ",\n".join(lines) + f"\n{outer_indent}}}"


class _InspectState:
    """Per-call numbering of reference values and the tables on the current path."""

    def __init__(self):
        self.path = set()
        self._ids = {}
        self._counters = {}

    def number(self, kind, ident):
        key = (kind, ident)
        if key not in self._ids:
            self._counters[kind] = self._counters.get(kind, 0) + 1
            self._ids[key] = self._counters[kind]
        return self._ids[key]
