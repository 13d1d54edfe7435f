"""
Best-effort rewriting of Lua statements into chunks that also return values.

A snippet such as `local x = 1` does not compile as an expression, and run
as-is it binds `x` only for the lifetime of its chunk. The rewrite appends
statements that copy the declared names into the environment and return
them, so the value is shown and stays usable in later snippets:

    local x, y = 1, 2
    _ENV["x"] = x
    _ENV["y"] = y
    return x, y

This is pattern matching on the trimmed text, not a parser. Anything it
cannot classify is returned unchanged.
"""

import logging
import re
from typing import List, Optional

logger = logging.getLogger(__name__)

LUA_KEYWORDS = frozenset({
    "and", "break", "do", "else", "elseif", "end", "false", "for",
    "function", "goto", "if", "in", "local", "nil", "not", "or",
    "repeat", "return", "then", "true", "until", "while",
})

# ASCII only: Lua identifiers are letters, digits and underscores.
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_NAME_PART = re.compile(r"[^,\s]+")

_LOCAL_FUNCTION = re.compile(r"local\s+function\s+([A-Za-z_][A-Za-z0-9_]*)\s*\(")
_LOCAL_ASSIGN = re.compile(r"local\s+([A-Za-z_][A-Za-z0-9_\s,]*?)\s*=\s*(.+)\Z", re.DOTALL)
_LOCAL_ONLY = re.compile(r"local\s+([A-Za-z_][A-Za-z0-9_\s,]*?)\s*\Z")
_GLOBAL_ASSIGN = re.compile(r"([A-Za-z_][A-Za-z0-9_\s,]*?)\s*=\s*(.+)\Z", re.DOTALL)


def is_identifier(name: Optional[str]) -> bool:
    if not name:
        return False
    if name in LUA_KEYWORDS:
        return False
    return _IDENTIFIER.match(name) is not None


def split_identifiers(text: str) -> Optional[List[str]]:
    """Split a comma separated name list; None if any part is not an identifier."""
    names = []
    for part in _NAME_PART.findall(text):
        if not is_identifier(part):
            return None
        names.append(part)
    return names or None


def _rhs_starts_with_equals(rhs: Optional[str]) -> bool:
    # `a == b` would otherwise read as `a =` followed by `= b`.
    return rhs is not None and rhs.lstrip().startswith("=")


class SourceTransformer:
    """Rewrites declarations and assignments so they persist and yield their values."""

    def __init__(self, env_name: str = "_ENV"):
        self.env_name = env_name

    def _env_updates(self, names: List[str]) -> List[str]:
        lines = [f'{self.env_name}["{name}"] = {name}' for name in names]
        lines.append("return " + ", ".join(names))
        return lines

    def _build(self, code: str, names: List[str], persist: bool = True) -> str:
        if not persist:
            return "\n".join([code, "return " + ", ".join(names)])
        return "\n".join([code] + self._env_updates(names))

    def rewrite(self, code: str) -> str:
        trimmed = code.strip()
        if not trimmed:
            return code

        m = _LOCAL_FUNCTION.match(trimmed)
        if m:
            logger.debug("rewrite: local function %s", m.group(1))
            return self._build(code, [m.group(1)])

        m = _LOCAL_ASSIGN.match(trimmed)
        if m and not _rhs_starts_with_equals(m.group(2)):
            names = split_identifiers(m.group(1))
            if names:
                logger.debug("rewrite: local assignment %s", names)
                return self._build(code, names)

        m = _LOCAL_ONLY.match(trimmed)
        if m:
            names = split_identifiers(m.group(1))
            if names:
                logger.debug("rewrite: local declaration %s", names)
                return self._build(code, names)

        m = _GLOBAL_ASSIGN.match(trimmed)
        if m and not _rhs_starts_with_equals(m.group(2)):
            names = split_identifiers(m.group(1))
            if names:
                logger.debug("rewrite: assignment %s", names)
                # Global-style writes already land in the environment.
                return self._build(code, names, persist=False)

        return code
