"""
Configuration for luapad sessions.

Defaults mirror the classic scratch-buffer layout: every annotation is a Lua
line comment, so an annotated surface is still valid Lua.
"""

import copy
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

import yaml

from luapad.luapad_errors import ConfigError

DEFAULT_INTRO_LINES = [
    "-- Scratch buffer for Lua evaluation",
    "",
]


@dataclass(frozen=True)
class PadConfig:
    """Options shared by the renderer, the stale-block scanner and the session."""
    intro_lines: Union[List[str], str] = field(default_factory=lambda: list(DEFAULT_INTRO_LINES))
    print_prefix: str = "-- print: "
    result_prefix: str = "-- => "
    result_continuation_prefix: str = "--    "
    error_prefix: str = "-- Error: "
    show_nil_results: bool = True
    newline_after_result: bool = True
    persist_env: bool = True
    chunk_name: str = "luapad"
    inspect_indent: int = 2
    inspect_inline_width: int = 72
    inspect_max_depth: Optional[int] = None

    @property
    def prefixes(self) -> tuple:
        return (
            self.print_prefix,
            self.result_prefix,
            self.result_continuation_prefix,
            self.error_prefix,
        )

    def is_annotation(self, line: Optional[str]) -> bool:
        """True when `line` starts with one of the four annotation prefixes."""
        if not line:
            return False
        return any(prefix and line.startswith(prefix) for prefix in self.prefixes)

    def intro(self) -> List[str]:
        intro = self.intro_lines
        if isinstance(intro, str):
            intro = intro.split("\n")
        elif isinstance(intro, (list, tuple)):
            intro = [str(line) for line in intro]
        else:
            intro = []
        return intro or [""]

    def validate(self) -> 'PadConfig':
        names = ("print_prefix", "result_prefix", "result_continuation_prefix", "error_prefix")
        for name in names:
            value = getattr(self, name)
            if not isinstance(value, str) or value == "":
                raise ConfigError(f"{name} must be a non-empty string", key=name)
        # Stale block detection is prefix based, so no prefix may shadow another.
        for a in names:
            for b in names:
                if a != b and getattr(self, b).startswith(getattr(self, a)):
                    raise ConfigError(f"{a} {getattr(self, a)!r} is a prefix of {b} {getattr(self, b)!r}", key=a)
        for name in ("show_nil_results", "newline_after_result", "persist_env"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean", key=name)
        if not isinstance(self.inspect_indent, int) or self.inspect_indent < 0:
            raise ConfigError("inspect_indent must be a non-negative integer", key="inspect_indent")
        if not isinstance(self.inspect_inline_width, int) or self.inspect_inline_width < 0:
            raise ConfigError("inspect_inline_width must be a non-negative integer", key="inspect_inline_width")
        depth = self.inspect_max_depth
        if depth is not None and (not isinstance(depth, int) or depth < 0):
            raise ConfigError("inspect_max_depth must be null or a non-negative integer", key="inspect_max_depth")
        if not isinstance(self.chunk_name, str) or not self.chunk_name:
            raise ConfigError("chunk_name must be a non-empty string", key="chunk_name")
        return self

    def extend(self, **opts) -> 'PadConfig':
        """Return a validated copy with `opts` applied over this configuration."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(opts) - known)
        if unknown:
            raise ConfigError(f"unknown option(s): {', '.join(unknown)}", key=unknown[0])
        return replace(self, **copy.deepcopy(opts)).validate()

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> 'PadConfig':
        if not mapping:
            return cls()
        if not isinstance(mapping, Mapping):
            raise ConfigError(f"configuration must be a mapping, got {type(mapping).__name__}")
        return cls().extend(**dict(mapping))


def load_config(path: Union[str, Path]) -> PadConfig:
    """Load a YAML configuration file; options may sit under a top-level `luapad:` key."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"configuration file not found: {p}")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {p}: {e}") from e
    if isinstance(data, Mapping) and "luapad" in data and len(data) == 1:
        data = data["luapad"]
    return PadConfig.from_mapping(data)
