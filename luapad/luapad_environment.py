"""
The embedded Lua runtime and the per-surface execution environments.

An environment is a plain Lua table whose metatable reads through to the
runtime's `_G` at lookup time and keeps every write local:

    env.x = 1        -- lands in env, _G is untouched
    print(string)    -- no local `string`, resolved from _G now

Each environment also holds `_ENV = env`, so code evaluated in it can
inspect its own bindings.

Lua strings are byte strings. The runtime is created without an encoding,
so they cross into Python as `bytes`; `from_lua` turns the valid UTF-8 ones
back into `str` and leaves the rest as `bytes`.
"""

import logging
from typing import Any, Dict, Hashable, Optional

from lupa import lua54
from lupa.lua54 import LuaRuntime

logger = logging.getLogger(__name__)

# Runtime helpers. Builtins are captured as upvalues; snippets that clobber
# `_G.tostring` or `_G.pcall` do not reach them.
_HELPERS = """
local _G, load, pcall, pack = _G, load, pcall, table.pack
local rawget, rawset, setmetatable, getmetatable = rawget, rawset, setmetatable, getmetatable
local select, tostring, concat, format = select, tostring, table.concat, string.format

local helpers = {}

function helpers.new_env()
  local env = {}
  setmetatable(env, {
    __index = function(_, key)
      return rawget(_G, key)
    end,
    __newindex = function(t, key, value)
      rawset(t, key, value)
    end,
  })
  env._ENV = env
  return env
end

function helpers.compile(source, name, env)
  local chunk, err = load(source, "=" .. name, "t", env)
  if chunk then
    return chunk
  end
  return err
end

function helpers.invoke(chunk)
  return pack(pcall(chunk))
end

function helpers.capture_print(env, sink)
  local previous = rawget(env, "print")
  local capture = function(...)
    local pieces = {}
    for i = 1, select("#", ...) do
      pieces[i] = tostring((select(i, ...)))
    end
    sink(concat(pieces, "\\t"))
  end
  rawset(env, "print", capture)
  return { previous = previous, capture = capture }
end

-- A snippet that rebinds `print` itself keeps its own binding.
function helpers.release_print(env, token)
  if rawget(env, "print") == token.capture then
    rawset(env, "print", token.previous)
  end
end

helpers.tostring = tostring
helpers.rawget = rawget
helpers.rawset = rawset
helpers.getmetatable = function(value)
  return getmetatable(value)
end
helpers.address = function(value)
  return format("%p", value)
end

return helpers
"""


def to_lua(value):
    """Encode Python text for the runtime; other values pass through."""
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def from_lua(value):
    """Decode a Lua string that is valid UTF-8; any other value is returned as is."""
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value
    return value


def decode_text(value) -> str:
    """Text for messages and printed lines; invalid bytes become U+FFFD."""
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return value


class LuaHost:
    """Owns one `LuaRuntime` and the helpers the evaluator compiles against."""

    def __init__(self, runtime: Optional[LuaRuntime] = None):
        self.runtime = runtime if runtime is not None else LuaRuntime(encoding=None, unpack_returned_tuples=True)
        self._helpers = self.runtime.execute(_HELPERS)

    @property
    def globals(self):
        """The process-wide `_G` table every environment reads through to."""
        return self.runtime.globals()

    def new_environment(self):
        return self._helpers.new_env()

    def compile(self, source: str, name: str, env):
        """Compile `source` bound to `env`. Returns (chunk, None) or (None, message)."""
        result = self._helpers.compile(to_lua(source), to_lua(name), env)
        if lua54.lua_type(result) == "function":
            return result, None
        if isinstance(result, (bytes, str)):
            return None, decode_text(result)
        return None, self.tostring(result)

    def protected_call(self, chunk):
        """Run `chunk` under pcall. Returns (ok, values) or (False, [error_value])."""
        packed = self._helpers.invoke(chunk)
        count = packed[b"n"]
        ok = bool(packed[1])
        values = [from_lua(packed[i]) for i in range(2, count + 1)]
        return ok, values

    def capture_print(self, env, sink):
        """Install a capturing `print` as a raw field of `env`; returns a release token.

        `sink` receives each printed line as text.
        """
        def emit(line):
            sink(decode_text(line))
        return self._helpers.capture_print(env, emit)

    def release_print(self, env, token):
        """Put back whatever `print` the capture replaced."""
        self._helpers.release_print(env, token)

    def tostring(self, value: Any) -> str:
        return decode_text(self._helpers.tostring(to_lua(value)))

    def rawget(self, table, key):
        return from_lua(self._helpers.rawget(table, to_lua(key)))

    def rawset(self, table, key, value):
        self._helpers.rawset(table, to_lua(key), to_lua(value))

    def metatable(self, value):
        return self._helpers.getmetatable(value)

    def address(self, value) -> str:
        """A stable identity for a Lua reference value, usable as a dict key."""
        return decode_text(self._helpers.address(value))

    @staticmethod
    def lua_type(value) -> Optional[str]:
        """'table', 'function', 'thread' or 'userdata' for Lua objects, else None."""
        return lua54.lua_type(value)


class EnvironmentRegistry:
    """One execution environment per surface id, plus the most recently active id."""

    def __init__(self, host: LuaHost):
        self.host = host
        self._envs: Dict[Hashable, Any] = {}
        self.active: Optional[Hashable] = None

    def __contains__(self, surface_id) -> bool:
        return surface_id in self._envs

    def __len__(self) -> int:
        return len(self._envs)

    def get(self, surface_id):
        return self._envs.get(surface_id)

    def get_or_create(self, surface_id):
        env = self._envs.get(surface_id)
        if env is not None:
            self.host.rawset(env, "_ENV", env)
            return env
        env = self.host.new_environment()
        self._envs[surface_id] = env
        logger.debug("created environment for surface %r", surface_id)
        return env

    def touch(self, surface_id):
        self.active = surface_id

    def reset(self, surface_id):
        if self._envs.pop(surface_id, None) is not None:
            logger.debug("reset environment for surface %r", surface_id)

    def forget(self, surface_id):
        self.reset(surface_id)
        if self.active == surface_id:
            self.active = None
