"""
Exception types raised to the host program.

Failures of the evaluated snippets themselves are never raised; they are
rendered into the surface as error annotations.
"""


class LuapadError(Exception):
    """Base class for errors raised by luapad to its host."""
    pass


class ConfigError(LuapadError, ValueError):
    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key


class UnknownSurfaceError(LuapadError, KeyError):
    def __init__(self, surface_id):
        super().__init__(surface_id)
        self.surface_id = surface_id

    def __str__(self):
        return f"unknown surface: {self.surface_id!r}"
