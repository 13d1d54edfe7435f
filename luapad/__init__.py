from luapad.luapad_config import PadConfig, load_config
from luapad.luapad_errors import ConfigError, LuapadError, UnknownSurfaceError
from luapad.luapad_buffer import Surface
from luapad.luapad_environment import EnvironmentRegistry, LuaHost
from luapad.luapad_evaluator import EvaluationOutcome, Evaluator
from luapad.luapad_render import LineRole, RenderedBlock, RenderedLine, ResultRenderer
from luapad.luapad_runtime import Session

__all__ = [
    "PadConfig", "load_config",
    "ConfigError", "LuapadError", "UnknownSurfaceError",
    "Surface",
    "EnvironmentRegistry", "LuaHost",
    "EvaluationOutcome", "Evaluator",
    "LineRole", "RenderedBlock", "RenderedLine", "ResultRenderer",
    "Session",
]
