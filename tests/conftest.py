import pytest

from luapad.luapad_buffer import Surface
from luapad.luapad_config import PadConfig
from luapad.luapad_environment import LuaHost
from luapad.luapad_runtime import Session


@pytest.fixture
def host():
    return LuaHost()


@pytest.fixture
def session():
    return Session(PadConfig())


@pytest.fixture
def make_surface(session):
    """Attach a surface holding `lines` to the session and return its id."""
    def _make(lines, name="scratch"):
        return session.attach(Surface(name, lines))
    return _make
