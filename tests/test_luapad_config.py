import pytest

from luapad.luapad_config import PadConfig, load_config
from luapad.luapad_errors import ConfigError


def test_defaults():
    config = PadConfig()
    assert config.prefixes == ("-- print: ", "-- => ", "--    ", "-- Error: ")
    assert config.show_nil_results is True
    assert config.newline_after_result is True
    assert config.persist_env is True
    assert config.validate() is config


def test_extend_returns_copy():
    base = PadConfig()
    changed = base.extend(show_nil_results=False)
    assert changed.show_nil_results is False
    assert base.show_nil_results is True


def test_unknown_option():
    with pytest.raises(ConfigError) as exc:
        PadConfig().extend(colour="red")
    assert exc.value.key == "colour"


@pytest.mark.parametrize("opts", [
    {"result_prefix": ""},
    {"result_prefix": "--"},
    {"error_prefix": "-- => E "},
    {"persist_env": "yes"},
    {"inspect_indent": -1},
    {"inspect_max_depth": "deep"},
])
def test_invalid_options(opts):
    with pytest.raises(ConfigError):
        PadConfig().extend(**opts)


def test_is_annotation():
    config = PadConfig()
    assert config.is_annotation("-- => 1")
    assert config.is_annotation("-- Error: x")
    assert not config.is_annotation("-- plain comment")
    assert not config.is_annotation("")
    assert not config.is_annotation(None)


def test_intro_variants():
    assert PadConfig(intro_lines="a\nb").intro() == ["a", "b"]
    assert PadConfig(intro_lines=[]).intro() == [""]


def test_load_config(tmp_path):
    path = tmp_path / "luapad.yaml"
    path.write_text("luapad:\n  result_prefix: '--> '\n  show_nil_results: false\n")
    config = load_config(path)
    assert config.result_prefix == "--> "
    assert config.show_nil_results is False


def test_load_flat_config(tmp_path):
    path = tmp_path / "luapad.yaml"
    path.write_text("persist_env: false\n")
    assert load_config(path).persist_env is False


def test_load_empty_config(tmp_path):
    path = tmp_path / "luapad.yaml"
    path.write_text("")
    assert load_config(path) == PadConfig()


def test_load_config_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("key: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(bad)
    listed = tmp_path / "list.yaml"
    listed.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        load_config(listed)
