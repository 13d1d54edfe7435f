import importlib.util
import sys
from pathlib import Path
import uuid

import pytest

from luapad.luapad_config import PadConfig


def _load_cli_module():
    """Dynamically load the top-level luapad.py as a module with a unique name."""
    cli_path = Path(__file__).resolve().parents[1] / "luapad.py"
    mod_name = f"luapad_cli_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(cli_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


def _feed(monkeypatch, cli, lines):
    it = iter(lines)

    async def fake_ainput(prompt: str) -> str:
        try:
            return next(it)
        except StopIteration:
            return ""
    monkeypatch.setattr(cli, "ainput", fake_ainput)


@pytest.mark.asyncio
async def test_repl_exit_immediately(monkeypatch, capsys):
    cli = _load_cli_module()
    _feed(monkeypatch, cli, ["exit\n"])
    await cli.repl(PadConfig())
    out = capsys.readouterr().out
    assert "luapad v0.1" in out
    assert "Type 'exit' or press Ctrl+D to quit." in out


@pytest.mark.asyncio
async def test_repl_prints_output_and_values(monkeypatch, capsys):
    cli = _load_cli_module()
    _feed(monkeypatch, cli, [
        "print('hello from lua')\n",
        "1 + 2\n",
        "local x = 20\n",
        "x + 1\n",
        "exit\n",
    ])
    await cli.repl(PadConfig())
    out = capsys.readouterr().out
    assert "-- print: hello from lua" in out
    assert "-- => 3" in out
    assert "-- => 20" in out
    assert "-- => 21" in out


@pytest.mark.asyncio
async def test_repl_errors_are_rendered(monkeypatch, capsys):
    cli = _load_cli_module()
    _feed(monkeypatch, cli, ["error('nope')\n", "exit\n"])
    await cli.repl(PadConfig())
    out = capsys.readouterr().out
    assert "-- Error: luapad:1: nope" in out


@pytest.mark.asyncio
async def test_repl_reset_and_show(monkeypatch, capsys):
    cli = _load_cli_module()
    _feed(monkeypatch, cli, ["y = 5\n", ":reset\n", "y\n", ":show\n", "exit\n"])
    await cli.repl(PadConfig())
    out = capsys.readouterr().out
    assert "environment reset" in out
    assert "-- => nil" in out
    assert "y = 5\n-- => 5\n\ny\n-- => nil" in out


@pytest.mark.asyncio
async def test_repl_eof_quits(monkeypatch, capsys):
    cli = _load_cli_module()
    _feed(monkeypatch, cli, [])
    await cli.repl(PadConfig())
    out = capsys.readouterr().out
    assert "Exiting." in out


def test_run_file_prints_annotated_surface(tmp_path, capsys):
    cli = _load_cli_module()
    path = tmp_path / "scratch.lua"
    path.write_text("local x = 2\nprint(x * 21)\n")
    assert cli.main([str(path)]) == 0
    out = capsys.readouterr().out
    assert out == "local x = 2\nprint(x * 21)\n-- print: 42\n-- => 2\n\n"


def test_run_file_single_line_in_place(tmp_path):
    cli = _load_cli_module()
    path = tmp_path / "scratch.lua"
    path.write_text("a = 1\n\nb = a + 1\n")
    assert cli.main([str(path), "--line", "3", "--in-place"]) == 0
    text = path.read_text()
    assert text.startswith("a = 1\n\nb = a + 1\n-- Error: luapad:1: attempt to perform arithmetic on a nil value")
    assert text.endswith("\n\n")


def test_run_file_block_twice_is_stable(tmp_path):
    cli = _load_cli_module()
    path = tmp_path / "scratch.lua"
    path.write_text("t = {}\nt[1] = 'x'\n\nreturn 1\n")
    cli.main([str(path), "--block", "1", "--in-place"])
    once = path.read_text()
    cli.main([str(path), "--block", "1", "--in-place"])
    assert path.read_text() == once
    assert once.startswith("t = {}\nt[1] = 'x'\n-- => { \"x\" }\n\nreturn 1")


def test_run_file_missing(tmp_path, capsys):
    cli = _load_cli_module()
    with pytest.raises(SystemExit) as exc:
        cli.main([str(tmp_path / "missing.lua")])
    assert exc.value.code == 1
    assert "file not found" in capsys.readouterr().err


def test_bad_config_file(tmp_path, capsys):
    cli = _load_cli_module()
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("result_prefix: ''\n")
    src = tmp_path / "a.lua"
    src.write_text("1\n")
    assert cli.main([str(src), "--config", str(cfg)]) == 2
    assert "result_prefix" in capsys.readouterr().err


def test_run_whole_file_twice_in_place_is_stable(tmp_path):
    cli = _load_cli_module()
    path = tmp_path / "scratch.lua"
    path.write_text("local x = 2\nprint(x * 21)\n")
    cli.main([str(path), "--in-place"])
    once = path.read_text()
    cli.main([str(path), "--in-place"])
    assert path.read_text() == once
