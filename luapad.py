import argparse
import asyncio
import logging
import sys
from pathlib import Path

from luapad.luapad_buffer import Surface
from luapad.luapad_config import PadConfig, load_config
from luapad.luapad_errors import ConfigError
from luapad.luapad_runtime import Session

# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="luapad", description="Evaluate Lua scratch files in place.")
    parser.add_argument("file", nargs="?", help="Lua file to evaluate; omit for the interactive loop")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--line", type=int, metavar="N", help="evaluate line N (1-based)")
    target.add_argument("--block", type=int, metavar="N", help="evaluate the block around line N (1-based)")
    target.add_argument("--range", type=int, nargs=2, metavar=("A", "B"), help="evaluate lines A..B (1-based, inclusive)")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--in-place", action="store_true", help="write the annotated file back")
    parser.add_argument("--verbose", action="store_true", help="log debug information to stderr")
    return parser


def run_file(args, config: PadConfig) -> int:
    """Evaluate part or all of a file and emit the annotated text."""
    p = Path(args.file)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {args.file}", file=sys.stderr)
        raise SystemExit(1)

    had_newline = source.endswith("\n")
    if had_newline:
        source = source[:-1]
    session = Session(config)
    surface = Surface.from_text(str(p), source)
    surface_id = session.attach(surface)

    if args.line is not None:
        session.evaluate_line(surface_id, args.line - 1)
    elif args.block is not None:
        session.evaluate_block(surface_id, args.block - 1)
    elif args.range is not None:
        start, end = args.range
        session.evaluate_selection(surface_id, start - 1, end - 1)
    else:
        session.evaluate_surface(surface_id)

    text = surface.text() + ("\n" if had_newline else "")
    if args.in_place:
        p.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
    return 0


async def repl(config: PadConfig):
    """Append each entered line to a scratch surface and print its annotation."""
    print("luapad v0.1")
    print("Type 'exit' or press Ctrl+D to quit. ':reset' clears bindings, ':show' prints the surface.")

    session = Session(config.extend(intro_lines=[""]))
    surface = session.open()
    surface_id = surface.name

    while True:
        try:
            raw = await ainput(">> ")
            if raw == "":
                raise EOFError
            line = raw.rstrip("\n")

            if not line.strip():
                continue
            if line.strip() == "exit":
                break
            if line.strip() == ":reset":
                session.reset_environment(surface_id)
                print("environment reset")
                continue
            if line.strip() == ":show":
                print(surface.text())
                continue

            at = surface.line_count()
            if at == 1 and surface.get_line(0) == "":
                at = 0
            surface.set_lines(at, at + 1, [line])
            inserted = session.evaluate_line(surface_id, at)
            for annotation in surface.get_lines(at + 1, at + 1 + inserted):
                if annotation:
                    print(annotation)

        except EOFError:
            print("\nExiting.")
            break


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    try:
        config = load_config(args.config) if args.config else PadConfig()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.file:
        return run_file(args, config)
    asyncio.run(repl(config))
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
