"""
Region evaluation and the session that ties surfaces to environments.

A `Session` is the explicit context a host integration owns: the Lua
runtime, one environment per surface, the open surfaces and which of them
was used last. Evaluating a region is a single linear pass:

  1. remove the annotation block left by an earlier run of the same region,
  2. evaluate the region's text in the surface's environment,
  3. render the outcome and insert it right after the region.
"""

import logging
from typing import Dict, Hashable, Optional, Tuple

from luapad.luapad_blocks import find_block, is_blank
from luapad.luapad_buffer import Surface
from luapad.luapad_config import PadConfig
from luapad.luapad_environment import EnvironmentRegistry, LuaHost
from luapad.luapad_errors import UnknownSurfaceError
from luapad.luapad_evaluator import EvaluationOutcome, Evaluator
from luapad.luapad_printer import Inspector
from luapad.luapad_render import RenderedBlock, ResultRenderer
from luapad.luapad_transformer import SourceTransformer

logger = logging.getLogger(__name__)

SCRATCH_NAME = "luapad://scratch"


def remove_stale_annotation(surface: Surface, end_line: int, config: PadConfig) -> int:
    """Delete the annotation block directly after `end_line`; returns the lines removed."""
    first = end_line + 1
    total = surface.line_count()
    if first >= total:
        return 0

    last = first
    found = False
    while last < total:
        text = surface.get_line(last)
        if not text:
            # Only a separator luapad inserted belongs to the block it follows.
            if found and text == "" and config.newline_after_result:
                last += 1
            break
        if config.is_annotation(text):
            found = True
            last += 1
        else:
            break

    if not found:
        if config.newline_after_result and surface.get_line(first) == "":
            surface.delete_lines(first, first + 1)
            return 1
        return 0

    surface.delete_lines(first, last)
    logger.debug("removed %d stale annotation line(s) from %s", last - first, surface.name)
    return last - first


def insert_block(surface: Surface, at: int, block: RenderedBlock, config: PadConfig) -> Tuple[int, bool]:
    """Insert `block` at line `at`, adding a blank separator when the next line is not blank."""
    payload = block.lines()
    appended_blank = False
    if config.newline_after_result:
        existing = surface.get_line(at)
        if existing is None or not is_blank(existing):
            payload.append("")
            appended_blank = True
    surface.insert_lines(at, payload)
    return len(payload), appended_blank


class Session:
    """Surfaces, their environments and the evaluation pipeline."""

    def __init__(self, config: Optional[PadConfig] = None, host: Optional[LuaHost] = None):
        self.config = (config or PadConfig()).validate()
        self.host = host or LuaHost()
        self.registry = EnvironmentRegistry(self.host)
        self.evaluator = Evaluator(self.host, SourceTransformer(), chunk_name=self.config.chunk_name)
        self.renderer = ResultRenderer(
            self.config,
            Inspector(
                host=self.host,
                indent_width=self.config.inspect_indent,
                inline_width=self.config.inspect_inline_width,
                max_depth=self.config.inspect_max_depth,
            ),
        )
        self.surfaces: Dict[Hashable, Surface] = {}
        self._counter = 0

    # --- surface lifecycle ---

    def attach(self, surface: Surface, surface_id: Optional[Hashable] = None) -> Hashable:
        surface_id = surface.name if surface_id is None else surface_id
        self.surfaces[surface_id] = surface
        self.open_or_create_surface_state(surface_id)
        return surface_id

    def open_or_create_surface_state(self, surface_id: Hashable) -> Surface:
        surface = self.surfaces.get(surface_id)
        if surface is None:
            surface = Surface(str(surface_id))
            self.surfaces[surface_id] = surface
        if self.config.persist_env:
            self.registry.get_or_create(surface_id)
        self.registry.touch(surface_id)
        return surface

    def surface(self, surface_id: Hashable) -> Surface:
        try:
            return self.surfaces[surface_id]
        except KeyError:
            raise UnknownSurfaceError(surface_id) from None

    def active_surface(self) -> Optional[Surface]:
        active = self.registry.active
        if active is not None and active in self.surfaces:
            return self.surfaces[active]
        return None

    def _new_scratch(self) -> Surface:
        self._counter += 1
        name = SCRATCH_NAME if self._counter == 1 else f"{SCRATCH_NAME}/{self._counter}"
        surface = Surface(name, self.config.intro())
        self.surfaces[name] = surface
        return surface

    def open(self, force_new: bool = False) -> Surface:
        """Return the active scratch surface, creating one when none is open or `force_new`."""
        surface = None if force_new else self.active_surface()
        created = surface is None
        if created:
            surface = self._new_scratch()
        surface_id = self._id_of(surface)

        if not self.config.persist_env:
            self.registry.reset(surface_id)
        self.open_or_create_surface_state(surface_id)

        if created:
            if surface.get_line(surface.line_count() - 1) != "":
                surface.insert_lines(surface.line_count(), [""])
            surface.set_cursor(surface.line_count() - 1)
        return surface

    def _id_of(self, surface: Surface) -> Hashable:
        for surface_id, candidate in self.surfaces.items():
            if candidate is surface:
                return surface_id
        raise UnknownSurfaceError(surface.name)

    def close_surface(self, surface_id: Hashable):
        """Forget a discarded surface and its environment."""
        self.surfaces.pop(surface_id, None)
        self.registry.forget(surface_id)
        if self.registry.active is None:
            for remaining in self.surfaces:
                self.registry.touch(remaining)
                break

    def reset_environment(self, surface_id: Optional[Hashable] = None):
        target = surface_id if surface_id is not None else self.registry.active
        if target is None or target not in self.surfaces:
            return
        self.registry.reset(target)

    def environment(self, surface_id: Hashable):
        return self.registry.get_or_create(surface_id)

    # --- evaluation ---

    def evaluate_text(self, surface_id: Hashable, code: str) -> EvaluationOutcome:
        env = self.registry.get_or_create(surface_id)
        return self.evaluator.evaluate(env, code)

    def evaluate_region(self, surface_id: Hashable, start_line: int, end_line: int) -> int:
        """Evaluate lines [start_line, end_line] and insert the result; returns lines inserted."""
        surface = self.surface(surface_id)
        self.registry.touch(surface_id)
        end_line = min(end_line, surface.line_count() - 1)
        if start_line < 0 or end_line < start_line:
            return 0

        remove_stale_annotation(surface, end_line, self.config)

        lines = surface.get_lines(start_line, end_line + 1)
        if not lines:
            return 0

        outcome = self.evaluate_text(surface_id, "\n".join(lines))
        block = self.renderer.render(outcome)
        inserted, _ = insert_block(surface, end_line + 1, block, self.config)
        logger.debug("%s: evaluated lines %d-%d, inserted %d", surface.name, start_line, end_line, inserted)
        return inserted

    def evaluate_line(self, surface_id: Hashable, line: int) -> int:
        surface = self.surface(surface_id)
        inserted = self.evaluate_region(surface_id, line, line)
        surface.set_cursor(line + inserted)
        return inserted

    def _code_end(self, surface: Surface, start_line: int, end_line: int) -> int:
        """Step `end_line` back over blank lines and annotations left by earlier runs."""
        while end_line >= start_line:
            text = surface.get_line(end_line)
            if not is_blank(text) and not self.config.is_annotation(text):
                break
            end_line -= 1
        return end_line

    def evaluate_block(self, surface_id: Hashable, line: int) -> int:
        surface = self.surface(surface_id)
        edges = find_block(surface.lines, line)
        if edges is None:
            return 0
        start_line, end_line = edges
        end_line = self._code_end(surface, start_line, end_line)
        if end_line < start_line:
            return 0
        inserted = self.evaluate_region(surface_id, start_line, end_line)
        surface.set_cursor(end_line + inserted)
        return inserted

    def evaluate_surface(self, surface_id: Hashable) -> int:
        surface = self.surface(surface_id)
        end_line = self._code_end(surface, 0, surface.line_count() - 1)
        if end_line < 0:
            return 0
        inserted = self.evaluate_region(surface_id, 0, end_line)
        surface.set_cursor(end_line + inserted)
        return inserted

    def evaluate_selection(self, surface_id: Hashable, start_line: int, end_line: int) -> int:
        surface = self.surface(surface_id)
        start_line, end_line = sorted((start_line, end_line))
        inserted = self.evaluate_region(surface_id, start_line, end_line)
        surface.set_cursor(end_line + inserted)
        return inserted

