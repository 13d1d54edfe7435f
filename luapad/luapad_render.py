"""
Turns evaluation outcomes into annotation lines.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from luapad.luapad_config import PadConfig
from luapad.luapad_evaluator import EvaluationOutcome
from luapad.luapad_printer import Inspector


class LineRole(Enum):
    OUTPUT = "output"
    RESULT = "result"
    CONTINUATION = "continuation"
    ERROR = "error"


@dataclass(frozen=True)
class RenderedLine:
    role: LineRole
    text: str


@dataclass(frozen=True)
class RenderedBlock:
    entries: Tuple[RenderedLine, ...] = ()

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def lines(self) -> List[str]:
        return [entry.text for entry in self.entries]

    def roles(self) -> List[LineRole]:
        return [entry.role for entry in self.entries]


class ResultRenderer:
    """Formats outcomes into prefixed lines using the configured prefixes."""

    def __init__(self, config: Optional[PadConfig] = None, inspector: Optional[Inspector] = None):
        self.config = config or PadConfig()
        self.inspector = inspector or Inspector(
            indent_width=self.config.inspect_indent,
            inline_width=self.config.inspect_inline_width,
            max_depth=self.config.inspect_max_depth,
        )

    def _prefix(self, role: LineRole) -> str:
        return {
            LineRole.OUTPUT: self.config.print_prefix,
            LineRole.RESULT: self.config.result_prefix,
            LineRole.CONTINUATION: self.config.result_continuation_prefix,
            LineRole.ERROR: self.config.error_prefix,
        }[role]

    def _extend(self, target: list, role: LineRole, text: str):
        prefix = self._prefix(role)
        for chunk in str(text).split("\n"):
            target.append(RenderedLine(role, prefix + chunk))

    def render_success(self, values: Sequence, output: Iterable[str]) -> RenderedBlock:
        out: List[RenderedLine] = []
        output = list(output)
        for line in output:
            self._extend(out, LineRole.OUTPUT, line)

        if values:
            for index, value in enumerate(values):
                role = LineRole.RESULT if index == 0 else LineRole.CONTINUATION
                self._extend(out, role, self.inspector.inspect(value))
        elif self.config.show_nil_results and not output:
            self._extend(out, LineRole.RESULT, "nil")

        return RenderedBlock(tuple(out))

    def render_failure(self, message: str) -> RenderedBlock:
        out: List[RenderedLine] = []
        self._extend(out, LineRole.ERROR, message)
        return RenderedBlock(tuple(out))

    def render(self, outcome: EvaluationOutcome) -> RenderedBlock:
        if outcome.ok:
            return self.render_success(outcome.values, outcome.output)
        return self.render_failure(outcome.error_message or "")
