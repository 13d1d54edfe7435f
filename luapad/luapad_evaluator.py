"""
Compiles and runs snippets against a surface's environment.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional

from luapad.luapad_environment import LuaHost
from luapad.luapad_transformer import SourceTransformer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationOutcome:
    """The structured result of evaluating one snippet."""
    status: Literal['success', 'error']
    values: List[Any] = field(default_factory=list)
    output: List[str] = field(default_factory=list)
    error_message: Optional[str] = None
    stage: Optional[Literal['compile', 'runtime']] = None

    @classmethod
    def success(cls, values=None, output=None) -> 'EvaluationOutcome':
        return cls(status='success', values=list(values or []), output=list(output or []))

    @classmethod
    def failure(cls, message: str, stage: str = 'runtime') -> 'EvaluationOutcome':
        return cls(status='error', error_message=message, stage=stage)

    @property
    def ok(self) -> bool:
        return self.status == 'success'


class Evaluator:
    """Runs Lua text in an environment and collects returned values and printed lines."""

    def __init__(self, host: LuaHost, transformer: Optional[SourceTransformer] = None, chunk_name: str = "luapad"):
        self.host = host
        self.transformer = transformer or SourceTransformer()
        self.chunk_name = chunk_name

    def compile(self, env, code: str):
        """Compile `code` as an expression, falling back to the rewritten statement form."""
        chunk, _ = self.host.compile("return " + code, self.chunk_name, env)
        if chunk is not None:
            return chunk, None
        rewritten = self.transformer.rewrite(code)
        chunk, err = self.host.compile(rewritten, self.chunk_name, env)
        if chunk is None:
            logger.debug("compile failed: %s", err)
        return chunk, err

    def evaluate(self, env, code: str) -> EvaluationOutcome:
        chunk, err = self.compile(env, code)
        if chunk is None:
            return EvaluationOutcome.failure(str(err), stage='compile')

        printed: List[str] = []
        token = self.host.capture_print(env, printed.append)
        try:
            ok, values = self.host.protected_call(chunk)
        finally:
            self.host.release_print(env, token)

        if not ok:
            error_value = values[0] if values else None
            message = error_value if isinstance(error_value, str) else self.host.tostring(error_value)
            return EvaluationOutcome.failure(message, stage='runtime')

        return EvaluationOutcome.success(values, printed)
