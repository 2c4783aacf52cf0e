from __future__ import annotations
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable
from .errors import Diagnostic, Failure, LoxRuntimeError, LoxSyntaxError
from .interpreter import Interpreter
from .lexer import Lexer
from .parser import Parser
from .resolver import Resolver
from .runtime import NativeFunction

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SYNTAX_ERROR = 65
EXIT_RUNTIME_ERROR = 75

# Host frames consumed by one Lox call, roughly.
_FRAMES_PER_CALL = 24


@dataclass
class Outcome:
    """Result of one ``interpret`` call."""

    had_error: bool = False
    had_runtime_error: bool = False
    diagnostics: list[Diagnostic] = field(default_factory=list)
    output: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.had_error or self.had_runtime_error)

    @property
    def exit_code(self) -> int:
        if self.had_error:
            return EXIT_SYNTAX_ERROR
        if self.had_runtime_error:
            return EXIT_RUNTIME_ERROR
        return EXIT_OK


class LoxSession:
    """A Lox execution session. Globals persist between calls.

    While ``interpret`` or ``eval`` runs, the host recursion limit is raised
    so ``max_call_depth`` Lox frames fit; the previous limit is restored
    when the call returns.

    Args:
        max_call_depth: Max Lox function call nesting depth (default 256).
        writer: Called with each line ``print`` produces, as it is produced.
    """

    def __init__(
        self,
        max_call_depth: int = 256,
        writer: Callable[[str], None] | None = None,
    ):
        self.interpreter = Interpreter(max_call_depth=max_call_depth, writer=writer)
        self.recursion_limit = max_call_depth * _FRAMES_PER_CALL

    def interpret(self, source: str) -> Outcome:
        """Scan, parse, resolve and run ``source``."""
        outcome = Outcome()
        self.interpreter.output = outcome.output

        with self._stack_room():
            lexer = Lexer(source)
            parser = Parser(lexer.tokens)
            statements = parser.parse()
            outcome.diagnostics.extend(lexer.errors)
            outcome.diagnostics.extend(parser.errors)
            logger.debug(
                "scanned %d tokens, parsed %d statements, %d errors",
                len(lexer.tokens), len(statements), len(outcome.diagnostics),
            )
            if outcome.diagnostics:
                outcome.had_error = True
                return outcome

            resolver = Resolver(self.interpreter)
            failure = resolver.resolve(statements)
            if resolver.errors:
                outcome.diagnostics.extend(resolver.errors)
                outcome.had_error = True
                return outcome

            if failure is None:
                failure = self.interpreter.interpret(statements)
        if failure is not None:
            logger.debug("runtime error: %s", failure.diagnostic)
            outcome.diagnostics.append(failure.diagnostic)
            outcome.had_runtime_error = True
        return outcome

    def execute(self, source: str) -> str:
        """Run ``source`` and return its printed output."""
        outcome = self.interpret(source)
        if outcome.had_error:
            raise LoxSyntaxError(outcome.diagnostics)
        if outcome.had_runtime_error:
            raise LoxRuntimeError(outcome.diagnostics[-1])
        return "\n".join(outcome.output)

    def eval(self, expression: str) -> Any:
        """Evaluate a single expression and return its Lox value."""
        with self._stack_room():
            lexer = Lexer(expression)
            parser = Parser(lexer.tokens)
            expr = parser.parse_expression()
            diagnostics = lexer.errors + parser.errors
            if diagnostics or expr is None:
                raise LoxSyntaxError(diagnostics)
            line = lexer.tokens[0].line
            resolver = Resolver(self.interpreter)
            result = resolver.resolve_expression(expr, line)
            if resolver.errors:
                raise LoxSyntaxError(resolver.errors)
            if result is None:
                result = self.interpreter.evaluate_expression(expr, line)
        if isinstance(result, Failure):
            raise LoxRuntimeError(result.diagnostic)
        return result

    def define_native(self, name: str, arity: int, func: Callable[..., Any]):
        """Bind a Python callable as a global Lox function."""
        self.interpreter.globals.define(name, NativeFunction(name, arity, func))

    def get(self, name: str) -> Any:
        value, _ = self.interpreter.globals.lookup(name)
        return value

    @contextmanager
    def _stack_room(self):
        previous = sys.getrecursionlimit()
        if previous < self.recursion_limit:
            sys.setrecursionlimit(self.recursion_limit)
        try:
            yield
        finally:
            sys.setrecursionlimit(previous)


def interpret(source: str) -> Outcome:
    """Run ``source`` in a fresh session."""
    return LoxSession().interpret(source)
