from __future__ import annotations
from typing import Any, NamedTuple


class Diagnostic(NamedTuple):
    """A reported problem: message, 1-based line and an optional location."""

    message: str
    line: int
    where: str | None = None

    def __str__(self):
        where = f" {self.where}" if self.where else ""
        return f"[line {self.line}] Error{where}: {self.message}"


class LoxError(Exception):
    pass


class LoxSyntaxError(LoxError):
    """Scan, parse or resolve errors for one compilation unit."""

    def __init__(self, diagnostics: list[Diagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__("\n".join(str(d) for d in self.diagnostics))


class LoxRuntimeError(LoxError):
    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        self.line = diagnostic.line
        super().__init__(str(diagnostic))


class ParseError(LoxError):
    """Raised inside the parser to unwind to the next declaration."""


class ReturnSignal:
    """Result of executing a `return` statement."""

    __slots__ = ("value",)

    def __init__(self, value: Any = None):
        self.value = value

    def __repr__(self):
        return f"ReturnSignal({self.value!r})"


class Failure:
    """Result of an evaluation or execution that hit a runtime error."""

    __slots__ = ("diagnostic",)

    def __init__(self, message: str, line: int, where: str | None = None):
        self.diagnostic = Diagnostic(message, line, where)

    @property
    def message(self) -> str:
        return self.diagnostic.message

    def __repr__(self):
        return f"Failure({self.diagnostic.message!r}, line={self.diagnostic.line})"
