from __future__ import annotations
import logging
from enum import Enum, auto
from typing import TYPE_CHECKING
from . import ast_nodes as ast
from .errors import Diagnostic, Failure
from .lexer import TK, Token

if TYPE_CHECKING:
    from .interpreter import Interpreter

logger = logging.getLogger(__name__)


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver:
    """Computes, for each local variable reference, how many scopes out its
    declaration lives, and hands the distance to the interpreter.

    References not found in any local scope are left unresolved and looked
    up in the globals at run time.
    """

    def __init__(self, interpreter: Interpreter):
        self.interpreter = interpreter
        self.scopes: list[dict[str, bool]] = []
        self.errors: list[Diagnostic] = []
        # Globals visible so far: already defined, or declared earlier in this unit.
        self.known_globals: set[str] = set(interpreter.globals.names())
        self._function = FunctionType.NONE
        self._class = ClassType.NONE

    def resolve(self, statements: list[ast.Stmt]) -> Failure | None:
        """Resolve a unit of top-level statements.

        Returns a ``Failure`` when the program is nested too deeply for the
        host stack; the rest of the unit is left unresolved.
        """
        for stmt in statements:
            try:
                self._resolve_stmt(stmt)
            except RecursionError:
                return self._overflow(stmt.line)
        return None

    def resolve_expression(self, expr: ast.Expr, line: int = 1) -> Failure | None:
        try:
            self._resolve_expr(expr)
        except RecursionError:
            return self._overflow(line)
        return None

    def _overflow(self, line: int) -> Failure:
        logger.debug("host recursion limit reached resolving line %d", line)
        self.scopes = []
        self._function = FunctionType.NONE
        self._class = ClassType.NONE
        return Failure("Stack overflow.", line)

    def _resolve_all(self, statements: list[ast.Stmt]):
        for stmt in statements:
            self._resolve_stmt(stmt)

    def _error(self, token: Token, msg: str):
        where = "at end" if token.kind == TK.EOF else f"at '{token.lexeme}'"
        self.errors.append(Diagnostic(msg, token.line, where))

    # ---- scopes ----

    def _begin_scope(self):
        self.scopes.append({})

    def _end_scope(self):
        self.scopes.pop()

    def _declare(self, name: Token):
        if not self.scopes:
            self.known_globals.add(name.lexeme)
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self._error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def _define(self, name: Token):
        if self.scopes:
            self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr: ast.Expr, name: str, skip: int = 0) -> bool:
        for i in range(len(self.scopes) - 1 - skip, -1, -1):
            if name in self.scopes[i]:
                self.interpreter.resolve(expr, len(self.scopes) - 1 - i)
                return True
        return False

    # ---- statements ----

    def _resolve_stmt(self, stmt: ast.Stmt):
        if isinstance(stmt, ast.Block):
            self._begin_scope()
            self._resolve_all(stmt.statements)
            self._end_scope()
        elif isinstance(stmt, ast.Var):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expr(stmt.initializer)
            self._define(stmt.name)
        elif isinstance(stmt, ast.Function):
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt, FunctionType.FUNCTION)
        elif isinstance(stmt, ast.Class):
            self._resolve_class(stmt)
        elif isinstance(stmt, (ast.ExprStmt, ast.Print)):
            self._resolve_expr(stmt.expression)
        elif isinstance(stmt, ast.If):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, ast.While):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.body)
        elif isinstance(stmt, ast.Return):
            if self._function is FunctionType.NONE:
                self._error(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                if self._function is FunctionType.INITIALIZER:
                    self._error(stmt.keyword, "Can't return a value from an initializer.")
                self._resolve_expr(stmt.value)
        else:
            raise TypeError(f"cannot resolve node: {type(stmt).__name__}")

    def _resolve_function(self, function: ast.Function, kind: FunctionType):
        enclosing = self._function
        self._function = kind
        self._begin_scope()
        for param in function.params:
            self._declare(param)
            self._define(param)
        self._resolve_all(function.body)
        self._end_scope()
        self._function = enclosing

    def _resolve_class(self, stmt: ast.Class):
        enclosing = self._class
        self._class = ClassType.CLASS
        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self._error(stmt.superclass.name, "A class can't inherit from itself.")
            self._class = ClassType.SUBCLASS
            self._resolve_expr(stmt.superclass)
            self._begin_scope()
            self.scopes[-1]["super"] = True

        self._begin_scope()
        self.scopes[-1]["this"] = True
        for method in stmt.methods:
            kind = FunctionType.METHOD
            if method.name.lexeme == "init":
                kind = FunctionType.INITIALIZER
            self._resolve_function(method, kind)
        self._end_scope()

        if stmt.superclass is not None:
            self._end_scope()
        self._class = enclosing

    # ---- expressions ----

    def _resolve_expr(self, expr: ast.Expr):
        if isinstance(expr, ast.Variable):
            self._resolve_variable(expr)
        elif isinstance(expr, ast.Assignment):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name.lexeme)
        elif isinstance(expr, (ast.Binary, ast.Logical)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)
        elif isinstance(expr, ast.Unary):
            self._resolve_expr(expr.right)
        elif isinstance(expr, ast.Grouping):
            self._resolve_expr(expr.expression)
        elif isinstance(expr, ast.Literal):
            pass
        elif isinstance(expr, ast.Call):
            self._resolve_expr(expr.callee)
            for argument in expr.arguments:
                self._resolve_expr(argument)
        elif isinstance(expr, ast.Get):
            self._resolve_expr(expr.object)
        elif isinstance(expr, ast.Set):
            self._resolve_expr(expr.value)
            self._resolve_expr(expr.object)
        elif isinstance(expr, ast.This):
            if self._class is ClassType.NONE:
                self._error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self._resolve_local(expr, "this")
        elif isinstance(expr, ast.Super):
            if self._class is ClassType.NONE:
                self._error(expr.keyword, "Can't use 'super' outside of a class.")
            elif self._class is not ClassType.SUBCLASS:
                self._error(expr.keyword, "Can't use 'super' in a class with no superclass.")
            self._resolve_local(expr, "super")
        else:
            raise TypeError(f"cannot resolve node: {type(expr).__name__}")

    def _resolve_variable(self, expr: ast.Variable):
        name = expr.name.lexeme
        if self.scopes and self.scopes[-1].get(name) is False:
            # Inside its own initializer: bind to the enclosing declaration.
            if self._resolve_local(expr, name, skip=1) or name in self.known_globals:
                return
            self._error(expr.name, "Can't read local variable in its own initializer.")
            return
        self._resolve_local(expr, name)
