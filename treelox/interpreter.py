from __future__ import annotations
import logging
import math
import operator
from typing import Any, Callable
from . import ast_nodes as ast
from .errors import Failure, ReturnSignal
from .lexer import TK, Token
from .runtime import (
    Environment, LoxCallable, LoxClass, LoxFunction, LoxInstance, NativeFunction, clock,
)

logger = logging.getLogger(__name__)


def is_truthy(v) -> bool:
    return v is not None and v is not False


def is_equal(a, b) -> bool:
    if a is None and b is None:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, (float, str, bool)):
        return a == b
    # functions, classes and instances are never equal
    return False


def stringify(v) -> str:
    if v is None:
        return "nil"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        return _format_number(v)
    return str(v)


def _format_number(v: float) -> str:
    if math.isinf(v):
        return "-inf" if v < 0 else "inf"
    if math.isnan(v):
        return "nan"
    text = repr(v)
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1, b)
    return a / b


_ARITHMETIC: dict[TK, Callable[[float, float], Any]] = {
    TK.MINUS: operator.sub,
    TK.STAR: operator.mul,
    TK.SLASH: _divide,
    TK.GREATER: operator.gt,
    TK.GREATER_EQUAL: operator.ge,
    TK.LESS: operator.lt,
    TK.LESS_EQUAL: operator.le,
}


class Interpreter:
    def __init__(
        self,
        max_call_depth: int = 256,
        writer: Callable[[str], None] | None = None,
    ):
        self.globals = Environment()
        self.environment = self.globals
        self.locals: dict[int, int] = {}
        self.max_call_depth = max_call_depth
        self.call_depth = 0
        self.writer = writer
        self.output: list[str] = []
        self.globals.define("clock", NativeFunction("clock", 0, clock))

    # ---- public interface ----

    def resolve(self, expr: ast.Expr, depth: int):
        self.locals[expr.id] = depth

    def interpret(self, statements: list[ast.Stmt]) -> Failure | None:
        """Run a unit of statements; return the runtime failure, if any."""
        for stmt in statements:
            try:
                result = self._execute(stmt)
            except RecursionError:
                result = self._overflow(stmt.line)
            if isinstance(result, Failure):
                self.environment = self.globals
                self.call_depth = 0
                return result
        return None

    def evaluate_expression(self, expr: ast.Expr, line: int = 1):
        try:
            result = self._evaluate(expr)
        except RecursionError:
            result = self._overflow(line)
        if isinstance(result, Failure):
            self.environment = self.globals
            self.call_depth = 0
        return result

    def _overflow(self, line: int) -> Failure:
        # Deep nesting outside any call; _call handles the rest.
        logger.debug("host recursion limit reached at line %d", line)
        return Failure("Stack overflow.", line)

    # ---- statements ----

    def _execute(self, stmt: ast.Stmt):
        """Execute one statement; returns None, a ReturnSignal or a Failure."""
        if isinstance(stmt, ast.ExprStmt):
            value = self._evaluate(stmt.expression)
            return value if isinstance(value, Failure) else None
        if isinstance(stmt, ast.Print):
            value = self._evaluate(stmt.expression)
            if isinstance(value, Failure):
                return value
            self._write(stringify(value))
            return None
        if isinstance(stmt, ast.Var):
            value = None
            if stmt.initializer is not None:
                value = self._evaluate(stmt.initializer)
                if isinstance(value, Failure):
                    return value
            self.environment.define(stmt.name.lexeme, value)
            return None
        if isinstance(stmt, ast.Block):
            return self.execute_block(stmt.statements, Environment(self.environment))
        if isinstance(stmt, ast.If):
            condition = self._evaluate(stmt.condition)
            if isinstance(condition, Failure):
                return condition
            if is_truthy(condition):
                return self._execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self._execute(stmt.else_branch)
            return None
        if isinstance(stmt, ast.While):
            return self._exec_while(stmt)
        if isinstance(stmt, ast.Function):
            function = LoxFunction(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)
            return None
        if isinstance(stmt, ast.Return):
            value = None
            if stmt.value is not None:
                value = self._evaluate(stmt.value)
                if isinstance(value, Failure):
                    return value
            return ReturnSignal(value)
        if isinstance(stmt, ast.Class):
            return self._exec_class(stmt)
        raise TypeError(f"cannot execute node: {type(stmt).__name__}")

    def execute_block(self, statements: list[ast.Stmt], environment: Environment):
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                result = self._execute(stmt)
                if result is not None:
                    return result
            return None
        finally:
            self.environment = previous

    def _exec_while(self, stmt: ast.While):
        while True:
            condition = self._evaluate(stmt.condition)
            if isinstance(condition, Failure):
                return condition
            if not is_truthy(condition):
                return None
            result = self._execute(stmt.body)
            if result is not None:
                return result

    def _exec_class(self, stmt: ast.Class):
        superclass = None
        if stmt.superclass is not None:
            superclass = self._evaluate(stmt.superclass)
            if isinstance(superclass, Failure):
                return superclass
            if not isinstance(superclass, LoxClass):
                name = stmt.superclass.name
                return Failure("Superclass must be a class.", name.line, f"at '{name.lexeme}'")

        self.environment.define(stmt.name.lexeme, None)

        enclosing = self.environment
        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods = {
            method.name.lexeme: LoxFunction(method, self.environment, method.name.lexeme == "init")
            for method in stmt.methods
        }
        klass = LoxClass(stmt.name.lexeme, superclass, methods)
        self.environment = enclosing
        self.environment.assign(stmt.name.lexeme, klass)
        return None

    def _write(self, text: str):
        self.output.append(text)
        if self.writer is not None:
            self.writer(text)

    # ---- expressions ----

    def _evaluate(self, expr: ast.Expr):
        """Evaluate an expression to a Lox value or a Failure."""
        if isinstance(expr, ast.Literal):
            return expr.value
        if isinstance(expr, ast.Grouping):
            return self._evaluate(expr.expression)
        if isinstance(expr, ast.Variable):
            return self._look_up_variable(expr.name, expr)
        if isinstance(expr, ast.Assignment):
            return self._eval_assignment(expr)
        if isinstance(expr, ast.Unary):
            return self._eval_unary(expr)
        if isinstance(expr, ast.Binary):
            return self._eval_binary(expr)
        if isinstance(expr, ast.Logical):
            left = self._evaluate(expr.left)
            if isinstance(left, Failure):
                return left
            if expr.operator.kind == TK.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self._evaluate(expr.right)
        if isinstance(expr, ast.Call):
            return self._eval_call(expr)
        if isinstance(expr, ast.Get):
            obj = self._evaluate(expr.object)
            if isinstance(obj, Failure):
                return obj
            if not isinstance(obj, LoxInstance):
                return Failure("Only instances have properties.", expr.name.line)
            return obj.get(expr.name)
        if isinstance(expr, ast.Set):
            obj = self._evaluate(expr.object)
            if isinstance(obj, Failure):
                return obj
            if not isinstance(obj, LoxInstance):
                return Failure("Only instances have fields.", expr.name.line)
            value = self._evaluate(expr.value)
            if isinstance(value, Failure):
                return value
            obj.set(expr.name, value)
            return value
        if isinstance(expr, ast.This):
            return self._look_up_variable(expr.keyword, expr)
        if isinstance(expr, ast.Super):
            return self._eval_super(expr)
        raise TypeError(f"cannot evaluate node: {type(expr).__name__}")

    def _look_up_variable(self, name: Token, expr: ast.Expr):
        distance = self.locals.get(expr.id)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        value, found = self.globals.lookup(name.lexeme)
        if not found:
            return Failure(f"Undefined variable '{name.lexeme}'.", name.line)
        return value

    def _eval_assignment(self, expr: ast.Assignment):
        value = self._evaluate(expr.value)
        if isinstance(value, Failure):
            return value
        distance = self.locals.get(expr.id)
        if distance is not None:
            self.environment.assign_at(distance, expr.name.lexeme, value)
        elif not self.globals.assign(expr.name.lexeme, value):
            return Failure(f"Undefined variable '{expr.name.lexeme}'.", expr.name.line)
        return value

    def _eval_unary(self, expr: ast.Unary):
        right = self._evaluate(expr.right)
        if isinstance(right, Failure):
            return right
        if expr.operator.kind == TK.BANG:
            return not is_truthy(right)
        if expr.operator.kind == TK.MINUS:
            if not isinstance(right, float):
                return Failure("Operand must be a number.", expr.operator.line)
            return -right
        raise TypeError(f"unknown unary operator: {expr.operator.lexeme}")

    def _eval_binary(self, expr: ast.Binary):
        left = self._evaluate(expr.left)
        if isinstance(left, Failure):
            return left
        right = self._evaluate(expr.right)
        if isinstance(right, Failure):
            return right

        kind = expr.operator.kind
        if kind == TK.EQUAL_EQUAL:
            return is_equal(left, right)
        if kind == TK.BANG_EQUAL:
            return not is_equal(left, right)

        both_numbers = isinstance(left, float) and isinstance(right, float)
        if kind == TK.PLUS:
            if both_numbers:
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            return Failure(
                "Operands must be two numbers or two strings.", expr.operator.line, "at '+'"
            )
        op_func = _ARITHMETIC.get(kind)
        if op_func is None:
            raise TypeError(f"unknown binary operator: {expr.operator.lexeme}")
        if not both_numbers:
            return Failure(
                "Operands must be numbers.", expr.operator.line, f"at '{expr.operator.lexeme}'"
            )
        return op_func(left, right)

    def _eval_call(self, expr: ast.Call):
        callee = self._evaluate(expr.callee)
        if isinstance(callee, Failure):
            return callee
        arguments = []
        for argument in expr.arguments:
            value = self._evaluate(argument)
            if isinstance(value, Failure):
                return value
            arguments.append(value)

        if not isinstance(callee, LoxCallable):
            return Failure("Can only call functions and classes.", expr.paren.line)
        if len(arguments) != callee.arity():
            return Failure(
                f"Expected {callee.arity()} arguments but got {len(arguments)}.", expr.paren.line
            )
        return self._call(callee, arguments, expr.paren)

    def _call(self, callee: LoxCallable, arguments: list, paren: Token):
        if self.call_depth >= self.max_call_depth:
            logger.debug("call depth limit %d reached at line %d", self.max_call_depth, paren.line)
            return Failure("Stack overflow.", paren.line)
        self.call_depth += 1
        try:
            return callee.call(self, arguments)
        except RecursionError:
            logger.debug("host recursion limit reached at line %d", paren.line)
            return Failure("Stack overflow.", paren.line)
        finally:
            self.call_depth -= 1

    def _eval_super(self, expr: ast.Super):
        distance = self.locals[expr.id]
        superclass = self.environment.get_at(distance, "super")
        instance = self.environment.get_at(distance - 1, "this")
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            return Failure(f"Undefined property '{expr.method.lexeme}'.", expr.method.line)
        return method.bind(instance)
