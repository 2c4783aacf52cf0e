from __future__ import annotations
from . import ast_nodes as ast


class AstPrinter:
    """Renders an expression tree in parenthesized prefix form.

    ``1 + 2 * 3`` parses and prints as ``(+ 1.0 (* 2.0 3.0))``.
    """

    def print(self, expr: ast.Expr) -> str:
        if isinstance(expr, ast.Literal):
            return self._literal(expr.value)
        if isinstance(expr, ast.Grouping):
            return self._parenthesize("group", expr.expression)
        if isinstance(expr, ast.Unary):
            return self._parenthesize(expr.operator.lexeme, expr.right)
        if isinstance(expr, (ast.Binary, ast.Logical)):
            return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)
        if isinstance(expr, ast.Variable):
            return expr.name.lexeme
        if isinstance(expr, ast.Assignment):
            return f"(= {expr.name.lexeme} {self.print(expr.value)})"
        if isinstance(expr, ast.Call):
            return self._parenthesize("call", expr.callee, *expr.arguments)
        if isinstance(expr, ast.Get):
            return f"(. {self.print(expr.object)} {expr.name.lexeme})"
        if isinstance(expr, ast.Set):
            target = f"(. {self.print(expr.object)} {expr.name.lexeme})"
            return f"(= {target} {self.print(expr.value)})"
        if isinstance(expr, ast.This):
            return "this"
        if isinstance(expr, ast.Super):
            return f"(super {expr.method.lexeme})"
        raise TypeError(f"cannot print node: {type(expr).__name__}")

    def _parenthesize(self, name: str, *exprs: ast.Expr) -> str:
        parts = [name] + [self.print(e) for e in exprs]
        return "(" + " ".join(parts) + ")"

    @staticmethod
    def _literal(value) -> str:
        if value is None:
            return "nil"
        if value is True:
            return "true"
        if value is False:
            return "false"
        return str(value)
