from __future__ import annotations
import dataclasses
from .lexer import TK, Token
from .errors import Diagnostic, ParseError
from . import ast_nodes as ast


MAX_ARGUMENTS = 255

# Keywords that start a statement; synchronization stops before them.
_STATEMENT_START = frozenset((
    TK.CLASS, TK.FUN, TK.VAR, TK.FOR, TK.IF, TK.WHILE, TK.PRINT, TK.RETURN,
))


class Parser:
    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0
        self.errors: list[Diagnostic] = []

    # ---- helpers ----

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def _peek_kind(self) -> TK:
        return self.tokens[self.pos].kind

    def _at_end(self) -> bool:
        return self._peek_kind() == TK.EOF

    def _check(self, kind: TK) -> bool:
        return self._peek_kind() == kind

    def _advance(self) -> Token:
        if not self._at_end():
            self.pos += 1
        return self._previous()

    def _match(self, *kinds: TK) -> Token | None:
        if self._peek_kind() in kinds:
            return self._advance()
        return None

    def _expect(self, kind: TK, msg: str) -> Token:
        if self._check(kind):
            return self._advance()
        raise self._error(self._cur(), msg)

    def _error(self, token: Token, msg: str) -> ParseError:
        """Record a diagnostic and return the error for the caller to raise."""
        where = "at end" if token.kind == TK.EOF else f"at '{token.lexeme}'"
        self.errors.append(Diagnostic(msg, token.line, where))
        return ParseError(msg)

    def _synchronize(self):
        self._advance()
        while not self._at_end():
            if self._previous().kind == TK.SEMICOLON:
                return
            if self._peek_kind() in _STATEMENT_START:
                return
            self._advance()

    # ---- top-level ----

    def parse(self) -> list[ast.Stmt]:
        statements: list[ast.Stmt] = []
        while not self._at_end():
            line = self._cur().line
            stmt = self._declaration()
            if stmt is not None:
                statements.append(dataclasses.replace(stmt, line=line))
        return statements

    def parse_expression(self) -> ast.Expr | None:
        """Parse a program that is exactly one expression."""
        try:
            expr = self._expression()
            if not self._at_end():
                raise self._error(self._cur(), "Expect end of expression.")
            return expr
        except ParseError:
            return None
        except RecursionError:
            self.errors.append(Diagnostic("Expression nesting too deep.", self._cur().line))
            return None

    # ---- declarations ----

    def _declaration(self) -> ast.Stmt | None:
        try:
            if self._match(TK.CLASS):
                return self._class_declaration()
            if self._match(TK.FUN):
                return self._function("function")
            if self._match(TK.VAR):
                return self._var_declaration()
            return self._statement()
        except ParseError:
            self._synchronize()
            return None
        except RecursionError:
            self.errors.append(Diagnostic("Expression nesting too deep.", self._cur().line))
            self._synchronize()
            return None

    def _class_declaration(self) -> ast.Class:
        name = self._expect(TK.IDENTIFIER, "Expect class name.")
        superclass = None
        if self._match(TK.LESS):
            self._expect(TK.IDENTIFIER, "Expect superclass name.")
            superclass = ast.Variable(self._previous())
        self._expect(TK.LEFT_BRACE, "Expect '{' before class body.")
        methods: list[ast.Function] = []
        while not self._check(TK.RIGHT_BRACE) and not self._at_end():
            methods.append(self._function("method"))
        self._expect(TK.RIGHT_BRACE, "Expect '}' after class body.")
        return ast.Class(name, superclass, methods)

    def _function(self, kind: str) -> ast.Function:
        name = self._expect(TK.IDENTIFIER, f"Expect {kind} name.")
        self._expect(TK.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params: list[Token] = []
        if not self._check(TK.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self._error(self._cur(), f"Can't have more than {MAX_ARGUMENTS} parameters.")
                params.append(self._expect(TK.IDENTIFIER, "Expect parameter name."))
                if not self._match(TK.COMMA):
                    break
        self._expect(TK.RIGHT_PAREN, "Expect ')' after parameters.")
        self._expect(TK.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body = self._block()
        return ast.Function(name, params, body)

    def _var_declaration(self) -> ast.Var:
        name = self._expect(TK.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self._match(TK.EQUAL):
            initializer = self._expression()
        self._expect(TK.SEMICOLON, "Expect ';' after variable declaration.")
        return ast.Var(name, initializer)

    # ---- statements ----

    def _statement(self) -> ast.Stmt:
        if self._match(TK.FOR):
            return self._for_statement()
        if self._match(TK.IF):
            return self._if_statement()
        if self._match(TK.PRINT):
            return self._print_statement()
        if self._match(TK.RETURN):
            return self._return_statement()
        if self._match(TK.WHILE):
            return self._while_statement()
        if self._match(TK.LEFT_BRACE):
            return ast.Block(self._block())
        return self._expression_statement()

    def _for_statement(self) -> ast.Stmt:
        """Desugar ``for`` into a block holding the initializer and a while loop."""
        self._expect(TK.LEFT_PAREN, "Expect '(' after 'for'.")
        if self._match(TK.SEMICOLON):
            initializer = None
        elif self._match(TK.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TK.SEMICOLON):
            condition = self._expression()
        self._expect(TK.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TK.RIGHT_PAREN):
            increment = self._expression()
        self._expect(TK.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()
        if increment is not None:
            body = ast.Block([body, ast.ExprStmt(increment)])
        if condition is None:
            condition = ast.Literal(True)
        body = ast.While(condition, body)
        if initializer is not None:
            body = ast.Block([initializer, body])
        return body

    def _if_statement(self) -> ast.If:
        self._expect(TK.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._expect(TK.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self._statement()
        else_branch = None
        if self._match(TK.ELSE):
            else_branch = self._statement()
        return ast.If(condition, then_branch, else_branch)

    def _print_statement(self) -> ast.Print:
        value = self._expression()
        self._expect(TK.SEMICOLON, "Expect ';' after value.")
        return ast.Print(value)

    def _return_statement(self) -> ast.Return:
        keyword = self._previous()
        value = None
        if not self._check(TK.SEMICOLON):
            value = self._expression()
        self._expect(TK.SEMICOLON, "Expect ';' after return value.")
        return ast.Return(keyword, value)

    def _while_statement(self) -> ast.While:
        self._expect(TK.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._expect(TK.RIGHT_PAREN, "Expect ')' after condition.")
        return ast.While(condition, self._statement())

    def _block(self) -> list[ast.Stmt]:
        statements: list[ast.Stmt] = []
        while not self._check(TK.RIGHT_BRACE) and not self._at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        self._expect(TK.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def _expression_statement(self) -> ast.ExprStmt:
        expr = self._expression()
        self._expect(TK.SEMICOLON, "Expect ';' after expression.")
        return ast.ExprStmt(expr)

    # ---- expressions ----

    def _expression(self) -> ast.Expr:
        return self._assignment()

    def _assignment(self) -> ast.Expr:
        expr = self._or()
        equals = self._match(TK.EQUAL)
        if equals is None:
            return expr
        value = self._assignment()
        if isinstance(expr, ast.Variable):
            return ast.Assignment(expr.name, value)
        if isinstance(expr, ast.Get):
            return ast.Set(expr.object, expr.name, value)
        self._error(equals, "Invalid assignment target.")
        return expr

    def _or(self) -> ast.Expr:
        expr = self._and()
        while self._match(TK.OR):
            operator = self._previous()
            expr = ast.Logical(expr, operator, self._and())
        return expr

    def _and(self) -> ast.Expr:
        expr = self._equality()
        while self._match(TK.AND):
            operator = self._previous()
            expr = ast.Logical(expr, operator, self._equality())
        return expr

    def _equality(self) -> ast.Expr:
        expr = self._comparison()
        while self._match(TK.BANG_EQUAL, TK.EQUAL_EQUAL):
            operator = self._previous()
            expr = ast.Binary(expr, operator, self._comparison())
        return expr

    # Right operands of comparison, term and factor operators are parsed at
    # comparison level: `1 * 2 - 3` groups as `(* 1 (- 2 3))`.

    def _comparison(self) -> ast.Expr:
        return self._binary(self._term(), TK.GREATER, TK.GREATER_EQUAL, TK.LESS, TK.LESS_EQUAL)

    def _term(self) -> ast.Expr:
        return self._binary(self._factor(), TK.MINUS, TK.PLUS)

    def _factor(self) -> ast.Expr:
        return self._binary(self._unary(), TK.SLASH, TK.STAR)

    def _binary(self, left: ast.Expr, *kinds: TK) -> ast.Expr:
        operator = self._match(*kinds)
        if operator is None:
            return left
        return ast.Binary(left, operator, self._comparison())

    def _unary(self) -> ast.Expr:
        operator = self._match(TK.BANG, TK.MINUS)
        if operator is not None:
            return ast.Unary(operator, self._unary())
        return self._call()

    def _call(self) -> ast.Expr:
        expr = self._primary()
        while True:
            if self._match(TK.LEFT_PAREN):
                expr = self._finish_call(expr)
            elif self._match(TK.DOT):
                name = self._expect(TK.IDENTIFIER, "Expect property name after '.'.")
                expr = ast.Get(expr, name)
            else:
                break
        return expr

    def _finish_call(self, callee: ast.Expr) -> ast.Call:
        arguments: list[ast.Expr] = []
        if not self._check(TK.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self._error(self._cur(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                arguments.append(self._expression())
                if not self._match(TK.COMMA):
                    break
        paren = self._expect(TK.RIGHT_PAREN, "Expect ')' after arguments.")
        return ast.Call(callee, paren, arguments)

    def _primary(self) -> ast.Expr:
        if self._match(TK.FALSE):
            return ast.Literal(False)
        if self._match(TK.TRUE):
            return ast.Literal(True)
        if self._match(TK.NIL):
            return ast.Literal(None)
        if self._match(TK.NUMBER, TK.STRING):
            return ast.Literal(self._previous().literal)
        if self._match(TK.THIS):
            return ast.This(self._previous())
        if self._match(TK.SUPER):
            keyword = self._previous()
            self._expect(TK.DOT, "Expect '.' after 'super'.")
            method = self._expect(TK.IDENTIFIER, "Expect superclass method name.")
            return ast.Super(keyword, method)
        if self._match(TK.IDENTIFIER):
            return ast.Variable(self._previous())
        if self._match(TK.LEFT_PAREN):
            expr = self._expression()
            self._expect(TK.RIGHT_PAREN, "Expect ')' after expression.")
            return ast.Grouping(expr)
        raise self._error(self._cur(), "Expect expression.")
