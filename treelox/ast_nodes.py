from __future__ import annotations
import itertools
from dataclasses import dataclass, field
from typing import Optional
from .lexer import Token

_ids = itertools.count(1)


def _next_id() -> int:
    return next(_ids)


# --------------- Expressions ---------------

@dataclass(frozen=True)
class Expr:
    # Key for the resolver's binding table; not part of equality.
    id: int = field(default_factory=_next_id, compare=False, repr=False, kw_only=True)

@dataclass(frozen=True)
class Literal(Expr):
    value: object

@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr

@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr

@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr

@dataclass(frozen=True)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr

@dataclass(frozen=True)
class Variable(Expr):
    name: Token

@dataclass(frozen=True)
class Assignment(Expr):
    name: Token
    value: Expr

@dataclass(frozen=True)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: list[Expr]

@dataclass(frozen=True)
class Get(Expr):
    object: Expr
    name: Token

@dataclass(frozen=True)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr

@dataclass(frozen=True)
class This(Expr):
    keyword: Token

@dataclass(frozen=True)
class Super(Expr):
    keyword: Token
    method: Token


# --------------- Statements ---------------

@dataclass(frozen=True)
class Stmt:
    # Line where a top-level statement starts; 0 for nested ones.
    line: int = field(default=0, compare=False, repr=False, kw_only=True)

@dataclass(frozen=True)
class ExprStmt(Stmt):
    expression: Expr

@dataclass(frozen=True)
class Print(Stmt):
    expression: Expr

@dataclass(frozen=True)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None

@dataclass(frozen=True)
class Block(Stmt):
    statements: list[Stmt]

@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None

@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt

@dataclass(frozen=True)
class Function(Stmt):
    name: Token
    params: list[Token]
    body: list[Stmt]

@dataclass(frozen=True)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr] = None

@dataclass(frozen=True)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: list[Function]
