from __future__ import annotations
import time
from typing import Any, Callable, TYPE_CHECKING
from . import ast_nodes as ast
from .errors import Failure, ReturnSignal
from .lexer import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


class Environment:
    __slots__ = ("values", "enclosing")

    def __init__(self, enclosing: Environment | None = None):
        self.values: dict[str, Any] = {}
        self.enclosing = enclosing

    def define(self, name: str, value):
        self.values[name] = value

    def lookup(self, name: str):
        """Search the chain; returns ``(value, found)``."""
        env = self
        while env is not None:
            if name in env.values:
                return env.values[name], True
            env = env.enclosing
        return None, False

    def assign(self, name: str, value) -> bool:
        env = self
        while env is not None:
            if name in env.values:
                env.values[name] = value
                return True
            env = env.enclosing
        return False

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str):
        return self.ancestor(distance).values.get(name)

    def assign_at(self, distance: int, name: str, value):
        self.ancestor(distance).values[name] = value

    def names(self) -> list[str]:
        return list(self.values)


class LoxCallable:
    """Anything a call expression can invoke."""

    __slots__ = ()

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: list) -> Any:
        """Return the call's value, or a ``Failure``."""
        raise NotImplementedError


class NativeFunction(LoxCallable):
    __slots__ = ("name", "_arity", "func")

    def __init__(self, name: str, arity: int, func: Callable[..., Any]):
        self.name = name
        self._arity = arity
        self.func = func

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter, arguments):
        return self.func(*arguments)

    def __str__(self):
        return "<native fn>"


def clock() -> float:
    return time.time()


class LoxFunction(LoxCallable):
    __slots__ = ("declaration", "closure", "is_initializer")

    def __init__(self, declaration: ast.Function, closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    def bind(self, instance: LoxInstance) -> LoxFunction:
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)
        result = interpreter.execute_block(self.declaration.body, env)
        if isinstance(result, Failure):
            return result
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if isinstance(result, ReturnSignal):
            return result.value
        return None

    def __str__(self):
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    __slots__ = ("name", "superclass", "methods")

    def __init__(self, name: str, superclass: LoxClass | None, methods: dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> LoxFunction | None:
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        return initializer.arity() if initializer is not None else 0

    def call(self, interpreter, arguments):
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            result = initializer.bind(instance).call(interpreter, arguments)
            if isinstance(result, Failure):
                return result
        return instance

    def __str__(self):
        return self.name


class LoxInstance:
    __slots__ = ("klass", "fields")

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: dict[str, Any] = {}

    def get(self, name: Token):
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        return Failure(f"Undefined property '{name.lexeme}'.", name.line)

    def set(self, name: Token, value):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"
