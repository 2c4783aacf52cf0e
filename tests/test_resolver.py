import pytest
from treelox import ast_nodes as ast
from treelox.interpreter import Interpreter
from treelox.lexer import Lexer
from treelox.parser import Parser
from treelox.resolver import Resolver


def resolve(source):
    parser = Parser(Lexer(source).tokens)
    statements = parser.parse()
    assert parser.errors == []
    interpreter = Interpreter()
    resolver = Resolver(interpreter)
    resolver.resolve(statements)
    return statements, interpreter, resolver.errors


def error_messages(source):
    _, _, errors = resolve(source)
    return [e.message for e in errors]


class TestDistances:
    def test_global_is_unresolved(self):
        statements, interpreter, errors = resolve("var a = 1; print a;")
        assert errors == []
        assert statements[1].expression.id not in interpreter.locals

    def test_local_in_same_scope(self):
        statements, interpreter, _ = resolve("{ var a = 1; print a; }")
        ref = statements[0].statements[1].expression
        assert interpreter.locals[ref.id] == 0

    def test_local_in_enclosing_scope(self):
        statements, interpreter, _ = resolve("{ var a = 1; { { print a; } } }")
        ref = statements[0].statements[1].statements[0].statements[0].expression
        assert interpreter.locals[ref.id] == 2

    def test_closure_parameter(self):
        statements, interpreter, _ = resolve(
            "fun outer(x) { fun inner() { return x; } return inner; }"
        )
        inner = statements[0].body[0]
        ref = inner.body[0].value
        assert interpreter.locals[ref.id] == 1

    def test_assignment_is_resolved(self):
        statements, interpreter, _ = resolve("{ var a; { a = 2; } }")
        assign = statements[0].statements[1].statements[0].expression
        assert isinstance(assign, ast.Assignment)
        assert interpreter.locals[assign.id] == 1

    def test_this_and_super_distances(self):
        statements, interpreter, errors = resolve(
            "class A { m() {} } class B < A { m() { super.m(); return this; } }"
        )
        assert errors == []
        method = statements[1].methods[0]
        sup = method.body[0].expression.callee
        this = method.body[1].value
        # method scope -> this scope -> super scope
        assert interpreter.locals[this.id] == 1
        assert interpreter.locals[sup.id] == 2

    def test_resolving_twice_gives_same_distances(self):
        source = "fun f(a) { { var b = a; print b; } return a; }"
        statements, interpreter, _ = resolve(source)
        first = dict(interpreter.locals)
        Resolver(interpreter).resolve(statements)
        assert interpreter.locals == first


class TestOwnInitializer:
    def test_shadowing_reads_enclosing_global(self):
        statements, interpreter, errors = resolve("var a = 1; { var a = a + 1; print a; }")
        assert errors == []
        initializer = statements[1].statements[0].initializer
        assert initializer.left.id not in interpreter.locals

    def test_shadowing_reads_enclosing_local(self):
        statements, interpreter, errors = resolve("{ var a = 1; { var a = a; } }")
        assert errors == []
        inner = statements[0].statements[1].statements[0]
        assert interpreter.locals[inner.initializer.id] == 1

    def test_no_enclosing_declaration_is_error(self):
        assert error_messages("{ var a = a; }") == [
            "Can't read local variable in its own initializer."
        ]

    def test_known_interpreter_globals(self):
        assert error_messages("{ var clock = clock; }") == []


class TestErrors:
    def test_duplicate_local(self):
        assert error_messages("{ var a = 1; var a = 2; }") == [
            "Already a variable with this name in this scope."
        ]

    def test_duplicate_global_allowed(self):
        assert error_messages("var a = 1; var a = 2;") == []

    def test_duplicate_parameter(self):
        assert error_messages("fun f(a, a) {}") == [
            "Already a variable with this name in this scope."
        ]

    def test_top_level_return(self):
        assert error_messages("return 1;") == ["Can't return from top-level code."]

    def test_return_value_from_initializer(self):
        assert error_messages("class A { init() { return 1; } }") == [
            "Can't return a value from an initializer."
        ]

    def test_bare_return_in_initializer(self):
        assert error_messages("class A { init() { return; } }") == []

    def test_this_outside_class(self):
        assert error_messages("print this;") == ["Can't use 'this' outside of a class."]

    def test_this_in_function_outside_class(self):
        assert error_messages("fun f() { return this; }") == [
            "Can't use 'this' outside of a class."
        ]

    def test_super_outside_class(self):
        assert error_messages("super.m();") == ["Can't use 'super' outside of a class."]

    def test_super_without_superclass(self):
        assert error_messages("class A { m() { super.m(); } }") == [
            "Can't use 'super' in a class with no superclass."
        ]

    def test_inherit_from_itself(self):
        assert error_messages("class A < A {}") == ["A class can't inherit from itself."]

    def test_errors_are_collected(self):
        messages = error_messages("return 1; print this; { var a; var a; }")
        assert len(messages) == 3

    def test_deep_nesting_returns_failure(self):
        parser = Parser(Lexer("print 1;\n\nprint true" + " or true" * 20000 + ";").tokens)
        statements = parser.parse()
        resolver = Resolver(Interpreter())
        failure = resolver.resolve(statements)
        assert failure.message == "Stack overflow."
        assert failure.diagnostic.line == 3
        assert resolver.errors == []
        assert resolver.scopes == []

    def test_resolve_returns_none_on_success(self):
        parser = Parser(Lexer("{ var a = 1; print a; }").tokens)
        assert Resolver(Interpreter()).resolve(parser.parse()) is None

    @pytest.mark.parametrize("source", [
        "fun f() { return 1; }",
        "class A { m() { return this; } }",
        "class A {} class B < A { m() { return super.m; } }",
    ])
    def test_valid_programs(self, source):
        assert error_messages(source) == []
