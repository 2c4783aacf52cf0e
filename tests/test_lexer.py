import pytest
from treelox.lexer import Lexer, Token, TK, KEYWORDS


def scan(source):
    return Lexer(source).tokens


class TestSingleTokens:
    @pytest.mark.parametrize("text,tk", [
        ("(", TK.LEFT_PAREN), (")", TK.RIGHT_PAREN), ("{", TK.LEFT_BRACE),
        ("}", TK.RIGHT_BRACE), (",", TK.COMMA), (".", TK.DOT),
        ("-", TK.MINUS), ("+", TK.PLUS), (";", TK.SEMICOLON),
        ("/", TK.SLASH), ("*", TK.STAR), ("!", TK.BANG),
        ("!=", TK.BANG_EQUAL), ("=", TK.EQUAL), ("==", TK.EQUAL_EQUAL),
        (">", TK.GREATER), (">=", TK.GREATER_EQUAL), ("<", TK.LESS),
        ("<=", TK.LESS_EQUAL),
    ])
    def test_operator(self, text, tk):
        assert scan(text) == [Token(tk, text, None, 1), Token(TK.EOF, "", None, 1)]

    @pytest.mark.parametrize("kw,tk", sorted(KEYWORDS.items()))
    def test_keyword(self, kw, tk):
        assert scan(kw) == [Token(tk, kw, None, 1), Token(TK.EOF, "", None, 1)]

    def test_identifier(self):
        assert scan("Hello") == [
            Token(TK.IDENTIFIER, "Hello", None, 1), Token(TK.EOF, "", None, 1),
        ]

    def test_identifier_with_underscore_and_digits(self):
        tokens = scan("_abc_123")
        assert tokens[0].kind == TK.IDENTIFIER
        assert tokens[0].lexeme == "_abc_123"

    def test_keyword_prefix_is_identifier(self):
        tokens = scan("classy orchid")
        assert [t.kind for t in tokens] == [TK.IDENTIFIER, TK.IDENTIFIER, TK.EOF]

    def test_two_char_operators_longest_match(self):
        kinds = [t.kind for t in scan("!===<=>")]
        assert kinds == [TK.BANG_EQUAL, TK.EQUAL_EQUAL, TK.LESS_EQUAL, TK.GREATER, TK.EOF]


class TestNumbers:
    @pytest.mark.parametrize("text,value", [
        ("0.0", 0.0), ("3.1415926", 3.1415926), ("0.1111", 0.1111),
        ("1111.0", 1111.0), ("1234.0000", 1234.0), ("1234", 1234.0),
    ])
    def test_number(self, text, value):
        tokens = scan(text)
        assert tokens == [Token(TK.NUMBER, text, value, 1), Token(TK.EOF, "", None, 1)]
        assert isinstance(tokens[0].literal, float)

    def test_integer_and_decimal_forms_agree(self):
        assert scan("1234")[0].literal == scan("1234.0000")[0].literal == 1234.0

    def test_trailing_dot_is_separate(self):
        kinds = [t.kind for t in scan("1.")]
        assert kinds == [TK.NUMBER, TK.DOT, TK.EOF]

    def test_method_call_on_number(self):
        kinds = [t.kind for t in scan("1.foo")]
        assert kinds == [TK.NUMBER, TK.DOT, TK.IDENTIFIER, TK.EOF]


class TestStrings:
    @pytest.mark.parametrize("text", [
        "Hello", "Hello, World", "+-*/", "\t\t\t", "''", "_abc def ghi",
    ])
    def test_string(self, text):
        quoted = f'"{text}"'
        assert scan(quoted) == [
            Token(TK.STRING, quoted, text, 1), Token(TK.EOF, "", None, 1),
        ]

    def test_empty_string(self):
        assert scan('""')[0].literal == ""

    @pytest.mark.parametrize("text,newlines", [
        ("Hello \n World", 1),
        ("Brave \n New \n World", 2),
        ("Hi! \n My Friend, \n I miss you. \n <3", 3),
        ("\n\n\n\n", 4),
    ])
    def test_newlines_in_string(self, text, newlines):
        quoted = f'"{text}"'
        line = 1 + newlines
        assert scan(quoted) == [
            Token(TK.STRING, quoted, text, line), Token(TK.EOF, "", None, line),
        ]

    def test_unterminated_string(self):
        lexer = Lexer('"hello')
        assert len(lexer.errors) == 1
        assert lexer.errors[0].message == "Unterminated string."
        assert lexer.tokens[0].kind == TK.DOUBLE_QUOTE
        assert lexer.tokens[0].lexeme == '"hello'
        assert lexer.tokens[-1].kind == TK.EOF

    def test_lone_quote(self):
        lexer = Lexer('"')
        assert lexer.tokens == [Token(TK.DOUBLE_QUOTE, '"', None, 1), Token(TK.EOF, "", None, 1)]
        assert lexer.errors


class TestComments:
    def test_line_comment(self):
        tokens = scan("// this is a comment\n42")
        assert tokens[0].kind == TK.NUMBER
        assert tokens[0].line == 2

    def test_line_comment_at_end(self):
        assert scan("// nothing") == [Token(TK.EOF, "", None, 1)]

    def test_block_comment(self):
        tokens = scan("/* a\nb\nc */ 1")
        assert tokens[0].kind == TK.NUMBER
        assert tokens[0].line == 3

    def test_block_comment_with_stars(self):
        tokens = scan("/** x * y **/ 1")
        assert [t.kind for t in tokens] == [TK.NUMBER, TK.EOF]

    def test_unterminated_block_comment(self):
        lexer = Lexer("/* never closed")
        assert lexer.errors[0].message == "Unterminated block comment."
        assert [t.kind for t in lexer.tokens] == [TK.EOF]

    def test_slash_alone(self):
        assert scan("a / b")[1].kind == TK.SLASH


class TestLineTracking:
    def test_line_numbers(self):
        tokens = scan("a\nb\nc")
        assert [t.line for t in tokens] == [1, 2, 3, 3]

    def test_crlf(self):
        tokens = scan("a\r\nb")
        assert [t.line for t in tokens] == [1, 2, 2]


class TestErrors:
    def test_unexpected_character_is_skipped(self):
        lexer = Lexer("a @ b")
        assert [t.kind for t in lexer.tokens] == [TK.IDENTIFIER, TK.IDENTIFIER, TK.EOF]
        assert len(lexer.errors) == 1
        assert lexer.errors[0].line == 1

    def test_unexpected_character_message(self):
        assert Lexer("#").errors[0].message == "Unexpected character '#'."

    def test_scanning_continues_after_errors(self):
        lexer = Lexer("@\n#\nvar")
        assert [e.line for e in lexer.errors] == [1, 2]
        assert lexer.tokens[0] == Token(TK.VAR, "var", None, 3)


class TestEdgeCases:
    def test_empty_source(self):
        assert scan("") == [Token(TK.EOF, "", None, 1)]

    def test_whitespace_only(self):
        tokens = scan("   \t\n  ")
        assert tokens == [Token(TK.EOF, "", None, 2)]

    def test_statement(self):
        tokens = scan("var a = 2;")
        assert tokens == [
            Token(TK.VAR, "var", None, 1),
            Token(TK.IDENTIFIER, "a", None, 1),
            Token(TK.EQUAL, "=", None, 1),
            Token(TK.NUMBER, "2", 2.0, 1),
            Token(TK.SEMICOLON, ";", None, 1),
            Token(TK.EOF, "", None, 1),
        ]
