from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from .errors import Diagnostic


class TK(Enum):
    # Symbols
    LEFT_PAREN = auto()     # (
    RIGHT_PAREN = auto()    # )
    LEFT_BRACE = auto()     # {
    RIGHT_BRACE = auto()    # }
    COMMA = auto()          # ,
    DOT = auto()            # .
    MINUS = auto()          # -
    PLUS = auto()           # +
    SEMICOLON = auto()      # ;
    SLASH = auto()          # /
    STAR = auto()           # *
    DOUBLE_QUOTE = auto()   # " (unterminated string)
    BANG = auto()           # !
    BANG_EQUAL = auto()     # !=
    EQUAL = auto()          # =
    EQUAL_EQUAL = auto()    # ==
    GREATER = auto()        # >
    GREATER_EQUAL = auto()  # >=
    LESS = auto()           # <
    LESS_EQUAL = auto()     # <=
    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()
    # Keywords
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FUN = auto()
    FOR = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()
    EOF = auto()


KEYWORDS = {
    "and": TK.AND, "class": TK.CLASS, "else": TK.ELSE, "false": TK.FALSE,
    "fun": TK.FUN, "for": TK.FOR, "if": TK.IF, "nil": TK.NIL, "or": TK.OR,
    "print": TK.PRINT, "return": TK.RETURN, "super": TK.SUPER,
    "this": TK.THIS, "true": TK.TRUE, "var": TK.VAR, "while": TK.WHILE,
}

_SINGLE = {
    "(": TK.LEFT_PAREN, ")": TK.RIGHT_PAREN, "{": TK.LEFT_BRACE,
    "}": TK.RIGHT_BRACE, ",": TK.COMMA, ".": TK.DOT, "-": TK.MINUS,
    "+": TK.PLUS, ";": TK.SEMICOLON, "*": TK.STAR,
}

# char -> (kind when followed by '=', kind otherwise)
_WITH_EQUAL = {
    "!": (TK.BANG_EQUAL, TK.BANG),
    "=": (TK.EQUAL_EQUAL, TK.EQUAL),
    "<": (TK.LESS_EQUAL, TK.LESS),
    ">": (TK.GREATER_EQUAL, TK.GREATER),
}


@dataclass(frozen=True)
class Token:
    kind: TK
    lexeme: str
    literal: float | str | None
    line: int

    def __str__(self):
        literal = f" -> {self.literal!r}" if self.literal is not None else ""
        return f"{self.kind.name} {self.lexeme}{literal}"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_alpha(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


class Lexer:
    """Scans the whole source on construction.

    ``tokens`` always ends with a single EOF token. Problems are collected
    in ``errors`` and never stop the scan.
    """

    def __init__(self, source: str):
        self.source = source
        self.start = 0
        self.pos = 0
        self.line = 1
        self.tokens: list[Token] = []
        self.errors: list[Diagnostic] = []
        self._tokenize()

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _char(self) -> str:
        return self.source[self.pos] if self.pos < len(self.source) else ""

    def _peek(self, offset: int = 1) -> str:
        p = self.pos + offset
        return self.source[p] if p < len(self.source) else ""

    def _advance(self) -> str:
        ch = self.source[self.pos]
        if ch == "\n":
            self.line += 1
        self.pos += 1
        return ch

    def _match(self, expected: str) -> bool:
        if self.pos < len(self.source) and self.source[self.pos] == expected:
            self._advance()
            return True
        return False

    def _error(self, msg: str):
        self.errors.append(Diagnostic(msg, self.line))

    def _add(self, kind: TK, literal=None):
        text = self.source[self.start : self.pos]
        self.tokens.append(Token(kind, text, literal, self.line))

    def _skip_line_comment(self):
        while not self._at_end() and self._char() != "\n":
            self._advance()

    def _skip_block_comment(self):
        while not self._at_end():
            if self._char() == "*" and self._peek() == "/":
                self.pos += 2
                return
            self._advance()
        self._error("Unterminated block comment.")

    def _read_string(self):
        while not self._at_end() and self._char() != '"':
            self._advance()
        if self._at_end():
            self._error("Unterminated string.")
            self._add(TK.DOUBLE_QUOTE)
            return
        self._advance()  # closing quote
        self._add(TK.STRING, self.source[self.start + 1 : self.pos - 1])

    def _read_number(self):
        while _is_digit(self._char()):
            self._advance()
        if self._char() == "." and _is_digit(self._peek()):
            self._advance()
            while _is_digit(self._char()):
                self._advance()
        self._add(TK.NUMBER, float(self.source[self.start : self.pos]))

    def _read_identifier(self):
        while _is_alpha(self._char()) or _is_digit(self._char()):
            self._advance()
        word = self.source[self.start : self.pos]
        self._add(KEYWORDS.get(word, TK.IDENTIFIER))

    def _tokenize(self):
        while not self._at_end():
            self.start = self.pos
            self._scan_token()
        self.tokens.append(Token(TK.EOF, "", None, self.line))

    def _scan_token(self):
        ch = self._advance()
        if ch in _SINGLE:
            self._add(_SINGLE[ch])
        elif ch in _WITH_EQUAL:
            with_eq, alone = _WITH_EQUAL[ch]
            self._add(with_eq if self._match("=") else alone)
        elif ch == "/":
            if self._match("/"):
                self._skip_line_comment()
            elif self._match("*"):
                self._skip_block_comment()
            else:
                self._add(TK.SLASH)
        elif ch in " \r\t\n":
            pass
        elif ch == '"':
            self._read_string()
        elif _is_digit(ch):
            self._read_number()
        elif _is_alpha(ch):
            self._read_identifier()
        else:
            self._error(f"Unexpected character '{ch}'.")
