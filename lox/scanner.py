from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum, auto

type ReportCB = Callable[[int, str, str], None]


# https://craftinginterpreters.com/scanning.html#token-type
class TokenType(IntEnum):
    # Single-character tokens.
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()

    # One or two character tokens.
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()

    # Literals.
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords.
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


char_tokens = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "*": TokenType.STAR,
}

# Each two-char variant is the next enum member, i.e. BANG + 1 == BANG_EQUAL
char_equal_tokens = {
    "!": TokenType.BANG,
    "=": TokenType.EQUAL,
    "<": TokenType.LESS,
    ">": TokenType.GREATER,
}

keywords = {tt.name.lower(): tt for tt in TokenType if TokenType.AND <= tt <= TokenType.WHILE}


def is_alpha(c: str):
    return c.isalpha() or c == "_"


def is_alnum(c: str):
    return c.isalnum() or c == "_"


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    line: int
    literal: object = None

    def __str__(self):
        lit = "null" if self.literal is None else self.literal
        return f"{self.type.name} {self.lexeme} {lit}"


class Scanner:
    """Produces tokens, reporting errors through the callback and carrying on"""

    def __init__(self, source: str, report: ReportCB):
        self.source = source
        self.report = report
        self.start = self.current = 0
        self.line = 1

    def at(self, offset=0):
        """Character at current + offset, or "" past the end"""
        return self.source[self.current + offset : self.current + offset + 1]

    def advance(self):
        c = self.at()
        self.current += 1
        self.line += c == "\n"
        return c

    def advance_if(self, expected: str):
        if self.at() != expected:
            return False
        self.current += 1
        return True

    def advance_while(self, pred: Callable[[str], bool]):
        while (c := self.at()) and pred(c):
            self.advance()

    def scan_tokens(self) -> list[Token]:
        tokens = []
        while not tokens or tokens[-1].type != TokenType.EOF:
            if token := self.scan_token():
                tokens.append(token)
        return tokens

    def scan_token(self) -> Token | None:
        """Scans from current. None means whitespace, a comment, or an error was consumed"""
        self.start = self.current
        match c := self.advance():
            case "":
                return Token(TokenType.EOF, "", self.line)
            case _ if c in char_tokens:
                return self.emit(char_tokens[c])
            case _ if c in char_equal_tokens:
                return self.emit(TokenType(char_equal_tokens[c] + self.advance_if("=")))
            case "/" if self.advance_if("/"):
                self.advance_while(lambda ch: ch != "\n")
            case "/":
                return self.emit(TokenType.SLASH)
            case '"':
                return self.string()
            case _ if c.isspace():
                pass
            case _ if c.isdigit():
                return self.number()
            case _ if is_alpha(c):
                self.advance_while(is_alnum)
                text = self.source[self.start : self.current]
                return self.emit(keywords.get(text, TokenType.IDENTIFIER))
            case _:
                self.report(self.line, "", f"Unexpected character: {c}")
        return None

    def emit(self, type: TokenType, literal=None):
        return Token(type, self.source[self.start : self.current], self.line, literal)

    def string(self):
        self.advance_while(lambda ch: ch != '"')
        if not self.advance_if('"'):
            self.report(self.line, "", "Unterminated string.")
            return None
        return self.emit(TokenType.STRING, self.source[self.start + 1 : self.current - 1])

    def number(self):
        self.advance_while(str.isdigit)
        # A trailing . is a DOT token unless a digit follows
        if self.at() == "." and self.at(1).isdigit():
            self.advance()
            self.advance_while(str.isdigit)
        return self.emit(TokenType.NUMBER, float(self.source[self.start : self.current]))
