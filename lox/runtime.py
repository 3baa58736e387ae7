from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from lox.scanner import Token

type CompileErrCB = Callable[[Token, str], None]
type RuntimeErrCB = Callable[[LoxRuntimeError], None]


class StaticError(StrEnum):
    """Resolver errors. Members are the reported message, so they go through the same callback as parse errors."""

    DUPLICATE_DECLARATION = "Already a variable with this name in this scope."
    SELF_REFERENTIAL_INITIALIZER = "Can't read local variable in its own initializer."
    RETURN_OUTSIDE_FUNCTION = "Can't return from top-level code."


class LoxRuntimeError(Exception):
    """Don't shadow builtin RuntimeError"""

    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    def __str__(self):
        return f"line {self.token.line}: {self.message}"


class LoxTypeError(LoxRuntimeError):
    """Wrong operand kind, calling a non-callable, or property access on a non-instance"""


class UndefinedVariable(LoxRuntimeError):
    def __init__(self, name: Token):
        super().__init__(name, f"Undefined variable '{name.lexeme}'.")


class UndefinedProperty(LoxRuntimeError):
    def __init__(self, name: Token):
        super().__init__(name, f"Undefined property '{name.lexeme}'.")


class ArityError(LoxRuntimeError):
    def __init__(self, paren: Token, expected: int, got: int):
        super().__init__(paren, f"Expected {expected} arguments but got {got}.")
        self.expected = expected
        self.got = got


class InvalidSuperclass(LoxTypeError):
    def __init__(self, name: Token):
        super().__init__(name, "Superclass must be a class.")


@dataclass(frozen=True)
class Returning:
    """Result of executing a `return` statement, passed up until the enclosing call consumes it.

    Statements that complete normally produce None instead.
    """

    value: object
