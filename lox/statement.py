from dataclasses import dataclass

from lox.expression import Expr, Variable
from lox.scanner import Token


class Stmt:
    pass


@dataclass(frozen=True)
class Block(Stmt):
    statements: list[Stmt]


@dataclass(frozen=True)
class Class(Stmt):
    name: Token
    superclass: Variable | None
    methods: list["Function"]


@dataclass(frozen=True)
class Expression(Stmt):
    expr: Expr


@dataclass(frozen=True)
class Function(Stmt):
    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(frozen=True)
class Print(Stmt):
    expr: Expr


@dataclass(frozen=True)
class Return(Stmt):
    keyword: Token
    value: Expr | None


@dataclass(frozen=True)
class Var(Stmt):
    name: Token
    initializer: Expr | None


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt
