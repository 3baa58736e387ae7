import logging
from enum import Enum, auto

from lox.expression import (
    Assign,
    Binary,
    Call,
    Expr,
    Get,
    Grouping,
    Literal,
    Logical,
    Set,
    Super,
    This,
    Unary,
    Variable,
)
from lox.interpreter import Interpreter
from lox.runtime import CompileErrCB, StaticError
from lox.scanner import Token
from lox.statement import Block, Class, Expression, Function, If, Print, Return, Stmt, Var, While


class VarState(Enum):
    INITIALIZING = auto()
    SET = auto()


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()


class Resolver:
    """Static pass recording, for each local reference, how many scopes out its binding lives.

    The global scope is never pushed: anything not found in `scopes` is looked up by name at runtime.
    """

    def __init__(self, interpreter: Interpreter, on_error: CompileErrCB):
        self.interpreter = interpreter
        self.on_error = on_error
        self.scopes: list[dict[str, VarState]] = []
        self.function = FunctionType.NONE

    def resolve(self, e: Expr | Stmt | list[Stmt]) -> None:
        match e:
            case list():
                for st in e:
                    self.resolve(st)
            case Expr():
                self.expr(e)
            case Stmt():
                self.stmt(e)

    def stmt(self, st: Stmt) -> None:
        match st:
            case Block(statements):
                self.scopes.append({})
                self.resolve(statements)
                self.scopes.pop()
            case Class():
                self.class_decl(st)
            case Expression(expr):
                self.expr(expr)
            case Function(name):
                self.declare(name, VarState.SET)
                self.function_decl(st, FunctionType.FUNCTION)
            case If(condition, then_branch, else_branch):
                self.expr(condition)
                self.stmt(then_branch)
                if else_branch:
                    self.stmt(else_branch)
            case Print(expr):
                self.expr(expr)
            case Return(keyword, value):
                if self.function == FunctionType.NONE:
                    self.on_error(keyword, StaticError.RETURN_OUTSIDE_FUNCTION)
                if value:
                    self.expr(value)
            case Var(name, initializer):
                self.declare(name, VarState.INITIALIZING)
                if initializer:
                    self.expr(initializer)
                self.define(name)
            case While(condition, body):
                self.expr(condition)
                self.stmt(body)
            case _:
                raise RuntimeError("Impossible state")

    def expr(self, e: Expr) -> None:
        match e:
            case Assign(name, value):
                self.expr(value)
                self.resolve_local(e, name)
            case Binary(left, _op, right) | Logical(left, _op, right):
                self.expr(left)
                self.expr(right)
            case Call(callee, _paren, args):
                self.expr(callee)
                for arg in args:
                    self.expr(arg)
            case Get(obj):
                self.expr(obj)
            case Grouping(value):
                self.expr(value)
            case Literal():
                pass
            case Set(obj, _name, value):
                self.expr(obj)
                self.expr(value)
            case Super(keyword) | This(keyword):
                self.resolve_local(e, keyword)
            case Unary(_op, right):
                self.expr(right)
            case Variable(name):
                if self.scopes and self.scopes[-1].get(name.lexeme) == VarState.INITIALIZING:
                    self.on_error(name, StaticError.SELF_REFERENTIAL_INITIALIZER)
                self.resolve_local(e, name)
            case _:
                raise RuntimeError("Impossible state")

    def function_decl(self, f: Function, kind: FunctionType):
        enclosing, self.function = self.function, kind
        self.scopes.append({})
        for p in f.params:
            self.declare(p, VarState.SET)
        self.resolve(f.body)
        self.scopes.pop()
        self.function = enclosing

    def class_decl(self, c: Class):
        self.declare(c.name, VarState.SET)

        if c.superclass:
            self.expr(c.superclass)
            self.scopes.append({"super": VarState.SET})

        self.scopes.append({"this": VarState.SET})
        for m in c.methods:
            self.function_decl(m, FunctionType.METHOD)
        self.scopes.pop()

        if c.superclass:
            self.scopes.pop()

    def declare(self, t: Token, state: VarState):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if t.lexeme in scope:
            self.on_error(t, StaticError.DUPLICATE_DECLARATION)
        scope[t.lexeme] = state

    def define(self, t: Token):
        if self.scopes:
            self.scopes[-1][t.lexeme] = VarState.SET

    def resolve_local(self, e: Expr, name: Token):
        for n, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                logging.debug("resolved %s on line %s at distance %d", name.lexeme, name.line, n)
                self.interpreter.resolve(e, n)
                return


def static_analysis(interpreter: Interpreter, e: Expr | list[Stmt], on_error: CompileErrCB):
    """Resolve the given statements, reporting every static error instead of stopping at the first."""
    Resolver(interpreter, on_error).resolve(e)
