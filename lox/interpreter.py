import logging
import math
from collections.abc import Mapping, MutableMapping
from time import time
from typing import TextIO

from lox.classes import LoxClass, LoxInstance
from lox.environment import Environment
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
from lox.func import LoxCallable, LoxFunction, NativeFunction
from lox.runtime import (
    ArityError,
    InvalidSuperclass,
    LoxRuntimeError,
    LoxTypeError,
    Returning,
    RuntimeErrCB,
    UndefinedProperty,
)
from lox.scanner import Token
from lox.scanner import TokenType as TT
from lox.statement import Block, Class, Expression, Function, If, Print, Return, Stmt, Var, While


def stringify(o):
    match o:
        case None:
            return "nil"
        case bool():
            return str(o).lower()
        case 0.0 if math.copysign(1, o) == -1:
            return "-0"
        case float() if math.isinf(o):
            return "Infinity" if o > 0 else "-Infinity"
        case float() if math.isnan(o):
            return "NaN"
        case float() if o.is_integer():
            return str(int(o))
        case _:
            return str(o)


def is_equal(x: object, y: object):
    """No coercion: bool is an int subclass in Python but false != 0 in Lox"""
    return type(x) is type(y) and x == y


def truthy(o: object):
    """Ruby semantics"""
    return o is not False and o is not None


default_global = dict(clock=NativeFunction(time))


class Interpreter:
    def __init__(self, runtime_error: RuntimeErrCB, file: TextIO | None = None, natives: Mapping[str, object] = default_global):
        self.global_env = Environment()
        self.environment = self.global_env
        self.locals = RefEqualityDict[Expr, int]()

        for name, val in natives.items():
            self.global_env[name] = val

        self.runtime_error = runtime_error
        self.file = file  # None prints to whatever sys.stdout is at the time

    def interpret(self, e: Expr | list[Stmt]):
        try:
            if isinstance(e, list):
                for st in e:
                    self.execute(st)
            else:
                o = self.evaluate(e)
                print(stringify(o), file=self.file)
        except LoxRuntimeError as ex:
            self.runtime_error(ex)

    def evaluate(self, expr: Expr) -> object:
        match expr:
            case Assign():
                return self.assign(expr)
            case Binary():
                return self.binary(expr)
            case Call():
                return self.call(expr)
            case Get():
                return self.get(expr)
            case Grouping(value):
                return self.evaluate(value)
            case Literal(value):
                return value
            case Logical():
                return self.logical(expr)
            case Set():
                return self.set(expr)
            case Super():
                return self.get_super(expr)
            case This(keyword):
                return self.look_up(keyword, expr)
            case Unary():
                return self.unary(expr)
            case Variable(name):
                return self.look_up(name, expr)
            case _:
                raise RuntimeError("Impossible state")

    def execute(self, st: Stmt) -> Returning | None:
        """Returns the pending return, which every enclosing statement passes up to the call boundary"""
        match st:
            case Block(statements):
                return self.execute_block(statements, Environment(self.environment))
            case Class():
                self.class_decl(st)
            case Expression(expr):
                self.evaluate(expr)
            case Function(name):
                self.environment[name.lexeme] = LoxFunction(st, self.environment)
            case If(condition, then_branch, else_branch):
                if truthy(self.evaluate(condition)):
                    return self.execute(then_branch)
                elif else_branch:
                    return self.execute(else_branch)
            case Print(expr):
                print(stringify(self.evaluate(expr)), file=self.file)
            case Return(_keyword, value):
                return Returning(self.evaluate(value) if value else None)
            case Var(name, initializer):
                self.environment[name.lexeme] = self.evaluate(initializer) if initializer else None
            case While(condition, body):
                while truthy(self.evaluate(condition)):
                    if ret := self.execute(body):
                        return ret
            case _:
                raise RuntimeError("Impossible state")
        return None

    def execute_block(self, statements: list[Stmt], env: Environment) -> Returning | None:
        orig, self.environment = self.environment, env
        try:
            for st in statements:
                if ret := self.execute(st):
                    return ret
            return None
        finally:
            self.environment = orig

    ### Expressions ###
    def assign(self, assign: Assign):
        o = self.evaluate(assign.value)
        distance = self.locals.get(assign)
        if distance is not None:
            self.environment.assign_at(distance, assign.name.lexeme, o)
        else:
            self.global_env.assign(assign.name, o)
        return o

    def binary(self, binary: Binary):
        left, right = self.evaluate(binary.left), self.evaluate(binary.right)
        match binary.operator.type:
            case TT.BANG_EQUAL:
                return not is_equal(left, right)
            case TT.EQUAL_EQUAL:
                return is_equal(left, right)

            case TT.PLUS:
                if isinstance(left, str) and isinstance(right, str):
                    return left + right
                if isinstance(left, float) and isinstance(right, float):
                    return left + right
                raise LoxTypeError(binary.operator, "Operands must be two numbers or two strings.")
            case _:
                pass

        if not isinstance(left, float) or not isinstance(right, float):
            raise LoxTypeError(binary.operator, "Operands must be numbers.")
        match binary.operator.type:
            case TT.GREATER:
                return left > right
            case TT.GREATER_EQUAL:
                return left >= right
            case TT.LESS:
                return left < right
            case TT.LESS_EQUAL:
                return left <= right

            case TT.MINUS:
                return left - right
            case TT.STAR:
                return left * right

            case TT.SLASH:
                try:
                    return left / right
                except ZeroDivisionError:
                    if not left or math.isnan(left):  # 0/0
                        return math.nan
                    return math.copysign(math.inf, left) * math.copysign(1, right)
            case _:
                raise RuntimeError("Impossible state")

    def call(self, call: Call):
        callee = self.evaluate(call.callee)
        args = [self.evaluate(a) for a in call.args]

        if not isinstance(callee, LoxCallable):
            raise LoxTypeError(call.paren, "Can only call functions and classes.")

        # Apparently the pythonic "call the function and handle TypeError" won't work unless you want to parse TypeError error message...
        if len(args) != callee.arity:
            raise ArityError(call.paren, callee.arity, len(args))

        return callee(self, args)

    def get(self, get: Get):
        obj = self.evaluate(get.object)
        if not isinstance(obj, LoxInstance):
            raise LoxTypeError(get.name, "Only instances have properties.")
        return obj[get.name]

    def logical(self, logical: Logical):
        left = self.evaluate(logical.left)
        match logical.operator.type:
            case TT.OR:
                if truthy(left):
                    return left
            case TT.AND:
                if not truthy(left):
                    return left
            case _:
                raise RuntimeError("Impossible state")
        return self.evaluate(logical.right)

    def set(self, set: Set):
        obj = self.evaluate(set.object)
        if not isinstance(obj, LoxInstance):
            raise LoxTypeError(set.name, "Only instances have fields.")
        obj[set.name] = o = self.evaluate(set.value)
        return o

    def get_super(self, sup: Super):
        distance = self.locals.get(sup)
        if distance is None:
            return self.global_env[sup.keyword]  # Not inside a subclass, so this raises
        superclass = self.environment.get_at(distance, "super")
        instance = self.environment.get_at(distance - 1, "this")  # "this" is always one scope inside "super"
        if not isinstance(superclass, LoxClass) or not isinstance(instance, LoxInstance):
            raise RuntimeError("Impossible state")  # pragma: no cover
        if method := superclass.find_method(sup.method.lexeme):
            return method.bind(instance)
        raise UndefinedProperty(sup.method)

    def unary(self, unary: Unary):
        right = self.evaluate(unary.right)
        match unary.operator.type:
            case TT.MINUS:
                if isinstance(right, float):
                    return -right
                raise LoxTypeError(unary.operator, "Operand must be a number.")
            case TT.BANG:
                return not truthy(right)
            case _:
                raise RuntimeError("Impossible state")

    ### Statements ###
    def class_decl(self, c: Class):
        # Placeholder lets methods refer to the class by name, and makes `class A < A` read nil
        self.environment[c.name.lexeme] = None

        superclass = None
        if c.superclass:
            superclass = self.evaluate(c.superclass)
            if not isinstance(superclass, LoxClass):
                raise InvalidSuperclass(c.superclass.name)

        method_env = self.environment
        if superclass:
            method_env = Environment(method_env)
            method_env["super"] = superclass

        methods = {m.name.lexeme: LoxFunction(m, method_env, m.name.lexeme == "init") for m in c.methods}
        klass = LoxClass(c.name.lexeme, superclass, methods)
        logging.debug("class %s < %s methods=%s", klass, superclass, list(methods))
        self.environment.assign(c.name, klass)

    ### Resolution ###
    def look_up(self, name: Token, e: Expr):
        distance = self.locals.get(e)
        if distance is None:
            return self.global_env[name]
        return self.environment.get_at(distance, name.lexeme)

    def resolve(self, e: Expr, n: int):
        self.locals[e] = n


class RefEqualityDict[K, V](MutableMapping[K, V]):
    """Keyed on object identity. Keeps keys alive, so a freed node's id() can't be reused for a stale entry"""

    def __init__(self):
        self.vals: dict[int, tuple[K, V]] = {}

    def __delitem__(self, key: K):
        del self.vals[id(key)]

    def __getitem__(self, key: K):
        return self.vals[id(key)][1]

    def __setitem__(self, key: K, value: V):
        self.vals[id(key)] = key, value

    def __iter__(self):
        return (k for k, _v in self.vals.values())

    def __len__(self):
        return len(self.vals)
