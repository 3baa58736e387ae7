from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self, override

from lox.func import LoxCallable, LoxFunction
from lox.runtime import UndefinedProperty
from lox.scanner import Token

if TYPE_CHECKING:  # pragma: no cover
    from lox.interpreter import Interpreter


@dataclass(eq=False)
class LoxClass(LoxCallable):
    name: str
    superclass: Self | None
    methods: dict[str, LoxFunction]

    def find_method(self, name: str) -> LoxFunction | None:
        if m := self.methods.get(name):
            return m
        if self.superclass:
            return self.superclass.find_method(name)
        return None

    @property
    @override
    def arity(self):
        if init := self.find_method("init"):
            return init.arity
        return 0

    @override
    def __call__(self, intr: "Interpreter", args: list[object]) -> object:
        instance = LoxInstance(self)
        if init := self.find_method("init"):
            init.bind(instance)(intr, args)
        return instance

    def __str__(self):
        return self.name


@dataclass(eq=False)
class LoxInstance:
    clss: LoxClass
    fields: dict[str, object] = field(default_factory=dict)

    def __getitem__(self, name: Token):
        try:
            # DONT use .get() because None is a valid value
            return self.fields[name.lexeme]
        except KeyError:
            pass
        if m := self.clss.find_method(name.lexeme):
            return m.bind(self)
        raise UndefinedProperty(name)

    def __setitem__(self, name: Token, value: object):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.clss.name} instance"
