from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, override

from lox.environment import Environment
from lox.statement import Function

if TYPE_CHECKING:  # pragma: no cover
    from lox.classes import LoxInstance
    from lox.interpreter import Interpreter


class LoxCallable(ABC):
    @abstractmethod
    def __call__(self, intr: "Interpreter", args: list[object]) -> object: ...

    @property
    @abstractmethod
    def arity(self) -> int: ...


@dataclass(eq=False)  # Functions are only equal to themselves
class LoxFunction(LoxCallable):
    decl: Function
    closure: Environment
    is_initializer: bool = False

    @property
    @override
    def arity(self):
        return len(self.decl.params)

    @override
    def __call__(self, intr: "Interpreter", args: list[object]):
        env = Environment(self.closure)
        for a, p in zip(args, self.decl.params, strict=True):
            env[p.lexeme] = a

        result = intr.execute_block(self.decl.body, env)
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        return result.value if result else None

    def bind(self, instance: "LoxInstance"):
        """Bind a method to an instance"""
        env = Environment(self.closure)
        env["this"] = instance
        return LoxFunction(self.decl, env, self.is_initializer)

    def __str__(self):
        return f"<fn {self.decl.name.lexeme}>"


@dataclass(eq=False)
class NativeFunction(LoxCallable):
    """Host function exposed as a global"""

    func: Callable[..., object]
    params: int = 0

    @property
    @override
    def arity(self):
        # Would use len(inspect.signature(self.func).parameters) but that doesn't work on built-in functions
        return self.params

    @override
    def __call__(self, _intr, args):
        return self.func(*args)

    def __str__(self):
        return "<native fn>"
