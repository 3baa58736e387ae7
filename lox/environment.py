from typing import Self

from lox.runtime import UndefinedVariable
from lox.scanner import Token


class Environment:
    def __init__(self, parent: Self | None = None):
        self.values: dict[str, object] = {}
        self.parent = parent

    def __getitem__(self, name: Token) -> object:
        try:
            return self.values[name.lexeme]
        except KeyError:
            if self.parent:
                return self.parent[name]
            raise UndefinedVariable(name)

    def __setitem__(self, key: str, value: object):
        """Always defines in this frame, even if the name already exists here"""
        self.values[key] = value

    get = __getitem__
    define = __setitem__

    def assign(self, name: Token, value: object):
        if (key := name.lexeme) in self.values:
            self[key] = value
        else:
            if not self.parent:
                raise UndefinedVariable(name)
            self.parent.assign(name, value)

    def ancestor(self, distance: int) -> Self:
        """Retrieve the ancestor environment at a specific distance."""
        env = self
        for _ in range(distance):
            if not env.parent:
                raise RuntimeError("Impossible state")  # pragma: no cover
            env = env.parent
        return env

    def get_at(self, distance: int, name: str) -> object:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: str, value: object):
        self.ancestor(distance)[name] = value

    def __repr__(self):
        depth = 0
        env = self
        while env.parent:
            depth, env = depth + 1, env.parent
        return f"<Environment depth={depth} {sorted(self.values)}>"
