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
from lox.scanner import Token
from lox.scanner import TokenType as TT
from lox.statement import Block, Class, Expression, Function, If, Print, Return, Stmt, Var, While


class AstPrinter:
    def view(self, node: Expr | Stmt | list[Expr] | list[Stmt]) -> str:
        match node:
            case list():
                return " ".join(self.view(e) for e in node)
            case Expr():
                return self.expr(node)
            case Stmt():
                return self.stmt(node)
            case _:
                raise ValueError(node)

    def expr(self, e: Expr) -> str:
        match e:
            case Assign(name, value):
                return self.parens(f"= {name.lexeme}", value)
            case Binary(left, op, right):
                return self.parens(op.lexeme, left, right)
            case Call(callee, _paren, args):
                return f"{self.view(callee)}({', '.join(self.view(a) for a in args)})"
            case Get(obj, name):
                return f"{self.view(obj)}.{name.lexeme}"
            case Grouping(value):
                return self.parens("group", value)
            case Literal(bool(v)):
                return str(v).lower()
            case Literal(None):
                return "nil"
            case Literal(v):
                return str(v)
            case Logical(left, op, right):
                # Uppercase is different than Binary
                return self.parens(op.lexeme.upper(), left, right)
            case Set(obj, name, value):
                return self.parens(f"= {self.view(obj)}.{name.lexeme}", value)
            case Super(_keyword, method):
                return f"super.{method.lexeme}"
            case This():
                return "this"
            case Unary(op, right):
                return self.parens(op.lexeme, right)
            case Variable(name):
                return name.lexeme
            case _:
                raise RuntimeError("Impossible state")

    def stmt(self, st: Stmt) -> str:
        match st:
            case Block(statements):
                return f"{{ {self.view(statements)} }}"
            case Class(name, superclass, methods):
                sup = f" < {superclass.name.lexeme}" if superclass else ""
                body = " ".join(self.function(m) for m in methods)
                return f"class {name.lexeme}{sup} {{ {body} }}"
            case Expression(expr):
                return f"{self.view(expr)};"
            case Function():
                return f"fun {self.function(st)}"
            case If(condition, then_branch, else_branch):
                els = f" else [{self.view(else_branch)}]" if else_branch else ""
                return f"if ({self.view(condition)}) [{self.view(then_branch)}]{els}"
            case Print(expr):
                return f"print {self.view(expr)};"
            case Return(_keyword, value):
                expr = f" {self.view(value)}" if value else ""
                return f"return{expr};"
            case Var(name, initializer):
                init = f" = {self.view(initializer)}" if initializer else ""
                return f"var {name.lexeme}{init};"
            case While(condition, body):
                return f"while ({self.view(condition)}) [{self.view(body)}]"
            case _:
                raise RuntimeError("Impossible state")

    def function(self, f: Function):
        params = ", ".join(p.lexeme for p in f.params)
        return f"{f.name.lexeme}({params}) {self.stmt(Block(f.body))}"

    def parens(self, name, *exprs: Expr):
        return f"({name} {self.view(list(exprs))})"


if __name__ == "__main__":  # pragma: no cover
    expr = Binary(
        Unary(Token(TT.MINUS, "-", 1, None), Literal(123)),
        Token(TT.STAR, "*", 1, None),
        Grouping(Literal(45.67)),
    )

    print(AstPrinter().view(Print(expr)))
