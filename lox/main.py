import atexit
import logging
import os
import sys
from contextlib import contextmanager
from functools import cache

from lox.ast import AstPrinter
from lox.interpreter import Interpreter
from lox.parser import Parser
from lox.resolver import static_analysis
from lox.runtime import LoxRuntimeError
from lox.scanner import Scanner, Token
from lox.scanner import TokenType as TT

USAGE_ERROR_CODE = 64
LEXICAL_ERROR_CODE = 65
RUNTIME_ERROR_CODE = 70

COMMANDS = ("tokenize", "parse", "evaluate", "run")

had_error = False


def report(line: int, where: str, message: str):
    global had_error
    had_error = True
    print(f"line {line}: Error{where}: {message}", file=sys.stderr)


def compile_error(token: Token, message: str):
    lexeme = f"'{token.lexeme}'" if token.type != TT.EOF else "end"
    report(token.line, f" at {lexeme}", message)


def runtime_error(e: LoxRuntimeError):
    global had_error
    had_error = True
    print(e, file=sys.stderr)


@cache
def verbose_stream():
    """Stage headers and intermediate results go to stderr, unless LOX_QUIET is set"""
    if os.getenv("LOX_QUIET"):
        devnull = open(os.devnull, "w")
        atexit.register(devnull.close)
        return devnull
    return sys.stderr


@contextmanager
def step(stage, command, exit_code=LEXICAL_ERROR_CODE):
    """Run stage using stdout or stderr then exit on errors or command.
    Could conditionally use redirect_stdout but that seemed *too* magic.
    """
    header(stage)
    final = stage == command
    yield sys.stdout if final else verbose_stream()
    if had_error:
        sys.exit(exit_code)
    if final:
        sys.exit()
    print(file=verbose_stream())


def header(stage):
    print(f" {stage.upper()} ".center(20, "="), file=verbose_stream())


def main(source: str, command: str):
    if command not in COMMANDS:
        sys.exit(f"Unknown command: {command}")

    tokens = Scanner(source, report).scan_tokens()

    with step("tokenize", command) as out:
        for token in tokens:
            print(token, file=out)

    parser = Parser(tokens, compile_error)

    if command in ("parse", "evaluate"):
        expr = parser.parse_expr()
        with step("parse", command) as out:
            if expr:
                print(AstPrinter().view(expr), file=out)
        if not expr:
            sys.exit("IMPOSSIBLE STATE: None returned without parse error")  # pragma: no cover

        with step("evaluate", command, exit_code=RUNTIME_ERROR_CODE) as out:
            Interpreter(runtime_error, out).interpret(expr)  # No Resolver for eval expression

    stmts = parser.parse_stmt()
    with step("parse_statement", command) as out:
        print(AstPrinter().view(stmts), file=out)

    with step("run", command, exit_code=RUNTIME_ERROR_CODE) as out:
        interpreter = Interpreter(runtime_error, out)
        with step("resolver", command):
            static_analysis(interpreter, stmts, compile_error)
        interpreter.interpret(stmts)


def run_line(interpreter: Interpreter, line: str):
    """One REPL batch. Errors are reported and the interpreter keeps its globals for the next line"""
    global had_error
    had_error = False

    tokens = Scanner(line, report).scan_tokens()
    stmts = Parser(tokens, compile_error).parse_stmt()
    if had_error:
        return
    static_analysis(interpreter, stmts, compile_error)
    if had_error:
        return
    interpreter.interpret(stmts)


def repl():
    interpreter = Interpreter(runtime_error)
    while True:
        try:
            line = input("> ")
        except EOFError:
            print()
            return
        run_line(interpreter, line)


def cli(argv: list[str]):
    logging.basicConfig(level=os.getenv("LOX_LOG_LEVEL", "WARNING").upper())

    match argv:
        case []:
            repl()
        case [command, filename]:
            with open(filename) as file:
                file_contents = file.read()
            main(file_contents, command)
        case _:
            print(f"Usage: python -m lox [{'|'.join(COMMANDS)}] <filename>", file=sys.stderr)
            sys.exit(USAGE_ERROR_CODE)


def entry_point():  # pragma: no cover
    cli(sys.argv[1:])


if __name__ == "__main__":  # pragma: no cover
    entry_point()
