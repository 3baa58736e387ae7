import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from lox import main


class TestE2E(unittest.TestCase):
    def check(self, command, source, code, out, *errors):
        """Returns actual stderr"""
        with redirect_stdout(io.StringIO()) as f1:
            with redirect_stderr(io.StringIO()) as f2:
                try:
                    actual_code = 0
                    main.main(source, command)
                except SystemExit as e:
                    match e.code:
                        case None:
                            actual_code = 0
                        case str():
                            print(e.code, file=f2)
                            actual_code = 1
                        case _:
                            actual_code = e.code
                finally:
                    main.had_error = False

        self.assertEqual(actual_code, code)
        self.assertEqual(f1.getvalue().strip(), out.strip())

        actual_errors = [line for line in f2.getvalue().splitlines() if line.startswith("line ")]
        self.assertSequenceEqual(actual_errors, errors)

        return f2.getvalue()

    def test_unknown(self):
        err = self.check(
            "foobar",
            "1.0;",
            1,
            "",
        )
        self.assertIn("Unknown command: foobar\n", err)

    def test_tokenize(self):
        self.check("tokenize", "1 nil", 0, "NUMBER 1 1.0\nNIL nil null\nEOF  null")

        self.check(
            "tokenize",
            "1 $",
            main.LEXICAL_ERROR_CODE,
            "NUMBER 1 1.0\nEOF  null",
            "line 1: Error: Unexpected character: $",
        )

    def test_parse(self):
        self.check("parse", "1 + 1", 0, "(+ 1.0 1.0)")

        self.check(
            "parse",
            "1.2 1",
            main.LEXICAL_ERROR_CODE,
            "1.2",
            "line 1: Error at '1': Expected end of expression",
        )

    def test_evaluate(self):
        self.check("evaluate", "1 + 1", 0, "2")

        self.check(
            "evaluate",
            "-nil",
            main.RUNTIME_ERROR_CODE,
            "",
            "line 1: Operand must be a number.",
        )

    def test_run(self):
        self.check("run", "print 1 + 1;", 0, "2")

        self.check(
            "run",
            "\n-nil;",
            main.RUNTIME_ERROR_CODE,
            "",
            "line 2: Operand must be a number.",
        )

    def test_run_stops_at_runtime_error(self):
        self.check(
            "run",
            "print 1;\nprint x;\nprint 2;",
            main.RUNTIME_ERROR_CODE,
            "1",
            "line 2: Undefined variable 'x'.",
        )

    def test_static_errors(self):
        """All static errors are reported, and nothing runs"""
        self.check(
            "run",
            "print 1;\n{ var a = a; }\nreturn;",
            main.LEXICAL_ERROR_CODE,
            "",
            "line 2: Error at 'a': Can't read local variable in its own initializer.",
            "line 3: Error at 'return': Can't return from top-level code.",
        )

    def test_parse_error_at_end(self):
        self.check("run", "print 1", main.LEXICAL_ERROR_CODE, "", "line 1: Error at end: Expect ';' after value.")

    def test_classes(self):
        self.check(
            "run",
            """
class Greeter {
  init(name) { this.name = name; }
  greet() { return "Hello, " + this.name; }
}
class Loud < Greeter {
  greet() { return super.greet() + "!"; }
}
print Loud("Lox").greet();
""",
            0,
            "Hello, Lox!",
        )


class TestRepl(unittest.TestCase):
    def test_lines_share_state(self):
        lines = iter(["var a = 1;", "print a + 1;", "print b;", "{ var c = c; }", "a = a + 10;", "print a;"])

        def fake_input(_prompt):
            try:
                return next(lines)
            except StopIteration:
                raise EOFError

        with redirect_stdout(io.StringIO()) as out, redirect_stderr(io.StringIO()) as err:
            with mock.patch("builtins.input", fake_input):
                main.repl()

        self.assertEqual(out.getvalue().split(), ["2", "11"])
        self.assertEqual(
            err.getvalue().splitlines(),
            [
                "line 1: Undefined variable 'b'.",
                "line 1: Error at 'c': Can't read local variable in its own initializer.",
            ],
        )


class TestCli(unittest.TestCase):
    def test_usage(self):
        with redirect_stderr(io.StringIO()) as err:
            with self.assertRaises(SystemExit) as e:
                main.cli(["run"])
        self.assertEqual(e.exception.code, main.USAGE_ERROR_CODE)
        self.assertIn("Usage", err.getvalue())

    def test_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "hello.lox")
            with open(path, "w") as f:
                f.write('print "hello";')

            with redirect_stdout(io.StringIO()) as out, redirect_stderr(io.StringIO()):
                with self.assertRaises(SystemExit) as e:
                    main.cli(["run", path])

        self.assertIsNone(e.exception.code)
        self.assertEqual(out.getvalue(), "hello\n")

    def test_quiet_stream_closed_at_exit(self):
        main.verbose_stream.cache_clear()
        try:
            with mock.patch.dict(os.environ, {"LOX_QUIET": "1"}), mock.patch("atexit.register") as register:
                stream = main.verbose_stream()
            register.assert_called_once_with(stream.close)
            self.assertIsNot(stream, main.sys.stderr)
            stream.close()
        finally:
            main.verbose_stream.cache_clear()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
