from pathlib import Path
import tempfile
from contextlib import redirect_stderr, redirect_stdout
import io
import sys
import unittest
from unittest import mock

from bf2c import (
    BrainfuckCompiler,
    CompilerOptions,
    NestingTooDeepError,
    UnmatchedCloseError,
    UnmatchedOpenError,
    compile_source,
)
from bf2c.cli import main as cli_main

HELLO = "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]>>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."


class CompilerOptionsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        options = CompilerOptions()
        self.assertEqual(options.tape_size, 30000)
        self.assertEqual(options.indent, "    ")
        self.assertEqual(options.max_depth, 256)

    def test_rejects_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            CompilerOptions(tape_size=0)
        with self.assertRaises(ValueError):
            CompilerOptions(indent="xx")
        with self.assertRaises(ValueError):
            CompilerOptions(max_depth=-1)


class BrainfuckCompilerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.compiler = BrainfuckCompiler()

    def test_compile_is_deterministic(self) -> None:
        first = self.compiler.compile(HELLO)
        second = BrainfuckCompiler().compile(HELLO)
        self.assertEqual(first, second)

    def test_compile_merges_runs(self) -> None:
        code = self.compiler.compile("++++++++ comment ----")
        self.assertIn("    *ptr += 8;\n    *ptr -= 4;\n", code)

    def test_compile_translates_loops(self) -> None:
        code = self.compiler.compile(",[.,]")
        self.assertIn(
            "    *ptr = getchar();\n"
            "    while (*ptr) {\n"
            "        putchar(*ptr);\n"
            "        *ptr = getchar();\n"
            "    }\n",
            code,
        )

    def test_compile_empty_source(self) -> None:
        self.assertEqual(self.compiler.compile(""), self.compiler.compile("only words"))

    def test_errors_propagate(self) -> None:
        with self.assertRaises(UnmatchedCloseError):
            self.compiler.compile("+]")
        with self.assertRaises(UnmatchedOpenError):
            self.compiler.compile("[+")

    def test_options_reach_stages(self) -> None:
        compiler = BrainfuckCompiler(CompilerOptions(tape_size=64, indent="  ", max_depth=1))
        code = compiler.compile("[-]")
        self.assertIn("#define TAPE_SIZE 64", code)
        self.assertIn("  while (*ptr) {\n    *ptr -= 1;\n  }\n", code)
        with self.assertRaises(NestingTooDeepError):
            compiler.compile("[[-]]")

    def test_compile_file_accepts_any_bytes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "prog.bf"
            path.write_bytes(b"\xfe\xff++\x00.")
            code = self.compiler.compile_file(path)
        self.assertIn("*ptr += 2;", code)
        self.assertIn("putchar(*ptr);", code)

    def test_compile_source_overrides(self) -> None:
        code = compile_source("+", tape_size=10)
        self.assertIn("#define TAPE_SIZE 10", code)

    def test_debug_logging(self) -> None:
        with self.assertLogs("bf2c.compiler", level="DEBUG") as logs:
            self.compiler.compile("++[-]")
        self.assertTrue(any("tokenized 5 commands" in line for line in logs.output))

    def test_error_is_logged(self) -> None:
        with self.assertLogs("bf2c.compiler", level="DEBUG") as logs:
            with self.assertRaises(UnmatchedOpenError):
                self.compiler.parse("[")
        self.assertTrue(any("unmatched-open" in line for line in logs.output))


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_source(self, content: str, name: str = "program.bf") -> Path:
        path = self.tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    def _run(self, argv, stdin: bytes = b""):
        out = io.StringIO()
        err = io.StringIO()
        fake_stdin = io.TextIOWrapper(io.BytesIO(stdin), encoding="latin-1")
        with mock.patch.object(sys, "stdin", fake_stdin), redirect_stdout(out), redirect_stderr(err):
            exit_code = cli_main(argv)
        return exit_code, out.getvalue(), err.getvalue()

    def test_cli_writes_output_file(self) -> None:
        source_path = self._write_source(HELLO)
        output_path = self.tmp_path / "out.c"
        exit_code, stdout, _ = self._run([str(source_path), "-o", str(output_path)])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "")
        self.assertEqual(output_path.read_text(encoding="utf-8"), BrainfuckCompiler().compile(HELLO))

    def test_cli_reads_stdin(self) -> None:
        exit_code, stdout, _ = self._run([], stdin=b"+++[-]")
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, BrainfuckCompiler().compile("+++[-]"))

    def test_cli_dash_reads_stdin(self) -> None:
        exit_code, stdout, _ = self._run(["-", "--emit", "bf"], stdin=b"a+b+c.")
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "++.\n")

    def test_cli_emits_tree(self) -> None:
        source_path = self._write_source("+++[-]")
        exit_code, stdout, _ = self._run([str(source_path), "--emit", "tree"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "Run(+, 3)\nLoop:\n  Run(-, 1)\n")

    def test_cli_options(self) -> None:
        source_path = self._write_source("[.]")
        exit_code, stdout, _ = self._run([str(source_path), "--tape-size", "512", "--indent", "2"])
        self.assertEqual(exit_code, 0)
        self.assertIn("#define TAPE_SIZE 512", stdout)
        self.assertIn("  while (*ptr) {\n    putchar(*ptr);\n  }\n", stdout)

    def test_cli_zero_depth_disables_guard(self) -> None:
        source_path = self._write_source("[" * 3000 + "]" * 3000)
        exit_code, _, err = self._run([str(source_path), "--emit", "bf"])
        self.assertEqual(exit_code, 1)
        self.assertIn("depth limit", err)
        exit_code, stdout, _ = self._run([str(source_path), "--emit", "bf", "--max-depth", "0"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout.strip(), "[" * 3000 + "]" * 3000)

    def test_cli_compiles_deep_nesting_without_limit(self) -> None:
        source_path = self._write_source("[" * 3000 + "+" + "]" * 3000)
        exit_code, stdout, err = self._run([str(source_path), "--max-depth", "0", "--indent", "1"])
        self.assertEqual(exit_code, 0, err)
        self.assertEqual(stdout.count("while (*ptr) {"), 3000)
        self.assertIn("\n" + " " * 3001 + "*ptr += 1;\n", stdout)

    def test_cli_deep_tree_dump(self) -> None:
        source_path = self._write_source("[" * 3000 + "]" * 3000)
        exit_code, stdout, err = self._run([str(source_path), "--emit", "tree", "--max-depth", "0"])
        self.assertEqual(exit_code, 0, err)
        self.assertEqual(stdout.count("Loop:"), 3000)

    def test_cli_bracket_error(self) -> None:
        source_path = self._write_source("[]]")
        exit_code, stdout, err = self._run([str(source_path)])
        self.assertEqual(exit_code, 1)
        self.assertEqual(stdout, "")
        self.assertIn("Compilation error: Unmatched ']' at position 2", err)

    def test_cli_missing_file_errors(self) -> None:
        exit_code, _, err = self._run(["does_not_exist.bf"])
        self.assertEqual(exit_code, 1)
        self.assertIn("Source file not found", err)

    def test_cli_unwritable_output_errors(self) -> None:
        source_path = self._write_source("+.")
        output_path = self.tmp_path / "missing" / "out.c"
        exit_code, stdout, err = self._run([str(source_path), "-o", str(output_path)])
        self.assertEqual(exit_code, 1)
        self.assertEqual(stdout, "")
        self.assertIn("Cannot write output", err)

    def test_cli_output_path_is_directory(self) -> None:
        source_path = self._write_source("+.")
        exit_code, _, err = self._run([str(source_path), "-o", str(self.tmp_path)])
        self.assertEqual(exit_code, 1)
        self.assertIn("Cannot write output", err)

    def test_cli_rejects_bad_tape_size(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._run(["--tape-size", "0"])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
