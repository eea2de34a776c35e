from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .compiler import BrainfuckCompiler, CompilerOptions
from .emitter import DEFAULT_TAPE_SIZE
from .tree import DEFAULT_MAX_DEPTH, BracketError, format_tree, to_source


def _read_source(path: Optional[str]) -> str:
    if path is None or path == "-":
        return sys.stdin.buffer.read().decode("latin-1")
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_bytes().decode("latin-1")


def _write_output(path: str, data: str) -> None:
    output_path = Path(path)
    output_path.write_text(data, encoding="utf-8")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )


def _build_options(args: argparse.Namespace) -> CompilerOptions:
    if args.indent < 0:
        raise ValueError(f"indent must be non-negative, got {args.indent}")
    max_depth = args.max_depth if args.max_depth > 0 else None
    return CompilerOptions(tape_size=args.tape_size, indent=" " * args.indent, max_depth=max_depth)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Brainfuck to C compiler")
    parser.add_argument(
        "source",
        nargs="?",
        help="Path to Brainfuck source file (default: read standard input)",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Destination file for the generated code (default: print to stdout)",
    )
    parser.add_argument(
        "--emit",
        choices=("c", "tree", "bf"),
        default="c",
        help="What to emit: C program, parsed tree, or canonical Brainfuck (default: c)",
    )
    parser.add_argument(
        "--tape-size",
        type=int,
        default=DEFAULT_TAPE_SIZE,
        help=f"Number of cells in the generated program's tape (default: {DEFAULT_TAPE_SIZE})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum loop nesting depth, 0 for unlimited (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=4,
        help="Spaces per nesting level in the generated code (default: 4)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline details to stderr")
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        options = _build_options(args)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        source_text = _read_source(args.source)
    except OSError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    compiler = BrainfuckCompiler(options)
    try:
        if args.emit == "c":
            output = compiler.compile(source_text)
        else:
            forest = compiler.parse(source_text)
            output = format_tree(forest) if args.emit == "tree" else to_source(forest)
    except BracketError as exc:
        print(f"Compilation error: {exc}", file=sys.stderr)
        return 1

    if output and not output.endswith("\n"):
        output += "\n"

    if args.output:
        try:
            _write_output(args.output, output)
        except OSError as exc:
            print(f"Cannot write output: {exc}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(output)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
