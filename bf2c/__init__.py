from .compiler import BrainfuckCompiler, CompilerOptions, compile_source
from .emitter import CEmitter
from .tokenizer import Symbol, Token, tokenize
from .tree import (
    BracketError,
    Loop,
    NestingTooDeepError,
    Node,
    Run,
    TreeBuilder,
    UnmatchedCloseError,
    UnmatchedOpenError,
    build_tree,
)

__version__ = "0.1.0"

__all__ = [
    "BracketError",
    "BrainfuckCompiler",
    "CEmitter",
    "CompilerOptions",
    "Loop",
    "NestingTooDeepError",
    "Node",
    "Run",
    "Symbol",
    "Token",
    "TreeBuilder",
    "UnmatchedCloseError",
    "UnmatchedOpenError",
    "build_tree",
    "compile_source",
    "tokenize",
]
