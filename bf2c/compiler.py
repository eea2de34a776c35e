from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Union

from .emitter import DEFAULT_TAPE_SIZE, CEmitter
from .tokenizer import Token, tokenize
from .tree import DEFAULT_MAX_DEPTH, BracketError, Node, TreeBuilder, count_tokens, max_depth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilerOptions:
    tape_size: int = DEFAULT_TAPE_SIZE
    indent: str = "    "
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if self.tape_size < 1:
            raise ValueError(f"tape_size must be positive, got {self.tape_size}")
        if self.indent.strip():
            raise ValueError("indent must contain only whitespace")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")


class BrainfuckCompiler:
    """Tokenize, build the tree, and emit C for Brainfuck source."""

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self.options = options or CompilerOptions()
        self.builder = TreeBuilder(max_depth=self.options.max_depth)
        self.emitter = CEmitter(tape_size=self.options.tape_size, indent=self.options.indent)

    def tokenize(self, source: str) -> List[Token]:
        tokens = tokenize(source)
        logger.debug("tokenized %d commands from %d characters", len(tokens), len(source))
        return tokens

    def parse(self, source: str) -> List[Node]:
        tokens = self.tokenize(source)
        try:
            forest = self.builder.build(tokens)
        except BracketError as exc:
            logger.debug("tree construction failed (%s): %s", exc.kind, exc)
            raise
        logger.debug(
            "built %d top-level nodes covering %d commands, nesting depth %d",
            len(forest),
            count_tokens(forest),
            max_depth(forest),
        )
        return forest

    def compile(self, source: str) -> str:
        forest = self.parse(source)
        return self.emitter.render(forest)

    def compile_file(self, path: Union[str, Path]) -> str:
        # latin-1 maps every byte to one character, so offsets are byte offsets.
        source = Path(path).read_bytes().decode("latin-1")
        return self.compile(source)


def compile_source(source: str, **overrides) -> str:
    options = replace(CompilerOptions(), **overrides)
    return BrainfuckCompiler(options).compile(source)


__all__ = ["BrainfuckCompiler", "CompilerOptions", "compile_source"]
