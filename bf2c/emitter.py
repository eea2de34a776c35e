from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from .tokenizer import Symbol
from .tree import Loop, Node, Run, walk

DEFAULT_TAPE_SIZE = 30000

_CELL_UPDATES: Dict[Symbol, str] = {
    Symbol.INCREMENT: "*ptr += {count};",
    Symbol.DECREMENT: "*ptr -= {count};",
    Symbol.MOVE_RIGHT: "ptr += {count};",
    Symbol.MOVE_LEFT: "ptr -= {count};",
}

_IO_STATEMENTS: Dict[Symbol, str] = {
    Symbol.OUTPUT: "putchar(*ptr);",
    Symbol.INPUT: "*ptr = getchar();",
}


@dataclass
class CEmitter:
    """Walks a forest depth-first and produces C source.

    Cells are ``unsigned char`` so arithmetic wraps at 8 bits; the pointer is
    never bounds-checked.
    """

    tape_size: int = DEFAULT_TAPE_SIZE
    indent: str = "    "

    def emit(self, forest: Sequence[Node], level: int = 0) -> List[str]:
        lines: List[str] = []
        for depth, node, closing in walk(forest):
            if isinstance(node, Loop):
                self._emit_loop_edge(level + depth, closing, lines)
            else:
                self._emit_run(node, level + depth, lines)
        return lines

    def render(self, forest: Sequence[Node]) -> str:
        lines = self._prologue()
        lines.extend(self.emit(forest, level=1))
        lines.extend(self._epilogue())
        return "\n".join(lines) + "\n"

    # --- Helpers ---

    def _pad(self, level: int) -> str:
        return self.indent * level

    def _emit_run(self, node: Run, level: int, lines: List[str]) -> None:
        pad = self._pad(level)
        template = _CELL_UPDATES.get(node.symbol)
        if template is not None:
            lines.append(pad + template.format(count=node.count))
            return
        statement = _IO_STATEMENTS[node.symbol]
        if node.count == 1:
            lines.append(pad + statement)
            return
        # Repeated I/O becomes a counted loop instead of n copies.
        lines.append(f"{pad}for (int i = 0; i < {node.count}; i++) {{")
        lines.append(self._pad(level + 1) + statement)
        lines.append(pad + "}")

    def _emit_loop_edge(self, level: int, closing: bool, lines: List[str]) -> None:
        lines.append(self._pad(level) + ("}" if closing else "while (*ptr) {"))

    def _prologue(self) -> List[str]:
        pad = self._pad(1)
        return [
            "#include <stdio.h>",
            "#include <stdlib.h>",
            "",
            f"#define TAPE_SIZE {self.tape_size}",
            "",
            "int main(void) {",
            f"{pad}unsigned char array[TAPE_SIZE] = {{0}};",
            f"{pad}unsigned char *ptr = array;",
            "",
        ]

    def _epilogue(self) -> List[str]:
        return [
            "",
            f"{self._pad(1)}return 0;",
            "}",
        ]


__all__ = ["CEmitter", "DEFAULT_TAPE_SIZE"]
