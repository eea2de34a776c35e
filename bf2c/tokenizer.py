from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


class Symbol(str, Enum):
    INCREMENT = "+"
    DECREMENT = "-"
    MOVE_RIGHT = ">"
    MOVE_LEFT = "<"
    OUTPUT = "."
    INPUT = ","
    LOOP_OPEN = "["
    LOOP_CLOSE = "]"

    @property
    def is_bracket(self) -> bool:
        return self in (Symbol.LOOP_OPEN, Symbol.LOOP_CLOSE)


_SYMBOLS: Dict[str, Symbol] = {symbol.value: symbol for symbol in Symbol}


@dataclass(frozen=True)
class Token:
    symbol: Symbol
    offset: int


def tokenize(source: str) -> List[Token]:
    """Scan ``source`` and return one token per Brainfuck command.

    Every character outside the eight-command alphabet is treated as a comment
    and skipped. Offsets are zero-based positions in ``source``.
    """
    tokens: List[Token] = []
    for offset, char in enumerate(source):
        symbol = _SYMBOLS.get(char)
        if symbol is not None:
            tokens.append(Token(symbol=symbol, offset=offset))
    return tokens


__all__ = ["Symbol", "Token", "tokenize"]
