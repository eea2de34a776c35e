from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .tokenizer import Symbol, Token

DEFAULT_MAX_DEPTH = 256


# === Errors ===


class BracketError(Exception):
    """Base class for malformed loop nesting."""

    kind = "bracket"

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset


class UnmatchedCloseError(BracketError):
    kind = "unmatched-close"

    def __init__(self, offset: int) -> None:
        super().__init__(f"Unmatched ']' at position {offset}", offset)


class UnmatchedOpenError(BracketError):
    kind = "unmatched-open"

    def __init__(self, offset: int) -> None:
        super().__init__(f"Unmatched '[' at position {offset}", offset)


class NestingTooDeepError(BracketError):
    kind = "nesting-too-deep"

    def __init__(self, offset: int, limit: int) -> None:
        super().__init__(f"Loop nesting exceeds depth limit {limit} at position {offset}", offset)
        self.limit = limit


# === Nodes ===


@dataclass
class Run:
    symbol: Symbol
    count: int = 1

    def __post_init__(self) -> None:
        if self.symbol.is_bracket:
            raise ValueError(f"Run cannot hold bracket symbol {self.symbol.value!r}")
        if self.count < 1:
            raise ValueError(f"Run count must be at least 1, got {self.count}")


@dataclass
class Loop:
    body: List["Node"] = field(default_factory=list)


Node = Union[Run, Loop]


# === Builder ===


@dataclass
class _ParseState:
    tokens: Sequence[Token]
    pos: int = 0

    def peek(self) -> Optional[Token]:
        if self.pos >= len(self.tokens):
            return None
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token


@dataclass
class _Level:
    """A loop body under construction; ``open_offset`` is None for the program."""

    open_offset: Optional[int]
    nodes: List[Node] = field(default_factory=list)


class TreeBuilder:
    """Turns a token stream into a forest of :class:`Run` and :class:`Loop` nodes.

    The token stream is consumed once, left to right. Open loops are kept on an
    explicit stack of levels instead of the call stack, so nesting depth is
    bounded only by ``max_depth``.
    """

    def __init__(self, max_depth: Optional[int] = DEFAULT_MAX_DEPTH) -> None:
        if max_depth is not None and max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self.max_depth = max_depth

    def build(self, tokens: Sequence[Token]) -> List[Node]:
        state = _ParseState(tokens=tokens)
        levels: List[_Level] = [_Level(open_offset=None)]
        while True:
            token = state.peek()
            if token is None:
                break
            if token.symbol is Symbol.LOOP_CLOSE:
                self._close_loop(state, levels)
                continue
            if token.symbol is Symbol.LOOP_OPEN:
                self._open_loop(state, levels)
                continue
            levels[-1].nodes.append(self._build_run(state))
        if levels[-1].open_offset is not None:
            raise UnmatchedOpenError(levels[-1].open_offset)
        return levels[0].nodes

    def _open_loop(self, state: _ParseState, levels: List[_Level]) -> None:
        opener = state.advance()
        # levels[0] is the program itself, not a loop.
        if self.max_depth is not None and len(levels) - 1 >= self.max_depth:
            raise NestingTooDeepError(opener.offset, self.max_depth)
        levels.append(_Level(open_offset=opener.offset))

    def _close_loop(self, state: _ParseState, levels: List[_Level]) -> None:
        closer = state.advance()
        if levels[-1].open_offset is None:
            raise UnmatchedCloseError(closer.offset)
        body = levels.pop().nodes
        levels[-1].nodes.append(Loop(body=body))

    def _build_run(self, state: _ParseState) -> Run:
        symbol = state.advance().symbol
        count = 1
        while True:
            token = state.peek()
            if token is None or token.symbol is not symbol:
                break
            state.advance()
            count += 1
        return Run(symbol=symbol, count=count)


def build_tree(tokens: Sequence[Token], max_depth: Optional[int] = DEFAULT_MAX_DEPTH) -> List[Node]:
    return TreeBuilder(max_depth=max_depth).build(tokens)


# === Helpers ===


def walk(forest: Sequence[Node]) -> Iterator[Tuple[int, Node, bool]]:
    """Yield ``(depth, node, closing)`` for every node in source order.

    Runs and loops are yielded with ``closing=False`` when reached; each loop is
    yielded a second time with ``closing=True`` after its body. Top-level nodes
    have depth 0. The walk keeps its own stack, so any nesting depth is safe.
    """
    stack: List[Tuple[Iterator[Node], Optional[Loop]]] = [(iter(forest), None)]
    while stack:
        nodes, owner = stack[-1]
        node = next(nodes, None)
        if node is None:
            stack.pop()
            if owner is not None:
                yield len(stack) - 1, owner, True
            continue
        yield len(stack) - 1, node, False
        if isinstance(node, Loop):
            stack.append((iter(node.body), node))


def count_tokens(forest: Sequence[Node]) -> int:
    total = 0
    for _, node, _ in walk(forest):
        # A loop is visited twice, once per bracket.
        total += 1 if isinstance(node, Loop) else node.count
    return total


def max_depth(forest: Sequence[Node]) -> int:
    deepest = 0
    for depth, node, closing in walk(forest):
        if isinstance(node, Loop) and not closing:
            deepest = max(deepest, depth + 1)
    return deepest


def to_source(forest: Sequence[Node]) -> str:
    """Render a forest back into canonical Brainfuck without comments."""
    parts: List[str] = []
    for _, node, closing in walk(forest):
        if isinstance(node, Loop):
            parts.append(Symbol.LOOP_CLOSE.value if closing else Symbol.LOOP_OPEN.value)
        else:
            parts.append(node.symbol.value * node.count)
    return "".join(parts)


def format_tree(forest: Sequence[Node], indent: str = "  ", level: int = 0) -> str:
    lines: List[str] = []
    for depth, node, closing in walk(forest):
        if closing:
            continue
        pad = indent * (level + depth)
        if isinstance(node, Loop):
            lines.append(f"{pad}Loop:")
        else:
            lines.append(f"{pad}Run({node.symbol.value}, {node.count})")
    return "\n".join(lines)


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "BracketError",
    "Loop",
    "NestingTooDeepError",
    "Node",
    "Run",
    "TreeBuilder",
    "UnmatchedCloseError",
    "UnmatchedOpenError",
    "build_tree",
    "count_tokens",
    "format_tree",
    "max_depth",
    "to_source",
    "walk",
]
