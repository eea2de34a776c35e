from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from bf2c import __version__
from bf2c.compiler import BrainfuckCompiler, CompilerOptions
from bf2c.emitter import DEFAULT_TAPE_SIZE
from bf2c.tree import DEFAULT_MAX_DEPTH, BracketError, Loop, Node, count_tokens, max_depth, walk


def _flatten(forest: List[Node]) -> List[dict]:
    # Preorder with explicit depth; a loop's body follows it at depth + 1.
    entries: List[dict] = []
    for depth, node, closing in walk(forest):
        if closing:
            continue
        if isinstance(node, Loop):
            entries.append({"depth": depth, "kind": "loop"})
        else:
            entries.append({"depth": depth, "kind": "run", "symbol": node.symbol.value, "count": node.count})
    return entries


def _depth_limit(value: Optional[int]) -> Optional[int]:
    # 0 and null both mean unlimited, matching `bf2c --max-depth 0`.
    return value or None


def _error_detail(exc: BracketError) -> dict:
    return {"kind": exc.kind, "message": exc.message, "offset": exc.offset}


class CompileRequest(BaseModel):
    source: str = ""
    tape_size: int = Field(default=DEFAULT_TAPE_SIZE, ge=1)
    indent: int = Field(default=4, ge=0)
    max_depth: Optional[int] = Field(default=DEFAULT_MAX_DEPTH, ge=0)


class CompileResponse(BaseModel):
    code: str
    node_count: int
    token_count: int
    max_depth: int


class TreeRequest(BaseModel):
    source: str = ""
    max_depth: Optional[int] = Field(default=DEFAULT_MAX_DEPTH, ge=0)


class TreeResponse(BaseModel):
    nodes: List[dict]
    token_count: int


class HealthResponse(BaseModel):
    status: str
    version: str


def create_app() -> FastAPI:
    app = FastAPI(title="bf2c API", version=__version__)

    def _parse(compiler: BrainfuckCompiler, source: str) -> List[Node]:
        try:
            return compiler.parse(source)
        except BracketError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=_error_detail(exc),
            ) from exc

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.post("/api/compile", response_model=CompileResponse)
    def compile_program(payload: CompileRequest) -> CompileResponse:
        options = CompilerOptions(
            tape_size=payload.tape_size,
            indent=" " * payload.indent,
            max_depth=_depth_limit(payload.max_depth),
        )
        compiler = BrainfuckCompiler(options)
        forest = _parse(compiler, payload.source)
        return CompileResponse(
            code=compiler.emitter.render(forest),
            node_count=len(forest),
            token_count=count_tokens(forest),
            max_depth=max_depth(forest),
        )

    @app.post("/api/tree", response_model=TreeResponse)
    def parse_tree(payload: TreeRequest) -> TreeResponse:
        compiler = BrainfuckCompiler(CompilerOptions(max_depth=_depth_limit(payload.max_depth)))
        forest = _parse(compiler, payload.source)
        return TreeResponse(
            nodes=_flatten(forest),
            token_count=count_tokens(forest),
        )

    return app


__all__ = ["create_app"]
