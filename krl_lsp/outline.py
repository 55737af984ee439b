"""Document outline and workspace symbol search."""

from __future__ import annotations

import os
from typing import Optional

from lsprotocol import types as lsp

from .collector import collect_symbols
from .indexer import SymbolIndex
from .resolver import path_to_uri
from .rules import (
    DEFDAT_RE,
    FUNCTION_HEADER_RE,
    SCOPE_CLOSE_RE,
    classify_line,
)
from .symbols import Range, Symbol, SymbolKind
from .text_utils import split_lines, strip_comment

MAX_WORKSPACE_SYMBOLS = 100

_TYPE_KINDS = {
    'INT': lsp.SymbolKind.Number,
    'REAL': lsp.SymbolKind.Number,
    'BOOL': lsp.SymbolKind.Boolean,
    'CHAR': lsp.SymbolKind.String,
    'STRING': lsp.SymbolKind.String,
    'FRAME': lsp.SymbolKind.Struct,
    'POS': lsp.SymbolKind.Struct,
    'E6POS': lsp.SymbolKind.Struct,
    'AXIS': lsp.SymbolKind.Struct,
    'E6AXIS': lsp.SymbolKind.Struct,
    'LOAD': lsp.SymbolKind.Struct,
    'SIGNAL': lsp.SymbolKind.Event,
    'STRUC': lsp.SymbolKind.Struct,
    'ENUM': lsp.SymbolKind.Enum,
}


def symbol_kind(sym: Symbol) -> lsp.SymbolKind:
    if sym.kind == SymbolKind.FUNCTION:
        return lsp.SymbolKind.Function
    if sym.kind == SymbolKind.ENUM_MEMBER:
        return lsp.SymbolKind.EnumMember
    return _TYPE_KINDS.get((sym.type or '').upper(), lsp.SymbolKind.Variable)


def _lsp_range(r: Range) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=r.start_line, character=r.start_col),
        end=lsp.Position(line=r.end_line, character=r.end_col),
    )


def _line_range(line: int, length: int) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=line, character=0),
        end=lsp.Position(line=line, character=length),
    )


def _block_symbol(line_no: int, line: str) -> Optional[lsp.DocumentSymbol]:
    code = strip_comment(line)
    m = FUNCTION_HEADER_RE.match(code)
    if m:
        name = m.group(4)
        detail = f'({m.group(5).strip()})'
        if m.group(3):
            detail = m.group(3) + detail
        selection = Range(line_no, m.start(4), line_no, m.end(4))
        kind = lsp.SymbolKind.Function
    else:
        m = DEFDAT_RE.match(code)
        if m is None:
            return None
        name = m.group(1)
        detail = 'PUBLIC DATA' if m.group(2) else 'DATA'
        selection = Range(line_no, m.start(1), line_no, m.end(1))
        kind = lsp.SymbolKind.Module
    return lsp.DocumentSymbol(
        name=name,
        detail=detail,
        kind=kind,
        range=_line_range(line_no, len(line)),
        selection_range=_lsp_range(selection),
        children=[],
    )


def document_symbols(text: str) -> list[lsp.DocumentSymbol]:
    """Routines and data lists with their declarations nested inside."""
    lines = split_lines(text)
    table = collect_symbols(text)
    by_line: dict[int, list[Symbol]] = {}
    for var in table.variables:
        if var.range is not None and var.kind != SymbolKind.PARAMETER:
            by_line.setdefault(var.range.start_line, []).append(var)

    result: list[lsp.DocumentSymbol] = []
    stack: list[lsp.DocumentSymbol] = []

    def add(sym: lsp.DocumentSymbol) -> None:
        if stack:
            stack[-1].children.append(sym)
        else:
            result.append(sym)

    for i, line in enumerate(lines):
        block = _block_symbol(i, line)
        if block is not None:
            stack.append(block)
            continue
        if stack and SCOPE_CLOSE_RE.match(line):
            done = stack.pop()
            done.range = lsp.Range(
                start=done.range.start,
                end=lsp.Position(line=i, character=len(line)),
            )
            add(done)
            continue
        if not classify_line(line).is_declaration:
            continue
        for var in by_line.get(i, []):
            add(lsp.DocumentSymbol(
                name=var.name,
                detail=var.type or '',
                kind=symbol_kind(var),
                range=_line_range(i, len(line)),
                selection_range=_lsp_range(var.range),
            ))
    # Unterminated blocks
    while stack:
        add(stack.pop())
    return result


def workspace_symbols(query: str, index: SymbolIndex) -> list[lsp.WorkspaceSymbol]:
    """Functions, variables and types whose name contains ``query``."""
    query = query.upper()
    candidates: list[Symbol] = list(index.functions)
    candidates += [
        v for v in index.merged_variables
        if v.kind != SymbolKind.PARAMETER
    ]
    symbols = []
    for sym in candidates:
        if query and query not in sym.key:
            continue
        if sym.file is None or sym.range is None:
            continue
        symbols.append(lsp.WorkspaceSymbol(
            name=sym.name,
            kind=symbol_kind(sym),
            location=lsp.Location(
                uri=path_to_uri(sym.file), range=_lsp_range(sym.range),
            ),
            container_name=os.path.basename(sym.file),
        ))
        if len(symbols) >= MAX_WORKSPACE_SYMBOLS:
            break
    return symbols
