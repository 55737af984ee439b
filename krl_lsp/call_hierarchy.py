"""Call hierarchy: who calls a routine and what it calls.

Routines cannot nest in KRL, so the routine containing a line is the
nearest DEF/DEFFCT header above it with no END/ENDFCT in between.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from lsprotocol import types as lsp

from .indexer import SymbolIndex
from .resolver import path_to_uri, uri_to_path
from .rules import SCOPE_CLOSE_RE
from .symbols import FunctionSignature
from .text_utils import (
    code_part,
    escape_regex,
    get_word_at_position,
    mask_strings,
    split_lines,
)

_HEADER_RE = re.compile(
    r'^\s*(?:GLOBAL\s+)?(DEF|DEFFCT)\s+(?:\w+\s+)?(\w+)\s*\(', re.IGNORECASE,
)
_CALL_RE = re.compile(r'\b([A-Za-z_]\w*)\s*\(')
# Words followed by '(' that are not calls
_NOT_CALLS = frozenset({
    'IF', 'WHILE', 'FOR', 'SWITCH', 'WAIT', 'LOOP', 'REPEAT', 'UNTIL',
    'AND', 'OR', 'NOT', 'EXOR',
})


def _range(line: int, start: int, end: int) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=line, character=start),
        end=lsp.Position(line=line, character=end),
    )


def _function_item(func: FunctionSignature) -> lsp.CallHierarchyItem:
    r = _range(func.range.start_line, func.range.start_col, func.range.end_col)
    return lsp.CallHierarchyItem(
        name=func.name,
        kind=lsp.SymbolKind.Function,
        uri=path_to_uri(func.file),
        range=r,
        selection_range=r,
        detail=f'({func.param_list()})',
    )


def prepare_call_hierarchy(
    text: str,
    filepath: str,
    line: int,
    character: int,
    index: SymbolIndex,
) -> Optional[list[lsp.CallHierarchyItem]]:
    lines = split_lines(text)
    if line >= len(lines):
        return None
    word = get_word_at_position(lines[line], character)
    if word is None:
        return None
    func = index.find_function(word.word)
    if func is not None and func.file and func.range:
        return [_function_item(func)]
    r = _range(line, word.start, word.end)
    return [lsp.CallHierarchyItem(
        name=word.word,
        kind=lsp.SymbolKind.Function,
        uri=path_to_uri(filepath),
        range=r,
        selection_range=r,
    )]


def containing_function(lines: list[str], line: int) -> Optional[tuple[int, re.Match]]:
    """The (line, header match) of the routine enclosing ``line``."""
    for i in range(line, -1, -1):
        m = _HEADER_RE.match(lines[i])
        if m:
            return i, m
        if i < line and SCOPE_CLOSE_RE.match(lines[i]):
            return None
    return None


def incoming_calls(
    item: lsp.CallHierarchyItem,
    texts: Iterable[tuple[str, str]],
) -> list[lsp.CallHierarchyIncomingCall]:
    """Calls to ``item`` in ``texts``, grouped by calling routine."""
    pattern = re.compile(
        r'\b' + escape_regex(item.name) + r'\s*\(', re.IGNORECASE,
    )
    item_path = uri_to_path(item.uri)
    calls: dict[tuple[str, int], lsp.CallHierarchyIncomingCall] = {}
    for filepath, text in texts:
        lines = split_lines(text)
        for i, line in enumerate(lines):
            code = mask_strings(code_part(line))
            for m in pattern.finditer(code):
                if (filepath == item_path
                        and i == item.selection_range.start.line
                        and m.start() == item.selection_range.start.character):
                    continue
                caller = containing_function(lines, i)
                if caller is None:
                    continue
                header_line, header = caller
                # The header naming the routine itself is not a call
                if header_line == i and header.start(2) == m.start():
                    continue
                hit = _range(i, m.start(), m.start() + len(item.name))
                key = (filepath, header_line)
                if key in calls:
                    calls[key].from_ranges.append(hit)
                    continue
                name_range = _range(header_line, header.start(2), header.end(2))
                calls[key] = lsp.CallHierarchyIncomingCall(
                    from_=lsp.CallHierarchyItem(
                        name=header.group(2),
                        kind=lsp.SymbolKind.Function,
                        uri=path_to_uri(filepath),
                        range=name_range,
                        selection_range=name_range,
                    ),
                    from_ranges=[hit],
                )
    return list(calls.values())


def function_body(lines: list[str], header_line: int) -> tuple[int, int]:
    """Lines from a routine header through its END/ENDFCT."""
    for i in range(header_line + 1, len(lines)):
        if SCOPE_CLOSE_RE.match(lines[i]):
            return header_line, i
    return header_line, len(lines) - 1


def outgoing_calls(
    item: lsp.CallHierarchyItem,
    text: str,
    index: SymbolIndex,
) -> list[lsp.CallHierarchyOutgoingCall]:
    """Known routines called from the body of ``item``."""
    lines = split_lines(text)
    start, end = function_body(lines, item.range.start.line)
    own = item.name.upper()
    calls: dict[str, lsp.CallHierarchyOutgoingCall] = {}
    for i in range(start, end + 1):
        code = mask_strings(code_part(lines[i]))
        for m in _CALL_RE.finditer(code):
            name = m.group(1)
            key = name.upper()
            if key == own or key in _NOT_CALLS:
                continue
            func = index.find_function(name)
            if func is None or not func.file or func.range is None:
                continue
            hit = _range(i, m.start(1), m.end(1))
            if key in calls:
                calls[key].from_ranges.append(hit)
            else:
                calls[key] = lsp.CallHierarchyOutgoingCall(
                    to=_function_item(func), from_ranges=[hit],
                )
    return list(calls.values())
