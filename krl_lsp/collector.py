"""Collect declarations from KRL source text.

Collection is a pure function of the document text: it runs on every
open/change/save and never touches the filesystem.
"""

from __future__ import annotations

import re
from typing import Optional

from .doc_comments import get_doc_comment, get_trailing_doc_comment
from .keywords import PRIMITIVE_TYPES
from .rules import (
    BARE_DECL_RE,
    DECL_RE,
    DeclKind,
    FUNCTION_HEADER_RE,
    SIGNAL_RE,
    STRUC_RE,
    classify_line,
)
from .symbols import (
    FunctionSignature,
    Parameter,
    Range,
    Scope,
    Symbol,
    SymbolKind,
    SymbolTable,
)
from .text_utils import line_starts, offset_to_position, split_lines, strip_comment

IDENT_RE = re.compile(r'^[A-Za-z_]\w*$')
_INDEX_SUFFIX_RE = re.compile(r'\[.*?\]')
_MEMBER_SPLIT_RE = re.compile(r'[,\s]+')

_OPEN_BRACKETS = '[{('
_CLOSE_BRACKETS = ']})'


def split_top_level(text: str) -> list[tuple[int, str]]:
    """Split on commas outside brackets and strings.

    Returns (offset, item) pairs; ``offset`` is where the stripped item
    starts within ``text``. Empty items are dropped.
    """
    items = []
    depth = 0
    in_string = False
    start = 0
    for i, ch in enumerate(text):
        if ch == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif ch in _OPEN_BRACKETS:
            depth += 1
        elif ch in _CLOSE_BRACKETS:
            depth = max(depth - 1, 0)
        elif ch == ',' and depth == 0:
            _append_item(items, text, start, i)
            start = i + 1
    _append_item(items, text, start, len(text))
    return items


def _append_item(items, text, start, end):
    raw = text[start:end]
    stripped = raw.strip()
    if stripped:
        items.append((start + len(raw) - len(raw.lstrip()), stripped))


def split_vars_respecting_brackets(text: str) -> list[str]:
    """Example: 'a, b[1,2], c="x,y"' -> ['a', 'b[1,2]', 'c="x,y"']"""
    return [item for _offset, item in split_top_level(text)]


def parse_declarator(item: str) -> tuple[Optional[str], Optional[str]]:
    """Split 'name[dims] = value' into (name, value).

    The name is None when it is not a valid identifier.
    """
    lhs, eq, rhs = item.partition('=')
    name = _INDEX_SUFFIX_RE.sub('', lhs).strip()
    if not IDENT_RE.match(name):
        return None, None
    value = rhs.strip() if eq else None
    return name, value or None


def parse_parameter(item: str) -> Optional[Parameter]:
    name, _, direction = item.partition(':')
    name = _INDEX_SUFFIX_RE.sub('', name).strip()
    if not IDENT_RE.match(name):
        return None
    direction = direction.strip().upper() or None
    return Parameter(name, direction)


def extract_struct_definitions(text: str) -> dict[str, list[str]]:
    """Map each STRUC/ENUM type name to its member names.

    Single-line struct syntax does not separate field types from field
    names lexically, so tokens that are primitive types or other known
    struct names are dropped from the member list.
    """
    raw: dict[str, list[str]] = {}
    for line in split_lines(text):
        m = STRUC_RE.match(strip_comment(line))
        if m is None:
            continue
        members = _INDEX_SUFFIX_RE.sub('', m.group(5))
        raw[m.group(4)] = [
            tok for tok in _MEMBER_SPLIT_RE.split(members)
            if tok and tok.upper() not in PRIMITIVE_TYPES
            and tok.upper() not in ('STRUC', 'ENUM')
        ]
    known = {name.upper() for name in raw}
    return {
        name: [tok for tok in members if tok.upper() not in known]
        for name, members in raw.items()
    }


def collect_symbols(text: str, filepath: Optional[str] = None) -> SymbolTable:
    """Build the symbol table for one document.

    The first declaration of a name wins; later duplicates are ignored.
    """
    return _Collector(text, filepath).run()


class _Collector:
    def __init__(self, text: str, filepath: Optional[str]) -> None:
        self.text = text
        self.filepath = filepath
        self.lines = split_lines(text)
        self.starts = line_starts(text)
        self.seen: dict[str, Symbol] = {}
        self.seen_functions: dict[str, FunctionSignature] = {}
        self.table = SymbolTable()

    def run(self) -> SymbolTable:
        for lineno, line in enumerate(self.lines):
            cls = classify_line(line)
            if not cls.is_declaration:
                continue
            code = strip_comment(line)
            if cls.decl_kind == DeclKind.VARIABLE:
                self._collect_variables(lineno, line, code)
            elif cls.decl_kind == DeclKind.SIGNAL:
                self._collect_signal(lineno, line, code)
            elif cls.decl_kind in (DeclKind.STRUC, DeclKind.ENUM):
                self._collect_type(lineno, line, code, cls.decl_kind)
            elif cls.decl_kind == DeclKind.FUNCTION:
                self._collect_function(lineno, code)
        self.table.structs = extract_struct_definitions(self.text)
        return self.table

    def _range(self, lineno: int, col: int, length: int) -> Range:
        # Absolute offset -> (line, column) through the line-start table
        line, start = offset_to_position(self.starts, self.starts[lineno] + col)
        return Range(line, start, line, start + length)

    def _add(self, sym: Symbol) -> None:
        if sym.key in self.seen:
            return
        self.seen[sym.key] = sym
        self.table.variables.append(sym)

    def _collect_variables(self, lineno: int, line: str, code: str) -> None:
        m = DECL_RE.match(code)
        if m:
            is_global = bool(m.group(1) or m.group(2))
            var_type, list_group = m.group(3), 4
        else:
            m = BARE_DECL_RE.match(code)
            if m is None:
                return
            is_global = bool(m.group(1))
            var_type, list_group = m.group(2), 3
        doc = get_trailing_doc_comment(line)
        base = m.start(list_group)
        for offset, item in split_top_level(m.group(list_group)):
            name, value = parse_declarator(item)
            if name is None:
                continue
            self._add(Symbol(
                name=name,
                kind=SymbolKind.VARIABLE,
                type=var_type,
                range=self._range(lineno, base + offset, len(name)),
                scope=Scope.GLOBAL if is_global else Scope.LOCAL,
                value=value,
                file=self.filepath,
                doc=doc,
            ))

    def _collect_signal(self, lineno: int, line: str, code: str) -> None:
        m = SIGNAL_RE.match(code)
        if m is None:
            return
        self._add(Symbol(
            name=m.group(2),
            kind=SymbolKind.SIGNAL,
            type='SIGNAL',
            range=self._range(lineno, m.start(2), len(m.group(2))),
            scope=Scope.GLOBAL if m.group(1) else Scope.LOCAL,
            value=m.group(3).strip() or None,
            file=self.filepath,
            doc=get_trailing_doc_comment(line),
        ))

    def _collect_type(self, lineno, line, code, decl_kind) -> None:
        m = STRUC_RE.match(code)
        if m is None:
            return
        scope = Scope.GLOBAL if (m.group(1) or m.group(2)) else Scope.LOCAL
        self._add(Symbol(
            name=m.group(4),
            kind=SymbolKind.STRUCT,
            type=m.group(3).upper(),
            range=self._range(lineno, m.start(4), len(m.group(4))),
            scope=scope,
            file=self.filepath,
            doc=get_trailing_doc_comment(line),
        ))
        if decl_kind != DeclKind.ENUM:
            return
        # Enum members carry no source range
        for member in _MEMBER_SPLIT_RE.split(m.group(5)):
            if IDENT_RE.match(member):
                self._add(Symbol(
                    name=member,
                    kind=SymbolKind.ENUM_MEMBER,
                    type=None,
                    range=None,
                    scope=scope,
                    value=m.group(4),
                    file=self.filepath,
                ))

    def _collect_function(self, lineno: int, code: str) -> None:
        m = FUNCTION_HEADER_RE.match(code)
        if m is None:
            return
        keyword = m.group(2).upper()
        return_type = m.group(3)
        # DEFFCT requires a return type, DEF must not have one
        if (keyword == 'DEFFCT') != (return_type is not None):
            return
        name = m.group(4)
        scope = Scope.GLOBAL if m.group(1) else Scope.LOCAL
        params = []
        base = m.start(5)
        for offset, item in split_top_level(m.group(5)):
            param = parse_parameter(item)
            if param is None:
                continue
            params.append(param)
            self._add(Symbol(
                name=param.name,
                kind=SymbolKind.PARAMETER,
                type=None,
                range=self._range(lineno, base + offset, len(param.name)),
                scope=Scope.LOCAL,
                value=param.direction,
                file=self.filepath,
            ))
        if name.upper() in self.seen_functions:
            return
        func = FunctionSignature(
            name=name,
            kind=SymbolKind.FUNCTION,
            type=return_type,
            range=self._range(lineno, m.start(4), len(name)),
            scope=scope,
            file=self.filepath,
            doc=get_doc_comment(self.lines, lineno),
            params=params,
            return_type=return_type,
            keyword=keyword,
        )
        self.seen_functions[func.key] = func
        self.table.functions.append(func)
