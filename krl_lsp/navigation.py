"""Hover and go-to-definition."""

from __future__ import annotations

import logging
from typing import Optional

from .collector import collect_symbols
from .indexer import SymbolIndex
from .keywords import (
    KEYWORD_DOCS,
    LIBRARY_BY_NAME,
    SYSTEM_VARIABLE_DOCS,
    SYSTEM_VARIABLES,
    is_keyword,
)
from .messages import t
from .resolver import (
    ResolveKind,
    find_enclosing_scope,
    paired_data_file,
    resolve,
)
from .rules import DeclKind, classify_line
from .symbols import FunctionSignature, Location, Scope, Symbol, SymbolKind
from .text_utils import get_word_at_position, split_lines

log = logging.getLogger(__name__)


def definition(
    text: str,
    filepath: str,
    line: int,
    character: int,
    index: SymbolIndex,
    root: Optional[str],
    overrides: Optional[dict[str, str]] = None,
) -> Optional[Location]:
    """Find where the identifier under the cursor is declared.

    Functions are looked up first, then STRUC types, then variables: in
    the enclosing routine, in the paired data list, and workspace-wide
    for GLOBAL variables.
    """
    lines = split_lines(text)
    if line >= len(lines):
        return None
    line_text = lines[line]
    if classify_line(line_text).decl_kind == DeclKind.FUNCTION:
        return None
    word = get_word_at_position(line_text, character)
    if word is None or word.is_member:
        return None
    name = word.word
    overrides = dict(overrides or {})
    overrides[filepath] = text

    match = resolve(root, name, ResolveKind.FUNCTION, overrides=overrides)
    if match:
        return match.location

    if index.find_struct(name):
        match = resolve(root, name, ResolveKind.STRUC, overrides=overrides)
        if match:
            return match.location

    table = collect_symbols(text, filepath)
    var = table.find_variable(name) or index.find_variable(name)
    if var is None:
        return None

    scope = find_enclosing_scope(lines, line)
    window = (scope.start_line, scope.end_line) if scope else None
    match = resolve(
        root, name, ResolveKind.VARIABLE, file_scope=filepath,
        line_range=window, overrides=overrides,
    )
    if match:
        return match.location

    dat = paired_data_file(filepath)
    if dat:
        match = resolve(
            root, name, ResolveKind.VARIABLE, file_scope=dat,
            overrides=overrides,
        )
        if match:
            return match.location

    if var.scope == Scope.GLOBAL:
        match = resolve(root, name, ResolveKind.VARIABLE, overrides=overrides)
        if match:
            return match.location

    log.debug('No DECL line found for %s, using collected range', name)
    # Parameters, enum types and the like have no DECL line to search for
    if var.range is not None and var.file:
        return Location(var.file, var.range)
    return None


# -- hover -----------------------------------------------------------------

def _keyword_hover(word: str) -> str:
    doc = KEYWORD_DOCS.get(word.upper())
    if doc is None:
        return f'**{word.upper()}** {t("hover.krlKeyword")}'
    parts = [f'**{word.upper()}**', '', doc.description]
    if doc.syntax:
        parts += ['', '```krl', doc.syntax, '```']
    if doc.example:
        parts += ['', '```krl', doc.example, '```']
    return '\n'.join(parts)


def _function_hover(func: FunctionSignature) -> str:
    header = f'{func.keyword} '
    if func.return_type:
        header += f'{func.return_type} '
    header += func.signature()
    parts = ['```krl', header, '```', '', t('hover.userFunction')]
    if func.doc:
        parts += ['', func.doc]
    return '\n'.join(parts)


def _variable_hover(var: Symbol) -> str:
    text = f'**{var.name}**: `{var.type or "Unknown"}`'
    if var.value:
        text += f' = `{var.value}`'
    text += f'\n\n{t("hover.variable")}'
    if var.doc:
        text += f'\n\n{var.doc}'
    return text


def _struct_hover(name: str, members: list[str]) -> str:
    listed = '`, `'.join(members)
    return (
        f'**{t("hover.struct")} {name}**\n\n'
        f'{t("hover.members")}: `{listed}`'
    )


def hover(
    text: str,
    line: int,
    character: int,
    index: SymbolIndex,
    root: Optional[str] = None,
) -> Optional[str]:
    """Markdown hover text for the identifier under the cursor."""
    lines = split_lines(text)
    if line >= len(lines):
        return None
    line_text = lines[line]
    word = get_word_at_position(line_text, character)
    if word is None:
        return None
    name = word.word

    if word.start > 0 and line_text[word.start - 1] == '$':
        sys_name = '$' + name.upper()
        doc = SYSTEM_VARIABLE_DOCS.get(sys_name)
        if doc:
            return f'**{sys_name}**\n\n{doc}'
        if sys_name in SYSTEM_VARIABLES:
            return f'**{sys_name}** {t("hover.systemVariable")}'
        return None

    func = index.find_function(name)
    if func is not None:
        return _function_hover(func)

    lib = LIBRARY_BY_NAME.get(name.upper())
    if lib is not None:
        return (
            f'```krl\n{lib.return_type} {lib.name}({lib.params})\n```\n\n'
            f'{t("hover.libraryFunction", lib.module)}\n\n{lib.description}'
        )

    if is_keyword(name):
        return _keyword_hover(name)

    table = collect_symbols(text)
    var = table.find_variable(name) or index.find_variable(name)
    if var is not None and var.kind == SymbolKind.STRUCT:
        members = table.structs.get(var.name)
        if members is None:
            found = index.find_struct(var.name)
            members = found[1] if found else []
        return _struct_hover(var.name, members)
    if var is not None:
        return _variable_hover(var)

    match = resolve(root, name, ResolveKind.FUNCTION)
    if match:
        return f'**{match.name}**({match.params})'
    return None
