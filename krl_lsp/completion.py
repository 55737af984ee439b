"""Completion and signature help."""

from __future__ import annotations

import logging
import re
from typing import Optional

from lsprotocol import types as lsp

from .collector import collect_symbols
from .indexer import SymbolIndex
from .keywords import (
    CODE_KEYWORDS,
    LIBRARY_BY_NAME,
    LIBRARY_FUNCTIONS,
    SYSTEM_VARIABLES,
)
from .messages import t
from .symbols import Symbol, SymbolKind
from .text_utils import mask_strings

log = logging.getLogger(__name__)

_MEMBER_ACCESS_RE = re.compile(r'(\w+)\.$')
_CURRENT_WORD_RE = re.compile(r'(\w*)$')
_CALLEE_RE = re.compile(r'(\w+)\s*$')

_VARIABLE_KINDS = {
    SymbolKind.STRUCT: lsp.CompletionItemKind.Struct,
    SymbolKind.ENUM_MEMBER: lsp.CompletionItemKind.EnumMember,
}


def _snippet(name: str, params: list[str]) -> str:
    placeholders = ', '.join(
        f'${{{i}:{p}}}' for i, p in enumerate(params, 1)
    )
    return f'{name}({placeholders})'


def _struct_members(
    var_name: str, text: str, index: SymbolIndex,
) -> Optional[list[str]]:
    """Members of the struct type ``var_name`` was declared with."""
    table = collect_symbols(text)
    var = table.find_variable(var_name) or index.find_variable(var_name)
    if var is None or not var.type:
        return None
    key = var.type.upper()
    for name, members in table.structs.items():
        if name.upper() == key:
            return members
    found = index.find_struct(var.type)
    return found[1] if found else None


def complete(
    text: str,
    line: str,
    character: int,
    index: SymbolIndex,
) -> list[lsp.CompletionItem]:
    """Completion items for the cursor at ``character`` on ``line``.

    After ``identifier.`` only that variable's struct members are
    offered. Otherwise user functions come first, then library functions
    they do not shadow, keywords matching the typed prefix, system
    variables and known variables.
    """
    before = line[:character]
    m = _MEMBER_ACCESS_RE.search(before)
    if m:
        members = _struct_members(m.group(1), text, index)
        return [
            lsp.CompletionItem(label=member, kind=lsp.CompletionItemKind.Field)
            for member in members or []
        ]

    items = []
    user_functions = set()
    for func in index.functions:
        user_functions.add(func.key)
        items.append(lsp.CompletionItem(
            label=func.name,
            kind=lsp.CompletionItemKind.Function,
            detail=func.signature(),
            documentation=func.doc or t('completion.userFunction'),
            insert_text=_snippet(func.name, [p.name for p in func.params]),
            insert_text_format=lsp.InsertTextFormat.Snippet,
            commit_characters=['('],
            sort_text=func.name,
        ))

    for lib in LIBRARY_FUNCTIONS:
        if lib.name.upper() in user_functions:
            continue
        names = [p.split(':')[0] for p in lib.param_names]
        items.append(lsp.CompletionItem(
            label=lib.name,
            kind=lsp.CompletionItemKind.Function,
            detail=f'{lib.return_type} {lib.name}({lib.params}) '
                   f'[{lib.module}]',
            documentation=lib.description,
            insert_text=_snippet(lib.name, names),
            insert_text_format=lsp.InsertTextFormat.Snippet,
            commit_characters=['('],
            sort_text=f'zz_{lib.name}',
        ))

    prefix = _CURRENT_WORD_RE.search(before).group(1).upper()
    for kw in sorted(CODE_KEYWORDS):
        if kw in LIBRARY_BY_NAME or kw in user_functions:
            continue
        if kw.startswith(prefix):
            items.append(lsp.CompletionItem(
                label=kw, kind=lsp.CompletionItemKind.Keyword,
            ))

    items.extend(
        lsp.CompletionItem(
            label=name,
            kind=lsp.CompletionItemKind.Variable,
            detail=t('completion.systemVariable'),
        )
        for name in SYSTEM_VARIABLES
    )
    items.extend(_variable_item(var) for var in index.merged_variables)
    log.debug('%d completion items', len(items))
    return items


def _variable_item(var: Symbol) -> lsp.CompletionItem:
    if var.type:
        detail = t('completion.type', var.type)
    else:
        detail = t('completion.variable')
    return lsp.CompletionItem(
        label=var.name,
        kind=_VARIABLE_KINDS.get(var.kind, lsp.CompletionItemKind.Variable),
        detail=detail,
        documentation=var.doc,
    )


# -- signature help --------------------------------------------------------

def find_open_paren(text: str) -> int:
    """Index of the innermost unclosed '(' in ``text``, or -1."""
    depth = 0
    for i in range(len(text) - 1, -1, -1):
        if text[i] == ')':
            depth += 1
        elif text[i] == '(':
            if depth == 0:
                return i
            depth -= 1
    return -1


def count_top_level_commas(text: str) -> int:
    count = 0
    depth = 0
    in_string = False
    for ch in text:
        if ch == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif ch in '([':
            depth += 1
        elif ch in ')]':
            depth -= 1
        elif ch == ',' and depth == 0:
            count += 1
    return count


def signature_help(
    line: str, character: int, index: SymbolIndex,
) -> Optional[lsp.SignatureHelp]:
    before = line[:character]
    paren = find_open_paren(mask_strings(before))
    if paren < 0:
        return None
    m = _CALLEE_RE.search(before[:paren])
    if m is None:
        return None
    name = m.group(1)

    func = index.find_function(name)
    if func is not None:
        params = [p.display() for p in func.params]
        kind = 'function' if func.keyword == 'DEFFCT' else 'subroutine'
        label = func.signature()
        documentation = func.doc or t('signature.userDefined', kind)
    else:
        lib = LIBRARY_BY_NAME.get(name.upper())
        if lib is None:
            return None
        params = lib.param_names
        label = f'{lib.name}({lib.params})'
        documentation = lib.description
    if not params:
        return None

    active = count_top_level_commas(before[paren + 1:])
    return lsp.SignatureHelp(
        signatures=[lsp.SignatureInformation(
            label=label,
            documentation=documentation,
            parameters=[
                lsp.ParameterInformation(
                    label=p, documentation=t('signature.parameter', p),
                )
                for p in params
            ],
        )],
        active_signature=0,
        active_parameter=min(active, len(params) - 1),
    )
