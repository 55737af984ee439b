"""Quick fixes, refactorings and code lenses.

Quick fixes dispatch on the diagnostic ``code`` and ``data`` only; the
rendered message depends on the locale and is never inspected.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from lsprotocol import types as lsp

from .collector import parse_declarator, split_top_level
from .messages import t
from .resolver import find_enclosing_scope
from .rules import (
    BARE_DECL_RE,
    DECL_RE,
    FUNCTION_HEADER_RE,
    LineKind,
    classify_line,
)
from .text_utils import code_part, escape_regex, mask_strings, split_lines

log = logging.getLogger(__name__)

DECLARABLE_TYPES = ('INT', 'REAL', 'BOOL')

_GLOBAL_WORD_RE = re.compile(r'\bGLOBAL\s+', re.IGNORECASE)
_GLOBAL_TARGET_RE = re.compile(
    r'^(\s*)(?:CONST\s+)?(DECL|SIGNAL|STRUC|ENUM)\b', re.IGNORECASE,
)
_INDENT_RE = re.compile(r'^(\s*)')
_MOTION_FOLD_RE = re.compile(
    r'^\s*;\s*FOLD\s+(PTP|LIN|CIRC|SPTP|SLIN|SCIRC)\s+(.*?)\s*;%\{PE\}',
    re.IGNORECASE,
)


def _pos(line: int, character: int) -> lsp.Position:
    return lsp.Position(line=line, character=character)


def _range(line: int, start: int, end: int) -> lsp.Range:
    return lsp.Range(start=_pos(line, start), end=_pos(line, end))


def _quick_fix(
    title: str,
    uri: str,
    edits: list[lsp.TextEdit],
    diagnostic: lsp.Diagnostic,
) -> lsp.CodeAction:
    return lsp.CodeAction(
        title=title,
        kind=lsp.CodeActionKind.QuickFix,
        diagnostics=[diagnostic],
        edit=lsp.WorkspaceEdit(changes={uri: edits}),
    )


def _data(diagnostic: lsp.Diagnostic) -> dict[str, Any]:
    data = diagnostic.data
    return data if isinstance(data, dict) else {}


def code_actions(
    text: str,
    uri: str,
    diagnostics: list[lsp.Diagnostic],
    selection: lsp.Range,
) -> list[lsp.CodeAction]:
    lines = split_lines(text)
    actions: list[lsp.CodeAction] = []
    for diagnostic in diagnostics:
        line_no = diagnostic.range.start.line
        if line_no >= len(lines):
            continue
        data = _data(diagnostic)
        code = diagnostic.code
        if code in ('variableNotDefined', 'variableTypo'):
            name = data.get('varName')
            if code == 'variableTypo' and data.get('replacement'):
                actions.append(_quick_fix(
                    t('action.replaceWith', data['replacement']), uri,
                    [lsp.TextEdit(
                        range=diagnostic.range, new_text=data['replacement'],
                    )],
                    diagnostic,
                ))
            if name:
                actions.extend(
                    _declare_action(lines, uri, diagnostic, name, var_type)
                    for var_type in DECLARABLE_TYPES
                )
        elif code == 'globalButNotPublic':
            action = _remove_global_action(lines, uri, diagnostic)
            if action:
                actions.append(action)
        elif code == 'notGlobalButPublic':
            actions.append(_add_global_action(lines, uri, diagnostic))
        elif code == 'realInSwitch':
            action = _change_type_action(
                lines, uri, diagnostic, data.get('varName'), 'REAL', 'INT',
            )
            if action:
                actions.append(action)
        elif code == 'shouldBeReal':
            action = _change_type_action(
                lines, uri, diagnostic, data.get('varName'), 'INT', 'REAL',
            )
            if action:
                actions.append(action)
            action = _wrap_round_action(lines, uri, diagnostic, data)
            if action:
                actions.append(action)

    log.debug('%d quick fixes for %d diagnostics', len(actions), len(diagnostics))
    action = _wrap_fold_action(lines, uri, selection)
    if action:
        actions.append(action)
    return actions


def declaration_insert_line(lines: list[str], line: int) -> tuple[int, str]:
    """Where a new DECL for code on ``line`` goes, and its indentation.

    That is after the last declaration at the top of the enclosing
    routine, or right after its header when it declares nothing.
    """
    scope = find_enclosing_scope(lines, line)
    if scope is None:
        return 0, ''
    insert = scope.start_line + 1
    indent = None
    for i in range(scope.start_line + 1, scope.end_line):
        cls = classify_line(lines[i])
        if cls.kind == LineKind.USAGE:
            if indent is None:
                indent = _INDENT_RE.match(lines[i]).group(1)
            break
        if cls.is_declaration:
            insert = i + 1
            indent = _INDENT_RE.match(lines[i]).group(1)
    return insert, indent or ''


def _declare_action(lines, uri, diagnostic, name, var_type):
    insert, indent = declaration_insert_line(lines, diagnostic.range.start.line)
    return _quick_fix(
        t('action.declareAs', name, var_type), uri,
        [lsp.TextEdit(
            range=lsp.Range(start=_pos(insert, 0), end=_pos(insert, 0)),
            new_text=f'{indent}DECL {var_type} {name}\n',
        )],
        diagnostic,
    )


def _remove_global_action(lines, uri, diagnostic) -> Optional[lsp.CodeAction]:
    line_no = diagnostic.range.start.line
    m = _GLOBAL_WORD_RE.search(code_part(lines[line_no]))
    if m is None:
        return None
    return _quick_fix(
        t('action.removeGlobal'), uri,
        [lsp.TextEdit(range=_range(line_no, m.start(), m.end()), new_text='')],
        diagnostic,
    )


def _add_global_action(lines, uri, diagnostic) -> lsp.CodeAction:
    line_no = diagnostic.range.start.line
    line = lines[line_no]
    m = _GLOBAL_TARGET_RE.match(line)
    if m:
        col = m.start(2)
    else:
        col = len(_INDENT_RE.match(line).group(1))
    return _quick_fix(
        t('action.addGlobal'), uri,
        [lsp.TextEdit(range=_range(line_no, col, col), new_text='GLOBAL ')],
        diagnostic,
    )


def find_declaration(
    lines: list[str], name: str, var_type: str,
) -> Optional[tuple[int, int, int]]:
    """(line, start, end) of the type token declaring ``name``."""
    key = name.upper()
    for i, line in enumerate(lines):
        code = code_part(line)
        m = DECL_RE.match(code)
        type_group, list_group = 3, 4
        if m is None:
            m = BARE_DECL_RE.match(code)
            type_group, list_group = 2, 3
        if m is None or m.group(type_group).upper() != var_type:
            continue
        for _offset, item in split_top_level(m.group(list_group)):
            declared, _value = parse_declarator(item)
            if declared and declared.upper() == key:
                return i, m.start(type_group), m.end(type_group)
    return None


def _change_type_action(
    lines, uri, diagnostic, name, from_type, to_type,
) -> Optional[lsp.CodeAction]:
    if not name:
        return None
    found = find_declaration(lines, name, from_type)
    if found is None:
        return None
    line_no, start, end = found
    title = t('action.changeToInt') if to_type == 'INT' else t(
        'action.changeToReal')
    return _quick_fix(
        title, uri,
        [lsp.TextEdit(range=_range(line_no, start, end), new_text=to_type)],
        diagnostic,
    )


def _wrap_round_action(lines, uri, diagnostic, data) -> Optional[lsp.CodeAction]:
    name, value = data.get('varName'), data.get('value')
    if not name or not value:
        return None
    line_no = diagnostic.range.start.line
    pattern = re.compile(
        r'\b' + escape_regex(name) + r'(?:\[.*?\])?\s*=\s*('
        + escape_regex(value) + r')',
        re.IGNORECASE,
    )
    m = pattern.search(code_part(lines[line_no]))
    if m is None:
        return None
    return _quick_fix(
        t('action.wrapWithRound'), uri,
        [lsp.TextEdit(
            range=_range(line_no, m.start(1), m.end(1)),
            new_text=f'ROUND({value})',
        )],
        diagnostic,
    )


def _wrap_fold_action(lines, uri, selection) -> Optional[lsp.CodeAction]:
    """Wrap the selected lines in ;FOLD ... ;ENDFOLD."""
    first = selection.start.line
    last = selection.end.line
    # A selection ending at column 0 does not include that line
    if last > first and selection.end.character == 0:
        last -= 1
    if last <= first or last >= len(lines):
        return None
    if not any(line.strip() for line in lines[first:last + 1]):
        return None
    indent = _INDENT_RE.match(lines[first]).group(1)
    end_col = len(lines[last])
    return lsp.CodeAction(
        title=t('action.wrapWithFold'),
        kind=lsp.CodeActionKind.RefactorExtract,
        edit=lsp.WorkspaceEdit(changes={uri: [
            lsp.TextEdit(
                range=lsp.Range(start=_pos(first, 0), end=_pos(first, 0)),
                new_text=f'{indent};FOLD Region\n',
            ),
            lsp.TextEdit(
                range=_range(last, end_col, end_col),
                new_text=f'\n{indent};ENDFOLD',
            ),
        ]}),
    )


# -- code lens -------------------------------------------------------------

def count_calls(lines: list[str], name: str) -> int:
    pattern = re.compile(r'\b' + escape_regex(name) + r'\s*\(', re.IGNORECASE)
    count = 0
    for line in lines:
        if classify_line(line).is_declaration:
            continue
        count += len(pattern.findall(mask_strings(code_part(line))))
    return count


def code_lenses(text: str) -> list[lsp.CodeLens]:
    """Size and call count above each routine; summaries of motion folds."""
    lines = split_lines(text)
    lenses = []
    for i, line in enumerate(lines):
        m = FUNCTION_HEADER_RE.match(code_part(line))
        if m:
            closer = 'ENDFCT' if m.group(2).upper() == 'DEFFCT' else 'END'
            end_re = re.compile(r'^\s*' + closer + r'\b', re.IGNORECASE)
            end = next(
                (j for j in range(i + 1, len(lines)) if end_re.match(lines[j])),
                len(lines) - 1,
            )
            title = t(
                'codeLens.metrics', end - i + 1, count_calls(lines, m.group(4)),
            )
            lenses.append(lsp.CodeLens(
                range=_range(i, 0, len(line)),
                command=lsp.Command(title=title, command=''),
            ))
            continue
        m = _MOTION_FOLD_RE.match(line)
        if m:
            lenses.append(lsp.CodeLens(
                range=_range(i, 0, len(line)),
                command=lsp.Command(
                    title=f'{m.group(1).upper()} {m.group(2)}', command='',
                ),
            ))
    return lenses
