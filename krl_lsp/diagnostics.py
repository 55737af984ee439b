"""Lint-level validators for KRL source and data files.

Every validator is an independent function of the document text (plus
shared symbol information where needed) and returns a list of findings.
``compute_diagnostics`` runs all validators that apply to a file type.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .collector import collect_symbols, parse_declarator, split_top_level
from .keywords import is_keyword
from .messages import t
from .rules import (
    BARE_DECL_RE,
    BLOCK_PAIRS,
    BRANCH_END_RE,
    CLOSER_TO_OPENER,
    DECL_RE,
    DEFDAT_RE,
    DeclKind,
    EXIT_RE,
    FUNCTION_START_RE,
    LABEL_RE,
    LineKind,
    MOTION_RE,
    STRUC_RE,
    block_tokens,
    classify_line,
)
from .symbols import Diagnostic, Range, Severity, Symbol
from .text_utils import (
    INVISIBLE_CHARS_RE,
    code_part,
    is_aggregate_field,
    levenshtein,
    mask_strings,
    split_lines,
    strip_comment,
)

log = logging.getLogger(__name__)

MAX_NAME_LENGTH = 24
MAX_CP_VELOCITY = 3.0  # m/s
MAX_PTP_VELOCITY = 100.0  # percent
TYPO_DISTANCE = 3  # suggestions need a Levenshtein distance below this

# Controller configuration directories and files exempt from linting
_SYSTEM_DIRS = ('/mada/', '/system/', '/tp/')
_SYSTEM_FILES = ('machine.dat', 'config.dat')

_IDENT_TOKEN_RE = re.compile(r'\b([A-Za-z_]\w*)\b')
_SCIENTIFIC_RE = re.compile(r'\d+\.?\d*[eE][+-]?\d+')
_LABEL_DECL_RE = re.compile(r'^\s*([A-Za-z_]\w*)\s*:(?!=)')
_GLOBAL_RE = re.compile(r'\bGLOBAL\b', re.IGNORECASE)
_GLOBAL_CHECKED_RE = re.compile(
    r'^\s*(?:GLOBAL\s+)?(?:DECL|SIGNAL|STRUC|ENUM)\b', re.IGNORECASE,
)
_SIGNAL_NAME_RE = re.compile(r'^\s*(?:GLOBAL\s+)?SIGNAL\s+(\S+)', re.IGNORECASE)
_INVALID_NAME_CHAR_RE = re.compile(r'[^A-Za-z0-9_$]')
_DECLARED_NAME_END_RE = re.compile(r'[=\[\s]')

_VEL_CP_RE = re.compile(r'\$VEL\.CP\s*=\s*(\d+(?:\.\d+)?)', re.IGNORECASE)
_VEL_PTP_RE = re.compile(r'\$VEL_PTP\s*=\s*(\d+(?:\.\d+)?)', re.IGNORECASE)
_TOOL_INIT_RE = re.compile(r'\$TOOL\s*=|\bBAS\s*\(\s*#INITMOV', re.IGNORECASE)
_BASE_INIT_RE = re.compile(r'\$BASE\s*=|\bBAS\s*\(\s*#INITMOV', re.IGNORECASE)

_FUNC_NAME_RE = re.compile(
    r'^\s*(?:GLOBAL\s+)?(DEF|DEFFCT)\s+(?:\w+\s+)?(\w+)\s*\(', re.IGNORECASE,
)
_IF_THEN_RE = re.compile(r'^\s*IF\b.*\bTHEN\b', re.IGNORECASE)
_INLINE_IF_RE = re.compile(r'^\s*IF\b.*\bENDIF\b', re.IGNORECASE)
_EMPTY_OPENERS = (
    ('FOR', re.compile(r'^\s*FOR\b', re.IGNORECASE)),
    ('WHILE', re.compile(r'^\s*WHILE\b', re.IGNORECASE)),
    ('LOOP', re.compile(r'^\s*LOOP\b', re.IGNORECASE)),
)
_EMPTY_CLOSER_RE = re.compile(
    r'^\s*(ENDIF|ENDFOR|ENDWHILE|ENDLOOP)\b', re.IGNORECASE,
)
_ELSE_RE = re.compile(r'^\s*ELSE\b', re.IGNORECASE)

_WAIT_FOR_RE = re.compile(r'\bWAIT\s+FOR\b', re.IGNORECASE)
_TIMEOUT_RE = re.compile(r'\bTIMEOUT\b', re.IGNORECASE)
_HALT_RE = re.compile(r'^\s*(HALT)\b', re.IGNORECASE)

_SWITCH_RE = re.compile(r'\bSWITCH\s+(\w+)', re.IGNORECASE)
_ASSIGN_RE = re.compile(r'\b([A-Za-z_]\w*)(?:\[[^\]]*\])?\s*=(?!=)\s*')
# A same-line IF or loop body ends before its closing keyword
_EXPR_END_RE = re.compile(
    r'\s+(?:ELSE|ENDIF|ENDFOR|ENDWHILE|ENDLOOP|UNTIL)\b', re.IGNORECASE,
)
_FLOAT_LITERAL_RE = re.compile(r'^[+-]?(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?$')
_NUMBER_LITERAL_RE = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$')
_BOOL_LITERAL_RE = re.compile(r'^(TRUE|FALSE)$', re.IGNORECASE)


def _diag(
    line: int,
    start: int,
    end: int,
    message: str,
    severity: Severity,
    code: str,
    data: Optional[dict[str, Any]] = None,
    unnecessary: bool = False,
) -> Diagnostic:
    return Diagnostic(
        range=Range(line, start, line, end),
        message=message,
        severity=severity,
        code=code,
        data=data,
        unnecessary=unnecessary,
    )


def _span(line: str) -> tuple[int, int]:
    """Columns of the code part of a line without surrounding blanks."""
    code = strip_comment(line)
    return len(code) - len(code.lstrip()), len(code)


def _normalized(filepath: Optional[str]) -> str:
    return (filepath or '').replace('\\', '/').lower()


def is_system_file(filepath: Optional[str], include_config: bool = True) -> bool:
    """Controller configuration files are not linted."""
    path = _normalized(filepath)
    if any(d in path for d in _SYSTEM_DIRS):
        return True
    return include_config and path.endswith(_SYSTEM_FILES)


# -- data files ------------------------------------------------------------

def validate_dat_file(
    text: str,
    filepath: Optional[str] = None,
    validate_non_ascii: bool = True,
) -> list[Diagnostic]:
    """Check a data list: encoding, strings, GLOBAL/PUBLIC and names."""
    if is_system_file(filepath, include_config=False):
        return []
    diagnostics = []
    inside_defdat = False
    public = False
    for i, line in enumerate(split_lines(text)):
        code = code_part(line)
        if validate_non_ascii:
            diagnostics.extend(_non_ascii(i, code))
        if code.count('"') % 2:
            first = code.find('"')
            diagnostics.append(_diag(
                i, first, len(code.rstrip()), t('diag.unclosedString'),
                Severity.ERROR, 'unclosedString',
            ))

        m = DEFDAT_RE.match(code)
        if m:
            inside_defdat = True
            public = bool(m.group(2))
            continue
        if re.match(r'^\s*ENDDAT\b', code, re.IGNORECASE):
            inside_defdat = public = False
            continue

        cls = classify_line(line)
        if cls.kind != LineKind.DECLARATION or cls.decl_kind in (
                DeclKind.FUNCTION, DeclKind.DATA):
            continue
        if inside_defdat:
            start, end = _span(line)
            has_global = bool(_GLOBAL_RE.search(code))
            if public and not has_global and _GLOBAL_CHECKED_RE.match(code):
                diagnostics.append(_diag(
                    i, start, end, t('diag.notGlobalButPublic'),
                    Severity.WARNING, 'notGlobalButPublic',
                ))
            elif not public and has_global:
                diagnostics.append(_diag(
                    i, start, end, t('diag.globalButNotPublic'),
                    Severity.ERROR, 'globalButNotPublic',
                ))
        diagnostics.extend(_check_declared_names(i, code, cls.decl_kind))
    return diagnostics


def _non_ascii(line_no: int, code: str) -> Iterable[Diagnostic]:
    for j, ch in enumerate(code):
        if ord(ch) > 127 and ch != '\ufeff':
            yield _diag(
                line_no, j, j + 1, t('diag.nonAsciiChar', ch),
                Severity.ERROR, 'nonAscii', {'char': ch},
            )


def _declared_names(code: str, decl_kind: DeclKind) -> list[tuple[int, str]]:
    """(column, name) of each name a declaration line introduces."""
    if decl_kind in (DeclKind.STRUC, DeclKind.ENUM):
        m = STRUC_RE.match(code)
        return [(m.start(4), m.group(4))] if m else []
    if decl_kind == DeclKind.SIGNAL:
        m = _SIGNAL_NAME_RE.match(code)
        return [(m.start(1), m.group(1))] if m else []
    m = DECL_RE.match(code)
    group = 4
    if m is None:
        m = BARE_DECL_RE.match(code)
        group = 3
    if m is None:
        return []
    names = []
    base = m.start(group)
    for offset, item in split_top_level(m.group(group)):
        end = _DECLARED_NAME_END_RE.search(item)
        name = item[:end.start()] if end else item
        if name:
            names.append((base + offset, name))
    return names


def _check_declared_names(
    line_no: int, code: str, decl_kind: DeclKind,
) -> list[Diagnostic]:
    diagnostics = []
    for col, name in _declared_names(code, decl_kind):
        end = col + len(name)
        if len(name) > MAX_NAME_LENGTH:
            diagnostics.append(_diag(
                line_no, col, end, t('diag.nameTooLong', name, len(name)),
                Severity.ERROR, 'nameTooLong', {'name': name},
            ))
        if _INVALID_NAME_CHAR_RE.search(name):
            diagnostics.append(_diag(
                line_no, col, end, t('diag.invalidCharInName', name),
                Severity.ERROR, 'invalidCharInName', {'name': name},
            ))
        if name[0].isdigit():
            diagnostics.append(_diag(
                line_no, col, end, t('diag.nameStartsWithDigit', name),
                Severity.ERROR, 'nameStartsWithDigit', {'name': name},
            ))
    return diagnostics


# -- undefined variables ---------------------------------------------------

def _prepare_usage_line(line: str) -> str:
    code = mask_strings(code_part(line))
    code = _SCIENTIFIC_RE.sub(lambda m: '0' * len(m.group()), code)
    return INVISIBLE_CHARS_RE.sub('', code)


def _suggest(name: str, candidates: dict[str, str]) -> Optional[str]:
    best = None
    best_distance = TYPO_DISTANCE
    key = name.upper()
    for cand_key in sorted(candidates):
        distance = levenshtein(key, cand_key)
        if distance < best_distance:
            best_distance = distance
            best = candidates[cand_key]
    return best


def validate_variable_usage(
    text: str,
    filepath: Optional[str],
    declared: Iterable[str] = (),
    function_names: Iterable[str] = (),
) -> list[Diagnostic]:
    """Flag identifiers that are neither declared, keywords nor functions.

    ``declared`` and ``function_names`` are the workspace-merged names;
    declarations, parameters and labels of this document are added here.
    Tokens after ``$``, ``#`` or ``.`` and inside strings are ignored.
    """
    if is_system_file(filepath):
        return []
    table = collect_symbols(text)
    lines = split_lines(text)
    # upper-cased name -> name as declared, for suggestions
    known: dict[str, str] = {n.upper(): n for n in declared}
    for var in table.variables:
        known.setdefault(var.key, var.name)
    for line in lines:
        m = _LABEL_DECL_RE.match(code_part(line))
        if m:
            known.setdefault(m.group(1).upper(), m.group(1))
    functions = {n.upper() for n in function_names}
    functions.update(f.key for f in table.functions)

    diagnostics: list[Diagnostic] = []
    seen = set()
    for i, line in enumerate(lines):
        if classify_line(line).kind != LineKind.USAGE:
            continue
        code = _prepare_usage_line(line)
        for m in _IDENT_TOKEN_RE.finditer(code):
            name = m.group(1)
            start = m.start(1)
            if '&' in code[:start]:
                continue
            if start > 0 and code[start - 1] in '$#.':
                continue
            key = name.upper()
            if is_keyword(name) or key in known or key in functions:
                continue
            if is_aggregate_field(code, start):
                continue
            message = t('diag.variableNotDefined', name)
            replacement = _suggest(name, known)
            if replacement:
                message += ' ' + t('diag.didYouMean', replacement)
                code_name = 'variableTypo'
                data = {'varName': name, 'replacement': replacement}
            else:
                code_name = 'variableNotDefined'
                data = {'varName': name}
            diag = _diag(
                i, start, start + len(name), message, Severity.ERROR,
                code_name, data,
            )
            dedup_key = (i, start, diag.range.end_col, message, diag.severity)
            if dedup_key in seen:
                continue
            seen.add(dedup_key)
            diagnostics.append(diag)
    return diagnostics


# -- safety ----------------------------------------------------------------

def _format_number(value: float) -> str:
    return '%g' % value


def validate_safety_speeds(text: str) -> list[Diagnostic]:
    diagnostics = []
    for i, line in enumerate(split_lines(text)):
        code = code_part(line)
        for m in _VEL_CP_RE.finditer(code):
            velocity = float(m.group(1))
            if velocity > MAX_CP_VELOCITY:
                diagnostics.append(_diag(
                    i, m.start(), m.end(),
                    t('diag.velocityTooHigh', _format_number(velocity)),
                    Severity.WARNING, 'velocityTooHigh',
                    {'value': m.group(1)},
                ))
        for m in _VEL_PTP_RE.finditer(code):
            velocity = float(m.group(1))
            if velocity > MAX_PTP_VELOCITY:
                diagnostics.append(_diag(
                    i, m.start(), m.end(),
                    t('diag.ptpVelocityTooHigh', _format_number(velocity)),
                    Severity.WARNING, 'ptpVelocityTooHigh',
                    {'value': m.group(1)},
                ))
    return diagnostics


def validate_tool_base_init(text: str) -> list[Diagnostic]:
    """Warn on motion before $TOOL/$BASE are set in the same routine."""
    diagnostics = []
    tool_ready = base_ready = False
    for i, line in enumerate(split_lines(text)):
        code = code_part(line)
        if FUNCTION_START_RE.match(code):
            tool_ready = base_ready = False
            continue
        if _TOOL_INIT_RE.search(code):
            tool_ready = True
        if _BASE_INIT_RE.search(code):
            base_ready = True
        m = MOTION_RE.match(code)
        if m is None:
            continue
        start, end = m.start(1), m.end(1)
        if not tool_ready:
            diagnostics.append(_diag(
                i, start, end, t('diag.toolNotInitialized'),
                Severity.WARNING, 'toolNotInitialized',
            ))
        if not base_ready:
            diagnostics.append(_diag(
                i, start, end, t('diag.baseNotInitialized'),
                Severity.WARNING, 'baseNotInitialized',
            ))
    return diagnostics


# -- structure -------------------------------------------------------------

@dataclass
class _OpenBlock:
    keyword: str
    line: int
    column: int


def _unmatched(block: _OpenBlock) -> Diagnostic:
    expected = BLOCK_PAIRS[block.keyword]
    return _diag(
        block.line, block.column, block.column + len(block.keyword),
        t('diag.unmatchedBlock', block.keyword, expected),
        Severity.ERROR, 'unmatchedBlock',
        {'keyword': block.keyword, 'expected': expected},
    )


def validate_block_balance(text: str) -> list[Diagnostic]:
    """Stack-match block openers and closers.

    A closer whose opener sits deeper in the stack closes it and reports
    every block left open above it; a closer with no opener at all is
    reported at the closer.
    """
    diagnostics = []
    stack: list[_OpenBlock] = []
    for i, line in enumerate(split_lines(text)):
        for token in block_tokens(line):
            if token.is_opener:
                stack.append(_OpenBlock(token.keyword, i, token.column))
                continue
            expected = CLOSER_TO_OPENER[token.keyword]
            depth = next(
                (k for k in range(len(stack) - 1, -1, -1)
                 if stack[k].keyword == expected),
                None,
            )
            if depth is None:
                diagnostics.append(_diag(
                    i, token.column, token.column + len(token.keyword),
                    t('diag.mismatchedBlock', token.keyword, expected),
                    Severity.ERROR, 'mismatchedBlock',
                    {'keyword': token.keyword, 'expected': expected},
                ))
                continue
            while len(stack) > depth + 1:
                diagnostics.append(_unmatched(stack.pop()))
            stack.pop()
    diagnostics.extend(_unmatched(block) for block in stack)
    return diagnostics


def validate_duplicate_names(text: str) -> list[Diagnostic]:
    """Report every routine header after the first one of the same name."""
    diagnostics = []
    first_seen: dict[str, int] = {}
    for i, line in enumerate(split_lines(text)):
        m = _FUNC_NAME_RE.match(code_part(line))
        if m is None:
            continue
        name = m.group(2)
        first = first_seen.get(name.upper())
        if first is None:
            first_seen[name.upper()] = i
            continue
        diagnostics.append(_diag(
            i, m.start(2), m.end(2),
            t('diag.duplicateName', 'function', name, first + 1),
            Severity.ERROR, 'duplicateName',
            {'name': name, 'firstLine': first},
        ))
    return diagnostics


def validate_dead_code(text: str) -> list[Diagnostic]:
    """Flag lines after RETURN/EXIT/GOTO/HALT up to the next branch end.

    A label line is a GOTO target and makes the code after it reachable.
    """
    diagnostics = []
    exit_keyword = None
    for i, line in enumerate(split_lines(text)):
        code = strip_comment(line).strip()
        if not code or code.startswith('&'):
            continue
        if LABEL_RE.match(code) or BRANCH_END_RE.match(code):
            exit_keyword = None
            continue
        if exit_keyword is not None:
            start, end = _span(line)
            diagnostics.append(_diag(
                i, start, end, t('diag.deadCode', exit_keyword),
                Severity.WARNING, 'deadCode', {'keyword': exit_keyword},
                unnecessary=True,
            ))
            continue
        m = EXIT_RE.match(code)
        if m:
            exit_keyword = m.group(1).upper()
    return diagnostics


@dataclass
class _BodyTracker:
    keyword: str
    line: int
    has_code: bool = False


def validate_empty_blocks(text: str) -> list[Diagnostic]:
    """Warn on IF/FOR/WHILE/LOOP blocks whose body has no code.

    For IF, the THEN branch is judged when ELSE or ENDIF is reached.
    """
    diagnostics = []
    lines = split_lines(text)
    stack: list[_BodyTracker] = []

    def report(block: _BodyTracker) -> None:
        start, end = _span(lines[block.line])
        diagnostics.append(_diag(
            block.line, start, end, t('diag.emptyBlock', block.keyword),
            Severity.WARNING, 'emptyBlock', {'keyword': block.keyword},
        ))

    for i, line in enumerate(lines):
        code = mask_strings(strip_comment(line))
        if not code.strip():
            continue
        opener = None
        if _IF_THEN_RE.match(code) and not _INLINE_IF_RE.match(code):
            opener = 'IF'
        else:
            for keyword, pattern in _EMPTY_OPENERS:
                if pattern.match(code):
                    opener = keyword
                    break
        if opener is not None:
            if stack:
                stack[-1].has_code = True
            stack.append(_BodyTracker(opener, i))
            continue
        if _ELSE_RE.match(code):
            if stack and stack[-1].keyword == 'IF':
                if not stack[-1].has_code:
                    report(stack[-1])
                # Only the THEN branch is judged
                stack[-1].has_code = True
            continue
        m = _EMPTY_CLOSER_RE.match(code)
        if m:
            expected = CLOSER_TO_OPENER[m.group(1).upper()]
            while stack and stack[-1].keyword != expected:
                stack.pop()
            if stack:
                block = stack.pop()
                if not block.has_code:
                    report(block)
            continue
        if stack:
            stack[-1].has_code = True
    return diagnostics


def validate_dangerous_statements(text: str) -> list[Diagnostic]:
    diagnostics = []
    for i, line in enumerate(split_lines(text)):
        code = mask_strings(code_part(line))
        m = _WAIT_FOR_RE.search(code)
        if m and not _TIMEOUT_RE.search(code):
            diagnostics.append(_diag(
                i, m.start(), m.end(), t('diag.waitWithoutTimeout'),
                Severity.INFO, 'waitWithoutTimeout',
            ))
        m = _HALT_RE.match(code)
        if m:
            diagnostics.append(_diag(
                i, m.start(1), m.end(1), t('diag.dangerousHalt'),
                Severity.INFO, 'dangerousHalt',
            ))
    return diagnostics


# -- types -----------------------------------------------------------------

def _type_map(text: str, variables: Iterable[Symbol]) -> dict[str, str]:
    """Upper-cased name -> upper-cased type; local declarations win."""
    types = {}
    for var in collect_symbols(text).variables:
        if var.type:
            types.setdefault(var.key, var.type.upper())
    for var in variables:
        if var.type:
            types.setdefault(var.key, var.type.upper())
    return types


def validate_type_usage(
    text: str, variables: Iterable[Symbol] = (),
) -> list[Diagnostic]:
    """Check SWITCH discriminants and literal assignments against types."""
    types = _type_map(text, variables)
    diagnostics = []
    for i, line in enumerate(split_lines(text)):
        cls = classify_line(line)
        if cls.kind in (LineKind.BLANK, LineKind.COMMENT) or cls.decl_kind in (
                DeclKind.FUNCTION, DeclKind.DATA):
            continue
        code = code_part(line)
        m = _SWITCH_RE.search(mask_strings(code))
        if m and types.get(m.group(1).upper()) == 'REAL':
            diagnostics.append(_diag(
                i, m.start(1), m.end(1), t('diag.realInSwitch'),
                Severity.ERROR, 'realInSwitch', {'varName': m.group(1)},
            ))
        if cls.decl_kind == DeclKind.VARIABLE:
            assignments = _initializers(code)
        elif cls.is_declaration:
            continue
        else:
            assignments = _assignments(code)
        for name, start, expr, end in assignments:
            diag = _check_assignment(i, name, start, end, expr, types)
            if diag is not None:
                diagnostics.append(diag)
    return diagnostics


def _initializers(code: str) -> list[tuple[str, int, str, int]]:
    """(name, start, value, end) for each ``name = value`` declarator."""
    m = DECL_RE.match(code)
    group = 4
    if m is None:
        m, group = BARE_DECL_RE.match(code), 3
        if m is None:
            return []
    base = m.start(group)
    found = []
    for offset, item in split_top_level(m.group(group)):
        name, value = parse_declarator(item)
        if name is not None and value is not None:
            found.append((name, base + offset, value, base + offset + len(item)))
    return found


def _assignments(code: str) -> list[tuple[str, int, str, int]]:
    """(name, start, expression, end) for each assignment in a statement.

    An expression ends at a top-level comma or at a same-line block
    closer such as ``ENDIF``.
    """
    masked = mask_strings(code)
    found = []
    for m in _ASSIGN_RE.finditer(masked):
        if m.start() > 0 and masked[m.start() - 1] in '$#.':
            continue
        items = split_top_level(code[m.end():])
        if not items:
            continue
        offset, expr = items[0]
        start = m.end() + offset
        end_match = _EXPR_END_RE.search(masked[start:start + len(expr)])
        if end_match:
            expr = expr[:end_match.start()]
        found.append((m.group(1), m.start(1), expr, start + len(expr)))
    return found


def _check_assignment(
    line_no: int, name: str, start: int, end: int, expr: str,
    types: dict[str, str],
) -> Optional[Diagnostic]:
    var_type = types.get(name.upper())
    if var_type is None:
        return None

    def mismatch(value_type: str) -> Diagnostic:
        return _diag(
            line_no, start, end,
            t('diag.typeMismatch', value_type, var_type, name),
            Severity.ERROR, 'typeMismatch',
            {'varName': name, 'valueType': value_type, 'varType': var_type},
        )

    if var_type == 'INT':
        if _FLOAT_LITERAL_RE.match(expr):
            return _diag(
                line_no, start, end, t('diag.shouldBeReal', expr, name),
                Severity.WARNING, 'shouldBeReal',
                {'varName': name, 'value': expr},
            )
        if _BOOL_LITERAL_RE.match(expr):
            return mismatch('BOOL')
    elif var_type == 'BOOL':
        if _NUMBER_LITERAL_RE.match(expr):
            return mismatch('NUMBER')
        if expr.startswith('"') or expr.startswith("'"):
            return mismatch('STRING')
    elif var_type == 'REAL':
        if _BOOL_LITERAL_RE.match(expr):
            return mismatch('BOOL')
    return None


# -- entry point -----------------------------------------------------------

def compute_diagnostics(
    text: str,
    filepath: Optional[str],
    index=None,
    settings=None,
    workspace_ready: bool = True,
) -> list[Diagnostic]:
    """Run every validator that applies to the file type.

    ``index`` is the workspace SymbolIndex (or None for a standalone
    document). The undefined-variable check only runs once the workspace
    has been indexed, since earlier results would be spurious.
    """
    ext = os.path.splitext(filepath or '')[1].lower()
    validate_non_ascii = getattr(settings, 'validate_non_ascii', True)
    declared = index.declared_names() if index is not None else set()
    functions = index.function_names() if index is not None else set()
    variables = index.merged_variables if index is not None else []

    diagnostics: list[Diagnostic] = []
    if ext == '.dat':
        diagnostics.extend(
            validate_dat_file(text, filepath, validate_non_ascii)
        )
    if workspace_ready:
        diagnostics.extend(
            validate_variable_usage(text, filepath, declared, functions)
        )
    if ext in ('.src', '.sub'):
        diagnostics.extend(validate_safety_speeds(text))
        if ext == '.src':
            diagnostics.extend(validate_tool_base_init(text))
        diagnostics.extend(validate_duplicate_names(text))
        diagnostics.extend(validate_dead_code(text))
        diagnostics.extend(validate_empty_blocks(text))
        diagnostics.extend(validate_dangerous_statements(text))
        diagnostics.extend(validate_type_usage(text, variables))
    diagnostics.extend(validate_block_balance(text))
    log.debug('%d diagnostics for %s', len(diagnostics), filepath)
    return diagnostics
