"""Named pattern tables for KRL block structure and declarations.

Every scanner in the package (collector, validators, formatter, folding,
providers) matches lines against the tables defined here instead of
building its own regular expressions for the same constructs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .text_utils import mask_strings, strip_comment

# Opener -> closer, in the order validators report them
BLOCK_PAIRS: dict[str, str] = {
    'IF': 'ENDIF',
    'FOR': 'ENDFOR',
    'WHILE': 'ENDWHILE',
    'LOOP': 'ENDLOOP',
    'REPEAT': 'UNTIL',
    'SWITCH': 'ENDSWITCH',
    'DEF': 'END',
    'DEFFCT': 'ENDFCT',
    'DEFDAT': 'ENDDAT',
}
CLOSER_TO_OPENER: dict[str, str] = {v: k for k, v in BLOCK_PAIRS.items()}

# Keywords that continue the enclosing block (dedent, then indent again)
MIDDLE_KEYWORDS = ('ELSE', 'CASE', 'DEFAULT')

# Not preceded by '$', '#', '.' or a word character
_KW_PREFIX = r'(?<![\w$#.])'

BLOCK_KEYWORD_RE = re.compile(
    _KW_PREFIX + r'(' + '|'.join(
        sorted(list(BLOCK_PAIRS) + list(CLOSER_TO_OPENER), key=len,
               reverse=True)
    ) + r')\b',
    re.IGNORECASE,
)
WAIT_FOR_RE = re.compile(r'\bWAIT\s+FOR\b', re.IGNORECASE)

DECL_RE = re.compile(
    r'^\s*(GLOBAL\s+)?(?:CONST\s+)?DECL\s+(GLOBAL\s+)?(?:CONST\s+)?'
    r'(\w+)\s+(.+)$',
    re.IGNORECASE,
)
PRIMITIVE_DECL_TYPES = (
    'INT', 'REAL', 'BOOL', 'CHAR', 'STRING', 'FRAME', 'POS', 'E6POS',
    'AXIS', 'E6AXIS', 'LOAD',
)
BARE_DECL_RE = re.compile(
    r'^\s*(GLOBAL\s+)?(?:CONST\s+)?(' + '|'.join(PRIMITIVE_DECL_TYPES)
    + r')\s+(.+)$',
    re.IGNORECASE,
)
SIGNAL_RE = re.compile(
    r'^\s*(GLOBAL\s+)?SIGNAL\s+(\w+)\s*(.*)$', re.IGNORECASE,
)
STRUC_RE = re.compile(
    r'^\s*(GLOBAL\s+)?(?:DECL\s+)?(GLOBAL\s+)?(STRUC|ENUM)\s+(\w+)\s+(.+)$',
    re.IGNORECASE,
)
FUNCTION_HEADER_RE = re.compile(
    r'^\s*(GLOBAL\s+)?(DEF|DEFFCT)\s+(?:(\w+)\s+)?(\w+)\s*\(([^)]*)\)',
    re.IGNORECASE,
)
FUNCTION_START_RE = re.compile(
    r'^\s*(?:GLOBAL\s+)?(DEF|DEFFCT)\b', re.IGNORECASE,
)
DEFDAT_RE = re.compile(
    r'^\s*DEFDAT\s+(\w+)(\s+PUBLIC)?', re.IGNORECASE,
)
LABEL_RE = re.compile(r'^\s*([A-Za-z_]\w*)\s*:(?!=)\s*$')

# Enclosing-scope boundaries; the trailing \b rejects ENDFOR, DEFFCT...
SCOPE_OPEN_RE = re.compile(
    r'^\s*(?:GLOBAL\s+)?(DEF|DEFFCT|DEFDAT)\b', re.IGNORECASE,
)
SCOPE_CLOSE_RE = re.compile(r'^\s*(END|ENDFCT|ENDDAT)\b', re.IGNORECASE)

MOTION_RE = re.compile(
    r'^\s*(PTP|LIN|CIRC|SPTP|SLIN|SCIRC)(?=\s|$)', re.IGNORECASE,
)
EXIT_RE = re.compile(r'^\s*(RETURN|EXIT|GOTO|HALT)\b', re.IGNORECASE)
BRANCH_END_RE = re.compile(
    r'^\s*(?:GLOBAL\s+)?(' + '|'.join(
        list(CLOSER_TO_OPENER) + list(MIDDLE_KEYWORDS) + ['DEF', 'DEFFCT']
    ) + r')\b',
    re.IGNORECASE,
)

FOLD_START_RE = re.compile(r'^\s*;\s*FOLD\b', re.IGNORECASE)
FOLD_END_RE = re.compile(r'^\s*;\s*ENDFOLD\b', re.IGNORECASE)

INDENT_DECREASE_RE = re.compile(
    r'^\s*(' + '|'.join(list(CLOSER_TO_OPENER) + list(MIDDLE_KEYWORDS))
    + r')\b',
    re.IGNORECASE,
)
INDENT_INCREASE_RE = re.compile(
    r'^\s*(?:GLOBAL\s+)?(' + '|'.join(list(BLOCK_PAIRS) + list(MIDDLE_KEYWORDS))
    + r')\b',
    re.IGNORECASE,
)


class LineKind(Enum):
    DECLARATION = 'declaration'
    USAGE = 'usage'
    COMMENT = 'comment'
    BLANK = 'blank'


class DeclKind(Enum):
    VARIABLE = 'variable'
    SIGNAL = 'signal'
    STRUC = 'struc'
    ENUM = 'enum'
    FUNCTION = 'function'
    DATA = 'data'


@dataclass
class LineClass:
    kind: LineKind
    decl_kind: Optional[DeclKind] = None

    @property
    def is_declaration(self) -> bool:
        return self.kind == LineKind.DECLARATION


def classify_line(line: str) -> LineClass:
    """Classify one source line for the scanners."""
    stripped = line.strip()
    if not stripped:
        return LineClass(LineKind.BLANK)
    # '&' lines are editor header directives (&ACCESS, &REL...)
    if stripped.startswith(';') or stripped.startswith('&'):
        return LineClass(LineKind.COMMENT)
    code = strip_comment(line)
    m = STRUC_RE.match(code)
    if m:
        kind = DeclKind.STRUC if m.group(3).upper() == 'STRUC' else DeclKind.ENUM
        return LineClass(LineKind.DECLARATION, kind)
    if SIGNAL_RE.match(code):
        return LineClass(LineKind.DECLARATION, DeclKind.SIGNAL)
    if DECL_RE.match(code) or BARE_DECL_RE.match(code):
        return LineClass(LineKind.DECLARATION, DeclKind.VARIABLE)
    if FUNCTION_START_RE.match(code):
        return LineClass(LineKind.DECLARATION, DeclKind.FUNCTION)
    if DEFDAT_RE.match(code):
        return LineClass(LineKind.DECLARATION, DeclKind.DATA)
    return LineClass(LineKind.USAGE)


@dataclass
class BlockToken:
    keyword: str  # Upper-cased
    column: int
    is_opener: bool


def block_tokens(line: str) -> list[BlockToken]:
    """Find block opener/closer keywords in the code part of a line.

    ``FOR`` inside ``WAIT FOR`` is not an opener.
    """
    code = mask_strings(strip_comment(line))
    wait_for_cols = {m.end() - 3 for m in WAIT_FOR_RE.finditer(code)}
    tokens = []
    for m in BLOCK_KEYWORD_RE.finditer(code):
        kw = m.group(1).upper()
        if kw == 'FOR' and m.start() in wait_for_cols:
            continue
        tokens.append(BlockToken(kw, m.start(), kw in BLOCK_PAIRS))
    return tokens
