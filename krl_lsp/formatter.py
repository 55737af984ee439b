"""Whole-document formatter: indentation and keyword case."""

from __future__ import annotations

import re
from typing import Optional

from .keywords import FORMAT_KEYWORDS
from .rules import INDENT_DECREASE_RE, INDENT_INCREASE_RE
from .symbols import Range, TextEdit
from .text_utils import comment_index, mask_strings, normalize_newlines, split_lines

_WORD_RE = re.compile(r'\b[A-Za-z_]\w*\b')
_INLINE_IF_RE = re.compile(r'^\s*IF\b.*\bENDIF\b', re.IGNORECASE)
# Blank-line separation around loops and branches
_SEPARATE_BEFORE_RE = re.compile(
    r'^\s*(FOR|IF|WHILE|LOOP|REPEAT|SWITCH)\b', re.IGNORECASE,
)
_SEPARATE_AFTER_RE = re.compile(
    r'^\s*(ENDFOR|ENDIF|ENDWHILE|ENDLOOP|UNTIL|ENDSWITCH)\b', re.IGNORECASE,
)


def uppercase_keywords(code: str) -> str:
    """Upper-case keywords outside string literals.

    Names after ``$``, ``#`` or ``.`` are system variables, enum values
    and struct members, and keep their case.
    """
    masked = mask_strings(code)
    out = list(code)
    for m in _WORD_RE.finditer(masked):
        start = m.start()
        if start > 0 and masked[start - 1] in '$#.':
            continue
        word = m.group()
        if word.upper() in FORMAT_KEYWORDS:
            out[start:m.end()] = word.upper()
    return ''.join(out)


def format_text(
    text: str,
    tab_size: int = 2,
    insert_spaces: bool = True,
    separate_before_blocks: bool = False,
    separate_after_blocks: bool = False,
) -> Optional[str]:
    """Re-indent ``text`` and upper-case its keywords.

    Returns None when the result equals the input with CRLF normalized.
    """
    lines = split_lines(text)
    unit = ' ' * (tab_size or 2) if insert_spaces else '\t'
    result: list[str] = []
    level = 0
    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line:
            result.append('')
            continue
        idx = comment_index(line)
        code = line if idx < 0 else line[:idx]
        code = uppercase_keywords(code)
        formatted = code if idx < 0 else code + line[idx:]

        if INDENT_DECREASE_RE.match(code):
            level = max(0, level - 1)
        if (separate_before_blocks and _SEPARATE_BEFORE_RE.match(code)
                and result and result[-1].strip()):
            result.append('')
        result.append(unit * level + formatted)
        if (separate_after_blocks and _SEPARATE_AFTER_RE.match(code)
                and i + 1 < len(lines) and lines[i + 1].strip()):
            result.append('')
        if INDENT_INCREASE_RE.match(code) and not _INLINE_IF_RE.match(code):
            level += 1

    formatted_text = '\n'.join(result)
    if formatted_text == normalize_newlines(text):
        return None
    return formatted_text


def format_document(
    text: str,
    tab_size: int = 2,
    insert_spaces: bool = True,
    separate_before_blocks: bool = False,
    separate_after_blocks: bool = False,
) -> list[TextEdit]:
    """A single whole-document edit, or none if nothing changes."""
    new_text = format_text(
        text, tab_size, insert_spaces,
        separate_before_blocks, separate_after_blocks,
    )
    if new_text is None:
        return []
    lines = split_lines(text)
    whole = Range(0, 0, len(lines) - 1, len(lines[-1]))
    return [TextEdit(whole, new_text)]
