"""Line-level text helpers shared by the collector, validators and providers.

KRL comments start at the first ``;`` outside a double-quoted string.
There is no escape for ``;`` other than being inside a string literal.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import Optional

_NEWLINE_RE = re.compile(r'\r\n|\r|\n')
_WORD_RE = re.compile(r'\w')

# Zero-width and other invisible characters that editors sometimes insert
INVISIBLE_CHARS_RE = re.compile('[\u200b-\u200f\u2028-\u202f\u2060\ufeff]')


@dataclass
class WordInfo:
    word: str
    start: int
    end: int
    is_member: bool  # preceded by '.', i.e. a struct member access


def split_lines(text: str) -> list[str]:
    """Split on universal newlines, keeping a trailing empty line."""
    return _NEWLINE_RE.split(text)


def normalize_newlines(text: str) -> str:
    return _NEWLINE_RE.sub('\n', text)


def comment_index(line: str) -> int:
    """Return the index of the comment ``;`` or -1 if the line has none."""
    in_string = False
    for i, ch in enumerate(line):
        if ch == '"':
            in_string = not in_string
        elif ch == ';' and not in_string:
            return i
    return -1


def strip_comment(line: str) -> str:
    """Drop the comment part of a line and trailing whitespace."""
    idx = comment_index(line)
    if idx >= 0:
        line = line[:idx]
    return line.rstrip()


def code_part(line: str) -> str:
    """Like strip_comment but keeps column positions intact."""
    idx = comment_index(line)
    return line if idx < 0 else line[:idx]


def is_inside_string(line: str, pos: int) -> bool:
    """Check whether column ``pos`` lies inside a double-quoted string."""
    in_string = False
    for ch in line[:pos]:
        if ch == '"':
            in_string = not in_string
    return in_string


def is_aggregate_field(code: str, pos: int) -> bool:
    """Whether the token at ``pos`` names a field inside ``{...}``."""
    depth = code[:pos].count('{') - code[:pos].count('}')
    if depth <= 0:
        return False
    before = code[:pos].rstrip()
    return before.endswith('{') or before.endswith(',')


def mask_strings(line: str, fill: str = ' ') -> str:
    """Blank out string and character literals, preserving length.

    Handles double-quoted strings and the single-quoted ``'H1F'`` /
    ``'B0101'`` numeric literals.
    """
    out = []
    quote: Optional[str] = None
    for ch in line:
        if quote is not None:
            if ch == quote:
                quote = None
                out.append(ch)
            else:
                out.append(fill)
        elif ch in ('"', "'"):
            quote = ch
            out.append(ch)
        else:
            out.append(ch)
    return ''.join(out)


def escape_regex(text: str) -> str:
    return re.escape(text)


def word_regex(name: str, flags: int = re.IGNORECASE) -> re.Pattern:
    """Compile a whole-word, case-insensitive pattern for an identifier."""
    return re.compile(r'\b' + escape_regex(name) + r'\b', flags)


def line_starts(text: str) -> list[int]:
    """Absolute offsets at which each line of ``text`` begins."""
    starts = [0]
    for m in _NEWLINE_RE.finditer(text):
        starts.append(m.end())
    return starts


def offset_to_position(starts: list[int], offset: int) -> tuple[int, int]:
    """Map an absolute offset to a (line, column) pair."""
    line = bisect.bisect_right(starts, offset) - 1
    return line, offset - starts[line]


def get_word_at_position(line: str, character: int) -> Optional[WordInfo]:
    """Return the identifier token touching ``character`` on ``line``."""
    if not line:
        return None
    pos = min(character, len(line))
    start = pos
    while start > 0 and _WORD_RE.match(line[start - 1]):
        start -= 1
    end = pos
    while end < len(line) and _WORD_RE.match(line[end]):
        end += 1
    if start == end:
        return None
    is_member = start > 0 and line[start - 1] == '.'
    return WordInfo(line[start:end], start, end, is_member)


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]
