"""Find references and rename across the workspace's KRL sources."""

from __future__ import annotations

import logging
import os
from typing import Iterator, Optional

from .collector import IDENT_RE
from .resolver import find_source_files, read_source
from .rules import classify_line
from .symbols import Location, Range, TextEdit
from .text_utils import (
    WordInfo,
    code_part,
    get_word_at_position,
    is_aggregate_field,
    is_inside_string,
    split_lines,
    word_regex,
)

log = logging.getLogger(__name__)

# Words that can never be renamed
RESERVED_WORDS = frozenset({
    'DEF', 'DEFFCT', 'DEFDAT', 'END', 'ENDFCT', 'ENDDAT', 'IF', 'THEN',
    'ELSE', 'ENDIF', 'FOR', 'ENDFOR', 'WHILE', 'ENDWHILE', 'LOOP',
    'ENDLOOP', 'REPEAT', 'UNTIL', 'SWITCH', 'CASE', 'DEFAULT', 'ENDSWITCH',
    'DECL', 'GLOBAL', 'PUBLIC',
})


def workspace_texts(
    root: Optional[str], overrides: Optional[dict[str, str]],
) -> Iterator[tuple[str, str]]:
    """Yield (path, text) for every source file; open documents win.

    Unreadable files are skipped.
    """
    overrides = {
        os.path.abspath(path): text for path, text in (overrides or {}).items()
    }
    seen = set()
    if root:
        for filepath in find_source_files(root):
            filepath = os.path.abspath(filepath)
            seen.add(filepath)
            text = overrides.get(filepath)
            if text is None:
                text = read_source(filepath)
            if text is not None:
                yield filepath, text
    # Open documents outside the root are searched too
    for filepath, text in sorted(overrides.items()):
        if filepath not in seen:
            yield filepath, text


def find_in_text(
    text: str, name: str, include_declaration: bool = True,
) -> list[Range]:
    """Whole-word, case-insensitive occurrences of ``name`` in code.

    Matches inside strings and comments are skipped, as are ``$`` system
    names, ``.member`` accesses and field names of ``{...}`` aggregates.
    Without ``include_declaration``, a match on a declaration line counts
    as the declaration unless an ``=`` precedes it on that line (then it
    is an initializer usage).
    """
    pattern = word_regex(name)
    ranges = []
    for i, line in enumerate(split_lines(text)):
        code = code_part(line)
        is_decl = classify_line(line).is_declaration
        for m in pattern.finditer(code):
            start = m.start()
            if is_inside_string(code, start):
                continue
            if start > 0 and code[start - 1] in '$.':
                continue
            if is_aggregate_field(code, start):
                continue
            if (not include_declaration and is_decl
                    and '=' not in code[:start]):
                continue
            ranges.append(Range(i, start, i, m.end()))
    return ranges


def find_references(
    root: Optional[str],
    name: str,
    include_declaration: bool = True,
    overrides: Optional[dict[str, str]] = None,
) -> list[Location]:
    locations = []
    for filepath, text in workspace_texts(root, overrides):
        locations.extend(
            Location(filepath, r)
            for r in find_in_text(text, name, include_declaration)
        )
    log.debug('%d references to %s', len(locations), name)
    return locations


def prepare_rename(line: str, character: int) -> Optional[WordInfo]:
    """The word under the cursor, or None if it cannot be renamed."""
    word = get_word_at_position(line, character)
    if word is None or word.word.upper() in RESERVED_WORDS:
        return None
    return word


def rename(
    root: Optional[str],
    old_name: str,
    new_name: str,
    overrides: Optional[dict[str, str]] = None,
) -> Optional[dict[str, list[TextEdit]]]:
    """Edits per file replacing every occurrence of ``old_name``.

    Returns None when ``new_name`` is not a valid identifier.
    """
    if not IDENT_RE.match(new_name):
        return None
    changes = {}
    for filepath, text in workspace_texts(root, overrides):
        edits = [
            TextEdit(r, new_name)
            for r in find_in_text(text, old_name, include_declaration=True)
        ]
        if edits:
            changes[filepath] = edits
    return changes
