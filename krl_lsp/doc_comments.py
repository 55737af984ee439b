"""Extract doc comments from KRL source lines."""

from __future__ import annotations

import re
from typing import Optional

from .text_utils import comment_index

# ;FOLD / ;ENDFOLD markers and editor-generated %{PE} tails are not docs
_MARKER_RE = re.compile(r'^;\s*(FOLD|ENDFOLD)\b|%\{PE\}', re.IGNORECASE)


def get_doc_comment(lines: list[str], line: int) -> Optional[str]:
    """Get the comment block directly above a DEF/DEFFCT header.

    Walks upward over contiguous ``;`` comment lines. Fold markers and
    ``&`` header directives are skipped; a blank or code line ends the
    block.
    """
    collected = []
    i = line - 1
    while i >= 0:
        stripped = lines[i].strip()
        if stripped.startswith('&') or (
                stripped.startswith(';') and _MARKER_RE.search(stripped)):
            i -= 1
            continue
        if not stripped.startswith(';'):
            break
        collected.append(_clean_comment(stripped))
        i -= 1
    if not collected:
        return None
    result = '\n'.join(reversed(collected)).strip()
    return result or None


def get_trailing_doc_comment(line: str) -> Optional[str]:
    """Get a trailing ``; text`` comment on a declaration line."""
    idx = comment_index(line)
    if idx < 0:
        return None
    text = line[idx:]
    if _MARKER_RE.search(text):
        return None
    return _clean_comment(text) or None


def _clean_comment(text: str) -> str:
    # Strip the leading ';' (and any repeated ';;' decoration)
    return text.lstrip(';').strip()
