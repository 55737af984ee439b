"""Folding ranges and matching block-keyword highlights."""

from __future__ import annotations

from typing import Optional

from .rules import (
    BLOCK_PAIRS,
    CLOSER_TO_OPENER,
    FOLD_END_RE,
    FOLD_START_RE,
    SCOPE_CLOSE_RE,
    SCOPE_OPEN_RE,
    BlockToken,
    block_tokens,
)
from .symbols import FoldRegion, Range
from .text_utils import comment_index, get_word_at_position


def _comment(line: str) -> str:
    idx = comment_index(line)
    return line[idx:] if idx >= 0 else ''


def folding_ranges(lines: list[str]) -> list[FoldRegion]:
    """Pair ;FOLD/;ENDFOLD markers and DEF/DEFFCT/DEFDAT blocks.

    The two kinds are tracked on separate stacks, so a fold marker that
    straddles a routine boundary does not disturb routine folding.
    """
    regions = []
    folds: list[int] = []
    blocks: list[int] = []
    for i, line in enumerate(lines):
        comment = _comment(line)
        if FOLD_START_RE.match(comment):
            folds.append(i)
        elif FOLD_END_RE.match(comment) and folds:
            regions.append(FoldRegion(folds.pop(), i, 'region'))

        if SCOPE_OPEN_RE.match(line):
            blocks.append(i)
        elif SCOPE_CLOSE_RE.match(line) and blocks:
            regions.append(FoldRegion(blocks.pop(), i, 'block'))
    return regions


def _token_at(lines: list[str], line: int, character: int) -> Optional[BlockToken]:
    word = get_word_at_position(lines[line], character)
    if word is None:
        return None
    for token in block_tokens(lines[line]):
        if token.column == word.start:
            return token
    return None


def _find_partner(
    lines: list[str], line: int, token: BlockToken,
) -> Optional[tuple[int, BlockToken]]:
    """Depth-aware search for the keyword pairing with ``token``."""
    if token.is_opener:
        opener, closer = token.keyword, BLOCK_PAIRS[token.keyword]
        rows = range(line, len(lines))
        step = 1
    else:
        opener, closer = CLOSER_TO_OPENER[token.keyword], token.keyword
        rows = range(line, -1, -1)
        step = -1
    depth = 0
    for i in rows:
        tokens = block_tokens(lines[i])
        if step < 0:
            tokens.reverse()
        for tok in tokens:
            if i == line and (tok.column - token.column) * step < 0:
                continue
            if tok.keyword == (opener if step > 0 else closer):
                depth += 1
            elif tok.keyword == (closer if step > 0 else opener):
                depth -= 1
                if depth == 0:
                    return i, tok
    return None


def block_highlights(
    lines: list[str], line: int, character: int,
) -> list[Range]:
    """The block keyword under the cursor and its partner, or nothing."""
    if line >= len(lines):
        return []
    token = _token_at(lines, line, character)
    if token is None:
        return []
    partner = _find_partner(lines, line, token)
    if partner is None:
        return []
    other_line, other = partner
    return [
        Range(line, token.column, line, token.column + len(token.keyword)),
        Range(
            other_line, other.column,
            other_line, other.column + len(other.keyword),
        ),
    ]
