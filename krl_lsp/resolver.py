"""Cross-file declaration lookup over the workspace's KRL sources."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import quote, unquote, urlparse

from .rules import SCOPE_CLOSE_RE, SCOPE_OPEN_RE
from .symbols import Location, Range
from .text_utils import code_part, escape_regex, split_lines

log = logging.getLogger(__name__)

SOURCE_EXTENSIONS = ('.src', '.dat', '.sub')

# Dependency and tooling directories never scanned for sources
SKIP_DIRS = frozenset({'node_modules', '__pycache__', 'venv', 'out'})


class ResolveKind(Enum):
    FUNCTION = 'function'
    VARIABLE = 'variable'
    STRUC = 'struc'


@dataclass
class DeclarationMatch:
    location: Location
    name: str  # As written at the declaration
    line_text: str
    params: Optional[str] = None  # Raw parameter list for functions


@dataclass
class ScopeWindow:
    start_line: int  # DEF/DEFFCT/DEFDAT line, inclusive
    end_line: int  # END/ENDFCT/ENDDAT line, inclusive


def uri_to_path(uri: str) -> str:
    """Convert a file URI to an absolute, percent-decoded path."""
    if not uri.startswith('file://'):
        return uri
    return unquote(urlparse(uri).path)


def path_to_uri(path: str) -> str:
    return 'file://' + quote(path)


def is_source_file(path: str) -> bool:
    return path.lower().endswith(SOURCE_EXTENSIONS)


def find_source_files(root: str) -> list[str]:
    """Recursively find .src/.dat/.sub files, skipping hidden and
    dependency directories. The result is sorted by path."""
    results = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith('.') and d not in SKIP_DIRS
        )
        for fname in sorted(filenames):
            if is_source_file(fname):
                results.append(os.path.join(dirpath, fname))
    return results


def read_source(filepath: str) -> Optional[str]:
    """Read a source file as UTF-8, or None if it cannot be read."""
    try:
        with open(filepath, encoding='utf-8', errors='replace') as f:
            return f.read()
    except OSError as e:
        log.warning('Cannot read %s: %s', filepath, e)
        return None


def _declaration_pattern(name: str, kind: ResolveKind) -> re.Pattern:
    esc = escape_regex(name)
    if kind == ResolveKind.STRUC:
        pattern = r'\b(?:GLOBAL\s+)?STRUC\s+(?P<name>' + esc + r')\b'
    elif kind == ResolveKind.VARIABLE:
        # Looser than the collector: any DECL/SIGNAL line naming it
        pattern = (
            r'\b(?:GLOBAL\s+)?(?:DECL|SIGNAL)\b[^\n]*?\b(?P<name>'
            + esc + r')\b'
        )
    else:
        pattern = (
            r'\b(?:GLOBAL\s+)?(?:DEF|DEFFCT)\s+(?:\w+\s+)?(?P<name>'
            + esc + r')\s*\((?P<params>[^)]*)\)'
        )
    return re.compile(pattern, re.IGNORECASE)


def resolve(
    root: Optional[str],
    name: str,
    kind: ResolveKind,
    file_scope: Optional[str] = None,
    line_range: Optional[tuple[int, int]] = None,
    overrides: Optional[dict[str, str]] = None,
) -> Optional[DeclarationMatch]:
    """Find the declaration of ``name``.

    Files are searched in sorted path order and lines top to bottom; the
    first hit wins. ``file_scope`` restricts the search to one file and
    ``line_range`` (inclusive) to a window of it. ``overrides`` maps
    paths to the text of open documents, which takes precedence over the
    file on disk.
    """
    overrides = overrides or {}
    if file_scope is not None:
        files = [file_scope]
    elif root:
        files = find_source_files(root)
    else:
        return None

    pattern = _declaration_pattern(name, kind)
    for filepath in files:
        text = overrides.get(filepath)
        if text is None:
            text = read_source(filepath)
            if text is None:
                continue
        lines = split_lines(text)
        start, end = line_range if line_range else (0, len(lines) - 1)
        for i in range(max(start, 0), min(end, len(lines) - 1) + 1):
            m = pattern.search(code_part(lines[i]))
            if m is None:
                continue
            col = m.start('name')
            params = None
            if kind == ResolveKind.FUNCTION:
                params = m.group('params').strip()
            return DeclarationMatch(
                location=Location(
                    filepath, Range(i, col, i, col + len(name)),
                ),
                name=m.group('name'),
                line_text=lines[i],
                params=params,
            )
    return None


def find_enclosing_scope(lines: list[str], line: int) -> Optional[ScopeWindow]:
    """Find the DEF/DEFFCT/DEFDAT block containing ``line``.

    Nested blocks between the line and the boundaries are skipped by
    depth counting. Returns None outside any block; an unterminated
    block extends to the end of the document.
    """
    if not lines:
        return None
    line = min(max(line, 0), len(lines) - 1)
    start = None
    depth = 0
    for i in range(line, -1, -1):
        text = lines[i]
        if i != line and SCOPE_CLOSE_RE.match(text):
            depth += 1
        elif SCOPE_OPEN_RE.match(text):
            if depth == 0:
                start = i
                break
            depth -= 1
    if start is None:
        return None
    end = len(lines) - 1
    depth = 0
    for j in range(line, len(lines)):
        text = lines[j]
        if j != line and SCOPE_OPEN_RE.match(text):
            depth += 1
        elif SCOPE_CLOSE_RE.match(text):
            if depth == 0:
                end = j
                break
            depth -= 1
    return ScopeWindow(start, end)


def paired_data_file(filepath: str) -> Optional[str]:
    """Return the .dat file next to a .src/.sub file, if it exists."""
    base, ext = os.path.splitext(filepath)
    if ext.lower() == '.dat':
        return None
    for candidate in (base + '.dat', base + '.DAT'):
        if os.path.isfile(candidate):
            return candidate
    return None


@dataclass
class RootCache:
    """Directory -> resolved workspace root, cleared on root change."""

    entries: dict[str, str] = field(default_factory=dict)

    def clear(self) -> None:
        self.entries.clear()


def find_workspace_root(start_dir: str, cache: RootCache) -> str:
    """Walk upward to the nearest directory that looks like a robot
    project: one containing KRC or R1, or one named KRC.

    Falls back to ``start_dir`` itself. Visited directories are cached.
    """
    current = os.path.normpath(start_dir)
    visited = []
    found = None
    while True:
        if current in cache.entries:
            found = cache.entries[current]
            break
        visited.append(current)
        if (os.path.basename(current).upper() == 'KRC'
                or os.path.isdir(os.path.join(current, 'KRC'))
                or os.path.isdir(os.path.join(current, 'R1'))):
            found = current
            break
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    result = found or os.path.normpath(start_dir)
    # A fallback answer only holds for the directory it was asked for
    for d in (visited if found else visited[:1]):
        cache.entries[d] = result
    return result
