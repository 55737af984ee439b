"""Tests for find-references and rename."""

import os
import tempfile
import unittest

from krl_lsp.collector import collect_symbols
from krl_lsp.references import (
    find_in_text,
    find_references,
    prepare_rename,
    rename,
    workspace_texts,
)
from krl_lsp.symbols import TextEdit
from krl_lsp.text_utils import split_lines

MAIN_SRC = (
    'DEF main()\n'
    '  DECL INT count\n'
    '  count = count + 1\n'
    '  msg = "count"\n'
    '  helper(count) ; count here\n'
    'END'
)
LIB_SRC = (
    'GLOBAL DEF helper(Count:IN)\n'
    '  DECL INT total = Count\n'
    'END'
)


def apply_edits(text, edits):
    lines = split_lines(text)
    for edit in sorted(
            edits, key=lambda e: (e.range.start_line, e.range.start_col),
            reverse=True):
        r = edit.range
        line = lines[r.start_line]
        lines[r.start_line] = line[:r.start_col] + edit.new_text + line[r.end_col:]
    return '\n'.join(lines)


class TestFindInText(unittest.TestCase):
    def test_with_declaration(self):
        ranges = find_in_text(MAIN_SRC, 'COUNT')
        self.assertEqual(
            [(r.start_line, r.start_col) for r in ranges],
            [(1, 11), (2, 2), (2, 10), (4, 9)],
        )

    def test_without_declaration(self):
        ranges = find_in_text(MAIN_SRC, 'count', include_declaration=False)
        self.assertEqual([r.start_line for r in ranges], [2, 2, 4])

    def test_initializer_counts_as_usage(self):
        ranges = find_in_text(LIB_SRC, 'count', include_declaration=False)
        self.assertEqual(
            [(r.start_line, r.start_col) for r in ranges], [(1, 19)],
        )

    def test_members_and_aggregate_fields_are_not_variables(self):
        text = (
            'DEF main()\n'
            '  DECL INT x\n'
            '  DECL FRAME f\n'
            '  f.X = x\n'
            '  f = {X 10, Y 0}\n'
            'END'
        )
        ranges = find_in_text(text, 'x')
        self.assertEqual(
            [(r.start_line, r.start_col) for r in ranges], [(1, 11), (3, 8)],
        )
        edits = [TextEdit(r, 'counter') for r in ranges]
        renamed = split_lines(apply_edits(text, edits))
        self.assertEqual(renamed[3], '  f.X = counter')
        self.assertEqual(renamed[4], '  f = {X 10, Y 0}')

    def test_system_variable_is_not_a_reference(self):
        self.assertEqual(find_in_text('$TOOL = TOOL', 'TOOL')[0].start_col, 8)
        self.assertEqual(len(find_in_text('$TOOL = TOOL', 'TOOL')), 1)


class WorkspaceTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = self.tmp.name
        self.main = self._write('main.src', MAIN_SRC)
        self.lib = self._write('lib.src', LIB_SRC)

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, relpath, text):
        path = os.path.join(self.root, relpath)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return os.path.abspath(path)


class TestFindReferences(WorkspaceTestCase):
    def test_across_files(self):
        locations = find_references(self.root, 'count')
        files = [loc.file for loc in locations]
        self.assertEqual(files.count(self.main), 4)
        self.assertEqual(files.count(self.lib), 2)

    def test_open_document_text_wins(self):
        locations = find_references(
            self.root, 'count', overrides={self.lib: 'x = 1'},
        )
        self.assertEqual({loc.file for loc in locations}, {self.main})

    def test_open_document_outside_root(self):
        texts = dict(workspace_texts(self.root, {'/elsewhere/x.src': 'a = 1'}))
        self.assertIn('/elsewhere/x.src', texts)
        self.assertIn(self.main, texts)


class TestRename(WorkspaceTestCase):
    def test_prepare_rename(self):
        self.assertEqual(prepare_rename('  count = 1', 3).word, 'count')
        self.assertIsNone(prepare_rename('ENDIF', 1))
        self.assertIsNone(prepare_rename('   ', 1))

    def test_rename_is_consistent(self):
        changes = rename(self.root, 'count', 'tally')
        self.assertEqual(set(changes), {self.main, self.lib})
        renamed = apply_edits(MAIN_SRC, changes[self.main])
        table = collect_symbols(renamed)
        self.assertIsNotNone(table.find_variable('tally'))
        self.assertIsNone(table.find_variable('count'))
        # Strings and comments are left alone
        self.assertIn('"count"', renamed)
        self.assertIn('; count here', renamed)

    def test_invalid_new_name(self):
        self.assertIsNone(rename(self.root, 'count', '1bad'))
        self.assertIsNone(rename(self.root, 'count', 'has space'))


if __name__ == '__main__':
    unittest.main()
