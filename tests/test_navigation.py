"""Tests for go-to-definition and hover."""

import os
import tempfile
import unittest

from krl_lsp.indexer import Indexer
from krl_lsp.messages import set_locale
from krl_lsp.navigation import definition, hover

MAIN_SRC = (
    'DEF main()\n'
    '  DECL INT local_n\n'
    '  local_n = shared + 1\n'
    '  helper(local_n)\n'
    '  origin.x = 1\n'
    'END'
)


class NavigationTestCase(unittest.TestCase):
    def setUp(self):
        set_locale('en')
        self.tmp = tempfile.TemporaryDirectory()
        self.root = os.path.abspath(self.tmp.name)
        self.main = self._write('main.src', MAIN_SRC)
        self.main_dat = self._write(
            'main.dat', 'DEFDAT main\nDECL INT shared\nENDDAT',
        )
        self.lib = self._write(
            'lib.src', '; Helps.\nGLOBAL DEF helper(n:IN)\nEND',
        )
        self.config = self._write(
            'config.dat',
            'DEFDAT config PUBLIC\n'
            'GLOBAL STRUC point_t REAL x, y\n'
            'DECL GLOBAL point_t origin\n'
            'DECL GLOBAL INT far_away ; set by the cell PLC\n'
            'ENDDAT',
        )
        indexer = Indexer()
        indexer.index_workspace(self.root)
        self.index = indexer.index

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, relpath, text):
        path = os.path.join(self.root, relpath)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def where(self, location):
        r = location.range
        return location.file, r.start_line, r.start_col


class TestDefinition(NavigationTestCase):
    def _definition(self, line, character, text=MAIN_SRC, path=None):
        return definition(
            text, path or self.main, line, character, self.index, self.root,
        )

    def test_function_in_other_file(self):
        self.assertEqual(
            self.where(self._definition(3, 3)), (self.lib, 1, 11),
        )

    def test_local_variable(self):
        self.assertEqual(
            self.where(self._definition(2, 3)), (self.main, 1, 11),
        )

    def test_paired_data_file(self):
        self.assertEqual(
            self.where(self._definition(2, 13)), (self.main_dat, 1, 9),
        )

    def test_global_variable(self):
        other = os.path.join(self.root, 'other.src')
        location = self._definition(
            1, 8, text='DEF other()\n  x = far_away\nEND', path=other,
        )
        self.assertEqual(self.where(location), (self.config, 3, 16))

    def test_struct_type(self):
        location = self._definition(0, 6, text='DECL point_t p')
        self.assertEqual(self.where(location), (self.config, 1, 13))

    def test_not_found(self):
        self.assertIsNone(self._definition(0, 5))  # routine header
        self.assertIsNone(self._definition(4, 10))  # struct member
        self.assertIsNone(self._definition(0, 0, text='zzz = 1'))
        self.assertIsNone(self._definition(9, 0))


class TestHover(NavigationTestCase):
    def _hover(self, line_text, character):
        return hover(line_text, 0, character, self.index, self.root)

    def test_system_variable(self):
        text = self._hover('  $TOOL = t', 4)
        self.assertTrue(text.startswith('**$TOOL**'))
        self.assertIn('Current tool frame', text)

    def test_user_function(self):
        text = self._hover('helper(1)', 2)
        self.assertIn('DEF helper(n:IN)', text)
        self.assertIn('*User-defined function*', text)
        self.assertIn('Helps.', text)

    def test_library_function(self):
        text = self._hover('x = STOF("1")', 5)
        self.assertIn('REAL STOF(STRING:IN)', text)
        self.assertIn('Library function (string)', text)

    def test_keyword(self):
        self.assertIn('Point-to-Point', self._hover('PTP P1', 1))
        self.assertEqual(self._hover('ENDIF', 2), '**ENDIF** KRL keyword')

    def test_struct(self):
        text = self._hover('DECL point_t p', 7)
        self.assertIn('STRUC point_t', text)
        self.assertIn('`x`, `y`', text)

    def test_variable_with_doc(self):
        text = self._hover('y = far_away', 6)
        self.assertTrue(text.startswith('**far_away**: `INT`'))
        self.assertIn('set by the cell PLC', text)

    def test_nothing(self):
        self.assertIsNone(self._hover('x = 1', 4))
        self.assertIsNone(self._hover('   ', 1))


if __name__ == '__main__':
    unittest.main()
