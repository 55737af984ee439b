"""Tests for the workspace symbol index."""

import os
import tempfile
import unittest

from krl_lsp.indexer import Indexer
from krl_lsp.symbols import SymbolKind


class TestIndexer(unittest.TestCase):
    def setUp(self):
        self.indexer = Indexer()

    def _index_source(self, source: str, filename: str = '/test.src'):
        return self.indexer.index_source(filename, source)

    def test_function_and_variables(self):
        self._index_source(
            'DEF main()\n'
            '  DECL INT count\n'
            'END'
        )
        index = self.indexer.index
        self.assertIsNotNone(index.find_function('MAIN'))
        self.assertEqual(index.find_variable('count').type, 'INT')
        self.assertIn('COUNT', index.declared_names())
        self.assertIn('MAIN', index.function_names())

    def test_replacing_a_file(self):
        self._index_source('DECL INT old_name')
        self._index_source('DECL INT new_name')
        index = self.indexer.index
        self.assertIsNone(index.find_variable('old_name'))
        self.assertIsNotNone(index.find_variable('new_name'))

    def test_merge_first_file_wins(self):
        self._index_source('DECL INT shared', '/a.dat')
        self._index_source('DECL REAL shared', '/b.dat')
        self.assertEqual(self.indexer.index.find_variable('shared').type, 'INT')
        self.assertEqual(len(self.indexer.index.merged_variables), 1)

    def test_remove_file(self):
        self._index_source('DEF helper()\nEND', '/lib.src')
        self.indexer.remove_file('/lib.src')
        self.assertIsNone(self.indexer.index.find_function('helper'))

    def test_struct_types(self):
        self._index_source(
            'STRUC point_t REAL x, y\n'
            'DECL point_t origin',
            '/types.dat',
        )
        index = self.indexer.index
        self.assertEqual(index.find_struct('POINT_T'), ('point_t', ['x', 'y']))
        self.assertEqual(index.variable_struct_types['ORIGIN'], 'point_t')

    def test_field_type_from_another_file(self):
        self._index_source(
            'GLOBAL STRUC gripper_t INT id, BOOL closed', '/R1/$config.dat',
        )
        self._index_source('STRUC station_t gripper_t grip, REAL x', '/cell.dat')
        index = self.indexer.index
        self.assertEqual(
            index.find_struct('station_t'), ('station_t', ['grip', 'x']),
        )
        self.assertEqual(index.find_struct('gripper_t')[1], ['id', 'closed'])

    def test_global_variables_exclude_parameters(self):
        self._index_source('DEF move(target:IN)\nDECL INT n\nEND')
        names = [v.name for v in self.indexer.index.global_variables()]
        self.assertEqual(names, ['n'])
        kinds = {v.kind for v in self.indexer.index.merged_variables}
        self.assertIn(SymbolKind.PARAMETER, kinds)

    def test_symbol_count(self):
        self._index_source('DEF a()\nDECL INT x, y\nEND')
        self.assertEqual(self.indexer.index.symbol_count(), 3)


class TestWorkspaceIndexing(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = self.tmp.name

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, relpath, text):
        path = os.path.join(self.root, relpath)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def test_index_workspace(self):
        self._write('R1/Program/main.src', 'DEF main()\nEND')
        self._write('R1/Program/main.dat', 'DEFDAT main\nDECL INT n\nENDDAT')
        self._write('R1/notes.txt', 'DECL INT ignored')
        self._write('.git/hidden.src', 'DEF hidden()\nEND')
        indexer = Indexer()
        indexer.index_workspace(self.root)
        index = indexer.index
        self.assertEqual(len(index.by_file), 2)
        self.assertIsNotNone(index.find_function('main'))
        self.assertIsNotNone(index.find_variable('n'))
        self.assertIsNone(index.find_variable('ignored'))
        self.assertIsNone(index.find_function('hidden'))

    def test_index_missing_file_removes_it(self):
        path = self._write('gone.src', 'DEF gone()\nEND')
        indexer = Indexer()
        indexer.index_file(path)
        self.assertIsNotNone(indexer.index.find_function('gone'))
        os.remove(path)
        with self.assertLogs('krl_lsp.resolver', level='WARNING'):
            indexer.index_file(path)
        self.assertIsNone(indexer.index.find_function('gone'))


if __name__ == '__main__':
    unittest.main()
