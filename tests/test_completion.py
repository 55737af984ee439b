"""Tests for completion and signature help."""

import unittest

from lsprotocol import types as lsp

from krl_lsp.completion import (
    complete,
    count_top_level_commas,
    find_open_paren,
    signature_help,
)
from krl_lsp.indexer import Indexer


class CompletionTestCase(unittest.TestCase):
    def setUp(self):
        self.indexer = Indexer()
        self.indexer.index_source(
            '/ws/lib.src',
            '; Adds two values.\n'
            'GLOBAL DEF helper(a:IN, b:OUT)\n'
            'END\n'
            'DEF noargs()\n'
            'END',
        )
        self.indexer.index_source(
            '/ws/types.dat',
            'DEFDAT types PUBLIC\n'
            'GLOBAL STRUC point_t REAL x, y\n'
            'DECL GLOBAL point_t origin\n'
            'ENDDAT',
        )
        self.index = self.indexer.index

    def labels(self, items):
        return [item.label for item in items]


class TestComplete(CompletionTestCase):
    def test_member_access(self):
        items = complete('', '  origin.', 9, self.index)
        self.assertEqual(self.labels(items), ['x', 'y'])
        self.assertTrue(
            all(i.kind == lsp.CompletionItemKind.Field for i in items)
        )

    def test_member_access_local_struct(self):
        text = 'STRUC pair_t INT left, right\nDECL pair_t p\n'
        items = complete(text, 'p.', 2, self.index)
        self.assertEqual(self.labels(items), ['left', 'right'])

    def test_member_access_unknown(self):
        self.assertEqual(complete('', 'nothing.', 8, self.index), [])

    def test_user_function_first(self):
        items = complete('', 'hel', 3, self.index)
        first = items[0]
        self.assertEqual(first.label, 'helper')
        self.assertEqual(first.kind, lsp.CompletionItemKind.Function)
        self.assertEqual(first.insert_text, 'helper(${1:a}, ${2:b})')
        self.assertEqual(first.insert_text_format, lsp.InsertTextFormat.Snippet)
        self.assertEqual(first.documentation, 'Adds two values.')

    def test_library_functions(self):
        items = complete('', 'f', 1, self.index)
        fopen = next(i for i in items if i.label == 'fopen')
        self.assertEqual(fopen.sort_text, 'zz_fopen')
        self.assertIn('[files]', fopen.detail)

    def test_user_function_shadows_library(self):
        self.indexer.index_source('/ws/conv.src', 'DEFFCT REAL stof(s:IN)\nENDFCT')
        items = complete('', 'st', 2, self.index)
        matches = [i for i in items if i.label.upper() == 'STOF']
        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].detail, 'stof(s:IN)')

    def test_keywords_filtered_by_prefix(self):
        items = complete('', '  endw', 6, self.index)
        keywords = [
            i.label for i in items if i.kind == lsp.CompletionItemKind.Keyword
        ]
        self.assertEqual(keywords, ['ENDWHILE'])

    def test_system_and_user_variables(self):
        items = complete('', '', 0, self.index)
        labels = self.labels(items)
        self.assertIn('$TOOL', labels)
        origin = next(i for i in items if i.label == 'origin')
        self.assertEqual(origin.detail, 'Type: point_t')
        point = next(i for i in items if i.label == 'point_t')
        self.assertEqual(point.kind, lsp.CompletionItemKind.Struct)


class TestSignatureHelp(CompletionTestCase):
    def test_user_function(self):
        help_ = signature_help('helper(1, ', 10, self.index)
        self.assertEqual(help_.signatures[0].label, 'helper(a:IN, b:OUT)')
        self.assertEqual(help_.active_parameter, 1)
        self.assertEqual(
            [p.label for p in help_.signatures[0].parameters],
            ['a:IN', 'b:OUT'],
        )

    def test_library_function(self):
        help_ = signature_help('x = STOF(', 9, self.index)
        self.assertEqual(help_.signatures[0].label, 'STOF(STRING:IN)')
        self.assertEqual(help_.active_parameter, 0)

    def test_nested_call(self):
        help_ = signature_help('helper(f(1, 2), ', 16, self.index)
        self.assertEqual(help_.active_parameter, 1)

    def test_active_parameter_is_clamped(self):
        help_ = signature_help('helper(1, 2, 3', 14, self.index)
        self.assertEqual(help_.active_parameter, 1)

    def test_unknown_or_parameterless(self):
        self.assertIsNone(signature_help('unknown(', 8, self.index))
        self.assertIsNone(signature_help('noargs(', 7, self.index))
        self.assertIsNone(signature_help('x = 1', 5, self.index))

    def test_helpers(self):
        self.assertEqual(find_open_paren('a(b(c)'), 1)
        self.assertEqual(find_open_paren('a(b)'), -1)
        self.assertEqual(count_top_level_commas('"a,b", c[1,2], d'), 2)


if __name__ == '__main__':
    unittest.main()
