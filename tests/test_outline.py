"""Tests for document and workspace symbols."""

import unittest

from lsprotocol import types as lsp

from krl_lsp.indexer import Indexer
from krl_lsp.outline import MAX_WORKSPACE_SYMBOLS, document_symbols, workspace_symbols

PROG_SRC = (
    'DEF main()\n'
    '  DECL INT count, total\n'
    '  count = 1\n'
    'END\n'
    'DEFFCT REAL half(x:IN)\n'
    '  RETURN x / 2\n'
    'ENDFCT'
)
PROG_DAT = (
    'DEFDAT prog PUBLIC\n'
    'DECL GLOBAL BOOL ready\n'
    'SIGNAL start_btn $IN[1]\n'
    'ENDDAT'
)


class TestDocumentSymbols(unittest.TestCase):
    def test_routines_with_declarations(self):
        main, half = document_symbols(PROG_SRC)
        self.assertEqual((main.name, main.kind), ('main', lsp.SymbolKind.Function))
        self.assertEqual(main.detail, '()')
        self.assertEqual(main.range.end.line, 3)
        self.assertEqual(
            [(c.name, c.kind) for c in main.children],
            [('count', lsp.SymbolKind.Number), ('total', lsp.SymbolKind.Number)],
        )
        self.assertEqual(main.children[1].selection_range.start.character, 18)
        self.assertEqual(half.detail, 'REAL(x:IN)')
        self.assertEqual(half.children, [])

    def test_data_list(self):
        [prog] = document_symbols(PROG_DAT)
        self.assertEqual(prog.kind, lsp.SymbolKind.Module)
        self.assertEqual(prog.detail, 'PUBLIC DATA')
        self.assertEqual(
            [(c.name, c.kind) for c in prog.children],
            [('ready', lsp.SymbolKind.Boolean),
             ('start_btn', lsp.SymbolKind.Event)],
        )

    def test_unterminated_routine(self):
        [main] = document_symbols('DEF main()\nDECL INT n')
        self.assertEqual([c.name for c in main.children], ['n'])

    def test_top_level_declaration(self):
        [sym] = document_symbols('DECL E6POS home')
        self.assertEqual((sym.name, sym.kind), ('home', lsp.SymbolKind.Struct))


class TestWorkspaceSymbols(unittest.TestCase):
    def setUp(self):
        self.indexer = Indexer()
        self.indexer.index_source('/ws/prog.src', PROG_SRC)
        self.indexer.index_source('/ws/prog.dat', PROG_DAT)

    def test_substring_query(self):
        symbols = workspace_symbols('coU', self.indexer.index)
        self.assertEqual([s.name for s in symbols], ['count'])
        [count] = symbols
        self.assertEqual(count.location.uri, 'file:///ws/prog.src')
        self.assertEqual(count.location.range.start.line, 1)
        self.assertEqual(count.container_name, 'prog.src')

    def test_empty_query_lists_all_but_parameters(self):
        names = {s.name for s in workspace_symbols('', self.indexer.index)}
        self.assertEqual(
            names, {'main', 'half', 'count', 'total', 'ready', 'start_btn'},
        )

    def test_result_cap(self):
        decls = '\n'.join(f'DECL INT v{i}' for i in range(150))
        self.indexer.index_source('/ws/many.dat', decls)
        symbols = workspace_symbols('v', self.indexer.index)
        self.assertEqual(len(symbols), MAX_WORKSPACE_SYMBOLS)


if __name__ == '__main__':
    unittest.main()
