"""Tests for the shared line classification and block keyword tables."""

import unittest

from krl_lsp.rules import (
    BLOCK_PAIRS,
    CLOSER_TO_OPENER,
    DeclKind,
    LineKind,
    block_tokens,
    classify_line,
)


class TestClassifyLine(unittest.TestCase):
    def test_blank_and_comment(self):
        self.assertEqual(classify_line('   ').kind, LineKind.BLANK)
        self.assertEqual(classify_line('; note').kind, LineKind.COMMENT)
        self.assertEqual(
            classify_line('&ACCESS RVP').kind, LineKind.COMMENT,
        )

    def test_declarations(self):
        cases = {
            'DECL INT a, b': DeclKind.VARIABLE,
            'GLOBAL DECL REAL speed': DeclKind.VARIABLE,
            'INT counter': DeclKind.VARIABLE,
            'SIGNAL start $IN[1]': DeclKind.SIGNAL,
            'STRUC point_t REAL x, y': DeclKind.STRUC,
            'GLOBAL ENUM color_t red, green': DeclKind.ENUM,
            'DEF main()': DeclKind.FUNCTION,
            'GLOBAL DEFFCT INT add(a:IN)': DeclKind.FUNCTION,
            'DEFDAT main PUBLIC': DeclKind.DATA,
        }
        for line, kind in cases.items():
            cls = classify_line(line)
            self.assertTrue(cls.is_declaration, line)
            self.assertEqual(cls.decl_kind, kind, line)

    def test_usage(self):
        self.assertEqual(classify_line('a = b + 1').kind, LineKind.USAGE)
        self.assertEqual(classify_line('ENDFOR').kind, LineKind.USAGE)
        # DEFAULT is not a DEF header
        self.assertEqual(classify_line('DEFAULT').kind, LineKind.USAGE)


class TestBlockTokens(unittest.TestCase):
    def test_pairs_are_inverse(self):
        for opener, closer in BLOCK_PAIRS.items():
            self.assertEqual(CLOSER_TO_OPENER[closer], opener)

    def test_openers_and_closers(self):
        tokens = block_tokens('IF a THEN b = 1 ENDIF')
        self.assertEqual(
            [(t.keyword, t.column, t.is_opener) for t in tokens],
            [('IF', 0, True), ('ENDIF', 16, False)],
        )

    def test_wait_for_is_not_a_loop(self):
        self.assertEqual(block_tokens('WAIT FOR $IN[1]'), [])

    def test_ignores_strings_comments_and_prefixes(self):
        self.assertEqual(block_tokens('msg = "IF" ; FOR'), [])
        self.assertEqual(block_tokens('x = $LOOP + #IF'), [])


if __name__ == '__main__':
    unittest.main()
