"""Tests for the document formatter."""

import unittest

from krl_lsp.formatter import format_document, format_text, uppercase_keywords


class TestUppercaseKeywords(unittest.TestCase):
    def test_keywords(self):
        self.assertEqual(uppercase_keywords('if a then'), 'IF a THEN')

    def test_strings_untouched(self):
        self.assertEqual(
            uppercase_keywords('msg = "if then"'), 'msg = "if then"',
        )

    def test_prefixed_names_untouched(self):
        self.assertEqual(
            uppercase_keywords('x = #end + p.loop'), 'x = #end + p.loop',
        )


class TestFormatText(unittest.TestCase):
    def test_indent_blocks(self):
        text = (
            'def main()\n'
            'if a then\n'
            'x = 1\n'
            'endif\n'
            'end'
        )
        self.assertEqual(
            format_text(text),
            'DEF main()\n'
            '  IF a THEN\n'
            '    x = 1\n'
            '  ENDIF\n'
            'END',
        )

    def test_else_dedents(self):
        text = 'IF a THEN\nx = 1\nELSE\ny = 2\nENDIF'
        self.assertEqual(
            format_text(text), 'IF a THEN\n  x = 1\nELSE\n  y = 2\nENDIF',
        )

    def test_idempotent(self):
        text = (
            'DEF main()\n'
            '  FOR i = 1 TO 3\n'
            '    WAIT SEC 0.5\n'
            '  ENDFOR\n'
            'END'
        )
        self.assertIsNone(format_text(text))
        self.assertEqual(format_document(text), [])

    def test_second_pass_produces_no_edits(self):
        first = format_text('def a()\nloop\nhalt\nendloop\nend')
        self.assertIsNotNone(first)
        self.assertEqual(format_document(first), [])

    def test_single_line_if(self):
        text = 'IF a THEN b = 1 ENDIF\nc = 2'
        self.assertIsNone(format_text(text))

    def test_comments_kept(self):
        self.assertEqual(
            format_text('def a() ; if then\nend'),
            'DEF a() ; if then\nEND',
        )

    def test_tabs(self):
        self.assertEqual(
            format_text('DEF a()\nx = 1\nEND', insert_spaces=False),
            'DEF a()\n\tx = 1\nEND',
        )

    def test_tab_size(self):
        self.assertEqual(
            format_text('DEF a()\nx = 1\nEND', tab_size=4),
            'DEF a()\n    x = 1\nEND',
        )

    def test_stray_closer_does_not_go_negative(self):
        self.assertIsNone(format_text('ENDIF\nx = 1'))

    def test_crlf_only_difference(self):
        self.assertIsNone(format_text('DEF a()\r\nEND'))

    def test_separate_before_blocks(self):
        self.assertEqual(
            format_text(
                'x = 1\nFOR i = 1 TO 2\nENDFOR', separate_before_blocks=True,
            ),
            'x = 1\n\nFOR i = 1 TO 2\nENDFOR',
        )

    def test_separate_after_blocks(self):
        self.assertEqual(
            format_text(
                'FOR i = 1 TO 2\nENDFOR\nx = 1', separate_after_blocks=True,
            ),
            'FOR i = 1 TO 2\nENDFOR\n\nx = 1',
        )


class TestFormatDocument(unittest.TestCase):
    def test_whole_document_edit(self):
        edits = format_document('def a()\nend')
        self.assertEqual(len(edits), 1)
        r = edits[0].range
        self.assertEqual(
            (r.start_line, r.start_col, r.end_line, r.end_col), (0, 0, 1, 3),
        )
        self.assertEqual(edits[0].new_text, 'DEF a()\nEND')


if __name__ == '__main__':
    unittest.main()
