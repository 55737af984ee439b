"""Tests for line-level text helpers."""

import unittest

from krl_lsp.text_utils import (
    code_part,
    comment_index,
    get_word_at_position,
    is_inside_string,
    levenshtein,
    line_starts,
    mask_strings,
    offset_to_position,
    split_lines,
    strip_comment,
)


class TestComments(unittest.TestCase):
    def test_comment_index(self):
        self.assertEqual(comment_index('a = 1 ; set a'), 6)
        self.assertEqual(comment_index('a = 1'), -1)

    def test_semicolon_inside_string(self):
        line = 'msg[] = "a;b" ; note'
        self.assertEqual(comment_index(line), 14)
        self.assertEqual(strip_comment(line), 'msg[] = "a;b"')

    def test_code_part_keeps_columns(self):
        self.assertEqual(code_part('  x = 1 ;c'), '  x = 1 ')


class TestStrings(unittest.TestCase):
    def test_is_inside_string(self):
        line = 'a = "abc" + b'
        self.assertTrue(is_inside_string(line, 6))
        self.assertFalse(is_inside_string(line, 12))

    def test_mask_strings_preserves_length(self):
        line = 'x = "hello" + \'H1F\''
        masked = mask_strings(line)
        self.assertEqual(len(masked), len(line))
        self.assertNotIn('hello', masked)
        self.assertNotIn('H1F', masked)
        self.assertTrue(masked.startswith('x = "'))


class TestLines(unittest.TestCase):
    def test_split_lines_mixed_newlines(self):
        self.assertEqual(split_lines('a\r\nb\nc\rd'), ['a', 'b', 'c', 'd'])

    def test_split_lines_trailing_newline(self):
        self.assertEqual(split_lines('a\n'), ['a', ''])

    def test_offset_to_position(self):
        text = 'ab\r\ncd\nef'
        starts = line_starts(text)
        self.assertEqual(starts, [0, 4, 7])
        self.assertEqual(offset_to_position(starts, 5), (1, 1))
        self.assertEqual(offset_to_position(starts, 7), (2, 0))


class TestWordAtPosition(unittest.TestCase):
    def test_word_in_middle(self):
        word = get_word_at_position('  counter = 1', 5)
        self.assertEqual(word.word, 'counter')
        self.assertEqual((word.start, word.end), (2, 9))
        self.assertFalse(word.is_member)

    def test_word_at_end(self):
        word = get_word_at_position('PTP home', 8)
        self.assertEqual(word.word, 'home')

    def test_member_access(self):
        word = get_word_at_position('pos.X = 1', 4)
        self.assertEqual(word.word, 'X')
        self.assertTrue(word.is_member)

    def test_no_word(self):
        self.assertIsNone(get_word_at_position('a = b', 2))
        self.assertIsNone(get_word_at_position('', 0))


class TestLevenshtein(unittest.TestCase):
    def test_distances(self):
        self.assertEqual(levenshtein('COUNTER', 'COUNTER'), 0)
        self.assertEqual(levenshtein('COUNTR', 'COUNTER'), 1)
        self.assertEqual(levenshtein('kitten', 'sitting'), 3)
        self.assertEqual(levenshtein('', 'abc'), 3)


if __name__ == '__main__':
    unittest.main()
