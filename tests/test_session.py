"""Tests for settings, locale handling and workspace session state."""

import os
import tempfile
import unittest

from krl_lsp.diagnostics import validate_duplicate_names
from krl_lsp.messages import get_locale, set_locale, t
from krl_lsp.session import Session, Settings


class TestSettings(unittest.TestCase):
    def tearDown(self):
        set_locale('en')

    def test_defaults(self):
        settings = Settings()
        self.assertTrue(settings.validate_non_ascii)
        self.assertFalse(settings.separate_before_blocks)
        self.assertFalse(settings.separate_after_blocks)
        self.assertEqual(settings.locale, 'en')

    def test_client_keys(self):
        settings = Settings()
        settings.update({
            'validateNonAscii': False,
            'separateBeforeBlocks': True,
            'separateAfterBlocks': None,
            'unknownKey': 1,
            'locale': 'tr-TR',
        })
        self.assertFalse(settings.validate_non_ascii)
        self.assertTrue(settings.separate_before_blocks)
        self.assertFalse(settings.separate_after_blocks)
        self.assertEqual(settings.locale, 'tr')
        self.assertEqual(get_locale(), 'tr')

    def test_snake_case_keys(self):
        settings = Settings()
        settings.update({'validation_delay': 0.1})
        self.assertEqual(settings.validation_delay, 0.1)

    def test_empty_update(self):
        settings = Settings()
        settings.update(None)
        self.assertEqual(settings, Settings())


class TestMessages(unittest.TestCase):
    def tearDown(self):
        set_locale('en')

    def test_placeholders(self):
        self.assertEqual(
            t('diag.unmatchedBlock', 'IF', 'ENDIF'),
            'Unmatched "IF", missing "ENDIF".',
        )

    def test_locale_selection(self):
        self.assertEqual(set_locale('tr-TR'), 'tr')
        self.assertEqual(set_locale('tr_TR'), 'tr')
        self.assertEqual(set_locale('fr'), 'en')
        self.assertEqual(set_locale(''), 'en')

    def test_missing_translation_falls_back_to_english(self):
        set_locale('tr')
        self.assertEqual(t('action.replaceWith', 'x'), "Change to 'x'")
        self.assertEqual(t('no.such.key'), 'no.such.key')

    def test_codes_do_not_depend_on_locale(self):
        text = 'DEF Foo()\nEND\nDEF Foo()\nEND'
        [english] = validate_duplicate_names(text)
        set_locale('tr')
        [turkish] = validate_duplicate_names(text)
        self.assertEqual(english.code, turkish.code)
        self.assertEqual(english.data, turkish.data)
        self.assertNotEqual(english.message, turkish.message)


class TestSession(unittest.TestCase):
    def setUp(self):
        self.session = Session()

    def test_root_change_clears_index(self):
        self.session.indexer.index_source('/a/x.src', 'DEF x()\nEND')
        self.session.workspace_ready = True
        self.session.root_cache.entries['/a'] = '/a'
        self.session.set_root('/b')
        self.assertEqual(self.session.index.by_file, {})
        self.assertEqual(self.session.root_cache.entries, {})
        self.assertFalse(self.session.workspace_ready)

    def test_same_root_keeps_index(self):
        self.session.set_root('/a')
        self.session.indexer.index_source('/a/x.src', 'DEF x()\nEND')
        self.session.set_root('/a')
        self.assertIn('/a/x.src', self.session.index.by_file)

    def test_ensure_root_discovers_project(self):
        with tempfile.TemporaryDirectory() as tmp:
            tmp = os.path.abspath(tmp)
            program = os.path.join(tmp, 'R1', 'Program')
            os.makedirs(program)
            path = os.path.join(program, 'main.src')
            with open(path, 'w', encoding='utf-8') as f:
                f.write('DEF main()\nEND')
            self.assertEqual(self.session.ensure_root(path), tmp)
            self.session.index_workspace()
            self.assertTrue(self.session.workspace_ready)
            self.assertIsNotNone(self.session.index.find_function('main'))

    def test_ensure_root_keeps_client_root(self):
        self.session.set_root('/client/root')
        self.assertEqual(
            self.session.ensure_root('/elsewhere/a.src'), '/client/root',
        )

    def test_index_without_root(self):
        self.session.index_workspace()
        self.assertTrue(self.session.workspace_ready)


if __name__ == '__main__':
    unittest.main()
