"""Tests for per-key debouncing."""

import unittest

from krl_lsp.debounce import Debouncer


class FakeHandle:
    def __init__(self, delay, callback, args):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def run(self):
        if not self.cancelled:
            self.callback(*self.args)


class FakeLoop:
    def __init__(self):
        self.handles = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(delay, callback, args)
        self.handles.append(handle)
        return handle


class TestDebouncer(unittest.TestCase):
    def setUp(self):
        self.calls = []
        self.loop = FakeLoop()
        self.debouncer = Debouncer(
            lambda key, *args: self.calls.append((key,) + args),
            delay=0.5,
            loop=self.loop,
        )

    def test_reschedule_resets_timer(self):
        self.debouncer.schedule('a')
        self.debouncer.schedule('a')
        first, second = self.loop.handles
        self.assertTrue(first.cancelled)
        self.assertEqual(second.delay, 0.5)
        self.assertEqual(self.debouncer.pending(), ['a'])
        first.run()
        second.run()
        self.assertEqual(self.calls, [('a',)])
        self.assertEqual(self.debouncer.pending(), [])

    def test_keys_are_independent(self):
        self.debouncer.schedule('a', 1)
        self.debouncer.schedule('b', 2)
        for handle in self.loop.handles:
            handle.run()
        self.assertEqual(self.calls, [('a', 1), ('b', 2)])

    def test_cancel(self):
        self.debouncer.schedule('a')
        self.debouncer.cancel('a')
        self.debouncer.cancel('missing')
        self.loop.handles[0].run()
        self.assertEqual(self.calls, [])

    def test_failures_are_logged(self):
        def fail(key):
            raise RuntimeError(key)

        debouncer = Debouncer(fail, loop=self.loop)
        debouncer.schedule('bad')
        with self.assertLogs('krl_lsp.debounce', level='ERROR'):
            self.loop.handles[0].run()
        self.assertEqual(debouncer.pending(), [])


if __name__ == '__main__':
    unittest.main()
