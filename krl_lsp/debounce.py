"""Per-key debouncing of validation runs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

log = logging.getLogger(__name__)

VALIDATION_DELAY = 0.75  # seconds of quiet before a document is validated


class Debouncer:
    """Run ``callback(key, *args)`` once edits for ``key`` stop.

    Each key has at most one pending timer; scheduling again resets it.
    Keys are independent of each other.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        delay: float = VALIDATION_DELAY,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self._loop = loop
        self._pending: dict[str, asyncio.TimerHandle] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_event_loop()
        return self._loop

    def schedule(self, key: str, *args: Any) -> None:
        self.cancel(key)
        self._pending[key] = self.loop.call_later(
            self.delay, self._fire, key, args,
        )

    def cancel(self, key: str) -> None:
        handle = self._pending.pop(key, None)
        if handle is not None:
            handle.cancel()

    def pending(self) -> list[str]:
        return list(self._pending)

    def _fire(self, key: str, args: tuple) -> None:
        self._pending.pop(key, None)
        try:
            self.callback(key, *args)
        except Exception:
            # Runs outside any request; keep the server alive
            log.exception('Debounced run for %s failed', key)
