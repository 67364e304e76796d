"""Keyed debouncer on the asyncio event loop.

WHY: A burst of keystrokes in one caption should reach the live overlay
once, with the final text, after the operator pauses. Edits to different
segments must not delay each other.

HOW: One pending TimerHandle per key, scheduled with loop.call_later().
A new trigger for the same key cancels the previous handle and schedules
a fresh one carrying the newest arguments ("last timer wins").

RULES:
- trigger() must be called from inside a running event loop
- At most one pending timer per key
- The callback runs on the loop thread with (key, *args)
- flush() fires pending callbacks immediately; cancel() drops them
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Hashable, List, Tuple

logger = logging.getLogger(__name__)


class KeyedDebouncer:
    def __init__(self, delay_s: float, callback: Callable[..., Any]) -> None:
        self.delay_s = delay_s
        self._callback = callback
        self._handles: Dict[Hashable, asyncio.TimerHandle] = {}
        self._args: Dict[Hashable, Tuple[Any, ...]] = {}

    def trigger(self, key: Hashable, *args: Any) -> None:
        loop = asyncio.get_running_loop()
        previous = self._handles.pop(key, None)
        if previous is not None:
            previous.cancel()
        self._args[key] = args
        self._handles[key] = loop.call_later(self.delay_s, self._fire, key)

    def _fire(self, key: Hashable) -> None:
        self._handles.pop(key, None)
        args = self._args.pop(key, ())
        logger.debug("Debounced callback fired for %r", key)
        self._callback(key, *args)

    def pending(self, key: Hashable | None = None) -> bool:
        if key is None:
            return bool(self._handles)
        return key in self._handles

    def pending_keys(self) -> List[Hashable]:
        return list(self._handles)

    def cancel(self, key: Hashable) -> None:
        handle = self._handles.pop(key, None)
        self._args.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for key in list(self._handles):
            self.cancel(key)

    def flush(self, key: Hashable | None = None) -> None:
        """Run pending callbacks now instead of waiting out the delay."""
        keys = [key] if key is not None else list(self._handles)
        for k in keys:
            handle = self._handles.get(k)
            if handle is None:
                continue
            handle.cancel()
            self._fire(k)
