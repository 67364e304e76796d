"""Virtualized windowing and auto-scroll for long transcript lists.

WHY: A transcript with thousands of rows cannot be mounted in full without
the list stuttering on every playback tick. Only the rows in (or near) the
viewport are rendered. While playing, the list follows the active row, but
it must never fight an operator who is scrolling by hand.

HOW: compute_visible_range() turns scroll geometry into an inclusive index
range with overscan on both sides, assuming a fixed estimated row height.
AutoScroller is a small clock-driven controller: the view reports user
scroll events and the active row on every tick, and it answers with a
scroll target only when the active row changed, is off screen, the user
has been idle long enough, and the last auto-scroll is not too recent.

RULES:
- Windowing only applies above VIRTUALIZATION_THRESHOLD rows
- Returned ranges satisfy 0 <= start <= end < item_count; an empty list
  yields (0, -1)
- Overscan rows are added on both sides so fast scrolling shows no gap
- Auto-scroll is suspended for USER_SCROLL_IDLE_S after any user scroll
- Two auto-scrolls are at least AUTO_SCROLL_DEBOUNCE_S apart
- The clock is injected; tests pass a fake one
"""

from __future__ import annotations

import math
import time
from typing import Callable, Optional, Sequence, Tuple

from caption_engine.config import (
    AUTO_SCROLL_DEBOUNCE_S,
    ESTIMATED_ITEM_HEIGHT,
    OVERSCAN_COUNT,
    USER_SCROLL_IDLE_S,
    VIRTUALIZATION_THRESHOLD,
)
from caption_engine.core.timing import find_active_index


def should_virtualize(item_count: int, threshold: int = VIRTUALIZATION_THRESHOLD) -> bool:
    return item_count > threshold


def compute_visible_range(
    item_count: int,
    item_height_estimate: float,
    scroll_top: float,
    viewport_height: float,
    overscan: int = OVERSCAN_COUNT,
) -> Tuple[int, int]:
    """Inclusive (start, end) row indices to mount for the given viewport.

    HOW: start = floor(scroll_top / h) - overscan, end =
    ceil((scroll_top + viewport) / h) + overscan, both clamped to the list.
    A scroll position past the end (list shrank under the view) is clamped
    so the last rows are still returned.
    """
    if item_height_estimate <= 0:
        raise ValueError("item_height_estimate must be positive")
    if item_count <= 0:
        return 0, -1

    scroll_top = max(0.0, scroll_top)
    viewport_height = max(0.0, viewport_height)
    overscan = max(0, overscan)

    last = item_count - 1
    start = max(0, math.floor(scroll_top / item_height_estimate) - overscan)
    end = min(last, math.ceil((scroll_top + viewport_height) / item_height_estimate) + overscan)
    start = min(start, end)
    return start, end


def total_height(item_count: int, item_height_estimate: float) -> float:
    return item_count * item_height_estimate


def item_offset(index: int, item_height_estimate: float) -> float:
    return index * item_height_estimate


def is_item_in_view(
    index: int,
    item_height_estimate: float,
    scroll_top: float,
    viewport_height: float,
) -> bool:
    """Whether row ``index`` lies fully inside the visible pixel range."""
    top = item_offset(index, item_height_estimate)
    return scroll_top <= top <= scroll_top + viewport_height - item_height_estimate


def center_scroll_top(index: int, item_height_estimate: float, viewport_height: float) -> float:
    """Scroll offset that puts row ``index`` in the middle of the viewport."""
    top = item_offset(index, item_height_estimate)
    return max(0.0, top - viewport_height / 2 + item_height_estimate / 2)


def scroll_target_for_time(items: Sequence, t: float) -> int:
    """Row index to bring into view for timestamp ``t``, or -1."""
    return find_active_index(items, t)


class AutoScroller:
    """Decides when the transcript list should follow the active row.

    HOW: The view calls notify_user_scroll() on every user-initiated
    scroll event and on_active_change() on every playback tick. A float
    return value is the scroll offset to animate to (smoothly); None means
    leave the list where it is.

    RULES:
    - Disabled (enabled=False) never scrolls
    - The same active row is handled once; a suppressed attempt (user
      scrolling, debounce) is retried on later ticks
    - Programmatic scrolls must not be reported as user scrolls
    """

    def __init__(
        self,
        item_height: float = ESTIMATED_ITEM_HEIGHT,
        enabled: bool = True,
        debounce_s: float = AUTO_SCROLL_DEBOUNCE_S,
        user_idle_s: float = USER_SCROLL_IDLE_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.item_height = item_height
        self.enabled = enabled
        self._debounce_s = debounce_s
        self._user_idle_s = user_idle_s
        self._clock = clock
        self._last_user_scroll: Optional[float] = None
        self._last_auto_scroll: Optional[float] = None
        self._last_active: Optional[int] = None

    def notify_user_scroll(self) -> None:
        self._last_user_scroll = self._clock()

    @property
    def user_scrolling(self) -> bool:
        if self._last_user_scroll is None:
            return False
        return self._clock() - self._last_user_scroll < self._user_idle_s

    def on_active_change(
        self,
        active_index: Optional[int],
        scroll_top: float,
        viewport_height: float,
    ) -> Optional[float]:
        if not self.enabled or active_index is None or active_index < 0:
            return None
        if active_index == self._last_active:
            return None
        if self.user_scrolling:
            return None

        now = self._clock()
        if self._last_auto_scroll is not None and now - self._last_auto_scroll < self._debounce_s:
            return None

        self._last_active = active_index
        if is_item_in_view(active_index, self.item_height, scroll_top, viewport_height):
            return None

        self._last_auto_scroll = now
        return center_scroll_top(active_index, self.item_height, viewport_height)
