"""Timing index: which segment or word is active at a playback instant.

WHY: The playback clock ticks every animation frame (~60 Hz) and the
transcript may hold thousands of words. Finding the active item must be
O(log n) so the preview never falls behind the video.

HOW: find_active() binary-searches any sequence of objects exposing
``start``/``end`` (Word, Segment) for the last item whose start is <= t,
then checks t < end. Short sequences are scanned linearly. TimingIndex
caches the start times of a segment list so repeated per-frame lookups
use bisect directly; locate() resolves both the active segment and its
active word in one call.

RULES:
- Intervals are half-open: start <= t < end. An instant on a boundary
  belongs to the item starting there, never to the one just ended
- Items must be sorted by start and non-overlapping
- None means "no caption visible" (gap, before first, after last); it is
  not an error
- Segments with is_edited=True never report an active word (their words
  are stale relative to the text)
- current time is always a parameter; nothing here stores it
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import List, Optional, Sequence

from caption_engine.config import LINEAR_SCAN_THRESHOLD
from caption_engine.core.ir import Segment, Transcript, Word


def find_active_index(items: Sequence, t: float) -> int:
    """Return the index of the item with start <= t < end, or -1.

    HOW: Below LINEAR_SCAN_THRESHOLD items a plain scan is cheaper than
    the search bookkeeping; above it, a binary search for the rightmost
    item whose start is <= t.
    """
    n = len(items)
    if n == 0:
        return -1

    if n <= LINEAR_SCAN_THRESHOLD:
        for i, item in enumerate(items):
            if item.start <= t < item.end:
                return i
        return -1

    lo, hi = 0, n
    while lo < hi:
        mid = (lo + hi) // 2
        if items[mid].start <= t:
            lo = mid + 1
        else:
            hi = mid
    idx = lo - 1
    if idx >= 0 and t < items[idx].end:
        return idx
    return -1


def find_active(items: Sequence, t: float):
    """Return the item with start <= t < end, or None."""
    idx = find_active_index(items, t)
    return items[idx] if idx >= 0 else None


def find_active_word(segment: Segment, t: float) -> Word | None:
    """Active word inside a segment, or None when the words are stale."""
    if segment.is_edited:
        return None
    return find_active(segment.words, t)


@dataclass
class ActiveCaption:
    """Result of locating the playhead in a transcript.

    RULES:
    - word/word_index are None when between words or the segment is edited
    """

    segment: Segment
    segment_index: int
    word: Optional[Word] = None
    word_index: Optional[int] = None


class TimingIndex:
    """Cached start-time index over a transcript's segments.

    WHY: find_active() reads ``start`` through attribute access on every
    probe. For the per-frame hot path a flat list of floats searched with
    bisect is tighter, and it only has to be rebuilt when an edit moves a
    segment bound.

    HOW: Stores the segment list and their start times at construction.
    The owner rebuilds the index after any mutation (EditSession does this
    by comparing history revisions).

    RULES:
    - The index is a snapshot; it does not observe later mutations
    """

    def __init__(self, segments: List[Segment]) -> None:
        self._segments = segments
        self._starts = [s.start for s in segments]

    def __len__(self) -> int:
        return len(self._segments)

    def segment_index_at(self, t: float) -> int:
        idx = bisect_right(self._starts, t) - 1
        if idx >= 0 and t < self._segments[idx].end:
            return idx
        return -1

    def locate(self, t: float) -> ActiveCaption | None:
        seg_idx = self.segment_index_at(t)
        if seg_idx < 0:
            return None
        segment = self._segments[seg_idx]
        if segment.is_edited:
            return ActiveCaption(segment=segment, segment_index=seg_idx)
        word_idx = find_active_index(segment.words, t)
        if word_idx < 0:
            return ActiveCaption(segment=segment, segment_index=seg_idx)
        return ActiveCaption(
            segment=segment,
            segment_index=seg_idx,
            word=segment.words[word_idx],
            word_index=word_idx,
        )


def locate(transcript: Transcript, t: float) -> ActiveCaption | None:
    """One-off lookup of the active segment and word at ``t``."""
    return TimingIndex(transcript.segments).locate(t)
