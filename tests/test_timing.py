"""Tests for the timing index.

WHY: The active-item lookup runs every frame. Boundary instants must go
to the item that starts there, gaps must report nothing, and the linear
and binary-search paths must agree.

RULES:
- Half-open intervals: start <= t < end
- None / -1 for gaps, before the first item, and after the last
"""

from __future__ import annotations

from caption_engine.core.ir import Word
from caption_engine.core.timing import (
    TimingIndex,
    find_active,
    find_active_index,
    find_active_word,
    locate,
)


def _brute_force(items, t):
    for i, item in enumerate(items):
        if item.start <= t < item.end:
            return i
    return -1


class TestFindActive:
    """Single-level lookup over words or segments."""

    def test_inside_word(self, sample_transcript):
        words = sample_transcript.segments[0].words
        assert find_active(words, 0.7).text == "brave"

    def test_boundary_belongs_to_next_word(self, sample_transcript):
        words = sample_transcript.segments[0].words
        assert find_active(words, 0.5).text == "brave"
        assert find_active(words, 1.0).text == "new"

    def test_end_of_last_item_is_outside(self, sample_transcript):
        words = sample_transcript.segments[0].words
        assert find_active(words, 2.0) is None

    def test_gap_between_segments(self, sample_transcript):
        assert find_active(sample_transcript.segments, 2.2) is None
        assert find_active(sample_transcript.segments, 4.5) is None

    def test_before_and_after(self, sample_transcript):
        assert find_active(sample_transcript.segments, -1.0) is None
        assert find_active(sample_transcript.segments, 99.0) is None

    def test_empty_sequence(self):
        assert find_active([], 1.0) is None
        assert find_active_index([], 1.0) == -1

    def test_binary_search_matches_brute_force(self, long_transcript):
        segments = long_transcript.segments
        t = -0.5
        while t < 201.0:
            assert find_active_index(segments, t) == _brute_force(segments, t), t
            t += 0.05

    def test_binary_search_boundaries(self, long_transcript):
        segments = long_transcript.segments
        assert find_active_index(segments, 150.0) == 150
        assert find_active_index(segments, segments[150].end) == -1

    def test_gaps_between_words(self):
        words = [Word("a", "a", 0.0, 0.4), Word("b", "b", 0.6, 1.0)]
        assert find_active(words, 0.5) is None
        assert find_active(words, 0.6).id == "b"


class TestFindActiveWord:
    """Word lookup respects stale word arrays."""

    def test_returns_word(self, sample_transcript):
        assert find_active_word(sample_transcript.segments[1], 3.2).text == "are"

    def test_edited_segment_has_no_active_word(self, sample_transcript):
        segment = sample_transcript.segments[1]
        segment.is_edited = True
        assert find_active_word(segment, 3.2) is None


class TestTimingIndex:
    """Cached segment index with word resolution."""

    def test_locate_segment_and_word(self, sample_transcript):
        active = TimingIndex(sample_transcript.segments).locate(3.7)
        assert active.segment.id == "seg-2"
        assert active.segment_index == 1
        assert active.word.text == "you"
        assert active.word_index == 2

    def test_locate_in_gap(self, sample_transcript):
        assert TimingIndex(sample_transcript.segments).locate(4.2) is None

    def test_locate_edited_segment_reports_segment_only(self, sample_transcript):
        sample_transcript.segments[0].is_edited = True
        active = locate(sample_transcript, 0.7)
        assert active.segment.id == "seg-1"
        assert active.word is None
        assert active.word_index is None

    def test_segment_index_at_matches_find_active(self, long_transcript):
        index = TimingIndex(long_transcript.segments)
        assert len(index) == 200
        for t in (0.0, 0.79, 0.8, 0.95, 42.3, 199.5, 199.8, 250.0):
            assert index.segment_index_at(t) == _brute_force(long_transcript.segments, t)

    def test_index_is_a_snapshot(self, sample_transcript):
        index = TimingIndex(sample_transcript.segments)
        sample_transcript.segments[2].start = 4.5
        assert index.segment_index_at(4.7) == -1
        assert TimingIndex(sample_transcript.segments).segment_index_at(4.7) == 2
