"""Shared test fixtures for the caption_engine test suite.

WHY: Most test modules need the same small, hand-checked transcript: a few
segments with contiguous words, a gap between segments, and a one-word
segment. Centralizing it here keeps expected timings consistent across
timing, history, sync, server, and CLI tests.

HOW: SAMPLE_PAYLOAD is the wire (camelCase) form. Fixtures hand out fresh
copies of the payload, the parsed Transcript, and a long generated
transcript for search-path tests.

RULES:
- Segment layout: seg-1 [0.0, 2.0) four words, gap, seg-2 [2.5, 4.0)
  three words, gap, seg-3 [5.0, 6.0) one word
- Every fixture returns a new object; tests may mutate freely
"""

import copy
from typing import Any, Dict

import pytest

from caption_engine.core.ir import Segment, Transcript, Word


SAMPLE_PAYLOAD: Dict[str, Any] = {
    "videoId": "vid-1",
    "language": "en",
    "segments": [
        {
            "id": "seg-1",
            "text": "Hello brave new world",
            "start": 0.0,
            "end": 2.0,
            "words": [
                {"id": "w1", "text": "Hello", "start": 0.0, "end": 0.5, "confidence": 0.98},
                {"id": "w2", "text": "brave", "start": 0.5, "end": 1.0, "confidence": 0.91},
                {"id": "w3", "text": "new", "start": 1.0, "end": 1.5},
                {"id": "w4", "text": "world", "start": 1.5, "end": 2.0},
            ],
        },
        {
            "id": "seg-2",
            "text": "How are you",
            "start": 2.5,
            "end": 4.0,
            "words": [
                {"id": "w5", "text": "How", "start": 2.5, "end": 3.0},
                {"id": "w6", "text": "are", "start": 3.0, "end": 3.5},
                {"id": "w7", "text": "you", "start": 3.5, "end": 4.0},
            ],
        },
        {
            "id": "seg-3",
            "text": "Goodbye",
            "start": 5.0,
            "end": 6.0,
            "words": [
                {"id": "w8", "text": "Goodbye", "start": 5.0, "end": 6.0},
            ],
        },
    ],
}


def build_long_transcript(segment_count: int, words_per_segment: int = 4) -> Transcript:
    """Generated transcript: one segment per second, 0.2 s gap after each."""
    segments = []
    word_len = 0.8 / words_per_segment
    for s in range(segment_count):
        start = float(s)
        words = [
            Word(
                id="s{}-w{}".format(s, w),
                text="w{}".format(w),
                start=start + w * word_len,
                end=start + (w + 1) * word_len,
            )
            for w in range(words_per_segment)
        ]
        segments.append(Segment(
            id="s{}".format(s),
            text=" ".join(w.text for w in words),
            start=words[0].start,
            end=words[-1].end,
            words=words,
        ))
    return Transcript(segments=segments, video_id="long")


@pytest.fixture
def sample_payload():
    """Wire-format transcript dict (fresh deep copy)."""
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_transcript():
    """Parsed Transcript built from SAMPLE_PAYLOAD."""
    return Transcript.from_dict(copy.deepcopy(SAMPLE_PAYLOAD))


@pytest.fixture
def long_transcript():
    """200 segments of four words each, for binary-search paths."""
    return build_long_transcript(200)
