"""Thread-safe in-memory transcript store for the reference server.

WHY: The editing engine talks to a transcript service it does not own.
A small in-process implementation of that service lets the client,
coordinator, and session be exercised end to end, and doubles as a local
backend for demos. No persistence is needed.

HOW: Transcripts are kept in a dict keyed by video id. All access goes
through a threading.Lock. Reads and writes exchange deep copies so callers
never hold references into the store.

RULES:
- All public methods acquire self._lock
- get() returns None for unknown videos (no exceptions)
- update_*() raise TranscriptNotStoredError / UnknownSegmentError for
  unknown ids and InvalidTimingError for bad timings, before mutating
- A text update marks the segment is_edited; its bounds are then frozen
- A timing update re-derives segment bounds unless the segment is edited
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from caption_engine.core.history import UnknownSegmentError, check_word_timing
from caption_engine.core.ir import Segment, Transcript

logger = logging.getLogger(__name__)


class TranscriptNotStoredError(LookupError):
    """Raised when an update targets a video with no stored transcript."""


class TranscriptStore:
    def __init__(self) -> None:
        self._transcripts: Dict[str, Transcript] = {}
        self._lock = threading.Lock()

    def put(self, video_id: str, transcript: Transcript) -> Transcript:
        """Store (or replace) the transcript for ``video_id``."""
        stored = transcript.copy()
        stored.video_id = video_id
        with self._lock:
            self._transcripts[video_id] = stored
            logger.info(
                "Stored transcript for %s (%d segments)", video_id, len(stored.segments)
            )
            return stored.copy()

    def get(self, video_id: str) -> Optional[Transcript]:
        with self._lock:
            transcript = self._transcripts.get(video_id)
            return transcript.copy() if transcript is not None else None

    def delete(self, video_id: str) -> bool:
        with self._lock:
            return self._transcripts.pop(video_id, None) is not None

    def list_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._transcripts)

    def clear(self) -> None:
        with self._lock:
            self._transcripts.clear()

    def _segment(self, video_id: str, segment_id: str) -> Segment:
        transcript = self._transcripts.get(video_id)
        if transcript is None:
            raise TranscriptNotStoredError("Transcript not found: {}".format(video_id))
        segment = transcript.segment_by_id(segment_id)
        if segment is None:
            raise UnknownSegmentError("Segment not found: {}".format(segment_id))
        return segment

    def update_text(self, video_id: str, segment_id: str, text: str) -> Segment:
        with self._lock:
            segment = self._segment(video_id, segment_id)
            segment.text = text
            segment.is_edited = True
            logger.info("Updated text of segment %s in %s", segment_id, video_id)
            return Segment.from_dict(segment.to_dict())

    def update_word_timing(
        self,
        video_id: str,
        segment_id: str,
        word_index: int,
        start: float,
        end: float,
    ) -> Segment:
        with self._lock:
            segment = self._segment(video_id, segment_id)
            check_word_timing(segment, word_index, start, end)
            word = segment.words[word_index]
            word.start = start
            word.end = end
            segment.recompute_bounds()
            logger.info(
                "Updated timing of word %d in segment %s of %s",
                word_index, segment_id, video_id,
            )
            return Segment.from_dict(segment.to_dict())
