"""Edit history engine: reversible text and word-timing edits.

WHY: Operators fix transcripts by retyping segment text and nudging word
timestamps, and they expect Ctrl+Z / Ctrl+Shift+Z to walk back and forth
through those fixes regardless of whether the server has seen them yet.
Deep-copying the whole transcript per keystroke does not scale to long
transcripts, so each edit is stored as a small operation that knows how
to invert itself.

HOW: Two operation types (TextEdit, WordTimingEdit) carry both old and new
values. EditHistory owns the live transcript, applies operations, and keeps
an undo deque and a redo list. A separate baseline copy records the last
state confirmed by the server; the sync layer advances it target by target
via mark_synced_*() and never touches the live transcript.

RULES:
- Every applied edit pushes onto undo and clears redo
- undo()/redo() process exactly one operation per call; no-op when empty
- Invalid timing raises InvalidTimingError before any mutation or push
- Edits that change nothing push nothing and return None
- A text edit sets is_edited; from then on segment bounds are frozen
- Undo depth is capped at MAX_HISTORY (oldest entries dropped)
- reset() discards both stacks
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Union

from caption_engine.config import MAX_HISTORY
from caption_engine.core.ir import Segment, Transcript

logger = logging.getLogger(__name__)


class InvalidTimingError(ValueError):
    """Raised when a word timing edit would break ordering or bounds.

    RULES:
    - Raised synchronously, before the transcript is touched
    - Never retried; the caller surfaces the message to the operator
    """


class UnknownSegmentError(LookupError):
    """Raised when an edit targets a segment id not in the transcript."""


# ---------------------------------------------------------------------------
# Targets and operations
# ---------------------------------------------------------------------------

TEXT = "text"
TIMING = "timing"


@dataclass(frozen=True)
class EditTarget:
    """A persistable unit: one segment's text or one word's timing.

    WHY: Debouncing, dirty tracking, and save serialization are all keyed
    per target so that edits to different segments never block each other.
    """

    kind: str
    segment_id: str
    word_index: Optional[int] = None

    @classmethod
    def text(cls, segment_id: str) -> EditTarget:
        return cls(TEXT, segment_id)

    @classmethod
    def timing(cls, segment_id: str, word_index: int) -> EditTarget:
        return cls(TIMING, segment_id, word_index)


@dataclass(frozen=True)
class TextEdit:
    segment_id: str
    old_text: str
    new_text: str
    old_is_edited: bool = False

    @property
    def target(self) -> EditTarget:
        return EditTarget.text(self.segment_id)


@dataclass(frozen=True)
class WordTimingEdit:
    """Timing change for one word.

    RULES:
    - old_segment_start/end capture the segment bounds before the edit so
      undo restores them exactly, even when the service padded them
    """

    segment_id: str
    word_index: int
    old_start: float
    old_end: float
    new_start: float
    new_end: float
    old_segment_start: float
    old_segment_end: float

    @property
    def target(self) -> EditTarget:
        return EditTarget.timing(self.segment_id, self.word_index)


EditOperation = Union[TextEdit, WordTimingEdit]


def check_word_timing(segment: Segment, word_index: int, start: float, end: float) -> None:
    """Validate a proposed [start, end) for a word of ``segment``.

    RULES:
    - word_index must exist
    - 0 <= start < end
    - start >= previous word's end, end <= next word's start
    - start >= segment.start and end <= segment.end
    - Raises InvalidTimingError describing the first violated rule
    """
    if word_index < 0 or word_index >= len(segment.words):
        raise InvalidTimingError(
            "Word index {} out of range for segment {} ({} words)".format(
                word_index, segment.id, len(segment.words)
            )
        )
    if start < 0:
        raise InvalidTimingError("Start time must not be negative")
    if start >= end:
        raise InvalidTimingError("Start time must be less than end time")

    if word_index > 0:
        prev = segment.words[word_index - 1]
        if start < prev.end:
            raise InvalidTimingError(
                "Start {:.3f} overlaps previous word ending at {:.3f}".format(start, prev.end)
            )
    if word_index + 1 < len(segment.words):
        nxt = segment.words[word_index + 1]
        if end > nxt.start:
            raise InvalidTimingError(
                "End {:.3f} overlaps next word starting at {:.3f}".format(end, nxt.start)
            )

    if start < segment.start or end > segment.end:
        raise InvalidTimingError(
            "Time must be between {:.3f} and {:.3f}".format(segment.start, segment.end)
        )


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class EditHistory:
    """Owner of the live transcript and its undo/redo stacks.

    HOW: The constructor copies the loaded transcript twice: once as the
    live, editable transcript and once as the last-synced baseline.
    ``revision`` increments on every mutation of the live transcript so
    caches (timing index, rendered rows) can tell when to rebuild.

    RULES:
    - transcript is the only live copy; callers must not mutate it directly
    - baseline changes only through mark_synced_*() and reset()
    """

    def __init__(self, transcript: Transcript, max_history: int = MAX_HISTORY) -> None:
        self._transcript = transcript.copy()
        self._baseline = transcript.copy()
        self._undo: Deque[EditOperation] = deque(maxlen=max_history)
        self._redo: List[EditOperation] = []
        self.revision = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def baseline(self) -> Transcript:
        return self._baseline

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def _segment(self, segment_id: str) -> Segment:
        segment = self._transcript.segment_by_id(segment_id)
        if segment is None:
            raise UnknownSegmentError("Segment not found: {}".format(segment_id))
        return segment

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def apply_text(self, segment_id: str, new_text: str) -> TextEdit | None:
        """Replace a segment's text and mark its words stale."""
        segment = self._segment(segment_id)
        if segment.text == new_text:
            return None

        op = TextEdit(
            segment_id=segment_id,
            old_text=segment.text,
            new_text=new_text,
            old_is_edited=segment.is_edited,
        )
        self._apply(op)
        self._push(op)
        return op

    def apply_word_timing(
        self,
        segment_id: str,
        word_index: int,
        new_start: float,
        new_end: float,
    ) -> WordTimingEdit | None:
        """Move one word's interval; raises InvalidTimingError when invalid."""
        segment = self._segment(segment_id)
        check_word_timing(segment, word_index, new_start, new_end)

        word = segment.words[word_index]
        if word.start == new_start and word.end == new_end:
            return None

        op = WordTimingEdit(
            segment_id=segment_id,
            word_index=word_index,
            old_start=word.start,
            old_end=word.end,
            new_start=new_start,
            new_end=new_end,
            old_segment_start=segment.start,
            old_segment_end=segment.end,
        )
        self._apply(op)
        self._push(op)
        return op

    def undo(self) -> EditOperation | None:
        if not self._undo:
            return None
        op = self._undo.pop()
        self._revert(op)
        self._redo.append(op)
        logger.debug("Undo %s on segment %s", type(op).__name__, op.segment_id)
        return op

    def redo(self) -> EditOperation | None:
        if not self._redo:
            return None
        op = self._redo.pop()
        self._apply(op)
        self._undo.append(op)
        logger.debug("Redo %s on segment %s", type(op).__name__, op.segment_id)
        return op

    def _push(self, op: EditOperation) -> None:
        self._undo.append(op)
        self._redo.clear()
        logger.debug("Applied %s on segment %s", type(op).__name__, op.segment_id)

    def _apply(self, op: EditOperation) -> None:
        segment = self._segment(op.segment_id)
        if isinstance(op, TextEdit):
            segment.text = op.new_text
            segment.is_edited = True
        else:
            word = segment.words[op.word_index]
            word.start = op.new_start
            word.end = op.new_end
            segment.recompute_bounds()
        self.revision += 1

    def _revert(self, op: EditOperation) -> None:
        segment = self._segment(op.segment_id)
        if isinstance(op, TextEdit):
            segment.text = op.old_text
            segment.is_edited = op.old_is_edited
        else:
            word = segment.words[op.word_index]
            word.start = op.old_start
            word.end = op.old_end
            segment.start = op.old_segment_start
            segment.end = op.old_segment_end
        self.revision += 1

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self, hard: bool = False, transcript: Transcript | None = None) -> None:
        """Discard history and roll the live transcript back.

        HOW:
        - hard=False: word timings and segment bounds revert to the
          baseline; edited text and is_edited flags are kept
        - hard=True: the live transcript becomes a copy of ``transcript``
          (the freshly fetched authoritative copy, which also becomes the
          new baseline) or of the current baseline when none is given

        RULES:
        - Both stacks are cleared in either mode
        """
        if hard:
            if transcript is not None:
                self._baseline = transcript.copy()
            self._transcript = self._baseline.copy()
        else:
            for segment in self._transcript.segments:
                base = self._baseline.segment_by_id(segment.id)
                if base is None:
                    continue
                if len(base.words) == len(segment.words):
                    for word, base_word in zip(segment.words, base.words):
                        word.start = base_word.start
                        word.end = base_word.end
                segment.start = base.start
                segment.end = base.end

        self._undo.clear()
        self._redo.clear()
        self.revision += 1
        logger.debug("History reset (hard=%s)", hard)

    # ------------------------------------------------------------------
    # Baseline / dirty tracking
    # ------------------------------------------------------------------

    def mark_synced_text(self, segment_id: str, text: str) -> None:
        """Record that the server now holds ``text`` for this segment."""
        base = self._baseline.segment_by_id(segment_id)
        if base is None:
            return
        base.text = text
        base.is_edited = True

    def mark_synced_timing(
        self,
        segment_id: str,
        word_index: int,
        start: float,
        end: float,
    ) -> None:
        """Record that the server now holds this word timing."""
        base = self._baseline.segment_by_id(segment_id)
        if base is None or word_index >= len(base.words):
            return
        base.words[word_index].start = start
        base.words[word_index].end = end
        base.recompute_bounds()

    def is_target_dirty(self, target: EditTarget) -> bool:
        """Whether the live value of ``target`` differs from the baseline."""
        live = self._transcript.segment_by_id(target.segment_id)
        base = self._baseline.segment_by_id(target.segment_id)
        if live is None:
            return False
        if base is None:
            return True
        if target.kind == TEXT:
            return live.text != base.text
        if target.word_index >= len(live.words):
            return False
        if target.word_index >= len(base.words):
            return True
        lw = live.words[target.word_index]
        bw = base.words[target.word_index]
        return lw.start != bw.start or lw.end != bw.end

    def dirty_targets(self) -> List[EditTarget]:
        """Every text and word-timing target not yet confirmed by the server."""
        targets: List[EditTarget] = []
        for segment in self._transcript.segments:
            text_target = EditTarget.text(segment.id)
            if self.is_target_dirty(text_target):
                targets.append(text_target)
            for i in range(len(segment.words)):
                timing_target = EditTarget.timing(segment.id, i)
                if self.is_target_dirty(timing_target):
                    targets.append(timing_target)
        return targets

    @property
    def is_dirty(self) -> bool:
        return bool(self.dirty_targets())
