"""Editing session: one loaded transcript and everything wired around it.

WHY: The editor view needs a single object to talk to: load the
transcript, apply edits, undo/redo, save, reset, answer "what is on screen
at t", and turn clicks on words into seeks. The pieces (history, timing
index, coordinator, animation) are independent; the session owns their
lifetimes and keeps them consistent.

HOW: load() fetches the authoritative transcript through TranscriptClient
and builds an EditHistory plus a SyncCoordinator over it. Edit methods are
synchronous and hand each resulting operation to the coordinator for live
propagation. active_at() keeps a TimingIndex and rebuilds it whenever the
history revision moves.

RULES:
- Nothing but load()/retry_load() may create the history
- A failed load leaves no transcript behind (load_error is set instead)
- Edit methods never await the network
- Seek helpers only emit on_seek; the playback clock belongs to the caller
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from caption_engine.api.client import (
    TranscriptAPIError,
    TranscriptClient,
    TranscriptNotFoundError,
)
from caption_engine.config import CAPTION_EDIT_DEBOUNCE_S, MAX_HISTORY
from caption_engine.core.animation import RenderedWord, compute_caption_frame
from caption_engine.core.history import (
    EditHistory,
    EditOperation,
    EditTarget,
    TextEdit,
    UnknownSegmentError,
    WordTimingEdit,
)
from caption_engine.core.ir import Transcript
from caption_engine.core.style import CaptionStyle
from caption_engine.core.timing import ActiveCaption, TimingIndex
from caption_engine.sync.coordinator import PersistenceFailure, SyncCoordinator

logger = logging.getLogger(__name__)


class TranscriptLoadError(Exception):
    """The transcript could not be fetched; the editor shows an error state.

    RULES:
    - not_found is True when the service answered 404
    - Recoverable through EditSession.retry_load()
    """

    def __init__(self, video_id: str, cause: Exception, not_found: bool = False) -> None:
        self.video_id = video_id
        self.cause = cause
        self.not_found = not_found
        reason = "not found" if not_found else str(cause)
        super().__init__("Could not load transcript for {}: {}".format(video_id, reason))


class EditSession:
    def __init__(
        self,
        client: TranscriptClient,
        video_id: str,
        on_caption_edit: Optional[Callable[[str, str], None]] = None,
        on_seek: Optional[Callable[[float], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        max_history: int = MAX_HISTORY,
        debounce_s: float = CAPTION_EDIT_DEBOUNCE_S,
    ) -> None:
        self.video_id = video_id
        self._client = client
        self._on_caption_edit = on_caption_edit
        self._on_seek = on_seek
        self._on_error = on_error
        self._max_history = max_history
        self._debounce_s = debounce_s

        self.history: Optional[EditHistory] = None
        self.coordinator: Optional[SyncCoordinator] = None
        self.load_error: Optional[TranscriptLoadError] = None

        self._index: Optional[TimingIndex] = None
        self._index_key: Optional[tuple] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self.history is not None

    @property
    def transcript(self) -> Transcript:
        return self._require().transcript

    async def load(self) -> Transcript:
        """Fetch the transcript and start a fresh history.

        RULES:
        - Raises TranscriptLoadError; the session is then empty
        """
        self._teardown()
        try:
            transcript = await self._client.get_transcript(self.video_id)
        except TranscriptNotFoundError as exc:
            self.load_error = TranscriptLoadError(self.video_id, exc, not_found=True)
            logger.warning("Transcript for %s not found", self.video_id)
            raise self.load_error from exc
        except TranscriptAPIError as exc:
            self.load_error = TranscriptLoadError(self.video_id, exc)
            logger.exception("Failed to load transcript for %s", self.video_id)
            raise self.load_error from exc

        self.load_error = None
        self.history = EditHistory(transcript, max_history=self._max_history)
        self.coordinator = SyncCoordinator(
            self.history,
            self._client,
            self.video_id,
            on_caption_edit=self._on_caption_edit,
            on_error=self._report,
            debounce_s=self._debounce_s,
        )
        logger.info(
            "Loaded transcript for %s (%d segments)",
            self.video_id, len(transcript.segments),
        )
        return self.history.transcript

    async def retry_load(self) -> Transcript:
        return await self.load()

    def _teardown(self) -> None:
        if self.coordinator is not None:
            self.coordinator.close()
        self.history = None
        self.coordinator = None
        self._index = None
        self._index_key = None

    def close(self) -> None:
        self._teardown()

    def _require(self) -> EditHistory:
        if self.history is None:
            raise RuntimeError("No transcript loaded for {}".format(self.video_id))
        return self.history

    def _report(self, error: Exception) -> None:
        if self._on_error is not None:
            self._on_error(error)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _record(self, op: Optional[EditOperation]) -> Optional[EditOperation]:
        if op is not None and self.coordinator is not None:
            self.coordinator.record(op)
        return op

    def edit_text(self, segment_id: str, text: str) -> Optional[TextEdit]:
        return self._record(self._require().apply_text(segment_id, text))

    def edit_word_timing(
        self,
        segment_id: str,
        word_index: int,
        start: float,
        end: float,
    ) -> Optional[WordTimingEdit]:
        """Move a word; InvalidTimingError propagates to the caller untouched."""
        return self._record(self._require().apply_word_timing(segment_id, word_index, start, end))

    def undo(self) -> Optional[EditOperation]:
        return self._record(self._require().undo())

    def redo(self) -> Optional[EditOperation]:
        return self._record(self._require().redo())

    @property
    def can_undo(self) -> bool:
        return self.history is not None and self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history is not None and self.history.can_redo

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def is_dirty(self, target: Optional[EditTarget] = None) -> bool:
        if self.coordinator is None:
            return False
        return self.coordinator.is_dirty(target)

    def is_saving(self, target: Optional[EditTarget] = None) -> bool:
        if self.coordinator is None:
            return False
        return self.coordinator.is_saving(target)

    async def save(self, target: EditTarget) -> bool:
        self._require()
        return await self.coordinator.save(target)

    async def save_all(self) -> bool:
        """Explicit save (or blur): flush live updates and persist every dirty target."""
        self._require()
        self.coordinator.flush()
        return await self.coordinator.save_all()

    @property
    def last_error(self) -> Optional[PersistenceFailure]:
        if self.coordinator is None:
            return None
        return self.coordinator.last_error

    async def reset(self, hard: bool = False) -> bool:
        """Discard history; see EditHistory.reset() for the two modes.

        HOW: A hard reset refetches the authoritative transcript first. If
        that fetch fails, nothing local changes, on_error is notified, and
        False is returned. Pending live updates are dropped, and every segment
        whose text the reset changed is sent to on_caption_edit again.
        """
        history = self._require()
        fresh: Optional[Transcript] = None
        if hard:
            try:
                fresh = await self._client.get_transcript(self.video_id)
            except TranscriptAPIError as exc:
                error = TranscriptLoadError(
                    self.video_id, exc, not_found=isinstance(exc, TranscriptNotFoundError)
                )
                logger.warning("Hard reset of %s failed: %s", self.video_id, error)
                self._report(error)
                return False

        before = {seg.id: seg.text for seg in history.transcript.segments}
        self.coordinator.close()
        history.reset(hard=hard, transcript=fresh)
        for seg in history.transcript.segments:
            if before.get(seg.id) != seg.text:
                self.coordinator.propagate_text(seg.id, seg.text)
        logger.info("Reset transcript for %s (hard=%s)", self.video_id, hard)
        return True

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def _timing_index(self) -> TimingIndex:
        history = self._require()
        key = (id(history.transcript), history.revision)
        if self._index is None or self._index_key != key:
            self._index = TimingIndex(history.transcript.segments)
            self._index_key = key
        return self._index

    def active_at(self, current_time: float) -> Optional[ActiveCaption]:
        return self._timing_index().locate(current_time)

    def caption_frame(self, current_time: float, style: CaptionStyle) -> List[RenderedWord]:
        """Drawable units of the caption on screen at ``current_time``."""
        active = self.active_at(current_time)
        if active is None:
            return []
        return compute_caption_frame(active.segment, style, current_time)

    def _seek(self, timestamp: float) -> float:
        timestamp = max(0.0, timestamp)
        if self._on_seek is not None:
            self._on_seek(timestamp)
        return timestamp

    def seek_to_time(self, timestamp: float) -> float:
        return self._seek(timestamp)

    def seek_to_segment(self, segment_id: str) -> float:
        segment = self._require().transcript.segment_by_id(segment_id)
        if segment is None:
            raise UnknownSegmentError("Segment not found: {}".format(segment_id))
        return self._seek(segment.start)

    def seek_to_word(self, segment_id: str, word_index: int) -> float:
        segment = self._require().transcript.segment_by_id(segment_id)
        if segment is None:
            raise UnknownSegmentError("Segment not found: {}".format(segment_id))
        if word_index < 0 or word_index >= len(segment.words):
            raise IndexError(
                "Word index {} out of range for segment {}".format(word_index, segment_id)
            )
        return self._seek(segment.words[word_index].start)
