"""Sync coordinator: live caption propagation and per-target persistence.

WHY: Operators keep typing and nudging timings while earlier edits are
still on their way to the server. The coordinator lets them: local edits
never wait on the network, a failed save never loses an edit, and two
saves for the same segment text or word timing never race each other.

HOW: Two independent paths.

  1. Live propagation: every text change (edit, undo, redo) is pushed to
     on_caption_edit through a KeyedDebouncer keyed by segment id, so an
     external overlay sees one update per typing burst.
  2. Persistence: save(target) takes the target's asyncio.Lock, snapshots
     the live value, PATCHes it, and on success advances the history's
     baseline for that target only. The live transcript is read, never
     written.

Dirty state is not stored here. It is derived by comparing the live
transcript with the baseline, so a newer edit queued while a save is in
flight keeps the target dirty after that save succeeds.

RULES:
- Saves for the same target are serialized; different targets may overlap
- The payload is snapshotted after the lock is acquired
- A target that is no longer dirty when its turn comes is skipped
- On failure: on_error(PersistenceFailure), return False, keep everything
  local; no automatic retry
- Live propagation is independent from saving; it never calls the API
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from caption_engine.api.client import TranscriptAPIError, TranscriptClient
from caption_engine.config import CAPTION_EDIT_DEBOUNCE_S
from caption_engine.core.history import (
    TEXT,
    EditHistory,
    EditOperation,
    EditTarget,
    TextEdit,
)
from caption_engine.sync.debounce import KeyedDebouncer

logger = logging.getLogger(__name__)


class PersistenceFailure(Exception):
    """A save for one target failed; the local edit is kept and retryable.

    RULES:
    - target identifies what failed to persist
    - cause is the underlying TranscriptAPIError
    """

    def __init__(self, target: EditTarget, cause: Exception) -> None:
        self.target = target
        self.cause = cause
        super().__init__(
            "Failed to save {} of segment {}: {}".format(target.kind, target.segment_id, cause)
        )


class SyncCoordinator:
    def __init__(
        self,
        history: EditHistory,
        client: TranscriptClient,
        video_id: str,
        on_caption_edit: Optional[Callable[[str, str], None]] = None,
        on_error: Optional[Callable[[PersistenceFailure], None]] = None,
        debounce_s: float = CAPTION_EDIT_DEBOUNCE_S,
    ) -> None:
        self.history = history
        self.video_id = video_id
        self._client = client
        self._on_caption_edit = on_caption_edit
        self._on_error = on_error
        self._debouncer = KeyedDebouncer(debounce_s, self._emit_caption_edit)
        self._locks: Dict[EditTarget, asyncio.Lock] = {}
        self._in_flight: Dict[EditTarget, int] = {}
        self.last_error: Optional[PersistenceFailure] = None

    # ------------------------------------------------------------------
    # Live propagation
    # ------------------------------------------------------------------

    def record(self, op: EditOperation) -> None:
        """Hook called after an edit, undo, or redo changed the live transcript."""
        if not isinstance(op, TextEdit):
            return
        segment = self.history.transcript.segment_by_id(op.segment_id)
        if segment is not None:
            self.propagate_text(segment.id, segment.text)

    def propagate_text(self, segment_id: str, text: str) -> None:
        if self._on_caption_edit is None:
            return
        self._debouncer.trigger(segment_id, text)

    def _emit_caption_edit(self, segment_id: str, text: str) -> None:
        logger.debug("Live caption update for segment %s", segment_id)
        if self._on_caption_edit is not None:
            self._on_caption_edit(segment_id, text)

    def flush(self) -> None:
        """Deliver any pending live caption updates immediately."""
        self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.cancel_all()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def is_dirty(self, target: Optional[EditTarget] = None) -> bool:
        if target is None:
            return self.history.is_dirty
        return self.history.is_target_dirty(target)

    def is_saving(self, target: Optional[EditTarget] = None) -> bool:
        if target is None:
            return bool(self._in_flight)
        return target in self._in_flight

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _lock_for(self, target: EditTarget) -> asyncio.Lock:
        lock = self._locks.get(target)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[target] = lock
        return lock

    async def save(self, target: EditTarget) -> bool:
        """Persist the live value of ``target``. Returns False on failure."""
        self._in_flight[target] = self._in_flight.get(target, 0) + 1
        try:
            async with self._lock_for(target):
                return await self._save_locked(target)
        finally:
            remaining = self._in_flight[target] - 1
            if remaining:
                self._in_flight[target] = remaining
            else:
                del self._in_flight[target]

    async def _save_locked(self, target: EditTarget) -> bool:
        if not self.history.is_target_dirty(target):
            return True

        segment = self.history.transcript.segment_by_id(target.segment_id)
        try:
            if target.kind == TEXT:
                text = segment.text
                logger.info("Saving text of segment %s", target.segment_id)
                await self._client.update_segment_text(self.video_id, segment.id, text)
                self.history.mark_synced_text(segment.id, text)
            else:
                word = segment.words[target.word_index]
                start, end = word.start, word.end
                logger.info(
                    "Saving timing of word %d in segment %s",
                    target.word_index, target.segment_id,
                )
                await self._client.update_word_timing(
                    self.video_id, segment.id, target.word_index, start, end
                )
                self.history.mark_synced_timing(segment.id, target.word_index, start, end)
        except TranscriptAPIError as exc:
            failure = PersistenceFailure(target, exc)
            self.last_error = failure
            logger.warning("%s", failure, exc_info=True)
            if self._on_error is not None:
                self._on_error(failure)
            return False

        logger.info("Saved %s of segment %s", target.kind, target.segment_id)
        return True

    async def save_all(self) -> bool:
        """Persist every dirty target; True only if all of them succeeded."""
        targets: List[EditTarget] = self.history.dirty_targets()
        if not targets:
            return True
        results = await asyncio.gather(*(self.save(t) for t in targets))
        return all(results)
