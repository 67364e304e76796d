"""Tests for the sync coordinator.

WHY: Saving must never lose or revert a local edit, must keep a target
dirty until the value actually on screen is persisted, and must never
run two saves for the same target at once.

HOW: A small in-memory fake client records calls and can be slowed down
or made to fail. Everything runs under asyncio.run().

RULES:
- Failures: return False, on_error(PersistenceFailure), state kept
- Same target: serialized; different targets: may overlap
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

from caption_engine.api.client import TranscriptAPIError
from caption_engine.core.history import EditHistory, EditTarget
from caption_engine.sync.coordinator import PersistenceFailure, SyncCoordinator


class FakeClient:
    """Records PATCH calls; optional delay and failure injection."""

    def __init__(self, delay: float = 0.0, fail_with: Optional[Exception] = None) -> None:
        self.delay = delay
        self.fail_with = fail_with
        self.text_calls: List[Tuple[str, str]] = []
        self.timing_calls: List[Tuple[str, int, float, float]] = []
        self.active = 0
        self.max_active = 0

    async def _call(self) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_with is not None:
                raise self.fail_with
        finally:
            self.active -= 1

    async def update_segment_text(self, video_id, segment_id, text):
        self.text_calls.append((segment_id, text))
        await self._call()

    async def update_word_timing(self, video_id, segment_id, word_index, start, end):
        self.timing_calls.append((segment_id, word_index, start, end))
        await self._call()


def _coordinator(transcript, client, **kwargs) -> SyncCoordinator:
    return SyncCoordinator(EditHistory(transcript), client, "vid-1", **kwargs)


class TestSave:
    """Single-target persistence."""

    def test_text_save_clears_dirty(self, sample_transcript):
        client = FakeClient()
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_text("seg-1", "Hi")
        target = EditTarget.text("seg-1")
        assert coord.is_dirty(target)

        assert asyncio.run(coord.save(target)) is True
        assert client.text_calls == [("seg-1", "Hi")]
        assert not coord.is_dirty(target)
        assert not coord.is_dirty()

    def test_timing_save_clears_dirty(self, sample_transcript):
        client = FakeClient()
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_word_timing("seg-2", 1, 3.1, 3.4)
        target = EditTarget.timing("seg-2", 1)

        assert asyncio.run(coord.save(target)) is True
        assert client.timing_calls == [("seg-2", 1, 3.1, 3.4)]
        assert not coord.is_dirty()

    def test_clean_target_is_skipped(self, sample_transcript):
        client = FakeClient()
        coord = _coordinator(sample_transcript, client)
        assert asyncio.run(coord.save(EditTarget.text("seg-1"))) is True
        assert client.text_calls == []

    def test_save_never_touches_live_transcript(self, sample_transcript):
        client = FakeClient()
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_text("seg-1", "Hi")
        live_before = coord.history.transcript.to_dict()
        asyncio.run(coord.save(EditTarget.text("seg-1")))
        assert coord.history.transcript.to_dict() == live_before


class TestFailure:
    """Persistence failures keep local state."""

    def test_failure_keeps_edit_and_reports(self, sample_transcript):
        errors = []
        client = FakeClient(fail_with=TranscriptAPIError(500, "boom"))
        coord = _coordinator(sample_transcript, client, on_error=errors.append)
        coord.history.apply_text("seg-1", "Hi")
        target = EditTarget.text("seg-1")

        assert asyncio.run(coord.save(target)) is False
        assert coord.history.transcript.segment_by_id("seg-1").text == "Hi"
        assert coord.history.can_undo
        assert coord.is_dirty(target)
        assert not coord.is_saving(target)
        assert len(errors) == 1
        assert isinstance(errors[0], PersistenceFailure)
        assert errors[0].target == target
        assert errors[0].cause.status_code == 500
        assert coord.last_error is errors[0]

    def test_manual_retry_succeeds(self, sample_transcript):
        client = FakeClient(fail_with=TranscriptAPIError(0, "offline"))
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_text("seg-1", "Hi")
        target = EditTarget.text("seg-1")

        assert asyncio.run(coord.save(target)) is False
        client.fail_with = None
        assert asyncio.run(coord.save(target)) is True
        assert not coord.is_dirty(target)
        assert len(client.text_calls) == 2

    def test_failure_with_mocked_client(self, sample_transcript):
        client = MagicMock()
        client.update_segment_text = AsyncMock(side_effect=TranscriptAPIError(503, "busy"))
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_text("seg-3", "Bye")
        assert asyncio.run(coord.save(EditTarget.text("seg-3"))) is False
        client.update_segment_text.assert_awaited_once_with("vid-1", "seg-3", "Bye")


class TestOrdering:
    """Serialization per target."""

    def test_same_target_saves_are_serialized(self, sample_transcript):
        client = FakeClient(delay=0.02)
        coord = _coordinator(sample_transcript, client)
        target = EditTarget.text("seg-1")

        async def _run():
            coord.history.apply_text("seg-1", "A")
            first = asyncio.create_task(coord.save(target))
            await asyncio.sleep(0)
            assert coord.is_saving(target)

            coord.history.apply_text("seg-1", "B")
            second = asyncio.create_task(coord.save(target))

            await first
            assert coord.is_dirty(target)
            await second
            assert not coord.is_dirty(target)
            assert not coord.is_saving()

        asyncio.run(_run())
        assert client.text_calls == [("seg-1", "A"), ("seg-1", "B")]
        assert client.max_active == 1

    def test_different_targets_may_overlap(self, sample_transcript):
        client = FakeClient(delay=0.02)
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_text("seg-1", "A")
        coord.history.apply_text("seg-2", "B")

        async def _run():
            return await asyncio.gather(
                coord.save(EditTarget.text("seg-1")),
                coord.save(EditTarget.text("seg-2")),
            )

        assert asyncio.run(_run()) == [True, True]
        assert client.max_active == 2

    def test_undo_while_save_in_flight(self, sample_transcript):
        client = FakeClient(delay=0.02)
        coord = _coordinator(sample_transcript, client)
        target = EditTarget.text("seg-1")

        async def _run():
            coord.history.apply_text("seg-1", "A")
            task = asyncio.create_task(coord.save(target))
            await asyncio.sleep(0)
            coord.history.undo()
            await task

        asyncio.run(_run())
        assert client.text_calls == [("seg-1", "A")]
        assert coord.history.transcript.segment_by_id("seg-1").text == "Hello brave new world"
        assert coord.is_dirty(target)


class TestSaveAll:
    """Explicit save of every dirty target."""

    def test_saves_every_dirty_target(self, sample_transcript):
        client = FakeClient()
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_text("seg-2", "x")
        coord.history.apply_word_timing("seg-1", 3, 1.5, 1.9)
        assert asyncio.run(coord.save_all()) is True
        assert client.text_calls == [("seg-2", "x")]
        assert client.timing_calls == [("seg-1", 3, 1.5, 1.9)]
        assert not coord.is_dirty()

    def test_nothing_to_save(self, sample_transcript):
        client = FakeClient()
        coord = _coordinator(sample_transcript, client)
        assert asyncio.run(coord.save_all()) is True
        assert client.text_calls == [] and client.timing_calls == []

    def test_partial_failure(self, sample_transcript):
        client = MagicMock()
        client.update_segment_text = AsyncMock(return_value=None)
        client.update_word_timing = AsyncMock(side_effect=TranscriptAPIError(500, "boom"))
        coord = _coordinator(sample_transcript, client)
        coord.history.apply_text("seg-2", "x")
        coord.history.apply_word_timing("seg-1", 3, 1.5, 1.9)
        assert asyncio.run(coord.save_all()) is False
        assert coord.history.dirty_targets() == [EditTarget.timing("seg-1", 3)]


class TestLivePropagation:
    """Debounced on_caption_edit."""

    def test_text_changes_are_debounced(self, sample_transcript):
        calls = []
        coord = _coordinator(
            sample_transcript, FakeClient(),
            on_caption_edit=lambda seg, text: calls.append((seg, text)),
            debounce_s=0.05,
        )

        async def _run():
            for text in ("H", "Hi", "Hi!"):
                coord.record(coord.history.apply_text("seg-1", text))
            await asyncio.sleep(0.15)

        asyncio.run(_run())
        assert calls == [("seg-1", "Hi!")]

    def test_undo_propagates_restored_text(self, sample_transcript):
        calls = []
        coord = _coordinator(
            sample_transcript, FakeClient(),
            on_caption_edit=lambda seg, text: calls.append(text),
            debounce_s=0.05,
        )

        async def _run():
            coord.record(coord.history.apply_text("seg-1", "Hi"))
            coord.record(coord.history.undo())
            await asyncio.sleep(0.15)

        asyncio.run(_run())
        assert calls == ["Hello brave new world"]

    def test_timing_edits_are_not_propagated(self, sample_transcript):
        calls = []
        coord = _coordinator(
            sample_transcript, FakeClient(),
            on_caption_edit=lambda seg, text: calls.append(text),
            debounce_s=0.01,
        )

        async def _run():
            coord.record(coord.history.apply_word_timing("seg-1", 0, 0.1, 0.5))
            await asyncio.sleep(0.05)

        asyncio.run(_run())
        assert calls == []

    def test_propagation_never_saves(self, sample_transcript):
        client = FakeClient()
        coord = _coordinator(
            sample_transcript, client,
            on_caption_edit=lambda seg, text: None,
            debounce_s=0.01,
        )

        async def _run():
            coord.record(coord.history.apply_text("seg-1", "Hi"))
            await asyncio.sleep(0.05)

        asyncio.run(_run())
        assert client.text_calls == []
        assert coord.is_dirty()
