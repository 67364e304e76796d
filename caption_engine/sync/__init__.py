"""Sync layer: debounced live propagation, persistence, and the edit session.

WHY: Local edits are synchronous and instant; the server is slow and
fallible. This package is the only place where the two meet.

HOW: debounce.py schedules per-key timers on the asyncio loop,
coordinator.py serializes saves per target and advances the history
baseline, session.py ties loading, editing, saving, and seeking together.

RULES:
- The live transcript is written only by core.history
- Persistence failures are reported, never raised into the edit path
"""

from caption_engine.sync.coordinator import PersistenceFailure, SyncCoordinator
from caption_engine.sync.debounce import KeyedDebouncer
from caption_engine.sync.session import EditSession, TranscriptLoadError

__all__ = [
    "EditSession",
    "KeyedDebouncer",
    "PersistenceFailure",
    "SyncCoordinator",
    "TranscriptLoadError",
]
