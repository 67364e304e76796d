"""Caption Engine: caption/transcript timing engine for clip editing.

WHY: A clip editor shows burned-in captions while the operator scrubs and
edits the transcript. The live preview must agree with the export renderer
frame for frame, stay responsive on transcripts with thousands of words,
and let the operator undo any text or timing edit without corrupting the
timing the animations are derived from.

HOW: Four layers, each independently testable:
  core  : IR dataclasses, timing lookup, edit history, animation math,
          list windowing (pure, synchronous)
  api   : async HTTP client for the transcript service
  sync  : debounced live sync, serialized persistence, editing session
  server: reference FastAPI implementation of the transcript service

RULES:
- The playback clock is always passed in; nothing here owns current time
- The live transcript is mutated only through EditHistory
- Persistence never rewrites live content, only the last-synced baseline
"""

__version__ = "0.1.0"
