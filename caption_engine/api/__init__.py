"""Transcript service client package: async HTTP interface.

WHY: Loading and persisting transcripts are fallible remote calls. This
package keeps them behind one async client class so the sync layer only
sees typed results and one exception family.

HOW: Uses httpx.AsyncClient. Responses parse into core.ir dataclasses and
the small response models in models.py.

RULES:
- All HTTP calls go through TranscriptClient (no direct httpx usage elsewhere)
"""

from caption_engine.api.client import (
    TranscriptAPIError,
    TranscriptClient,
    TranscriptNotFoundError,
)
from caption_engine.api.models import SegmentUpdateResponse

__all__ = [
    "SegmentUpdateResponse",
    "TranscriptAPIError",
    "TranscriptClient",
    "TranscriptNotFoundError",
]
