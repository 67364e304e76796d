"""Response dataclasses for the transcript service.

WHY: The PATCH endpoints answer with a message and the updated segment.
Parsing them into typed objects keeps httpx dicts out of the sync layer.

HOW: Each dataclass maps 1:1 to a service JSON object and has a from_dict
factory. Transcripts themselves parse through core.ir.Transcript.

RULES:
- segment is the server's authoritative copy after the update
"""

from __future__ import annotations

from dataclasses import dataclass

from caption_engine.core.ir import Segment


@dataclass
class SegmentUpdateResponse:
    """Body of PATCH .../transcript/text and .../transcript/timing."""

    message: str
    segment: Segment

    @classmethod
    def from_dict(cls, data: dict) -> SegmentUpdateResponse:
        return cls(
            message=data.get("message", ""),
            segment=Segment.from_dict(data["segment"]),
        )
