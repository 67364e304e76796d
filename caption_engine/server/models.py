"""Pydantic request/response models for the transcript API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. The wire
format is camelCase (segmentId, wordIndex, isEdited, videoId) while Python
code uses snake_case, so every model maps the two with field aliases.

HOW: Word/Segment/Transcript models mirror core.ir and are built from
its to_dict() output. Each mutating endpoint has its own request model.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Aliases carry the camelCase wire names; populate_by_name allows either
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

_ALIASED = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Transcript models
# ---------------------------------------------------------------------------


class WordModel(BaseModel):
    """A single timed word."""

    id: Optional[str] = Field(default=None, description="Word identifier, unique within its segment.")
    text: str = Field(description="Word text as transcribed.")
    start: float = Field(ge=0, description="Start time in seconds.")
    end: float = Field(ge=0, description="End time in seconds (exclusive).")
    confidence: Optional[float] = Field(
        default=None,
        ge=0,
        le=1,
        description="ASR confidence between 0 and 1, when known.",
    )


class SegmentModel(BaseModel):
    """A transcript segment with its words.

    RULES:
    - isEdited=true means the text was edited and the words are stale
    """

    model_config = _ALIASED

    id: str = Field(min_length=1, description="Segment identifier.")
    text: str = Field(description="Segment text (may differ from the words once edited).")
    start: float = Field(ge=0, description="Segment start in seconds.")
    end: float = Field(ge=0, description="Segment end in seconds.")
    is_edited: bool = Field(
        default=False,
        alias="isEdited",
        description="True once the segment text has been edited.",
    )
    words: List[WordModel] = Field(default_factory=list, description="Ordered timed words.")


class TranscriptModel(BaseModel):
    """A full transcript for one video."""

    model_config = _ALIASED

    video_id: Optional[str] = Field(default=None, alias="videoId", description="Video identifier.")
    language: Optional[str] = Field(default=None, description="ISO 639-1 language code.")
    segments: List[SegmentModel] = Field(description="Segments ordered by start time.")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class UpdateTextRequest(BaseModel):
    """Replace the free text of one segment."""

    model_config = {
        **_ALIASED,
        "json_schema_extra": {"examples": [{"segmentId": "seg-1", "text": "Hello there"}]},
    }

    segment_id: str = Field(alias="segmentId", min_length=1, description="Segment to update.")
    text: str = Field(description="New segment text.")


class UpdateWordTimingRequest(BaseModel):
    """Move one word to a new [start, end) interval.

    RULES:
    - start < end, no overlap with sibling words, inside the segment
    """

    model_config = {
        **_ALIASED,
        "json_schema_extra": {
            "examples": [{"segmentId": "seg-1", "wordIndex": 0, "start": 1.0, "end": 1.4}]
        },
    }

    segment_id: str = Field(alias="segmentId", min_length=1, description="Segment containing the word.")
    word_index: int = Field(alias="wordIndex", ge=0, description="Zero-based index of the word.")
    start: float = Field(ge=0, description="New start time in seconds.")
    end: float = Field(ge=0, description="New end time in seconds.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SegmentUpdateResponse(BaseModel):
    """Result of a text or timing update."""

    message: str = Field(description="Human-readable confirmation.")
    segment: SegmentModel = Field(description="The segment as stored after the update.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
