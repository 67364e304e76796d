"""FastAPI application implementing the transcript API with OpenAPI docs.

WHY: The editing engine persists through three remote calls (fetch a
transcript, patch segment text, patch word timing). This app implements
them over an in-memory store so the whole edit → save loop can run locally
and in tests, with the same status codes a production service returns.

HOW: A single FastAPI app exposes the transcript routes under /api plus a
/health probe. Request bodies are validated by pydantic models; timing
rules reuse core.history.check_word_timing so the server rejects exactly
what the editor rejects.

RULES:
- All endpoints have OpenAPI descriptions on every response
- Error responses use a consistent ErrorResponse schema
- 404 for unknown videos or segments, 422 for invalid payloads or timings
- The store is a module-level singleton
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from caption_engine import __version__
from caption_engine.core.history import InvalidTimingError, UnknownSegmentError
from caption_engine.core.ir import Transcript, TranscriptFormatError
from caption_engine.server.models import (
    ErrorResponse,
    HealthResponse,
    SegmentUpdateResponse,
    TranscriptModel,
    UpdateTextRequest,
    UpdateWordTimingRequest,
)
from caption_engine.server.store import TranscriptNotStoredError, TranscriptStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

transcript_store = TranscriptStore()

app = FastAPI(
    title="Caption Engine Transcript API",
    description=(
        "Reference transcript service for the caption timing engine. "
        "Fetch a word-timestamped transcript, replace it, and persist "
        "segment text and word timing edits."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Video or segment not found"}}


# ---------------------------------------------------------------------------
# Endpoints: Transcripts
# ---------------------------------------------------------------------------


@app.get(
    "/api/videos/{video_id}/transcript",
    response_model=TranscriptModel,
    tags=["transcripts"],
    summary="Get a transcript",
    description="Returns the authoritative transcript for a video.",
    responses=_NOT_FOUND,
)
async def get_transcript(video_id: str) -> dict:
    transcript = transcript_store.get(video_id)
    if transcript is None:
        raise HTTPException(status_code=404, detail="Transcript not found: {}".format(video_id))
    return transcript.to_dict()


@app.put(
    "/api/videos/{video_id}/transcript",
    response_model=TranscriptModel,
    tags=["transcripts"],
    summary="Store a transcript",
    description=(
        "Creates or replaces the transcript for a video. Segments and words "
        "must be ordered and non-overlapping."
    ),
    responses={422: {"model": ErrorResponse, "description": "Invalid transcript"}},
)
async def put_transcript(video_id: str, body: TranscriptModel) -> dict:
    payload = body.model_dump(by_alias=True, exclude_none=True)
    try:
        transcript = Transcript.from_dict(payload)
    except TranscriptFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return transcript_store.put(video_id, transcript).to_dict()


@app.patch(
    "/api/videos/{video_id}/transcript/text",
    response_model=SegmentUpdateResponse,
    tags=["transcripts"],
    summary="Update segment text",
    description=(
        "Replaces the free text of one segment and marks it as edited. "
        "The segment's words are kept but no longer drive highlighting."
    ),
    responses=_NOT_FOUND,
)
async def update_segment_text(video_id: str, body: UpdateTextRequest) -> dict:
    try:
        segment = transcript_store.update_text(video_id, body.segment_id, body.text)
    except (TranscriptNotStoredError, UnknownSegmentError) as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"message": "Segment text updated", "segment": segment.to_dict()}


@app.patch(
    "/api/videos/{video_id}/transcript/timing",
    response_model=SegmentUpdateResponse,
    tags=["transcripts"],
    summary="Update word timing",
    description=(
        "Moves one word to a new interval. The interval must not overlap "
        "its neighbours and must stay inside the segment."
    ),
    responses={
        **_NOT_FOUND,
        422: {"model": ErrorResponse, "description": "Invalid word timing"},
    },
)
async def update_word_timing(video_id: str, body: UpdateWordTimingRequest) -> dict:
    try:
        segment = transcript_store.update_word_timing(
            video_id, body.segment_id, body.word_index, body.start, body.end
        )
    except (TranscriptNotStoredError, UnknownSegmentError) as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidTimingError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"message": "Word timing updated", "segment": segment.to_dict()}


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the caption-engine-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
