"""Async HTTP client for the transcript service.

WHY: The editing session loads the authoritative transcript and persists
text and timing edits through three remote calls. Wrapping them in one
client keeps HTTP details (paths, status handling, transport errors) out of
the sync layer and lets tests swap the transport.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranscriptClient is an
async context manager. Enter it to open the connection pool, exit to
close it. One method per service operation:
get_transcript → update_segment_text / update_word_timing (put_transcript
seeds a transcript, used by tooling and tests).

RULES:
- Always use the async context manager (async with TranscriptClient() as c:)
- base_url defaults to load_base_url() from config
- 404 raises TranscriptNotFoundError; other non-2xx raise TranscriptAPIError
- Transport failures (httpx.HTTPError) surface as TranscriptAPIError with
  status_code 0, so callers handle one exception family
- Payloads are validated with the transcript schema on the way in
- A 2xx body that is not the expected JSON payload raises TranscriptAPIError
  with the response status
"""

from __future__ import annotations

import logging

import httpx

from caption_engine.api.models import SegmentUpdateResponse
from caption_engine.config import CAPTION_API_TIMEOUT_S, load_base_url
from caption_engine.core.ir import Segment, Transcript

logger = logging.getLogger(__name__)


class TranscriptAPIError(Exception):
    """Raised when the transcript service call fails.

    RULES:
    - status_code is the HTTP status, or 0 for transport-level failures
    - message is the response body text or the transport error
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Transcript API error {status_code}: {message}")


class TranscriptNotFoundError(TranscriptAPIError):
    """Raised when the video or segment does not exist (HTTP 404)."""


class TranscriptClient:
    """Async client for the transcript service.

    RULES:
    - Use as: async with TranscriptClient() as client: ...
    - transport is for tests (httpx.MockTransport / httpx.ASGITransport)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or load_base_url()).rstrip("/")
        self._timeout = timeout or CAPTION_API_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TranscriptClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "TranscriptClient must be used as an async context manager: "
                "async with TranscriptClient() as client: ..."
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        client = self._ensure_client()
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TranscriptAPIError(0, str(exc) or type(exc).__name__)

        if resp.status_code == 404:
            raise TranscriptNotFoundError(resp.status_code, resp.text)
        if resp.status_code < 200 or resp.status_code >= 300:
            raise TranscriptAPIError(resp.status_code, resp.text)
        return resp

    @staticmethod
    def _decode(resp: httpx.Response, parse):
        """Apply `parse` to the JSON body; a body that is not the expected
        payload raises TranscriptAPIError with the response status."""
        try:
            return parse(resp.json())
        except (ValueError, KeyError, TypeError) as exc:
            raise TranscriptAPIError(
                resp.status_code, "Malformed response: {}".format(exc)
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get_transcript(self, video_id: str) -> Transcript:
        """Fetch the authoritative transcript for a video.

        RULES:
        - Raises TranscriptNotFoundError for unknown videos
        - Raises TranscriptAPIError when the payload fails validation
        """
        resp = await self._request("GET", f"/videos/{video_id}/transcript")
        transcript = self._decode(resp, Transcript.from_dict)
        if transcript.video_id is None:
            transcript.video_id = video_id
        return transcript

    async def put_transcript(self, video_id: str, transcript: Transcript) -> Transcript:
        """Replace the stored transcript for a video."""
        resp = await self._request(
            "PUT",
            f"/videos/{video_id}/transcript",
            json=transcript.to_dict(),
        )
        return self._decode(resp, Transcript.from_dict)

    async def update_segment_text(self, video_id: str, segment_id: str, text: str) -> Segment:
        """Persist a segment's free text; returns the server's segment."""
        logger.debug("PATCH text for segment %s of video %s", segment_id, video_id)
        resp = await self._request(
            "PATCH",
            f"/videos/{video_id}/transcript/text",
            json={"segmentId": segment_id, "text": text},
        )
        return self._decode(resp, SegmentUpdateResponse.from_dict).segment

    async def update_word_timing(
        self,
        video_id: str,
        segment_id: str,
        word_index: int,
        start: float,
        end: float,
    ) -> Segment:
        """Persist one word's timing; returns the server's segment."""
        logger.debug(
            "PATCH timing for word %d of segment %s of video %s",
            word_index, segment_id, video_id,
        )
        resp = await self._request(
            "PATCH",
            f"/videos/{video_id}/transcript/timing",
            json={
                "segmentId": segment_id,
                "wordIndex": word_index,
                "start": start,
                "end": end,
            },
        )
        return self._decode(resp, SegmentUpdateResponse.from_dict).segment
