"""Intermediate representation dataclasses for editable, timed transcripts.

WHY: Every part of the engine (timing lookup, edit history, animation,
persistence) works on the same word-timestamped transcript. A single,
well-typed representation keeps them in agreement and gives one place to
parse and validate what the transcript service sends.

HOW: Three dataclasses form a hierarchy:
  Word      : finest timed unit, half-open interval [start, end)
  Segment   : contiguous words with their own text and time range
  Transcript: ordered segments for one video
Wire payloads use camelCase keys ("isEdited", "videoId"); from_dict/to_dict
translate. validate_transcript_payload() checks a payload against
transcript_schema.json and the ordering invariants before parsing.

RULES:
- All times are float seconds
- Word.start < Word.end; words in a segment are ordered and non-overlapping
- Segment.start/end equal its first/last word bounds unless is_edited
- is_edited=True means the words no longer describe the text (stale)
- Segments are ordered by start and non-overlapping
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

_SCHEMA_PATH = Path(__file__).resolve().parent / "transcript_schema.json"

_CACHED_SCHEMA: Optional[dict] = None


def _get_schema() -> dict:
    """Load and cache the transcript JSON schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH) as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


class TranscriptFormatError(ValueError):
    """Raised when a transcript payload is malformed or violates ordering.

    RULES:
    - Message names the offending segment/word where possible
    """


@dataclass
class Word:
    """A single timed word.

    RULES:
    - id: stable within its segment; generated as "<segment>-<index>" when
      the payload has none
    - start/end: float seconds, start < end
    - confidence: ASR confidence 0.0–1.0, or None when unknown
    """

    id: str
    text: str
    start: float
    end: float
    confidence: float | None = None

    @property
    def duration(self) -> float:
        return self.end - self.start

    @classmethod
    def from_dict(cls, data: dict, fallback_id: str) -> Word:
        return cls(
            id=data.get("id") or fallback_id,
            text=data["text"],
            start=float(data["start"]),
            end=float(data["end"]),
            confidence=data.get("confidence"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "start": self.start,
            "end": self.end,
        }
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data


@dataclass
class Segment:
    """A contiguous transcript unit: text, time range, and its words.

    WHY: Operators edit at the segment level (free text) and at the word
    level (timing). After a free-text edit the word array can no longer be
    trusted for highlighting, so the segment carries an explicit flag.

    RULES:
    - start/end are derived from words while is_edited is False
    - is_edited is set by text edits and never cleared by new edits
    """

    id: str
    text: str
    start: float
    end: float
    words: List[Word] = field(default_factory=list)
    is_edited: bool = False

    def recompute_bounds(self) -> None:
        """Re-derive start/end from the words, unless the text was edited."""
        if self.words and not self.is_edited:
            self.start = self.words[0].start
            self.end = self.words[-1].end

    @classmethod
    def from_dict(cls, data: dict) -> Segment:
        seg_id = data["id"]
        return cls(
            id=seg_id,
            text=data["text"],
            start=float(data["start"]),
            end=float(data["end"]),
            words=[
                Word.from_dict(w, "{}-{}".format(seg_id, i))
                for i, w in enumerate(data.get("words") or [])
            ],
            is_edited=bool(data.get("isEdited", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "isEdited": self.is_edited,
            "words": [w.to_dict() for w in self.words],
        }


@dataclass
class Transcript:
    """An editable transcript for one video.

    RULES:
    - segments: ordered by start, non-overlapping
    - video_id / language: informational, may be None for local files
    """

    segments: List[Segment] = field(default_factory=list)
    video_id: str | None = None
    language: str | None = None

    @property
    def duration(self) -> float:
        """End of the last segment, 0.0 for an empty transcript."""
        return self.segments[-1].end if self.segments else 0.0

    def segment_by_id(self, segment_id: str) -> Segment | None:
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        return None

    def index_of(self, segment_id: str) -> int:
        """Position of a segment, or -1 when absent."""
        for i, segment in enumerate(self.segments):
            if segment.id == segment_id:
                return i
        return -1

    def copy(self) -> Transcript:
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, data: dict, validate: bool = True) -> Transcript:
        """Parse a wire payload, validating it first unless told not to."""
        if validate:
            validate_transcript_payload(data)
        return cls(
            segments=[Segment.from_dict(s) for s in data["segments"]],
            video_id=data.get("videoId"),
            language=data.get("language"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "videoId": self.video_id,
            "language": self.language,
            "segments": [s.to_dict() for s in self.segments],
        }


def validate_transcript_payload(data: Any) -> None:
    """Validate a transcript payload against the schema and ordering rules.

    WHY: The timing index relies on sorted, non-overlapping intervals. A
    payload that violates that would make lookups silently wrong, so it is
    rejected up front.

    HOW: jsonschema checks structure and types; a second pass walks the
    segments and words checking start < end and ordering.

    RULES:
    - Raises TranscriptFormatError on any violation
    - Segment bounds are not required to equal word bounds here (the
      service may pad segments), but every word must lie within them
    """
    try:
        jsonschema.validate(instance=data, schema=_get_schema())
    except jsonschema.ValidationError as exc:
        raise TranscriptFormatError("Invalid transcript payload: {}".format(exc.message))

    prev_end = None
    for seg in data["segments"]:
        if seg["start"] > seg["end"]:
            raise TranscriptFormatError(
                "Segment {} ends before it starts".format(seg["id"])
            )
        if prev_end is not None and seg["start"] < prev_end:
            raise TranscriptFormatError(
                "Segment {} overlaps or precedes the previous segment".format(seg["id"])
            )
        prev_end = seg["end"]

        prev_word_end = None
        for i, word in enumerate(seg.get("words") or []):
            if word["start"] >= word["end"]:
                raise TranscriptFormatError(
                    "Word {} of segment {} has start >= end".format(i, seg["id"])
                )
            if word["start"] < seg["start"] or word["end"] > seg["end"]:
                raise TranscriptFormatError(
                    "Word {} of segment {} lies outside the segment bounds".format(i, seg["id"])
                )
            if prev_word_end is not None and word["start"] < prev_word_end:
                raise TranscriptFormatError(
                    "Word {} of segment {} overlaps the previous word".format(i, seg["id"])
                )
            prev_word_end = word["end"]
