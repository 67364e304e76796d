"""Animation state function: per-word opacity, scale, color, and visibility.

WHY: The editor preview and the export renderer draw the same captions
independently. Any disagreement in these formulas shows up as a caption
that looks different in the exported video than it did in the editor,
which is the failure operators notice first. Keeping the math in one pure
function makes it unit-testable and lets a sampler dump it frame by frame
for comparison against the renderer.

HOW: Each word is placed in one of three temporal zones relative to the
current time (future, active, past), recomputed on every call because the
playhead moves backwards when scrubbing. A closed table maps every
AnimationMode to its handler; the module refuses to import if a mode has
no handler.

  mode          visible          opacity                 scale                  color
  none          always           1 (past dimmed)         1                      base
  word-by-word  not if future    1                       1                      highlight if active
  karaoke       always           1 (past dimmed)         highlight if active    highlight if active
  bounce        always           1 (past dimmed)         bounce curve if active highlight if active
  fade          always           progress / 1 / 0        1                      base

RULES:
- progress = clamp((t - start) / (end - start), 0, 1); zero-length words
  count as fully progressed
- A word is active on the closed interval [start, end]
- Past-word dimming uses PAST_WORD_OPACITY, never under fade or word-by-word
- Highlight color needs highlight_enabled and a highlight_color, otherwise
  the base text color is used; karaoke scaling also needs highlight_enabled
- Bounce peaks at the highlight multiplier halfway through the first fifth
  of the word and is back to 1.0 from there on
- Pure: no caching, no clock access, no mutation of inputs
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from caption_engine.config import (
    CAPTION_WINDOW_MIN_WORDS,
    CAPTION_WINDOW_S,
    PAST_WORD_OPACITY,
)
from caption_engine.core.ir import Segment, Word
from caption_engine.core.style import AnimationMode, CaptionStyle


class TemporalZone(str, enum.Enum):
    FUTURE = "future"
    ACTIVE = "active"
    PAST = "past"


@dataclass(frozen=True)
class WordState:
    """Visual parameters for one word at one instant."""

    opacity: float
    scale: float
    color: str
    visible: bool
    zone: TemporalZone


def temporal_zone(item, current_time: float) -> TemporalZone:
    """Zone of anything with start/end relative to ``current_time``."""
    if current_time < item.start:
        return TemporalZone.FUTURE
    if current_time > item.end:
        return TemporalZone.PAST
    return TemporalZone.ACTIVE


def word_progress(word: Word, current_time: float) -> float:
    duration = word.end - word.start
    if duration <= 0:
        return 1.0
    return min(max((current_time - word.start) / duration, 0.0), 1.0)


def bounce_scale(progress: float, multiplier: float) -> float:
    """Scale for a bouncing word at ``progress`` through its interval.

    The bounce runs over the first 20% of the word: it rises linearly to
    ``multiplier`` and falls back to 1.0 by the 20% mark.
    """
    bounce_progress = min(progress * 5, 1.0)
    if bounce_progress < 0.5:
        return 1 + (multiplier - 1) * (bounce_progress * 2)
    return 1 + (multiplier - 1) * (2 - bounce_progress * 2)


def _highlight_color(style: CaptionStyle) -> str:
    if style.highlight_enabled and style.highlight_color:
        return style.highlight_color
    return style.text_color


def _dimmed(zone: TemporalZone) -> float:
    return PAST_WORD_OPACITY if zone is TemporalZone.PAST else 1.0


# ---------------------------------------------------------------------------
# Mode handlers
# ---------------------------------------------------------------------------


def _state_none(word: Word, style: CaptionStyle, t: float, zone: TemporalZone) -> WordState:
    return WordState(
        opacity=_dimmed(zone),
        scale=1.0,
        color=style.text_color,
        visible=True,
        zone=zone,
    )


def _state_word_by_word(word: Word, style: CaptionStyle, t: float, zone: TemporalZone) -> WordState:
    active = zone is TemporalZone.ACTIVE
    return WordState(
        opacity=1.0,
        scale=1.0,
        color=_highlight_color(style) if active else style.text_color,
        visible=zone is not TemporalZone.FUTURE,
        zone=zone,
    )


def _state_karaoke(word: Word, style: CaptionStyle, t: float, zone: TemporalZone) -> WordState:
    active = zone is TemporalZone.ACTIVE
    scale = style.highlight_multiplier if active and style.highlight_enabled else 1.0
    return WordState(
        opacity=_dimmed(zone),
        scale=scale,
        color=_highlight_color(style) if active else style.text_color,
        visible=True,
        zone=zone,
    )


def _state_bounce(word: Word, style: CaptionStyle, t: float, zone: TemporalZone) -> WordState:
    active = zone is TemporalZone.ACTIVE
    scale = 1.0
    if active:
        scale = bounce_scale(word_progress(word, t), style.highlight_multiplier)
    return WordState(
        opacity=_dimmed(zone),
        scale=scale,
        color=_highlight_color(style) if active else style.text_color,
        visible=True,
        zone=zone,
    )


def _state_fade(word: Word, style: CaptionStyle, t: float, zone: TemporalZone) -> WordState:
    if zone is TemporalZone.ACTIVE:
        opacity = word_progress(word, t)
    elif zone is TemporalZone.PAST:
        opacity = 1.0
    else:
        opacity = 0.0
    return WordState(
        opacity=opacity,
        scale=1.0,
        color=style.text_color,
        visible=True,
        zone=zone,
    )


_ModeHandler = Callable[[Word, CaptionStyle, float, TemporalZone], WordState]

_MODE_HANDLERS: Dict[AnimationMode, _ModeHandler] = {
    AnimationMode.NONE: _state_none,
    AnimationMode.WORD_BY_WORD: _state_word_by_word,
    AnimationMode.KARAOKE: _state_karaoke,
    AnimationMode.BOUNCE: _state_bounce,
    AnimationMode.FADE: _state_fade,
}

_missing = set(AnimationMode) - set(_MODE_HANDLERS)
if _missing:
    raise RuntimeError(
        "No animation handler for: {}".format(", ".join(sorted(m.value for m in _missing)))
    )


def compute_word_state(word: Word, style: CaptionStyle, current_time: float) -> WordState:
    """Visual state of ``word`` under ``style`` at ``current_time``."""
    zone = temporal_zone(word, current_time)
    return _MODE_HANDLERS[style.animation](word, style, current_time, zone)


# ---------------------------------------------------------------------------
# Caption frame
# ---------------------------------------------------------------------------


def display_text(text: str, style: CaptionStyle) -> str:
    if style.text_transform == "uppercase":
        return text.upper()
    return text


@dataclass(frozen=True)
class RenderedWord:
    """One drawable unit of a caption frame.

    RULES:
    - word_index is None when the unit is a whole edited segment
    """

    text: str
    state: WordState
    word_index: Optional[int] = None


def compute_caption_frame(
    segment: Segment,
    style: CaptionStyle,
    current_time: float,
) -> List[RenderedWord]:
    """Drawable units for ``segment`` at ``current_time``.

    HOW: A segment whose text was edited (or that has no words) renders
    its text as a single unit in the base style, since its words no longer
    line up with the text. Otherwise every word gets its own state; long
    segments are trimmed to the words within CAPTION_WINDOW_S of the
    playhead.
    """
    if segment.is_edited or not segment.words:
        state = WordState(
            opacity=1.0,
            scale=1.0,
            color=style.text_color,
            visible=True,
            zone=temporal_zone(segment, current_time),
        )
        return [RenderedWord(text=display_text(segment.text, style), state=state)]

    indexed = list(enumerate(segment.words))
    if len(indexed) > CAPTION_WINDOW_MIN_WORDS:
        lo = current_time - CAPTION_WINDOW_S
        hi = current_time + CAPTION_WINDOW_S
        indexed = [(i, w) for i, w in indexed if w.end >= lo and w.start <= hi]

    return [
        RenderedWord(
            text=display_text(w.text, style),
            state=compute_word_state(w, style, current_time),
            word_index=i,
        )
        for i, w in indexed
    ]
