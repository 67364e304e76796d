"""Caption style snapshot consumed by the animation state function.

WHY: The style is persisted separately from the transcript and edited at a
much coarser grain (pick a template, toggle highlight). The engine only
reads it, so it is modelled as an immutable snapshot: a changed style is a
new object, and nothing in the animation math can mutate it by accident.

HOW: Three str-valued enums for the closed option sets and one frozen
dataclass. from_dict() accepts the service's camelCase keys and fills
defaults for anything missing.

RULES:
- highlight_scale is a percentage; highlight_multiplier converts it
- animation must be one of AnimationMode; unknown values raise ValueError
- Style changes never go through EditHistory
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from caption_engine.config import DEFAULT_HIGHLIGHT_SCALE_PCT, DEFAULT_TEXT_COLOR


class AnimationMode(str, enum.Enum):
    """Per-word animation modes shared with the export renderer."""

    NONE = "none"
    WORD_BY_WORD = "word-by-word"
    KARAOKE = "karaoke"
    BOUNCE = "bounce"
    FADE = "fade"


class CaptionPosition(str, enum.Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class TextAlignment(str, enum.Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class CaptionStyle:
    """Visual configuration for burned-in captions.

    RULES:
    - Colors are CSS hex strings ("#FFFFFF")
    - highlight_color None means "no distinct highlight color"
    - max_width is a percentage of the frame width
    - text_transform is "none" or "uppercase"
    """

    font_family: str = "Inter"
    font_size: int = 24
    text_color: str = DEFAULT_TEXT_COLOR
    highlight_color: Optional[str] = "#FFD700"
    highlight_enabled: bool = True
    animation: AnimationMode = AnimationMode.NONE
    position: CaptionPosition = CaptionPosition.BOTTOM
    alignment: TextAlignment = TextAlignment.CENTER
    background_color: Optional[str] = None
    background_opacity: float = 0.0
    outline: bool = True
    outline_color: str = "#000000"
    outline_width: int = 3
    shadow: bool = False
    highlight_scale: float = DEFAULT_HIGHLIGHT_SCALE_PCT
    max_width: float = 90
    text_transform: str = "none"

    @property
    def highlight_multiplier(self) -> float:
        """highlight_scale as a scale factor (125 → 1.25)."""
        return self.highlight_scale / 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CaptionStyle:
        defaults = cls()
        return cls(
            font_family=data.get("fontFamily", defaults.font_family),
            font_size=data.get("fontSize", defaults.font_size),
            text_color=data.get("textColor") or defaults.text_color,
            highlight_color=data.get("highlightColor", defaults.highlight_color),
            highlight_enabled=data.get("highlightEnabled", defaults.highlight_enabled),
            animation=AnimationMode(data.get("animation", defaults.animation.value)),
            position=CaptionPosition(data.get("position", defaults.position.value)),
            alignment=TextAlignment(data.get("alignment", defaults.alignment.value)),
            background_color=data.get("backgroundColor", defaults.background_color),
            background_opacity=data.get("backgroundOpacity", defaults.background_opacity),
            outline=data.get("outline", defaults.outline),
            outline_color=data.get("outlineColor") or defaults.outline_color,
            outline_width=data.get("outlineWidth", defaults.outline_width),
            shadow=data.get("shadow", defaults.shadow),
            highlight_scale=data.get("highlightScale", defaults.highlight_scale),
            max_width=data.get("maxWidth", defaults.max_width),
            text_transform=data.get("textTransform", defaults.text_transform),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fontFamily": self.font_family,
            "fontSize": self.font_size,
            "textColor": self.text_color,
            "highlightColor": self.highlight_color,
            "highlightEnabled": self.highlight_enabled,
            "animation": self.animation.value,
            "position": self.position.value,
            "alignment": self.alignment.value,
            "backgroundColor": self.background_color,
            "backgroundOpacity": self.background_opacity,
            "outline": self.outline,
            "outlineColor": self.outline_color,
            "outlineWidth": self.outline_width,
            "shadow": self.shadow,
            "highlightScale": self.highlight_scale,
            "maxWidth": self.max_width,
            "textTransform": self.text_transform,
        }
