"""Tests for the caption style snapshot."""

from __future__ import annotations

import dataclasses

import pytest

from caption_engine.core.style import (
    AnimationMode,
    CaptionPosition,
    CaptionStyle,
    TextAlignment,
)


class TestCaptionStyle:
    """Defaults, conversion, and immutability."""

    def test_defaults(self):
        style = CaptionStyle()
        assert style.animation is AnimationMode.NONE
        assert style.highlight_scale == 110
        assert style.highlight_multiplier == pytest.approx(1.1)
        assert style.text_color == "#FFFFFF"

    def test_from_dict_reads_camel_case(self):
        style = CaptionStyle.from_dict({
            "fontFamily": "Roboto",
            "textColor": "#EEEEEE",
            "highlightColor": "#FF0000",
            "highlightEnabled": False,
            "animation": "karaoke",
            "position": "top",
            "alignment": "left",
            "highlightScale": 125,
            "textTransform": "uppercase",
        })
        assert style.font_family == "Roboto"
        assert style.highlight_enabled is False
        assert style.animation is AnimationMode.KARAOKE
        assert style.position is CaptionPosition.TOP
        assert style.alignment is TextAlignment.LEFT
        assert style.highlight_multiplier == 1.25
        assert style.text_transform == "uppercase"

    def test_from_dict_fills_missing_fields(self):
        assert CaptionStyle.from_dict({}) == CaptionStyle()

    def test_to_dict_parses_back(self):
        style = CaptionStyle(animation=AnimationMode.BOUNCE, highlight_scale=120)
        assert CaptionStyle.from_dict(style.to_dict()) == style

    def test_unknown_animation_rejected(self):
        with pytest.raises(ValueError):
            CaptionStyle.from_dict({"animation": "spin"})

    def test_style_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            CaptionStyle().font_size = 30
