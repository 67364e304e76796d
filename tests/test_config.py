"""Tests for configuration helpers."""

from __future__ import annotations

import pytest

from caption_engine import config


class TestLoadBaseUrl:
    def test_strips_trailing_slash(self, monkeypatch):
        monkeypatch.setenv("CAPTION_API_BASE_URL", "http://svc:9000/api/")
        assert config.load_base_url() == "http://svc:9000/api"

    def test_empty_value_raises(self, monkeypatch):
        monkeypatch.setenv("CAPTION_API_BASE_URL", "  ")
        with pytest.raises(ValueError, match="CAPTION_API_BASE_URL"):
            config.load_base_url()

    def test_default(self, monkeypatch):
        monkeypatch.delenv("CAPTION_API_BASE_URL", raising=False)
        assert config.load_base_url() == config.CAPTION_API_BASE_URL.rstrip("/")


class TestDefaults:
    def test_timing_defaults(self):
        assert config.CAPTION_EDIT_DEBOUNCE_S == 0.3
        assert config.AUTO_SCROLL_DEBOUNCE_S == 0.5
        assert config.USER_SCROLL_IDLE_S == 3.0
        assert config.MAX_HISTORY == 50
