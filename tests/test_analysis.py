"""
Tests for typing summaries and the timeline image.
"""

import pytest
from PIL import Image

from humantypist.keyboard.analysis import (
    count_mistakes,
    inter_key_intervals_ms,
    summarize_typing,
    typing_stats,
)
from humantypist.keyboard.render import save_typing_timeline_jpeg
from humantypist.keyboard.telemetry import BACKSPACE, KeyPhase, KeystrokeLogEntry


def sample_entries():
    return [
        KeystrokeLogEntry(0.00, "h", 20.0, KeyPhase.NORMAL),
        KeystrokeLogEntry(0.10, "x", 25.0, KeyPhase.INSERTED),
        KeystrokeLogEntry(0.20, BACKSPACE, 0.0, KeyPhase.ERASED),
        KeystrokeLogEntry(0.30, "i", 30.0, KeyPhase.NORMAL),
        KeystrokeLogEntry(0.50, " ", 40.0, KeyPhase.NORMAL),
        KeystrokeLogEntry(0.60, "y", 22.0, KeyPhase.INSERTED),
        KeystrokeLogEntry(0.65, "z", 22.0, KeyPhase.INSERTED),
        KeystrokeLogEntry(0.70, BACKSPACE, 0.0, KeyPhase.ERASED),
        KeystrokeLogEntry(0.75, BACKSPACE, 0.0, KeyPhase.ERASED),
        KeystrokeLogEntry(0.90, "y", 20.0, KeyPhase.NORMAL),
        KeystrokeLogEntry(1.00, "o", 20.0, KeyPhase.NORMAL),
    ]


class TestAnalysis:
    """Tests for log statistics."""

    def test_intervals_use_normal_keys_only(self):
        ikis = inter_key_intervals_ms(sample_entries())

        assert ikis == pytest.approx([300.0, 200.0, 400.0, 100.0])

    def test_count_mistakes(self):
        assert count_mistakes(sample_entries()) == 2

    def test_stats(self):
        stats = typing_stats(sample_entries())

        assert stats["chars"] == 5
        assert stats["backspaces"] == 3
        assert stats["duration_s"] == pytest.approx(1.0)
        assert stats["overall_wpm"] == pytest.approx(60.0)

    def test_summary_text(self):
        summary = summarize_typing(sample_entries())

        assert summary.startswith("Typing Summary:")
        assert "Mistakes (chunks fixed): 2" in summary

    def test_summary_without_data(self):
        assert summarize_typing([]) == "No typing data"


class TestRender:
    """Tests for the timeline JPEG."""

    @pytest.mark.asyncio
    async def test_renders_jpeg(self, tmp_path):
        outfile = str(tmp_path / "timeline.jpg")
        path = await save_typing_timeline_jpeg(sample_entries(), outfile, width=400, height=200)

        assert path == outfile
        with Image.open(path) as image:
            assert image.format == "JPEG"
            assert image.size == (400, 200)

    @pytest.mark.asyncio
    async def test_renders_empty_log(self, tmp_path):
        outfile = str(tmp_path / "empty.jpg")
        await save_typing_timeline_jpeg([], outfile)

        with Image.open(outfile) as image:
            assert image.size == (1200, 360)
