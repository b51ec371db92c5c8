"""
Tests for the live typing configuration.
"""

import pytest

from humantypist.keyboard.config import (
    PRESETS,
    CodeIndent,
    NewlineMode,
    TypistConfig,
    kcfg,
)


class TestDefaults:
    """Tests for default values."""

    def test_default_config(self):
        config = TypistConfig()

        assert config.wpm == 100
        assert config.hold_min_ms <= config.hold_max_ms
        assert config.long_pause_min_ms <= config.long_pause_max_ms
        assert config.newline_mode is NewlineMode.SPACE
        assert config.code_indent is CodeIndent.ALL_WHITESPACE
        assert config.live_rate is True
        assert config.logging_enabled is False

    def test_constructor_clamps(self):
        config = TypistConfig(wpm=5000, jitter_pct=1, typo_max_chars=0)

        assert config.wpm == 300
        assert config.jitter_pct == 5
        assert config.typo_max_chars == 1

    def test_constructor_swaps_inverted_ranges(self):
        config = TypistConfig(hold_min_ms=90, hold_max_ms=20)

        assert (config.hold_min_ms, config.hold_max_ms) == (20, 90)


class TestUpdate:
    """Tests for clamped writes."""

    def test_out_of_range_values_are_clamped(self):
        config = TypistConfig()
        config.update(wpm=3, jitter_pct=99, streak_limit=-4, mistake_pct=250)

        assert config.wpm == 10
        assert config.jitter_pct == 45
        assert config.streak_limit == 0
        assert config.mistake_pct == 100

    def test_inverted_long_pause_range_is_swapped(self):
        config = TypistConfig()
        config.update(long_pause_min_ms=5000, long_pause_max_ms=700)

        assert config.long_pause_min_ms == 700
        assert config.long_pause_max_ms == 5000

    def test_raising_min_above_max_swaps(self):
        config = TypistConfig(hold_min_ms=18, hold_max_ms=100)
        config.update(hold_min_ms=400)

        assert (config.hold_min_ms, config.hold_max_ms) == (100, 400)

    def test_update_reports_change(self):
        config = TypistConfig()

        assert config.update(wpm=80) is True
        assert config.update(wpm=80) is False
        # clamps to the value already held
        config.update(wpm=300)
        assert config.update(wpm=1000) is False

    def test_unknown_field_raises(self):
        config = TypistConfig()

        with pytest.raises(TypeError):
            config.update(speed=10)

    def test_unknown_field_leaves_config_untouched(self):
        config = TypistConfig()

        with pytest.raises(TypeError):
            config.update(wpm=50, bogus=1)
        assert config.wpm == 100

    def test_bad_enum_value_leaves_config_untouched(self):
        config = TypistConfig()
        before = config.snapshot()

        with pytest.raises(ValueError):
            config.update(wpm=250, jitter_pct=40, newline_mode="bogus")
        assert config.snapshot() == before
        assert config.wpm == 100

    def test_bad_indent_value_leaves_ranges_untouched(self):
        config = TypistConfig()
        before = config.snapshot()

        with pytest.raises(ValueError):
            config.update(hold_min_ms=500, hold_max_ms=10, code_indent="tabs")
        assert config.snapshot() == before

    def test_numeric_newline_codes(self):
        config = TypistConfig()

        config.update(newline_mode=0)
        assert config.newline_mode is NewlineMode.KEEP
        config.update(newline_mode=2)
        assert config.newline_mode is NewlineMode.DROP
        config.update(newline_mode=9)
        assert config.newline_mode is NewlineMode.DROP

    def test_enum_values_by_name(self):
        config = TypistConfig()
        config.update(newline_mode="keep", code_indent="spaces")

        assert config.newline_mode is NewlineMode.KEEP
        assert config.code_indent is CodeIndent.SPACES_ONLY

    def test_snapshot_is_plain(self):
        snap = TypistConfig().snapshot()

        assert snap["newline_mode"] == "space"
        assert snap["code_indent"] == "all"
        assert snap["wpm"] == 100


class TestJitter:
    """Tests for the effective jitter fraction."""

    def test_jitter_fraction(self):
        config = TypistConfig(jitter_pct=20)

        assert config.effective_jitter(100) == pytest.approx(0.20)

    def test_jitter_capped_at_high_wpm(self):
        config = TypistConfig(jitter_pct=40)

        assert config.effective_jitter(kcfg.HIGH_WPM_THRESHOLD) == pytest.approx(0.08)
        assert config.effective_jitter(139) == pytest.approx(0.40)

    def test_small_jitter_not_raised_by_cap(self):
        config = TypistConfig(jitter_pct=5)

        assert config.effective_jitter(250) == pytest.approx(0.05)


class TestMistakeSwitches:
    """Tests for the combined mistake enable switch."""

    def test_mistakes_possible_by_default(self):
        assert TypistConfig().mistakes_possible()

    @pytest.mark.parametrize(
        "fields",
        [
            {"strict": True},
            {"typos_enabled": False},
            {"streak_limit": 0},
            {"mistake_pct": 0},
        ],
    )
    def test_each_switch_disables_mistakes(self, fields):
        assert not TypistConfig(**fields).mistakes_possible()


class TestPresets:
    """Tests for the named presets."""

    def test_presets_exist(self):
        assert set(PRESETS) == {"human-slow", "human-fast", "bot-flat"}

    def test_bot_flat_jitter_is_clamped(self):
        config = TypistConfig()
        config.update(**PRESETS["bot-flat"])

        assert config.wpm == 110
        assert config.jitter_pct == 5
        assert not config.mistakes_possible()
