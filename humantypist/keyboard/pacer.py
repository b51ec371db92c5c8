from __future__ import annotations
import random
from typing import Callable, Optional

from ..utils import clamp as _clamp, random_int as _randint, random_uniform as _uniform
from .config import TypistConfig, kcfg
from .utils import _base_interval_ms, _is_punct, _lognormal_sample_ms


class _Pacer:
    """
    Closed-loop pacing for one session.

    Each character's delay is a log-normal draw centred on the base interval
    plus a drift correction that spreads the accumulated lead/lag over the
    characters still to type. Elapsed time is wall clock since the session
    started, paused time included.
    """

    def __init__(
        self,
        config: TypistConfig,
        total_chars: int,
        rng: random.Random,
        clock: Callable[[], float],
    ):
        self.config = config
        self.total_chars = total_chars
        self.rng = rng
        self.clock = clock
        self.start_ts = clock()
        self.ideal_ms = 0.0  # elapsed time a perfectly paced typist would have used
        self._char_base_ms: Optional[float] = None  # base in force for the current char

        # Per-session personality, sampled once
        frac = kcfg.SESSION_SPEED_FRAC
        self.speed_multiplier = 1.0 + _uniform(-frac, frac, rng)
        self.wpm_offset = _randint(-kcfg.SESSION_WPM_OFFSET, kcfg.SESSION_WPM_OFFSET, rng)
        self._frozen_wpm = self._offset_wpm(config.wpm)

    def _offset_wpm(self, wpm: float) -> int:
        return int(_clamp(wpm + self.wpm_offset, *kcfg.WPM_BOUNDS))

    def session_wpm(self) -> int:
        if self.config.live_rate:
            return self._offset_wpm(self.config.wpm)
        return self._frozen_wpm

    def base_interval_ms(self) -> float:
        return _base_interval_ms(self.session_wpm()) * self.speed_multiplier

    def elapsed_ms(self) -> float:
        return (self.clock() - self.start_ts) * 1000.0

    def drift_correction_ms(self, position: int, base_ms: float) -> float:
        remaining = max(1, self.total_chars - position)
        error = self.elapsed_ms() - self.ideal_ms
        limit = base_ms * kcfg.CORRECTION_LIMIT
        return _clamp(-error / remaining, -limit, limit)

    def next_delay_ms(self, position: int) -> float:
        """Inter-key interval to wait after emitting the character at position."""
        base_ms = self.base_interval_ms()
        self._char_base_ms = base_ms
        target = base_ms + self.drift_correction_ms(position, base_ms)
        if self.config.strict:
            return max(kcfg.MIN_DELAY_MS, target)

        delay = _lognormal_sample_ms(target, kcfg.LOGNORMAL_SIGMA, self.rng)
        jitter = self.config.effective_jitter(self.session_wpm())
        delay *= 1.0 + _uniform(-1.0, 1.0, self.rng) * jitter
        return max(kcfg.MIN_DELAY_MS, delay)

    def extra_ms(self, ch: str) -> float:
        """Situational slow-down after spaces, sentence punctuation and newlines."""
        if self.config.strict:
            return 0.0
        extra = 0.0
        if ch == " ":
            extra += _randint(*kcfg.SPACE_EXTRA_MS, self.rng)
        if self.config.extra_punct_pause and _is_punct(ch):
            extra += _randint(*kcfg.PUNCT_EXTRA_MS, self.rng)
        if ch in "\r\n":
            extra += _randint(*kcfg.NEWLINE_EXTRA_MS, self.rng)
        return float(extra)

    def hold_ms(self) -> float:
        """Simulated key-down dwell; zero when disabled or pacing strictly."""
        if self.config.strict or not self.config.hold_enabled:
            return 0.0
        return float(_randint(self.config.hold_min_ms, self.config.hold_max_ms, self.rng))

    def advance(self, chars: int = 1) -> None:
        """Credit the ideal timeline for characters just committed.

        Uses the base interval the last delay was computed with, so a rate
        change mid-character does not register as drift.
        """
        base_ms = self._char_base_ms
        if base_ms is None:
            base_ms = self.base_interval_ms()
        self.ideal_ms += chars * base_ms
        self._char_base_ms = None
