from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Tuple

from ..utils import clamp_int


class kcfg:
    # Words per minute bounds (5 chars = 1 word)
    WPM_BOUNDS = (10, 300)
    SESSION_WPM_OFFSET = 2  # +/- WPM sampled once per session
    SESSION_SPEED_FRAC = 0.10  # +/- per-session speed multiplier

    # Jitter is capped once typing gets this fast
    HIGH_WPM_THRESHOLD = 140
    HIGH_WPM_JITTER_CAP = 0.08

    # Latency model
    LOGNORMAL_SIGMA = 0.7  # heavier right tail -> occasional slow keystrokes
    MIN_DELAY_MS = 3.0
    CORRECTION_LIMIT = 0.5  # drift correction clamp, fraction of base interval

    # Situational extras (ms), skipped in strict mode
    SPACE_EXTRA_MS = (40, 140)
    PUNCT_EXTRA_MS = (80, 220)
    NEWLINE_EXTRA_MS = (120, 320)
    PUNCT_CHARS = frozenset(".,!?;:")

    # "Thinking" pause after a space
    THINK_PAUSE_MS = (400, 1000)

    # Mistake correction cadence
    HESITATION_FLOOR_MS = 40
    BACKSPACE_GAP_MS = (20, 60)
    UPPER_MATCH_PROB = 0.5  # wrong char follows an uppercase correct char

    # Cooperative scheduling: stop/pause are observed at this granularity
    POLL_INTERVAL_S = 0.001

    # Keystroke log
    LOG_CAPACITY = 1024

    # Sink transport
    CDP_SEND_TIMEOUT_S = 0.35
    SINK_MAX_CONSEC_FAILURES = 3


class NewlineMode(str, Enum):
    KEEP = "keep"
    SPACE = "space"
    DROP = "drop"


class CodeIndent(str, Enum):
    ALL_WHITESPACE = "all"  # any whitespace at a line start is dropped
    SPACES_ONLY = "spaces"  # only ASCII spaces are dropped, tabs survive


# Numeric newline codes accepted from form-style control requests
_NEWLINE_CODES = {0: NewlineMode.KEEP, 1: NewlineMode.SPACE, 2: NewlineMode.DROP}

_INT_RANGES: Dict[str, Tuple[int, int]] = {
    "wpm": kcfg.WPM_BOUNDS,
    "jitter_pct": (5, 45),
    "think_pct": (0, 100),
    "mistake_pct": (0, 100),
    "typo_max_chars": (1, 6),
    "max_simultaneous_errors": (1, 10),
    "streak_limit": (0, 10),
    "hold_min_ms": (2, 1000),
    "hold_max_ms": (2, 2000),
    "long_pause_pct": (0, 100),
    "long_pause_min_ms": (50, 20000),
    "long_pause_max_ms": (50, 30000),
}

_ORDERED_PAIRS = (
    ("hold_min_ms", "hold_max_ms"),
    ("long_pause_min_ms", "long_pause_max_ms"),
)


@dataclass
class TypistConfig:
    """Live typing settings, shared by the control plane and the engine.

    The engine re-reads every field on each character, so writes take effect
    at the next character boundary. Writes go through :meth:`update`, which
    clamps out-of-range values and swaps inverted min/max pairs instead of
    rejecting them.
    """

    wpm: int = 100
    strict: bool = False
    jitter_pct: int = 12
    think_pct: int = 0
    mistake_pct: int = 3
    typos_enabled: bool = True
    typo_max_chars: int = 1
    multi_char_mistakes: bool = True
    max_simultaneous_errors: int = 1
    streak_limit: int = 3
    hold_enabled: bool = True
    hold_min_ms: int = 18
    hold_max_ms: int = 100
    long_pauses_enabled: bool = True
    long_pause_pct: int = 5
    long_pause_min_ms: int = 600
    long_pause_max_ms: int = 1200
    newline_mode: NewlineMode = NewlineMode.SPACE
    code_mode: bool = False
    code_indent: CodeIndent = CodeIndent.ALL_WHITESPACE
    extra_punct_pause: bool = True
    live_rate: bool = True
    logging_enabled: bool = False

    def __post_init__(self) -> None:
        for f in fields(self):
            setattr(self, f.name, self._coerce(f.name, getattr(self, f.name)))
        self._order_pairs()

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name in _INT_RANGES:
            return clamp_int(value, *_INT_RANGES[name])
        if name == "newline_mode":
            if isinstance(value, int) and not isinstance(value, bool):
                return _NEWLINE_CODES[clamp_int(value, 0, 2)]
            return NewlineMode(value)
        if name == "code_indent":
            return CodeIndent(value)
        return bool(value)

    def _order_pairs(self) -> None:
        for lo_name, hi_name in _ORDERED_PAIRS:
            lo, hi = getattr(self, lo_name), getattr(self, hi_name)
            if lo > hi:
                setattr(self, lo_name, hi)
                setattr(self, hi_name, lo)

    def update(self, **changes: Any) -> bool:
        """Apply field changes with clamping; return True if anything changed."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"unknown config field(s): {', '.join(sorted(unknown))}")

        # Coerce everything first so a bad value leaves the config untouched
        coerced = {name: self._coerce(name, value) for name, value in changes.items()}
        before = self.snapshot()
        for name, value in coerced.items():
            setattr(self, name, value)
        self._order_pairs()
        return self.snapshot() != before

    def effective_jitter(self, wpm: float) -> float:
        """Jitter as a fraction, auto-capped at high typing speeds."""
        frac = self.jitter_pct / 100.0
        if wpm >= kcfg.HIGH_WPM_THRESHOLD:
            frac = min(frac, kcfg.HIGH_WPM_JITTER_CAP)
        return frac

    def mistakes_possible(self) -> bool:
        return (
            not self.strict
            and self.typos_enabled
            and self.streak_limit > 0
            and self.mistake_pct > 0
        )

    def snapshot(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.value if isinstance(value, Enum) else value
        return out


PRESETS: Dict[str, Dict[str, Any]] = {
    "human-slow": dict(wpm=70, jitter_pct=18, typo_max_chars=1, mistake_pct=6, typos_enabled=True),
    "human-fast": dict(wpm=120, jitter_pct=10, typo_max_chars=1, mistake_pct=2, typos_enabled=True),
    # flat, detectable signature for exercising detectors
    "bot-flat": dict(wpm=110, jitter_pct=2, typo_max_chars=1, mistake_pct=0, typos_enabled=False),
}
