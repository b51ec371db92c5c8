from __future__ import annotations
import logging
import math
from typing import Dict, List, Sequence

from .telemetry import KeyPhase, KeystrokeLogEntry

# Route debug prints in this module through logging
print = logging.getLogger(__name__).debug


def _quantile(values: Sequence[float], q: float) -> float:
    """Robust quantile (0..1). Returns value at the given fraction."""
    if not values:
        return 0.0
    q = min(1.0, max(0.0, float(q)))
    data = sorted(values)
    idx = q * (len(data) - 1)
    lo = int(math.floor(idx))
    hi = int(math.ceil(idx))
    if lo == hi:
        return data[lo]
    frac = idx - lo
    return data[lo] * (1 - frac) + data[hi] * frac


def inter_key_intervals_ms(entries: Sequence[KeystrokeLogEntry]) -> List[float]:
    """Gaps between consecutive correctly typed keystrokes, in ms."""
    times = [e.t for e in entries if e.phase is KeyPhase.NORMAL]
    return [(b - a) * 1000.0 for a, b in zip(times, times[1:]) if b >= a]


def count_mistakes(entries: Sequence[KeystrokeLogEntry]) -> int:
    """Number of wrong chunks, i.e. runs of inserted characters."""
    runs = 0
    prev = None
    for e in entries:
        if e.phase is KeyPhase.INSERTED and prev is not KeyPhase.INSERTED:
            runs += 1
        prev = e.phase
    return runs


def typing_stats(entries: Sequence[KeystrokeLogEntry]) -> Dict[str, float]:
    normal = [e for e in entries if e.phase is KeyPhase.NORMAL]
    ikis = inter_key_intervals_ms(entries)
    duration = (entries[-1].t - entries[0].t) if len(entries) > 1 else 0.0
    overall_wpm = (len(normal) / duration) * 60.0 / 5.0 if duration > 0 else 0.0
    holds = [e.hold_ms for e in normal]
    return {
        "duration_s": duration,
        "chars": float(len(normal)),
        "overall_wpm": overall_wpm,
        "mistakes": float(count_mistakes(entries)),
        "backspaces": float(sum(1 for e in entries if e.phase is KeyPhase.ERASED)),
        "iki_mean_ms": sum(ikis) / len(ikis) if ikis else 0.0,
        "iki_p50_ms": _quantile(ikis, 0.50),
        "iki_p95_ms": _quantile(ikis, 0.95),
        "hold_mean_ms": sum(holds) / len(holds) if holds else 0.0,
    }


def summarize_typing(entries: Sequence[KeystrokeLogEntry]) -> str:
    """
    Reports:
      - Total duration
      - Overall Avg WPM (includes pauses/corrections)
      - Inter-key interval mean / p50 / p95 (right tail shows the slow keys)
      - Mean simulated hold
      - Correct chars, mistakes and backspaces
    """
    if len(entries) < 2:
        return "No typing data"

    s = typing_stats(entries)
    if s["duration_s"] <= 0:
        return "Invalid timing data"

    return (
        "Typing Summary:\n"
        f"  Total duration: {s['duration_s']:.2f}s\n"
        f"  Overall Avg WPM (with pauses): {s['overall_wpm']:.2f}\n"
        f"  IKI ms (mean/p50/p95): {s['iki_mean_ms']:.1f} / {s['iki_p50_ms']:.1f} / {s['iki_p95_ms']:.1f}\n"
        f"  Mean hold: {s['hold_mean_ms']:.1f} ms\n"
        f"  Chars typed: {int(s['chars'])}\n"
        f"  Mistakes (chunks fixed): {int(s['mistakes'])}\n"
        f"  Backspaces: {int(s['backspaces'])}"
    )


async def print_typing_summary(entries: Sequence[KeystrokeLogEntry]) -> None:
    """Async helper that prints the summary."""
    print(summarize_typing(entries))
