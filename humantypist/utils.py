from __future__ import annotations
import ctypes
import platform
import random
from typing import Optional


class HiResTimer:
    """Context manager to request 1ms Windows system timer resolution.

    The emission loop polls for stop/pause at millisecond granularity, which
    the default ~15ms Windows timer cannot honor. On other platforms, it is a
    no-op.
    """

    def __enter__(self):
        if ctypes and platform.system() == "Windows":
            ctypes.windll.winmm.timeBeginPeriod(1)
        return self

    def __exit__(self, exc_type, exc, tb):
        if ctypes and platform.system() == "Windows":
            ctypes.windll.winmm.timeEndPeriod(1)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Restrict value to [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def clamp_int(value, min_val: int, max_val: int) -> int:
    """Coerce to int and restrict to [min_val, max_val]."""
    return int(clamp(int(value), min_val, max_val))


def random_uniform(a: float, b: float, rng: Optional[random.Random] = None) -> float:
    """Return a random float between a and b, agnostic to order."""
    lo, hi = (a, b) if a <= b else (b, a)
    return (rng or random).uniform(lo, hi)


def random_int(a: int, b: int, rng: Optional[random.Random] = None) -> int:
    """Return a random int in [a, b] inclusive, agnostic to order."""
    lo, hi = (a, b) if a <= b else (b, a)
    return (rng or random).randint(int(lo), int(hi))
