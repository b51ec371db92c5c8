from __future__ import annotations
import math
import random
import string
from .config import kcfg

_PRINTABLE_EXCEPTIONS = set("\n\t\r")


def _is_printable(ch: str) -> bool:
    if not ch or ch in _PRINTABLE_EXCEPTIONS:
        return False
    return 32 <= ord(ch) <= 0x10FFFF


def _is_typo_eligible(ch: str) -> bool:
    """Only plain ASCII letters and digits may start a mistake."""
    return len(ch) == 1 and ch.isascii() and ch.isalnum()


def _is_punct(ch: str) -> bool:
    return ch in kcfg.PUNCT_CHARS


def _base_interval_ms(wpm: float) -> float:
    """Inter-key interval for a WPM rate, 5 characters per word."""
    return 60000.0 / (max(1.0, wpm) * 5.0)


def _standard_normal(rng: random.Random) -> float:
    """Box-Muller transform over two independent uniforms."""
    u1 = 1.0 - rng.random()  # (0, 1], keeps log() finite
    u2 = rng.random()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def _lognormal_sample_ms(mean_ms: float, sigma: float, rng: random.Random) -> float:
    """Log-normal draw whose mean (not median) equals mean_ms."""
    mean_ms = max(kcfg.MIN_DELAY_MS, mean_ms)
    mu = math.log(mean_ms) - 0.5 * sigma * sigma
    value = math.exp(mu + sigma * _standard_normal(rng))
    return max(kcfg.MIN_DELAY_MS, value)


# =========================================================
# Simple QWERTY adjacency for plausible slips
# =========================================================

_KEY_NEIGHBORS = {
    "a": "qwsz",
    "s": "awedxz",
    "d": "serfcx",
    "f": "drtgcv",
    "g": "ftyhbv",
    "h": "gyujnb",
    "j": "huikmn",
    "k": "jiolm",
    "l": "kop",
    "e": "wsdr",
    "r": "etfd",
    "t": "rygf",
    "y": "tuhg",
    "u": "yijh",
    "i": "uokj",
    "o": "iplk",
    "p": "ol",
    "q": "wa",
    "w": "qeas",
    "z": "asx",
    "x": "zsdc",
    "c": "xdfv",
    "v": "cfgb",
    "b": "vghn",
    "n": "bhjm",
    "m": "njk",
}


def _force_typo(ch: str, rng: random.Random) -> str:
    """
    Return a printable typo that is GUARANTEED to differ from ch.
    Prefers keyboard neighbors; falls back to another letter.
    """
    base = ch.lower()
    candidates = [c for c in _KEY_NEIGHBORS.get(base, "") if c != base]

    if not candidates:
        candidates = [c for c in string.ascii_lowercase if c != base]

    t = rng.choice(candidates)
    return t.upper() if ch.isupper() else t


def _random_wrong_chunk(correct: str, rng: random.Random) -> str:
    """
    Random letters, one per correct character, each differing from the
    character it stands in for. Case follows the first correct character
    with probability kcfg.UPPER_MATCH_PROB.
    """
    upper = correct[:1].isupper() and rng.random() < kcfg.UPPER_MATCH_PROB
    out = []
    for ch in correct:
        wrong = rng.choice(string.ascii_lowercase)
        while wrong == ch.lower():
            wrong = rng.choice(string.ascii_lowercase)
        out.append(wrong.upper() if upper else wrong)
    return "".join(out)
