from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Generic, Iterator, List, TypeVar

from .config import kcfg

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Fixed-capacity FIFO; appending to a full buffer drops the oldest item."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._items: Deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen  # type: ignore[return-value]

    def append(self, item: T) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()

    def items(self) -> List[T]:
        """Retained items, oldest first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))


class KeyPhase(str, Enum):
    NORMAL = "normal"
    INSERTED = "inserted"  # wrong character of a mistake chunk
    ERASED = "erased"  # backspace removing a wrong character


BACKSPACE = "\b"


@dataclass(frozen=True)
class KeystrokeLogEntry:
    t: float  # seconds since session start
    char: str  # character emitted, or BACKSPACE
    hold_ms: float  # simulated key-down dwell
    phase: KeyPhase


class KeystrokeLog:
    """Bounded history of emitted keystrokes.

    Writes are dropped silently while the log is disabled; enabling is owned
    by the configuration, so the session controller flips ``enabled`` from the
    live config at every keystroke.
    """

    def __init__(self, capacity: int = kcfg.LOG_CAPACITY, enabled: bool = False):
        self.enabled = enabled
        self._buffer: RingBuffer[KeystrokeLogEntry] = RingBuffer(capacity)

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    def log(self, t: float, char: str, hold_ms: float, phase: KeyPhase = KeyPhase.NORMAL) -> None:
        if not self.enabled:
            return
        self._buffer.append(KeystrokeLogEntry(t, char, hold_ms, phase))

    def entries(self) -> List[KeystrokeLogEntry]:
        return self._buffer.items()

    def clear(self) -> None:
        self._buffer.clear()

    def lines(self) -> List[str]:
        """
        Text rendering: ``CHAR:x hold=N`` per keystroke, with each mistake
        collapsed into ``MISTAKE_SENT:<chunk>`` and ``MISTAKE_BS:<count>``.
        """
        out: List[str] = []
        sent: List[str] = []
        erased = 0
        for e in self._buffer:
            if e.phase is not KeyPhase.ERASED and erased:
                out.append(f"MISTAKE_BS:{erased}")
                erased = 0
            if e.phase is not KeyPhase.INSERTED and sent:
                out.append(f"MISTAKE_SENT:{''.join(sent)}")
                sent = []
            if e.phase is KeyPhase.INSERTED:
                sent.append(e.char)
                out.append(f"CHAR:{e.char} hold={e.hold_ms:.0f}")
            elif e.phase is KeyPhase.ERASED:
                erased += 1
            else:
                out.append(f"CHAR:{e.char} hold={e.hold_ms:.0f}")
        if sent:
            out.append(f"MISTAKE_SENT:{''.join(sent)}")
        if erased:
            out.append(f"MISTAKE_BS:{erased}")
        return out

    def __len__(self) -> int:
        return len(self._buffer)
