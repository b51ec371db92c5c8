from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..utils import random_int as _randint
from .config import TypistConfig, kcfg
from .telemetry import KeyPhase
from .utils import _force_typo, _is_typo_eligible, _random_wrong_chunk

if TYPE_CHECKING:
    from .pacer import _Pacer
    from .session import SessionController, TypingSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MistakeChunk:
    wrong: str  # what gets typed first
    correct: str  # the span of text it stands in for

    @property
    def length(self) -> int:
        return len(self.wrong)


class MistakeInjector:
    """
    Decides when to fumble a span of text and plays the fumble out:
    type a wrong chunk, hesitate, erase it with exactly one backspace per
    wrong character, then retype the correct span.

    Every step waits through the controller's cooperative waits, so a stop
    or a lost sink abandons the correction where it stands.
    """

    def __init__(self, config: TypistConfig, rng: random.Random):
        self.config = config
        self.rng = rng

    def should_begin(self, ch: str, session: "TypingSession") -> bool:
        cfg = self.config
        if not cfg.mistakes_possible() or not _is_typo_eligible(ch):
            return False
        if session.consecutive_mistakes >= cfg.streak_limit:
            return False
        if session.concurrent_mistakes >= cfg.max_simultaneous_errors:
            return False
        return self.rng.random() * 100.0 < cfg.mistake_pct

    def compose(self, text: str, position: int) -> MistakeChunk:
        remaining = len(text) - position
        if not self.config.multi_char_mistakes:
            correct = text[position]
            return MistakeChunk(_force_typo(correct, self.rng), correct)

        length = min(_randint(1, self.config.typo_max_chars, self.rng), remaining)
        correct = text[position : position + length]
        return MistakeChunk(_random_wrong_chunk(correct, self.rng), correct)

    async def play(
        self,
        session: "TypingSession",
        chunk: MistakeChunk,
        delay_ms: float,
        pacer: "_Pacer",
        controller: "SessionController",
    ) -> bool:
        """Run the fumble-and-fix sequence; False if the session ended mid-way."""
        logger.debug("mistake %r for %r", chunk.wrong, chunk.correct)

        for ch in chunk.wrong:
            hold = pacer.hold_ms()
            if not await controller._emit(session, ch, hold, KeyPhase.INSERTED):
                return False
            if not await controller._wait_ms(session, hold):
                return False

        # Noticing the error
        if not await controller._wait_ms(session, max(kcfg.HESITATION_FLOOR_MS, delay_ms)):
            return False

        for _ in range(chunk.length):
            if not await controller._emit_backspace(session):
                return False
            if not await controller._wait_ms(session, _randint(*kcfg.BACKSPACE_GAP_MS, self.rng)):
                return False

        for ch in chunk.correct:
            hold = pacer.hold_ms()
            if not await controller._emit(session, ch, hold, KeyPhase.NORMAL):
                return False
            if not await controller._wait_ms(session, max(delay_ms / 2.0, hold)):
                return False
        return True
