from __future__ import annotations
import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..utils import HiResTimer, random_int as _randint
from .config import PRESETS, TypistConfig, kcfg
from .mistakes import MistakeInjector
from .pacer import _Pacer
from .preprocess import preprocess_text
from .sinks import KeystrokeSink
from .telemetry import BACKSPACE, KeyPhase, KeystrokeLog, KeystrokeLogEntry

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPING = "stopping"  # only seen by the unwinding loop; status reports idle


class StartResult(str, Enum):
    ACCEPTED = "accepted"
    BUSY = "busy"
    SINK_UNAVAILABLE = "sink_unavailable"
    EMPTY_INPUT = "empty_input"


class PauseResult(str, Enum):
    PAUSED = "paused"
    RUNNING = "running"
    NOT_RUNNING = "not_running"


@dataclass
class TypingSession:
    text: str
    started_at: float
    state: SessionState = SessionState.RUNNING
    cursor: int = 0
    consecutive_mistakes: int = 0
    concurrent_mistakes: int = 0
    chars_emitted: int = 0
    backspaces: int = 0

    @property
    def active(self) -> bool:
        return self.state in (SessionState.RUNNING, SessionState.PAUSED)


@dataclass(frozen=True)
class SessionStatus:
    state: SessionState
    cursor: int
    total_chars: int
    chars_emitted: int
    backspaces: int
    sink_available: bool
    config: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return "Typing..." if self.state is not SessionState.IDLE else "Ready."


class SessionController:
    """
    Owns the typing session and the live configuration.

    ``start()`` schedules the emission loop as a task on the running event
    loop and returns at once; every other control operation is a plain call
    made from the same loop between the engine's awaits. All engine waits
    poll at ``kcfg.POLL_INTERVAL_S`` so stop and pause land within about a
    millisecond.

    ``clock``/``sleep`` and ``rng`` are injectable for deterministic runs.
    """

    def __init__(
        self,
        sink: KeystrokeSink,
        config: Optional[TypistConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        log: Optional[KeystrokeLog] = None,
    ):
        self.sink = sink
        self.config = config or TypistConfig()
        self.rng = rng or random.Random()
        self.clock = clock
        self.sleep = sleep
        self.log = log or KeystrokeLog()
        self.mistakes = MistakeInjector(self.config, self.rng)
        self._session: Optional[TypingSession] = None
        self._last: Optional[TypingSession] = None
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._session.state if self._session else SessionState.IDLE

    def start(self, text: str) -> StartResult:
        if self._session is not None:
            logger.info("start rejected: already typing")
            return StartResult.BUSY
        if not text:
            return StartResult.EMPTY_INPUT
        if not self.sink.is_available():
            logger.warning("start rejected: keystroke sink unavailable")
            return StartResult.SINK_UNAVAILABLE

        canonical = preprocess_text(text, self.config)
        if not canonical:
            return StartResult.EMPTY_INPUT

        session = TypingSession(text=canonical, started_at=self.clock())
        self._session = session
        self.log.clear()
        previous = self._task if self._task is not None and not self._task.done() else None
        self._task = asyncio.get_running_loop().create_task(self._run(session, previous))
        logger.info("typing started (%d chars)", len(canonical))
        return StartResult.ACCEPTED

    def stop(self) -> None:
        """Abandon the session immediately; idempotent."""
        session = self._session
        if session is None:
            return
        session.state = SessionState.STOPPING
        self._retire(session)
        logger.info("stop requested at %d/%d", session.cursor, len(session.text))

    def toggle_pause(self) -> PauseResult:
        session = self._session
        if session is None or not session.active:
            return PauseResult.NOT_RUNNING
        if session.state is SessionState.RUNNING:
            session.state = SessionState.PAUSED
            logger.info("paused at %d/%d", session.cursor, len(session.text))
            return PauseResult.PAUSED
        session.state = SessionState.RUNNING
        logger.info("resumed at %d/%d", session.cursor, len(session.text))
        return PauseResult.RUNNING

    def set_live_rate(self, wpm: int) -> bool:
        """Change the target speed; the next character uses it."""
        return self.config.update(wpm=wpm)

    def update_config(self, **fields: Any) -> bool:
        return self.config.update(**fields)

    def apply_preset(self, name: str) -> bool:
        return self.config.update(**PRESETS[name])

    def get_status(self) -> SessionStatus:
        session = self._session or self._last
        return SessionStatus(
            state=self.state,
            cursor=session.cursor if session else 0,
            total_chars=len(session.text) if session else 0,
            chars_emitted=session.chars_emitted if session else 0,
            backspaces=session.backspaces if session else 0,
            sink_available=self.sink.is_available(),
            config=self.config.snapshot(),
        )

    def read_log(self) -> List[KeystrokeLogEntry]:
        return self.log.entries()

    async def wait_finished(self) -> None:
        """Wait until the current emission loop has unwound."""
        task = self._task
        if task is not None:
            await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Emission loop
    # ------------------------------------------------------------------

    def _retire(self, session: TypingSession) -> None:
        if self._session is session:
            self._session = None
            self._last = session

    def _is_current(self, session: TypingSession) -> bool:
        return session.active and self._session is session

    async def _wait_ms(self, session: TypingSession, ms: float) -> bool:
        """
        Cooperative wait. Returns False as soon as the session stops; while
        paused it idles without finishing. The deadline is wall clock, so
        time spent paused counts against it.
        """
        deadline = self.clock() + max(0.0, ms) / 1000.0
        while self._is_current(session):
            if session.state is SessionState.PAUSED:
                await self.sleep(kcfg.POLL_INTERVAL_S)
                continue
            remaining = deadline - self.clock()
            if remaining <= 0:
                return True
            await self.sleep(min(remaining, kcfg.POLL_INTERVAL_S))
        return False

    def _sink_ready(self, session: TypingSession) -> bool:
        if not self._is_current(session):
            return False
        if not self.sink.is_available():
            logger.warning(
                "keystroke sink lost at %d/%d; ending session", session.cursor, len(session.text)
            )
            session.state = SessionState.STOPPING
            self._retire(session)
            return False
        return True

    async def _emit(
        self, session: TypingSession, ch: str, hold_ms: float, phase: KeyPhase = KeyPhase.NORMAL
    ) -> bool:
        if not self._sink_ready(session):
            return False
        await self.sink.press_character(ch)
        session.chars_emitted += 1
        # Stopped while the press was in flight; the log belongs to whoever is current now
        if not self._is_current(session):
            return False
        self.log.enabled = self.config.logging_enabled
        self.log.log(self.clock() - session.started_at, ch, hold_ms, phase)
        return True

    async def _emit_backspace(self, session: TypingSession) -> bool:
        if not self._sink_ready(session):
            return False
        await self.sink.press_backspace()
        session.backspaces += 1
        if not self._is_current(session):
            return False
        self.log.enabled = self.config.logging_enabled
        self.log.log(self.clock() - session.started_at, BACKSPACE, 0.0, KeyPhase.ERASED)
        return True

    async def _wait_while_paused(self, session: TypingSession) -> bool:
        while session.state is SessionState.PAUSED:
            await self.sleep(kcfg.POLL_INTERVAL_S)
        return self._is_current(session)

    async def _run(self, session: TypingSession, previous: Optional[asyncio.Task] = None) -> None:
        try:
            if previous is not None:
                # A stopped loop may still be inside a sink call; never overlap it
                await asyncio.wait({previous})
                session.started_at = self.clock()
            with HiResTimer():
                await self._type(session)
        except Exception:
            logger.exception("typing session crashed")
        finally:
            finished = session.state is SessionState.RUNNING
            session.state = SessionState.IDLE
            self._retire(session)
            if finished:
                logger.info("typing finished (%d chars)", session.cursor)

    async def _type(self, session: TypingSession) -> None:
        cfg = self.config
        text = session.text
        pacer = _Pacer(cfg, len(text), self.rng, self.clock)

        while session.cursor < len(text):
            # Let pending control requests in before every character
            await self.sleep(0)
            if not await self._wait_while_paused(session):
                return
            if not self._sink_ready(session):
                return

            i = session.cursor
            ch = text[i]
            delay_ms = pacer.next_delay_ms(i)
            is_space = ch == " "

            if (
                not cfg.strict
                and cfg.long_pauses_enabled
                and is_space
                and self.rng.random() * 100.0 < cfg.long_pause_pct
            ):
                pause_ms = _randint(cfg.long_pause_min_ms, cfg.long_pause_max_ms, self.rng)
                if not await self._wait_ms(session, pause_ms):
                    return

            if self.mistakes.should_begin(ch, session):
                chunk = self.mistakes.compose(text, i)
                if not await self.mistakes.play(session, chunk, delay_ms, pacer, self):
                    return
                session.cursor += chunk.length
                pacer.advance(chunk.length)
                session.consecutive_mistakes += 1
                session.concurrent_mistakes += 1
            else:
                hold_ms = pacer.hold_ms()
                if not await self._emit(session, ch, hold_ms):
                    return
                session.consecutive_mistakes = 0
                session.cursor += 1
                pacer.advance(1)
                if not await self._wait_ms(session, delay_ms + pacer.extra_ms(ch) + hold_ms):
                    return

            if (
                is_space
                and not cfg.strict
                and cfg.think_pct > 0
                and self.rng.random() * 100.0 < cfg.think_pct
            ):
                if not await self._wait_ms(session, _randint(*kcfg.THINK_PAUSE_MS, self.rng)):
                    return
