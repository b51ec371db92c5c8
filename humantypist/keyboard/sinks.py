from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Protocol

from zendriver import cdp

from .config import kcfg
from .utils import _is_printable

logger = logging.getLogger(__name__)


class KeystrokeSink(Protocol):
    """What the engine needs from a keyboard-emulation link.

    Implementations must not raise: a broken link reports itself through
    ``is_available()`` and the engine ends the session.
    """

    def is_available(self) -> bool: ...

    async def press_character(self, ch: str) -> None: ...

    async def press_backspace(self) -> None: ...


class BufferSink:
    """Applies keystrokes to an in-memory text buffer (dry runs, previews, tests)."""

    def __init__(self, available: bool = True):
        self.available = available
        self.buffer: List[str] = []
        self.keys: List[str] = []  # every key pressed, backspace as "\b"

    @property
    def text(self) -> str:
        return "".join(self.buffer)

    def is_available(self) -> bool:
        return self.available

    async def press_character(self, ch: str) -> None:
        self.keys.append(ch)
        self.buffer.append(ch)

    async def press_backspace(self) -> None:
        self.keys.append("\b")
        if self.buffer:
            self.buffer.pop()


class CdpKeystrokeSink:
    """Sends keystrokes to a zendriver page/tab over the DevTools protocol.

    Printable characters go through ``Input.insertText``; newline and
    backspace are real key events. A send that stalls past
    ``kcfg.CDP_SEND_TIMEOUT_S`` keeps running in the background; a send that
    fails counts towards ``kcfg.SINK_MAX_CONSEC_FAILURES``, after which the
    sink reports itself unavailable.
    """

    def __init__(self, page):
        self.page = page
        self.consecutive_failures = 0

    def is_available(self) -> bool:
        if getattr(self.page, "closed", False):
            return False
        return self.consecutive_failures < kcfg.SINK_MAX_CONSEC_FAILURES

    async def _send_cdp_event(self, fn: Callable[[], Awaitable[Any]], *, label: str) -> None:
        """Send a CDP event with a short timeout; fall back to background dispatch."""
        # Create the task once to ensure it runs to completion regardless of timeout
        task = asyncio.create_task(fn())
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=kcfg.CDP_SEND_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.warning(
                "CDP %s stalled >%.0f ms; continuing in background",
                label,
                kcfg.CDP_SEND_TIMEOUT_S * 1000.0,
            )
            return
        except Exception:
            self.consecutive_failures += 1
            logger.warning("CDP %s failed (skipped this event)", label, exc_info=True)
            return
        self.consecutive_failures = 0

    async def _key_down_up(self, down_type: str, **kwargs: Any) -> None:
        await self._send_cdp_event(
            lambda: self.page.send(cdp.input_.dispatch_key_event(type_=down_type, **kwargs)),
            label=f"{kwargs.get('key')}Down",
        )
        # no sleep here; the engine paces
        await self._send_cdp_event(
            lambda: self.page.send(cdp.input_.dispatch_key_event(type_="keyUp", **kwargs)),
            label=f"{kwargs.get('key')}Up",
        )

    async def press_character(self, ch: str) -> None:
        if ch in "\r\n":
            await self._key_down_up(
                "keyDown",
                key="Enter",
                code="Enter",
                windows_virtual_key_code=13,
                native_virtual_key_code=13,
            )
        elif ch == "\t":
            await self._key_down_up(
                "rawKeyDown",
                key="Tab",
                code="Tab",
                windows_virtual_key_code=9,
                native_virtual_key_code=9,
            )
        elif _is_printable(ch):
            await self._send_cdp_event(
                lambda: self.page.send(cdp.input_.insert_text(text=ch)),
                label="insertText",
            )
        else:
            kwargs: Dict[str, Any] = {"key": ch, "text": ch}
            await self._key_down_up("keyDown", **kwargs)

    async def press_backspace(self) -> None:
        await self._key_down_up(
            "rawKeyDown",
            key="Backspace",
            code="Backspace",
            windows_virtual_key_code=8,
            native_virtual_key_code=8,
        )
