import asyncio
import random

import pytest

from humantypist.keyboard import BufferSink, SessionController, TypistConfig


class VirtualClock:
    """Clock/sleep pair where sleeping advances time instantly."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    async def sleep(self, dt):
        self.now += max(0.0, dt)
        await asyncio.sleep(0)


class HookSink(BufferSink):
    """BufferSink that calls back after every key press."""

    def __init__(self, on_char=None, on_backspace=None, available=True):
        super().__init__(available=available)
        self.on_char = on_char
        self.on_backspace = on_backspace

    async def press_character(self, ch):
        await super().press_character(ch)
        if self.on_char:
            self.on_char(self)

    async def press_backspace(self):
        await super().press_backspace()
        if self.on_backspace:
            self.on_backspace(self)


class GatedSink(BufferSink):
    """BufferSink whose presses block until the gate opens, like a slow transport."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.in_flight = 0

    async def press_character(self, ch):
        self.in_flight += 1
        await self.gate.wait()
        self.in_flight -= 1
        await super().press_character(ch)

    async def press_backspace(self):
        self.in_flight += 1
        await self.gate.wait()
        self.in_flight -= 1
        await super().press_backspace()


def quiet_config(**overrides):
    """No mistakes or random pauses, logging on."""
    fields = dict(
        typos_enabled=False,
        long_pauses_enabled=False,
        think_pct=0,
        logging_enabled=True,
    )
    fields.update(overrides)
    return TypistConfig(**fields)


async def wait_until(predicate, spins=100000):
    for _ in range(spins):
        if predicate():
            return True
        await asyncio.sleep(0)
    return predicate()


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def make_controller(clock):
    def _make(sink=None, config=None, seed=1234):
        return SessionController(
            sink if sink is not None else BufferSink(),
            config or quiet_config(),
            rng=random.Random(seed),
            clock=clock,
            sleep=clock.sleep,
        )

    return _make
