from __future__ import annotations
from .keyboard import (
    SessionController,
    TypistConfig,
    StartResult,
    PauseResult,
    SessionState,
    BufferSink,
    CdpKeystrokeSink,
    summarize_typing,
    save_typing_timeline_jpeg,
)

__all__ = [
    "SessionController",
    "TypistConfig",
    "StartResult",
    "PauseResult",
    "SessionState",
    "BufferSink",
    "CdpKeystrokeSink",
    "summarize_typing",
    "save_typing_timeline_jpeg",
]
