from .config import PRESETS, CodeIndent, NewlineMode, TypistConfig, kcfg
from .session import (
    PauseResult,
    SessionController,
    SessionState,
    SessionStatus,
    StartResult,
)
from .sinks import BufferSink, CdpKeystrokeSink, KeystrokeSink
from .telemetry import KeyPhase, KeystrokeLog, KeystrokeLogEntry, RingBuffer
from .preprocess import preprocess_text
from .analysis import summarize_typing, print_typing_summary
from .render import save_typing_timeline_jpeg

__all__ = [
    "PRESETS",
    "CodeIndent",
    "NewlineMode",
    "TypistConfig",
    "kcfg",
    "PauseResult",
    "SessionController",
    "SessionState",
    "SessionStatus",
    "StartResult",
    "BufferSink",
    "CdpKeystrokeSink",
    "KeystrokeSink",
    "KeyPhase",
    "KeystrokeLog",
    "KeystrokeLogEntry",
    "RingBuffer",
    "preprocess_text",
    "summarize_typing",
    "print_typing_summary",
    "save_typing_timeline_jpeg",
]
