from __future__ import annotations
from .config import CodeIndent, NewlineMode, TypistConfig


def normalize_newlines(text: str, mode: NewlineMode) -> str:
    """Apply the newline policy to every CR and LF character."""
    if mode is NewlineMode.KEEP:
        return text
    replacement = " " if mode is NewlineMode.SPACE else ""
    return "".join(replacement if ch in "\r\n" else ch for ch in text)


def _is_indent(ch: str, indent: CodeIndent) -> bool:
    if indent is CodeIndent.SPACES_ONLY:
        return ch == " "
    return ch.isspace()


def strip_code_indentation(text: str, indent: CodeIndent = CodeIndent.ALL_WHITESPACE) -> str:
    """
    Normalize CR, LF and CRLF to a single "\\n", then drop the run of
    leading indentation at the start of the text and after every newline.

    With CodeIndent.SPACES_ONLY only ASCII spaces count as indentation, so a
    tab at a line start is typed.
    """
    out = []
    start_of_line = True
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == "\r":
            if i + 1 < n and text[i + 1] == "\n":
                i += 1
            ch = "\n"
        if ch == "\n":
            out.append("\n")
            start_of_line = True
        elif start_of_line and _is_indent(ch, indent):
            pass
        else:
            out.append(ch)
            start_of_line = False
        i += 1
    return "".join(out)


def preprocess_text(text: str, config: TypistConfig) -> str:
    """Canonical character sequence the engine will emit for ``text``."""
    if config.code_mode:
        return strip_code_indentation(text, config.code_indent)
    return normalize_newlines(text, config.newline_mode)
