"""Output shaping for the online code runner."""

from __future__ import annotations

MAX_LINES = 30
MAX_CHARS = 1000
ELLIPSIS = "\n............\n............"


def cut_too_long(text: str) -> str:
    """Cut text after more than 30 line breaks or 1000 characters."""
    count = 0
    for index, char in enumerate(text):
        if char == "\r" and text[index + 1 : index + 2] == "\n":
            pass  # a CRLF pair counts once, on its LF
        elif char in "\r\n":
            count += 1
        if count > MAX_LINES or index > MAX_CHARS:
            return text[: max(0, index - 1)] + ELLIPSIS
    return text