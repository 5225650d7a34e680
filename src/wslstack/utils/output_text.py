"""
Helpers for turning raw process output into comparable text.

wsl.exe writes UTF-16LE for its own subcommands (--status, --list), which
shows up as NUL-interleaved bytes when read as UTF-8.
"""

from typing import List

_UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


def looks_like_utf16(data: bytes) -> bool:
    """Check whether raw output is UTF-16 encoded."""
    if data.startswith(_UTF16_BOMS):
        return True
    if len(data) < 2:
        return False
    # ASCII text in UTF-16LE has a NUL at every odd offset
    odd = data[1::2]
    return odd.count(0) >= max(1, len(odd) // 2)


def strip_nulls(text: str) -> str:
    """Remove NUL characters and byte order marks."""
    return text.replace("\x00", "").replace("\ufeff", "")


def decode_output(data: bytes) -> str:
    """Decode process output and strip NUL characters."""
    if not data:
        return ""
    if looks_like_utf16(data):
        if data.startswith(b"\xfe\xff"):
            text = data.decode("utf-16-be", errors="replace")
        else:
            text = data.decode("utf-16-le", errors="replace")
    else:
        text = data.decode("utf-8", errors="replace")
    return strip_nulls(text)


def clean_lines(text: str) -> List[str]:
    """Split output into trimmed lines without carriage returns."""
    return [line.replace("\r", "").strip() for line in strip_nulls(text).split("\n")]
