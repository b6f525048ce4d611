"""
Date/time helpers.

Cursor values and event timestamps are described with .NET-style custom
patterns (``yyyy-MM-ddTHH:mm:ss.fff``) so existing forwarder configurations
keep working. ``DotNetDateFormat`` translates such a pattern into a
``strptime`` format for parsing and renders it token by token.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import List, Tuple

# (kind, width) for tokens, ("literal", text) for everything else
Token = Tuple[str, object]

_STRPTIME = {
    "y": "%Y",
    "M": "%m",
    "d": "%d",
    "H": "%H",
    "h": "%I",
    "m": "%M",
    "s": "%S",
    "f": "%f",
    "t": "%p",
    "z": "%z",
}

_FIELDS = {"M": "month", "d": "day", "H": "hour", "m": "minute", "s": "second"}


def utc_now_iso() -> str:
    """Get current UTC time in ISO format."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@lru_cache(maxsize=64)
def _tokenize(pattern: str) -> Tuple[Token, ...]:
    tokens: List[Token] = []
    literal: List[str] = []
    i = 0

    def flush() -> None:
        if literal:
            tokens.append(("literal", "".join(literal)))
            literal.clear()

    while i < len(pattern):
        ch = pattern[i]
        if ch in ("'", '"'):
            end = pattern.find(ch, i + 1)
            if end < 0:
                raise ValueError(f"Unterminated quote in date pattern: {pattern!r}")
            literal.append(pattern[i + 1 : end])
            i = end + 1
            continue
        if ch == "\\" and i + 1 < len(pattern):
            literal.append(pattern[i + 1])
            i += 2
            continue
        if ch not in _STRPTIME:
            literal.append(ch)
            i += 1
            continue

        run = 1
        while i + run < len(pattern) and pattern[i + run] == ch:
            run += 1
        flush()
        tokens.append((ch, run))
        i += run

    flush()
    for kind, width in tokens:
        if kind in ("M", "d") and width > 2:
            raise ValueError(f"Month/day names are not supported in date pattern: {pattern!r}")
        if kind == "f" and width > 6:
            raise ValueError(f"At most 6 fractional digits are supported: {pattern!r}")
        if kind == "t" and width != 2:
            raise ValueError(f"Only 'tt' is supported for AM/PM: {pattern!r}")
    return tuple(tokens)


class DotNetDateFormat:
    """A compiled .NET custom date/time pattern."""

    def __init__(self, pattern: str):
        if not pattern:
            raise ValueError("Date pattern cannot be empty")
        self.pattern = pattern
        self._tokens = _tokenize(pattern)
        self._strptime = "".join(
            str(value).replace("%", "%%") if kind == "literal"
            else "%y" if kind == "y" and int(value) <= 2
            else _STRPTIME[kind]
            for kind, value in self._tokens
        )

    def parse(self, text: str, assume_utc: bool = False) -> datetime:
        """
        Parse ``text`` exactly against the pattern.

        Values without an offset token are read as UTC when ``assume_utc`` is
        set, otherwise as naive local time.

        Raises:
            ValueError: If the text does not match or is not a valid date.
        """
        try:
            value = datetime.strptime(text.strip(), self._strptime)
        except ValueError as e:
            raise ValueError(f"{text!r} does not match date pattern {self.pattern!r}") from e
        if value.tzinfo is None and assume_utc:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def format(self, value: datetime) -> str:
        """Render ``value`` with the pattern."""
        out: List[str] = []
        for kind, width in self._tokens:
            if kind == "literal":
                out.append(str(width))
                continue
            width = int(width)
            if kind in _FIELDS:
                out.append(f"{getattr(value, _FIELDS[kind]):0{width}d}")
            elif kind == "y":
                out.append(f"{value.year % 100:02d}" if width <= 2 else f"{value.year:0{max(width, 4)}d}")
            elif kind == "h":
                out.append(f"{(value.hour % 12) or 12:0{width}d}")
            elif kind == "f":
                out.append(f"{value.microsecond:06d}"[:width])
            elif kind == "t":
                out.append("PM" if value.hour >= 12 else "AM")
            elif kind == "z":
                out.append(_format_offset(value, width))
        return "".join(out)


def _format_offset(value: datetime, width: int) -> str:
    offset = value.utcoffset()
    if offset is None:
        offset = value.astimezone().utcoffset() or timedelta(0)
    total = int(offset.total_seconds() // 60)
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    if width == 1:
        return f"{sign}{hours}"
    if width == 2:
        return f"{sign}{hours:02d}"
    return f"{sign}{hours:02d}:{minutes:02d}"
