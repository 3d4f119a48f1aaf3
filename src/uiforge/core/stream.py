"""Line framing for fragment streams."""

import re
from dataclasses import dataclass, field

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass
class LineBuffer:
    """Accumulates fragments and releases complete lines."""

    _buffer: str = field(default="", init=False, repr=False)

    def add(self, fragment: str) -> list[str]:
        """Add fragment, return every line it completed."""
        self._buffer += fragment
        lines = _LINE_BREAK.split(self._buffer)
        # Last element is the unterminated tail (possibly empty)
        self._buffer = lines.pop()
        return lines

    def flush(self) -> str | None:
        """Return the unterminated tail, if any."""
        if self._buffer:
            tail = self._buffer
            self._buffer = ""
            return tail
        return None

    def clear(self) -> None:
        """Drop buffered text."""
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received but not yet newline-terminated."""
        return self._buffer


@dataclass
class StreamCounter:
    """Track fragment statistics."""

    count: int = 0
    chars: int = 0

    def track(self, fragment: str) -> None:
        """Record fragment."""
        self.count += 1
        self.chars += len(fragment)
