"""Line-oriented console status output."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Iterator

_STYLES = {
    "bold": "1",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
}


class Reporter:
    """Writes status lines with indentation and optional ANSI styles.

    Styles are only emitted when the stream is a terminal.
    """

    def __init__(self, stream: TextIO | None = None, *, color: bool | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.color = self.stream.isatty() if color is None else color
        self.depth = 0

    def say(self, message: str, *styles: str) -> None:
        text = message
        codes = [_STYLES[style] for style in styles if style in _STYLES]
        if self.color and codes:
            text = f"\033[{';'.join(codes)}m{message}\033[0m"
        self.stream.write(f"{'  ' * self.depth}{text}\n")

    def newline(self) -> None:
        self.stream.write("\n")

    @contextmanager
    def indent(self) -> Iterator[None]:
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1
