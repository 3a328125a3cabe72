"""Counting lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO, Optional, Sequence

SEPARATORS = frozenset(b" \r\t\n\v\0")
CHUNK = 512


@dataclass(frozen=True)
class WcCounts:
    lines: int
    words: int
    chars: int


def count(stream: BinaryIO) -> WcCounts:
    """Counts for everything readable from ``stream``."""
    lines = words = chars = 0
    inword = False
    for chunk in iter(lambda: stream.read(CHUNK), b""):
        for byte in chunk:
            chars += 1
            if byte == 0x0A:
                lines += 1
            if byte in SEPARATORS:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return WcCounts(lines, words, chars)


def _report(counts: WcCounts, name: str) -> None:
    print(f"{counts.lines} {counts.words} {counts.chars} {name}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print counts for each named file, or for standard input."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        stdin = getattr(sys.stdin, "buffer", sys.stdin)
        try:
            counts = count(stdin)
        except OSError:
            print("wc: read error")
            return 1
        _report(counts, "")
        return 0
    for name in args:
        try:
            f = open(name, "rb")
        except OSError:
            print(f"wc: cannot open {name}")
            return 1
        with f:
            try:
                counts = count(f)
            except OSError:
                print("wc: read error")
                return 1
        _report(counts, name)
    return 0