"""Byte-string helpers with NUL-terminated string semantics."""

from __future__ import annotations

from typing import BinaryIO, Optional, Union

_Bytes = Union[bytes, bytearray, memoryview]


def _cstr(s: _Bytes) -> bytes:
    """The bytes of ``s`` before the first NUL."""
    data = bytes(s)
    end = data.find(b"\0")
    return data if end < 0 else data[:end]


def _check_range(buf: _Bytes, start: int, n: int) -> None:
    if n < 0 or start < 0 or start + n > len(buf):
        raise IndexError("range outside buffer")


def memset(buf: bytearray, c: int, n: int) -> bytearray:
    """Fill the first ``n`` bytes of ``buf`` with the low byte of ``c``."""
    _check_range(buf, 0, n)
    buf[:n] = bytes([c & 0xFF]) * n
    return buf


def memcmp(a: _Bytes, b: _Bytes, n: int) -> int:
    """Difference of the first differing bytes among the first ``n``, or 0."""
    _check_range(a, 0, n)
    _check_range(b, 0, n)
    for x, y in zip(bytes(a[:n]), bytes(b[:n])):
        if x != y:
            return x - y
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy ``n`` bytes within ``buf`` from ``src`` to ``dst``; overlap is safe."""
    _check_range(buf, dst, n)
    _check_range(buf, src, n)
    buf[dst:dst + n] = bytes(buf[src:src + n])
    return buf


def strlen(s: _Bytes) -> int:
    """Number of bytes before the first NUL (or the whole length)."""
    return len(_cstr(s))


def strcmp(p: _Bytes, q: _Bytes) -> int:
    """Compare two NUL-terminated strings as unsigned bytes."""
    return strncmp(p, q, max(len(p), len(q)) + 1)


def strncmp(p: _Bytes, q: _Bytes, n: int) -> int:
    """Compare at most ``n`` bytes of two NUL-terminated strings."""
    a = _cstr(p)[:n] + b"\0"
    b = _cstr(q)[:n] + b"\0"
    for i, (x, y) in enumerate(zip(a, b)):
        if i >= n:
            return 0
        if x != y or x == 0:
            return x - y
    return 0


def strncpy(src: _Bytes, n: int) -> bytes:
    """``n`` bytes: ``src`` up to its NUL, then zero padding; may lack a NUL."""
    if n <= 0:
        return b""
    return _cstr(src)[:n].ljust(n, b"\0")


def safestrcpy(src: _Bytes, n: int) -> bytes:
    """At most ``n - 1`` bytes of ``src`` followed by a NUL; empty if ``n <= 0``."""
    if n <= 0:
        return b""
    return _cstr(src)[:n - 1] + b"\0"


def strchr(s: _Bytes, c: Union[int, bytes, str]) -> Optional[int]:
    """Index of the first ``c`` before the NUL terminator, or None."""
    if isinstance(c, str):
        c = c.encode("latin-1")
    if isinstance(c, (bytes, bytearray)):
        if len(c) != 1:
            raise ValueError("expected a single character")
        c = c[0]
    index = _cstr(s).find(bytes([c & 0xFF]))
    return None if index < 0 else index


def atoi(s: Union[str, _Bytes]) -> int:
    """Value of the leading decimal digits of ``s``; no sign, no whitespace."""
    text = s if isinstance(s, str) else bytes(s).decode("latin-1")
    n = 0
    for ch in text:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    return n


def gets(stream: BinaryIO, limit: int) -> bytes:
    """Read up to ``limit - 1`` bytes, stopping after a newline or carriage return."""
    chunks = []
    while len(chunks) + 1 < limit:
        ch = stream.read(1)
        if not ch:
            break
        chunks.append(ch)
        if ch in (b"\n", b"\r", "\n", "\r"):
            break
    if chunks and isinstance(chunks[0], str):
        return "".join(chunks).encode("latin-1")
    return b"".join(chunks)