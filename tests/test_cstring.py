import io

import pytest

from xvkern.cstring import (
    atoi,
    gets,
    memcmp,
    memmove,
    memset,
    safestrcpy,
    strchr,
    strcmp,
    strlen,
    strncmp,
    strncpy,
)


def test_memset_fills_prefix():
    buf = bytearray(b"abcdefgh")
    result = memset(buf, ord("z"), 5)
    assert result is buf
    assert buf[:5] == b"z" * 5
    assert buf[5:] == b"fgh"


def test_memset_uses_low_byte():
    buf = bytearray(4)
    memset(buf, 0x141, 4)
    assert buf == bytes([0x41]) * 4


def test_memset_out_of_range():
    with pytest.raises(IndexError):
        memset(bytearray(2), 0, 3)


def test_memcmp():
    assert memcmp(b"abc", b"abc", 3) == 0
    assert memcmp(b"abc", b"abd", 3) == ord("c") - ord("d")
    assert memcmp(b"abc", b"abd", 2) == 0
    assert memcmp(b"\xff", b"\x01", 1) > 0


@pytest.mark.parametrize("dst,src,n", [(2, 0, 4), (0, 2, 4), (1, 1, 3), (0, 3, 3)])
def test_memmove_overlap(dst, src, n):
    original = b"abcdef"
    buf = bytearray(original)
    memmove(buf, dst, src, n)
    assert buf[dst:dst + n] == original[src:src + n]
    assert len(buf) == len(original)


def test_memmove_out_of_range():
    with pytest.raises(IndexError):
        memmove(bytearray(4), 2, 0, 3)


def test_strlen():
    assert strlen(b"hello\0world") == len(b"hello")
    assert strlen(b"") == 0
    assert strlen(b"abc") == 3


def test_strcmp():
    assert strcmp(b"abc", b"abc") == 0
    assert strcmp(b"a", b"b") < 0
    assert strcmp(b"b", b"a") > 0
    assert strcmp(b"abc\0x", b"abc") == 0
    assert strcmp(b"ab", b"abc") < 0
    assert strcmp(b"\x80", b"a") > 0


def test_strncmp():
    assert strncmp(b"abcd", b"abce", 3) == 0
    assert strncmp(b"abcd", b"abce", 4) < 0
    assert strncmp(b"x", b"y", 0) == 0
    assert strncmp(b"ab", b"ab", 10) == 0


def test_strncpy_pads_with_zeros():
    out = strncpy(b"hi", 5)
    assert len(out) == 5
    assert out.startswith(b"hi")
    assert set(out[2:]) == {0}


def test_strncpy_may_not_terminate():
    out = strncpy(b"hello", 3)
    assert out == b"hello"[:3]
    assert 0 not in out


def test_safestrcpy_always_terminates():
    src = b"hello"
    out = safestrcpy(src, 3)
    assert out[:-1] == src[:2]
    assert out[-1] == 0
    assert safestrcpy(src, 100) == src + b"\0"
    assert safestrcpy(src, 0) == b""


def test_strchr():
    assert strchr(b" \t\r\n\v", ord("\t")) == 1
    assert strchr(b"<|>&;()", b"&") == 3
    assert strchr(b"abc", "z") is None
    assert strchr(b"ab\0c", "c") is None


def test_atoi():
    assert atoi("123abc") == 123
    assert atoi(b"42") == 42
    assert atoi("-5") == 0
    assert atoi("") == 0


def test_gets_stops_after_newline():
    stream = io.BytesIO(b"hello\nworld")
    assert gets(stream, 100) == b"hello\n"
    assert gets(stream, 100) == b"world"
    assert gets(stream, 100) == b""


def test_gets_stops_after_carriage_return():
    stream = io.BytesIO(b"ab\rcd")
    assert gets(stream, 100) == b"ab\r"


def test_gets_respects_limit():
    stream = io.BytesIO(b"abcdef")
    assert gets(stream, 4) == b"abc"
    assert gets(stream, 1) == b""