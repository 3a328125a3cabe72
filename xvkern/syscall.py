"""System call argument fetching and dispatch by call number."""

from __future__ import annotations

import struct
import sys
from typing import Callable, Optional, TextIO, Union

_U32 = 0xFFFFFFFF
_INT = struct.Struct("<i")

Handler = Callable[[], int]


class SyscallError(Exception):
    """A system call argument that lies outside the process's memory."""


class UserSpace:
    """The memory of a user process as seen by system call code.

    Addresses run from 0 to ``sz``; ``esp`` is the user stack pointer at the
    time of the call, with the return address at ``esp`` and the arguments
    above it.
    """

    def __init__(self, memory: Union[bytes, bytearray], esp: int = 0) -> None:
        self.memory = bytearray(memory)
        self.esp = esp

    @property
    def sz(self) -> int:
        """Size of the process's address space."""
        return len(self.memory)

    def fetch_int(self, addr: int) -> int:
        """The signed 32-bit integer at ``addr``."""
        addr &= _U32
        if addr >= self.sz or addr + 4 > self.sz:
            raise SyscallError(f"integer at {addr:#x} outside process memory")
        return _INT.unpack_from(self.memory, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at ``addr``, without its terminator."""
        addr &= _U32
        if addr >= self.sz:
            raise SyscallError(f"string at {addr:#x} outside process memory")
        end = self.memory.find(b"\0", addr)
        if end < 0:
            raise SyscallError(f"string at {addr:#x} is not terminated")
        return bytes(self.memory[addr:end])

    def arg_int(self, n: int) -> int:
        """The ``n``-th 32-bit system call argument."""
        return self.fetch_int(self.esp + 4 + 4 * n)

    def arg_ptr(self, n: int, size: int) -> int:
        """The ``n``-th argument as an address of a block of ``size`` bytes."""
        addr = self.arg_int(n) & _U32
        if size < 0 or addr >= self.sz or addr + size > self.sz:
            raise SyscallError(f"block at {addr:#x} outside process memory")
        return addr

    def arg_str(self, n: int) -> bytes:
        """The ``n``-th argument as a NUL-terminated string."""
        return self.fetch_str(self.arg_int(n))


class SyscallTable:
    """Maps call numbers to handlers and turns failures into -1."""

    def __init__(self, console: Optional[TextIO] = None) -> None:
        self.console = console
        self._handlers: dict[int, Handler] = {}

    def __contains__(self, number: int) -> bool:
        return int(number) in self._handlers

    def register(self, number: int, handler: Handler) -> None:
        """Install ``handler`` for call ``number`` (which must be positive)."""
        number = int(number)
        if number <= 0:
            raise ValueError("system call numbers start at 1")
        self._handlers[number] = handler

    def dispatch(self, number: int, pid: int, name: str) -> int:
        """Run call ``number`` for process ``pid``; the value returned to user code."""
        handler = self._handlers.get(int(number)) if number > 0 else None
        if handler is None:
            out = self.console if self.console is not None else sys.stderr
            out.write(f"{pid} {name}: unknown sys call {number}\n")
            return -1
        try:
            return handler()
        except SyscallError:
            return -1