"""Reading ELF executable headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntFlag

ELF_MAGIC = 0x464C457F  # "\x7FELF" in little endian
ELF_PROG_LOAD = 1

_ELFHDR = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")

ELFHDR_SIZE = _ELFHDR.size
PROGHDR_SIZE = _PROGHDR.size


class ElfFormatError(ValueError):
    """Raised when data is not a well-formed ELF image."""


class ProgFlag(IntFlag):
    """Flag bits of a program header."""

    EXEC = 1
    WRITE = 2
    READ = 4


@dataclass(frozen=True)
class ProgramHeader:
    type: int
    off: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    flags: ProgFlag
    align: int

    @property
    def is_load(self) -> bool:
        return self.type == ELF_PROG_LOAD


@dataclass(frozen=True)
class ElfHeader:
    magic: int
    elf: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int

    def program_headers(self, data: bytes) -> list[ProgramHeader]:
        """All program headers of the image ``data``, in table order."""
        return [
            parse_program_header(data, self.phoff + i * PROGHDR_SIZE)
            for i in range(self.phnum)
        ]


def parse_elf_header(data: bytes) -> ElfHeader:
    """Parse the file header at the start of ``data``."""
    if len(data) < ELFHDR_SIZE:
        raise ElfFormatError("data too short for an ELF header")
    header = ElfHeader(*_ELFHDR.unpack_from(data, 0))
    if header.magic != ELF_MAGIC:
        raise ElfFormatError("bad ELF magic")
    return header


def parse_program_header(data: bytes, offset: int) -> ProgramHeader:
    """Parse one program header found at ``offset`` in ``data``."""
    if offset < 0 or offset + PROGHDR_SIZE > len(data):
        raise ElfFormatError("program header lies outside the image")
    values = list(_PROGHDR.unpack_from(data, offset))
    values[6] = ProgFlag(values[6])
    return ProgramHeader(*values)