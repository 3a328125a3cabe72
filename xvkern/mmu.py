"""x86 memory-management definitions: paging, segments, gates and layout."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import IntFlag

_U32 = 0xFFFFFFFF

# Memory layout
EXTMEM = 0x100000  # start of extended memory
PHYSTOP = 0xE000000  # top physical memory
DEVSPACE = 0xFE000000  # other devices are at high addresses
KERNBASE = 0x80000000  # first kernel virtual address
KERNLINK = KERNBASE + EXTMEM  # address where kernel is linked


class EFlag(IntFlag):
    """Bits of the EFLAGS register."""

    CF = 0x00000001
    PF = 0x00000004
    AF = 0x00000010
    ZF = 0x00000040
    SF = 0x00000080
    TF = 0x00000100
    IF = 0x00000200
    DF = 0x00000400
    OF = 0x00000800
    IOPL_1 = 0x00001000
    IOPL_2 = 0x00002000
    IOPL_MASK = 0x00003000
    NT = 0x00004000
    RF = 0x00010000
    VM = 0x00020000
    AC = 0x00040000
    VIF = 0x00080000
    VIP = 0x00100000
    ID = 0x00200000


FL_IOPL_0 = 0x00000000
FL_IOPL_3 = 0x00003000

# Control register flags
CR0_PE = 0x00000001
CR0_MP = 0x00000002
CR0_EM = 0x00000004
CR0_TS = 0x00000008
CR0_ET = 0x00000010
CR0_NE = 0x00000020
CR0_WP = 0x00010000
CR0_AM = 0x00040000
CR0_NW = 0x20000000
CR0_CD = 0x40000000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits
STA_X = 0x8
STA_E = 0x4
STA_C = 0x4
STA_W = 0x2
STA_R = 0x2
STA_A = 0x1

# System segment type bits
STS_T16A = 0x1
STS_LDT = 0x2
STS_T16B = 0x3
STS_CG16 = 0x4
STS_TG = 0x5
STS_IG16 = 0x6
STS_TG16 = 0x7
STS_T32A = 0x9
STS_T32B = 0xB
STS_CG32 = 0xC
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PGSHIFT = 12
PTXSHIFT = 12
PDXSHIFT = 22


class PteFlag(IntFlag):
    """Page table and page directory entry flags."""

    P = 0x001
    W = 0x002
    U = 0x004
    PWT = 0x008
    PCD = 0x010
    A = 0x020
    D = 0x040
    PS = 0x080
    MBZ = 0x180


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _U32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _U32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _U32


def pg_round_up(sz: int) -> int:
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _U32


def pg_round_down(a: int) -> int:
    return a & ~(PGSIZE - 1) & _U32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & _U32


def pte_flags(pte: int) -> int:
    """Flag bits held in a page table entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _U32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _U32


_SEG_WIDTHS = {
    "lim_15_0": 16,
    "base_15_0": 16,
    "base_23_16": 8,
    "type": 4,
    "s": 1,
    "dpl": 2,
    "p": 1,
    "lim_19_16": 4,
    "avl": 1,
    "rsv1": 1,
    "db": 1,
    "g": 1,
    "base_31_24": 8,
}

_GATE_WIDTHS = {
    "off_15_0": 16,
    "cs": 16,
    "args": 5,
    "rsv1": 3,
    "type": 4,
    "s": 1,
    "dpl": 2,
    "p": 1,
    "off_31_16": 16,
}


def _truncate(obj, widths: dict[str, int]) -> None:
    for name, width in widths.items():
        setattr(obj, name, getattr(obj, name) & ((1 << width) - 1))


def _pack(obj, widths: dict[str, int]) -> bytes:
    value = 0
    shift = 0
    for f in fields(obj):
        width = widths[f.name]
        value |= (getattr(obj, f.name) & ((1 << width) - 1)) << shift
        shift += width
    return value.to_bytes(8, "little")


@dataclass
class SegmentDescriptor:
    """An 8-byte GDT segment descriptor; fields are truncated to their bit widths."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    def __post_init__(self) -> None:
        _truncate(self, _SEG_WIDTHS)

    def pack(self) -> bytes:
        """The descriptor as it is laid out in memory."""
        return _pack(self, _SEG_WIDTHS)


@dataclass
class GateDescriptor:
    """An 8-byte IDT interrupt or trap gate."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    def __post_init__(self) -> None:
        _truncate(self, _GATE_WIDTHS)

    def pack(self) -> bytes:
        """The gate as it is laid out in memory."""
        return _pack(self, _GATE_WIDTHS)


def segment(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A normal 32-bit segment with a limit in 4096-byte units."""
    base &= _U32
    limit &= _U32
    return SegmentDescriptor(
        lim_15_0=(limit >> 12) & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=limit >> 28,
        avl=0,
        rsv1=0,
        db=1,
        g=1,
        base_31_24=base >> 24,
    )


def segment16(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A segment with a byte-granular limit (used for the TSS)."""
    base &= _U32
    limit &= _U32
    return SegmentDescriptor(
        lim_15_0=limit & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=limit >> 16,
        avl=0,
        rsv1=0,
        db=1,
        g=0,
        base_31_24=base >> 24,
    )


def gate(istrap: bool, sel: int, off: int, dpl: int) -> GateDescriptor:
    """An interrupt gate (clears IF) or a trap gate (leaves IF alone)."""
    off &= _U32
    return GateDescriptor(
        off_15_0=off & 0xFFFF,
        cs=sel,
        args=0,
        rsv1=0,
        type=STS_TG32 if istrap else STS_IG32,
        s=0,
        dpl=dpl,
        p=1,
        off_31_16=off >> 16,
    )


def seg_asm(type_: int, base: int, limit: int) -> bytes:
    """The bytes the boot assembler emits for a flat ring-0 segment."""
    base &= _U32
    limit &= _U32
    words = (((limit >> 12) & 0xFFFF).to_bytes(2, "little")
             + (base & 0xFFFF).to_bytes(2, "little"))
    tail = bytes((
        (base >> 16) & 0xFF,
        0x90 | type_,
        0xC0 | ((limit >> 28) & 0xF),
        (base >> 24) & 0xFF,
    ))
    return words + tail