import struct

import pytest

from xvkern import mmu
from xvkern.mmu import (
    DPL_USER,
    KERNBASE,
    PGSIZE,
    STA_R,
    STA_W,
    STA_X,
    STS_IG32,
    STS_T32A,
    STS_TG32,
    EFlag,
    PteFlag,
    gate,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pgaddr,
    pte_addr,
    pte_flags,
    ptx,
    seg_asm,
    segment,
    segment16,
    v2p,
)


@pytest.mark.parametrize("va", [0, 0x1234, KERNBASE, 0xFFFFFFFF, 0x00403ABC])
def test_pgaddr_reassembles_address(va):
    assert pgaddr(pdx(va), ptx(va), va & 0xFFF) == va


def test_index_ranges():
    assert pdx(0xFFFFFFFF) == 0x3FF
    assert ptx(0xFFFFFFFF) == 0x3FF
    assert pdx(KERNBASE) << mmu.PDXSHIFT == KERNBASE


def test_round_up_and_down():
    assert pg_round_up(0) == 0
    assert pg_round_up(1) == PGSIZE
    assert pg_round_up(PGSIZE) == PGSIZE
    assert pg_round_down(PGSIZE + 5) == PGSIZE
    assert pg_round_down(PGSIZE - 1) == 0


@pytest.mark.parametrize("n", [0, 7, 4095, 4096, 4097, 123456])
def test_rounding_invariants(n):
    up = pg_round_up(n)
    down = pg_round_down(n)
    assert up % PGSIZE == 0 and down % PGSIZE == 0
    assert down <= n <= up
    assert up - down in (0, PGSIZE)


def test_pte_split():
    pte = 0x00ABC000 | PteFlag.P | PteFlag.W | PteFlag.U
    assert pte_addr(pte) | pte_flags(pte) == pte
    assert pte_addr(pte) % PGSIZE == 0
    assert pte_flags(pte) == PteFlag.P | PteFlag.W | PteFlag.U


def test_virtual_physical_conversion():
    assert v2p(KERNBASE) == 0
    assert p2v(0) == KERNBASE
    assert v2p(p2v(mmu.PHYSTOP)) == mmu.PHYSTOP
    assert mmu.KERNLINK == KERNBASE + mmu.EXTMEM


def test_flag_values():
    assert EFlag(0x00000200) is EFlag.IF
    assert PteFlag(0x180) == PteFlag.MBZ
    assert PteFlag.PS in PteFlag(0x180)


def test_kernel_code_segment_bytes():
    desc = segment(STA_X | STA_R, 0, 0xFFFFFFFF, 0)
    assert int.from_bytes(desc.pack(), "little") == 0x00CF9A000000FFFF


@pytest.mark.parametrize(
    "type_,base,limit",
    [(STA_X | STA_R, 0, 0xFFFFFFFF), (STA_W, 0, 0xFFFFFFFF), (STA_W, 0x12345678, 0x0FFFF000)],
)
def test_seg_asm_matches_segment(type_, base, limit):
    assert seg_asm(type_, base, limit) == segment(type_, base, limit, 0).pack()


def test_user_segment_dpl():
    desc = segment(STA_W, 0, 0xFFFFFFFF, DPL_USER)
    access = desc.pack()[5]
    assert (access >> 5) & 3 == DPL_USER
    assert access & 0xF == STA_W
    assert access >> 7 == 1


def test_segment16_fields():
    base = 0x12345678
    desc = segment16(STS_T32A, base, 103, 0)
    assert desc.lim_15_0 == 103
    assert desc.lim_19_16 == 0
    assert desc.g == 0 and desc.db == 1
    raw = desc.pack()
    assert raw[2:4] == (base & 0xFFFF).to_bytes(2, "little")
    assert raw[4] == (base >> 16) & 0xFF
    assert raw[7] == base >> 24


def test_segment_fields_truncated():
    desc = mmu.SegmentDescriptor(type=0x1F, dpl=7)
    assert desc.type == 0xF
    assert desc.dpl == 3


def test_trap_gate_layout():
    off = 0xC0105A10
    sel = mmu.SEG_KCODE << 3
    g = gate(True, sel, off, DPL_USER)
    lo, cs, args, access, hi = struct.unpack("<HHBBH", g.pack())
    assert lo == off & 0xFFFF
    assert hi == off >> 16
    assert cs == sel
    assert args == 0
    assert access & 0xF == STS_TG32
    assert (access >> 4) & 1 == 0
    assert (access >> 5) & 3 == DPL_USER
    assert access >> 7 == 1


def test_interrupt_gate_type():
    g = gate(False, 8, 0, 0)
    assert g.type == STS_IG32
    assert g.dpl == 0
    assert g.p == 1