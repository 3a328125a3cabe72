"""Two-level x86 page tables kept in a simulated physical memory."""

from __future__ import annotations

import struct
from typing import Callable, Optional

from .mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PHYSTOP,
    PteFlag,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

_U32 = 0xFFFFFFFF
_ENTRY = struct.Struct("<I")


class VmError(Exception):
    """An inconsistency in the page tables or a bad request to them."""


class PhysicalMemory:
    """A pool of 4096-byte physical pages handed out one at a time."""

    def __init__(self, start: int = 0x400000, end: int = PHYSTOP) -> None:
        self._next = pg_round_up(start)
        self._end = pg_round_down(end)
        self._free: list[int] = []
        self._pages: dict[int, bytearray] = {}

    @property
    def free_count(self) -> int:
        """Number of pages that can still be allocated."""
        return len(self._free) + max(0, (self._end - self._next) // PGSIZE)

    def alloc_page(self) -> int:
        """Physical address of a fresh page; raises MemoryError when none is left."""
        if self._free:
            pa = self._free.pop()
        elif self._next + PGSIZE <= self._end:
            pa = self._next
            self._next += PGSIZE
        else:
            raise MemoryError("out of physical memory")
        self._pages[pa] = bytearray(b"\x01" * PGSIZE)
        return pa

    def free_page(self, pa: int) -> None:
        """Return a page to the pool."""
        if pa % PGSIZE or pa not in self._pages:
            raise VmError("kfree")
        del self._pages[pa]
        self._free.append(pa)

    def _page(self, base: int) -> bytearray:
        try:
            return self._pages[base]
        except KeyError:
            raise VmError(f"physical page {base:#x} is not allocated") from None

    def read(self, pa: int, n: int) -> bytes:
        """``n`` bytes starting at physical address ``pa``."""
        out = bytearray()
        while n > 0:
            base = pg_round_down(pa)
            off = pa - base
            k = min(n, PGSIZE - off)
            out += self._page(base)[off:off + k]
            pa += k
            n -= k
        return bytes(out)

    def write(self, pa: int, data: bytes) -> None:
        """Store ``data`` at physical address ``pa``."""
        view = memoryview(bytes(data))
        while view:
            base = pg_round_down(pa)
            off = pa - base
            k = min(len(view), PGSIZE - off)
            self._page(base)[off:off + k] = view[:k]
            pa += k
            view = view[k:]

    def _load(self, pa: int) -> int:
        return _ENTRY.unpack_from(self._page(pg_round_down(pa)), pa % PGSIZE)[0]

    def _store(self, pa: int, value: int) -> None:
        _ENTRY.pack_into(self._page(pg_round_down(pa)), pa % PGSIZE, value & _U32)


class PageDirectory:
    """A process or kernel page directory living in physical memory."""

    def __init__(self, mem: PhysicalMemory, addr: int, data_addr: int) -> None:
        self.mem = mem
        self.addr = addr
        self.data_addr = data_addr

    def walk(self, va: int, alloc: bool) -> Optional[int]:
        """Physical address of the PTE for ``va``, creating its table if ``alloc``.

        Returns None when the table is missing and ``alloc`` is false.
        Raises MemoryError when a table cannot be allocated.
        """
        pde_pa = self.addr + 4 * pdx(va)
        pde = self.mem._load(pde_pa)
        if pde & PteFlag.P:
            pgtab = pte_addr(pde)
        else:
            if not alloc:
                return None
            pgtab = self.mem.alloc_page()
            self.mem.write(pgtab, bytes(PGSIZE))
            self.mem._store(pde_pa, pgtab | PteFlag.P | PteFlag.W | PteFlag.U)
        return pgtab + 4 * ptx(va)

    def _entry(self, va: int) -> Optional[int]:
        pte = self.walk(va, False)
        return None if pte is None else self.mem._load(pte)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map ``size`` bytes at ``va`` onto physical memory from ``pa``."""
        a = pg_round_down(va)
        last = pg_round_down((va + size - 1) & _U32)
        while True:
            pte = self.walk(a, True)
            if self.mem._load(pte) & PteFlag.P:
                raise VmError("remap")
            self.mem._store(pte, pa | perm | PteFlag.P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_uvm(self, init: bytes) -> None:
        """Load ``init`` (less than a page) at user address 0."""
        if len(init) >= PGSIZE:
            raise VmError("inituvm: more than a page")
        page = self.mem.alloc_page()
        self.mem.write(page, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, page, PteFlag.W | PteFlag.U)
        self.mem.write(page, init)

    def load_uvm(self, addr: int, reader: Callable[[int, int], bytes],
                 offset: int, sz: int) -> None:
        """Fill already-mapped pages at ``addr`` with ``reader(offset, n)`` data."""
        if addr % PGSIZE:
            raise VmError("loaduvm: addr must be page aligned")
        for i in range(0, sz, PGSIZE):
            pte = self.walk(addr + i, False)
            if pte is None:
                raise VmError("loaduvm: address should exist")
            pa = pte_addr(self.mem._load(pte))
            n = min(sz - i, PGSIZE)
            chunk = reader(offset + i, n)
            if len(chunk) != n:
                raise VmError("loaduvm: short read")
            self.mem.write(pa, chunk)

    def alloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Grow the user space from ``oldsz`` to ``newsz``; returns the new size."""
        if newsz >= KERNBASE:
            raise VmError("size reaches kernel space")
        if newsz < oldsz:
            return oldsz
        for a in range(pg_round_up(oldsz), newsz, PGSIZE):
            try:
                page = self.mem.alloc_page()
            except MemoryError:
                self.dealloc_uvm(newsz, oldsz)
                raise
            self.mem.write(page, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, page, PteFlag.W | PteFlag.U)
            except MemoryError:
                self.dealloc_uvm(newsz, oldsz)
                self.mem.free_page(page)
                raise
        return newsz

    def dealloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Shrink the user space from ``oldsz`` to ``newsz``; returns the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pg_round_up(newsz)
        while a < oldsz:
            pte = self.walk(a, False)
            if pte is None:
                a = ((pdx(a) + 1) << PDXSHIFT) - PGSIZE
            else:
                entry = self.mem._load(pte)
                if entry & PteFlag.P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise VmError("kfree")
                    self.mem.free_page(pa)
                    self.mem._store(pte, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Release all user pages, the page tables and the directory."""
        self.dealloc_uvm(KERNBASE, 0)
        for i in range(NPDENTRIES):
            pde = self.mem._load(self.addr + 4 * i)
            if pde & PteFlag.P:
                self.mem.free_page(pte_addr(pde))
        self.mem.free_page(self.addr)

    def clear_pteu(self, uva: int) -> None:
        """Make the page at ``uva`` inaccessible to user code."""
        pte = self.walk(uva, False)
        if pte is None:
            raise VmError("clearpteu")
        self.mem._store(pte, self.mem._load(pte) & ~PteFlag.U)

    def copy(self, sz: int) -> "PageDirectory":
        """A new directory holding a copy of the first ``sz`` bytes of user space."""
        child = setup_kvm(self.mem, self.data_addr)
        for i in range(0, sz, PGSIZE):
            entry = self._entry(i)
            if entry is None:
                raise VmError("copyuvm: pte should exist")
            if not entry & PteFlag.P:
                raise VmError("copyuvm: page not present")
            try:
                page = self.mem.alloc_page()
                self.mem.write(page, self.mem.read(pte_addr(entry), PGSIZE))
                child.map_pages(i, PGSIZE, page, pte_flags(entry))
            except MemoryError:
                child.free()
                raise
        return child

    def uva2ka(self, uva: int) -> Optional[int]:
        """Kernel address of the user page at ``uva``, or None if not user-mapped."""
        entry = self._entry(uva)
        if entry is None or not entry & PteFlag.P or not entry & PteFlag.U:
            return None
        return p2v(pte_addr(entry))

    def copyout(self, va: int, data: bytes) -> None:
        """Copy ``data`` to user address ``va``."""
        view = memoryview(bytes(data))
        while view:
            va0 = pg_round_down(va)
            ka = self.uva2ka(va0)
            if ka is None:
                raise VmError(f"user address {va0:#x} is not mapped")
            n = min(PGSIZE - (va - va0), len(view))
            self.mem.write(v2p(ka) + (va - va0), view[:n])
            view = view[n:]
            va = va0 + PGSIZE


def setup_kvm(mem: PhysicalMemory, data_addr: int) -> PageDirectory:
    """A new page directory holding only the kernel mappings.

    ``data_addr`` is the kernel virtual address where writable data begins.
    """
    pa = mem.alloc_page()
    mem.write(pa, bytes(PGSIZE))
    pgdir = PageDirectory(mem, pa, data_addr)
    if p2v(PHYSTOP) > DEVSPACE:
        raise VmError("PHYSTOP too high")
    kmap = [
        (KERNBASE, 0, EXTMEM, PteFlag.W),
        (KERNLINK, v2p(KERNLINK), v2p(data_addr), 0),
        (data_addr, v2p(data_addr), PHYSTOP, PteFlag.W),
        (DEVSPACE, DEVSPACE, 0, PteFlag.W),
    ]
    for virt, start, end, perm in kmap:
        try:
            pgdir.map_pages(virt, (end - start) & _U32, start, perm)
        except MemoryError:
            pgdir.free()
            raise
    return pgdir