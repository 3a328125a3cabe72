"""A first-fit free-list allocator over a growable heap."""

from __future__ import annotations

import struct
from typing import Optional

_HEADER = struct.Struct("<iI")  # next pointer, size in units
UNIT = _HEADER.size
_BASE = -UNIT  # the list head lives below the heap


class Heap:
    """A contiguous memory region grown and shrunk with ``sbrk``."""

    def __init__(self, limit: int = 1 << 24) -> None:
        self.limit = limit
        self._mem = bytearray()

    def sbrk(self, n: int) -> int:
        """Move the break by ``n`` bytes; returns the old break."""
        old = len(self._mem)
        new = old + n
        if new < 0 or new > self.limit:
            raise MemoryError("sbrk out of range")
        if n >= 0:
            self._mem.extend(bytes(n))
        else:
            del self._mem[new:]
        return old

    def _check(self, addr: int, n: int) -> None:
        if addr < 0 or n < 0 or addr + n > len(self._mem):
            raise IndexError("address outside heap")

    def read(self, addr: int, n: int) -> bytes:
        self._check(addr, n)
        return bytes(self._mem[addr:addr + n])

    def write(self, addr: int, data: bytes) -> None:
        self._check(addr, len(data))
        self._mem[addr:addr + len(data)] = data


class Allocator:
    """malloc/free over a :class:`Heap`, coalescing neighbouring free blocks."""

    def __init__(self, heap: Heap) -> None:
        self.heap = heap
        self._base = [_BASE, 0]
        self._freep: Optional[int] = None

    def _get(self, p: int) -> tuple[int, int]:
        if p == _BASE:
            return self._base[0], self._base[1]
        return _HEADER.unpack(self.heap.read(p, UNIT))

    def _set(self, p: int, ptr: int, size: int) -> None:
        if p == _BASE:
            self._base = [ptr, size]
        else:
            self.heap.write(p, _HEADER.pack(ptr, size))

    def free(self, addr: int) -> None:
        """Return the block at ``addr`` to the free list."""
        bp = addr - UNIT
        bsize = self._get(bp)[1]
        p = self._freep
        while True:
            nxt = self._get(p)[0]
            if bp > p and bp < nxt:
                break
            if p >= nxt and (bp > p or bp < nxt):
                break
            p = nxt
        pnext, psize = self._get(p)
        if bp + bsize * UNIT == pnext:
            nnext, nsize = self._get(pnext)
            bsize += nsize
            bnext = nnext
        else:
            bnext = pnext
        self._set(bp, bnext, bsize)
        if p + psize * UNIT == bp:
            self._set(p, bnext, psize + bsize)
        else:
            self._set(p, bp, psize)
        self._freep = p

    def _morecore(self, nu: int) -> Optional[int]:
        nu = max(nu, 4096)
        try:
            hp = self.heap.sbrk(nu * UNIT)
        except MemoryError:
            return None
        self._set(hp, 0, nu)
        self.free(hp + UNIT)
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Address of a block of at least ``nbytes``; raises MemoryError."""
        nunits = (nbytes + UNIT - 1) // UNIT + 1
        if self._freep is None:
            self._base = [_BASE, 0]
            self._freep = _BASE
        prevp = self._freep
        p = self._get(prevp)[0]
        while True:
            pnext, psize = self._get(p)
            if psize >= nunits:
                if psize == nunits:
                    self._set(prevp, pnext, self._get(prevp)[1])
                else:
                    self._set(p, pnext, psize - nunits)
                    p += (psize - nunits) * UNIT
                    self._set(p, 0, nunits)
                self._freep = prevp
                return p + UNIT
            if p == self._freep:
                grown = self._morecore(nunits)
                if grown is None:
                    raise MemoryError("heap exhausted")
                p = grown
            prevp = p
            p = self._get(p)[0]