import pytest

from xvkern.umalloc import Allocator, Heap


def test_sbrk_returns_old_break():
    heap = Heap(limit=100)
    assert heap.sbrk(10) == 0
    assert heap.sbrk(5) == 10
    assert heap.sbrk(-15) == 15
    with pytest.raises(MemoryError):
        heap.sbrk(101)


def test_heap_bounds():
    heap = Heap()
    heap.sbrk(8)
    heap.write(0, b"abcdefgh")
    assert heap.read(2, 3) == b"cde"
    with pytest.raises(IndexError):
        heap.read(4, 8)


def test_blocks_do_not_overlap():
    heap = Heap()
    alloc = Allocator(heap)
    sizes = [1, 17, 100, 3000, 8]
    addrs = [alloc.malloc(n) for n in sizes]
    for i, (a, n) in enumerate(zip(addrs, sizes)):
        heap.write(a, bytes([i + 1]) * n)
    for i, (a, n) in enumerate(zip(addrs, sizes)):
        assert heap.read(a, n) == bytes([i + 1]) * n


def test_free_then_reuse():
    alloc = Allocator(Heap())
    a = alloc.malloc(64)
    alloc.free(a)
    assert alloc.malloc(64) == a


def test_exhaustion_and_recovery():
    alloc = Allocator(Heap(limit=1 << 20))
    blocks = []
    with pytest.raises(MemoryError):
        while True:
            blocks.append(alloc.malloc(10001))
    assert len(blocks) > 10
    for b in blocks:
        alloc.free(b)
    big = alloc.malloc(1024 * 20)
    alloc.free(big)
    assert len({alloc.malloc(10001) for _ in blocks}) == len(blocks)