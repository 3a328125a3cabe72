"""Teaching-kernel building blocks: x86 paging and descriptors, ELF headers, string routines, page tables, a heap allocator, locks, syscall dispatch, shell parsing and wc."""

__version__ = "0.1.0"