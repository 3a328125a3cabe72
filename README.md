# xvkern

Small, self-contained building blocks of a teaching operating-system kernel,
written as plain Python with no third-party dependencies.

## Modules

- `xvkern.params` – system limits (`NPROC`, `NOFILE`, `MAXARG`, `FSSIZE`, …),
  the `SyscallNumber` enum and the `OpenFlag` flags (`RDONLY`, `WRONLY`,
  `RDWR`, `CREATE`).
- `xvkern.mmu` – x86 paging helpers (`pdx`, `ptx`, `pgaddr`, `pg_round_up`,
  `pg_round_down`, `pte_addr`, `pte_flags`, `v2p`, `p2v`), the memory-layout
  constants (`KERNBASE`, `PHYSTOP`, `DEVSPACE`, …), `PteFlag`, `EFlag`, and
  descriptor builders: `segment` and `segment16` return a
  `SegmentDescriptor`, `gate` returns a `GateDescriptor`; both have `pack()`
  giving their 8-byte in-memory form. `seg_asm` returns the 8 bytes of a flat
  segment as the boot assembler lays it out.
- `xvkern.elf` – `parse_elf_header` and `parse_program_header` for 32-bit
  little-endian ELF images, and `ElfHeader.program_headers(data)`.
  Short data, a bad magic number or a header outside the image raises
  `ElfFormatError`.
- `xvkern.cstring` – NUL-terminated string and memory routines on `bytes` and
  `bytearray`: `memset`, `memcmp`, `memmove`, `strlen`, `strcmp`, `strncmp`,
  `strncpy`, `safestrcpy`, `strchr` (an index or `None`), `atoi` and
  `gets(stream, limit)`. Ranges outside a buffer raise `IndexError`.
- `xvkern.vm` – a simulated `PhysicalMemory` page pool and a two-level
  `PageDirectory` stored inside it. `setup_kvm(mem, data_addr)` builds a
  directory holding the kernel mappings; directories support `walk`,
  `map_pages`, `init_uvm`, `load_uvm`, `alloc_uvm`, `dealloc_uvm`, `free`,
  `clear_pteu`, `copy`, `uva2ka` and `copyout`. Remapping or other
  inconsistencies raise `VmError`; running out of pages raises `MemoryError`.
- `xvkern.umalloc` – a first-fit, coalescing free-list `Allocator`
  (`malloc`, `free`) on top of a `Heap` grown with `sbrk`. An exhausted heap
  raises `MemoryError`.
- `xvkern.locks` – `SpinLock` (held by the acquiring thread, usable as a
  context manager) and `SleepLock` (held on behalf of a process id; waiters
  block until release). Re-acquiring or releasing a spin lock that is not held
  raises `LockError`.
- `xvkern.syscall` – `UserSpace` for fetching system call arguments
  (`fetch_int`, `fetch_str`, `arg_int`, `arg_ptr`, `arg_str`), raising
  `SyscallError` for addresses outside process memory, and `SyscallTable`,
  whose `dispatch` runs a registered handler, returns -1 when the handler
  raises `SyscallError`, and for an unknown number writes
  `"<pid> <name>: unknown sys call <n>"` to its console (standard error by
  default) and returns -1.
- `xvkern.shell` – `tokenize` and `parse_command` for the shell grammar
  (`|`, `;`, `&`, `<`, `>`, `>>`, parentheses), producing `ExecCmd`,
  `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd` trees. Bad input raises
  `ShellSyntaxError`; a command takes fewer than 10 words.
- `xvkern.wc` – `count(stream)` returns `WcCounts(lines, words, chars)`;
  `main` prints `lines words chars name` for each file.

## Install

    pip install .

## Examples

Parse a command line:

    from xvkern.shell import parse_command

    cmd = parse_command("cat README | wc > out")
    # PipeCmd(left=ExecCmd(argv=['cat', 'README']),
    #         right=RedirCmd(cmd=ExecCmd(argv=['wc']), file='out', ...))

Build page tables and grow a user address space:

    from xvkern.mmu import KERNBASE
    from xvkern.vm import PhysicalMemory, setup_kvm

    mem = PhysicalMemory()
    pgdir = setup_kvm(mem, KERNBASE + 0x200000)
    size = pgdir.alloc_uvm(0, 8192)
    pgdir.copyout(0, b"hello")

Allocate from a heap:

    from xvkern.umalloc import Allocator, Heap

    alloc = Allocator(Heap())
    addr = alloc.malloc(100)
    alloc.free(addr)

Count lines, words and bytes:

    xvkern-wc README.md

With no file names, `xvkern-wc` reads standard input. It stops with exit
status 1 at the first file it cannot open.

## What it does not do

These are separate pieces, not a running kernel. There is no file system,
process table, scheduler, trap handling or device support, and nothing boots.
The shell module only parses command lines; it does not run them.

## Tests

    pip install .[test]
    pytest