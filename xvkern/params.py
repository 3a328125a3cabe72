"""System-wide limits, open flags and system call numbers."""

from enum import IntEnum, IntFlag

NPROC = 64  # maximum number of processes
KSTACKSIZE = 4096  # size of per-process kernel stack
NCPU = 8  # maximum number of CPUs
NOFILE = 16  # open files per process
NFILE = 100  # open files per system
NINODE = 50  # maximum number of active i-nodes
NDEV = 10  # maximum major device number
ROOTDEV = 1  # device number of file system root disk
MAXARG = 32  # max exec arguments
MAXOPBLOCKS = 10  # max # of blocks any FS op writes
LOGSIZE = MAXOPBLOCKS * 3  # max data blocks in on-disk log
NBUF = MAXOPBLOCKS * 3  # size of disk block cache
FSSIZE = 1000  # size of file system in blocks


class OpenFlag(IntFlag):
    """Mode bits accepted by ``open``."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


class SyscallNumber(IntEnum):
    """Numbers identifying each system call."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    SHUTDOWN = 22
    CPS = 23
    CHPR = 24
    PSTAT = 25
    TERM = 26
    MASK = 27
    CONT = 28
    STOP = 29
    INTERRUPT = 30
    FGPROC = 31