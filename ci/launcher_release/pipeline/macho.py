"""
Launcher Release — Mach-O fat header inspection.

Lets the macOS packager check a merged binary structurally instead of
executing it. Only the fat (universal) header is read.
"""

from __future__ import annotations

import struct
from pathlib import Path

from launcher_release.models.release import Architecture

FAT_MAGIC = 0xCAFEBABE
FAT_MAGIC_64 = 0xCAFEBABF
CPU_ARCH_ABI64 = 0x01000000
CPU_TYPE_X86 = 7
CPU_TYPE_ARM = 12

CPU_TYPES = {
    CPU_TYPE_X86 | CPU_ARCH_ABI64: Architecture.X86_64,
    CPU_TYPE_ARM | CPU_ARCH_ABI64: Architecture.ARM64,
}

_FAT_HEADER = struct.Struct(">II")
_FAT_ARCH = struct.Struct(">iiIII")  # cputype, cpusubtype, offset, size, align
_FAT_ARCH_64 = struct.Struct(">iiQQII")


def read_fat_architectures(path: Path) -> set[Architecture]:
    """Return the known architecture slices of a universal binary.

    A thin (single-architecture) binary or an unreadable file yields an
    empty set.
    """
    try:
        f = open(path, "rb")
    except OSError:
        return set()

    with f:
        header = f.read(_FAT_HEADER.size)
        if len(header) < _FAT_HEADER.size:
            return set()
        magic, count = _FAT_HEADER.unpack(header)
        if magic == FAT_MAGIC:
            entry = _FAT_ARCH
        elif magic == FAT_MAGIC_64:
            entry = _FAT_ARCH_64
        else:
            return set()

        found: set[Architecture] = set()
        for _ in range(count):
            raw = f.read(entry.size)
            if len(raw) < entry.size:
                break
            cputype = entry.unpack(raw)[0]
            if cputype in CPU_TYPES:
                found.add(CPU_TYPES[cputype])
        return found

