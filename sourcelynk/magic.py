"""Container format detection from the first bytes of a file.

Only the header is inspected: the ELF identification bytes and object type, the DOS
``MZ`` stub, the MSF 7.00 program database signature and the Mach-O magic numbers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

HEADER_SIZE = 32

ELF_MAGIC = b"\x7fELF"

# https://github.com/Microsoft/microsoft-pdb/blob/082c5290e5aff028ae84e43affa8be717aa7af73/PDB/msf/msf.cpp#L962
PDB_MAGIC = b"Microsoft C/C++ MSF 7.00\r\n\x1a\x44\x53"

# mh_magic, mh_magic_64 and their byte-swapped forms from mach-o/loader.h
_MACHO_BIG_TAILS = (b"\xed\xfa\xce", b"\xed\xfa\xcf")
_MACHO_LITTLE_TAIL = b"\xfa\xed\xfe"

_ELF_DATA_OFFSET = 5
_ELF_TYPE_OFFSET = 16


class SniffError(OSError):
    """Raised when a file header cannot be read."""


class Endianness(Enum):
    LITTLE = "little"
    BIG = "big"
    UNKNOWN = "unknown"


class ElfKind(Enum):
    NONE = "none"
    RELOCATABLE = "relocatable"
    EXECUTABLE = "executable"
    SHARED_OBJECT = "shared-object"
    CORE = "core"
    UNKNOWN = "unknown"


class FormatKind(Enum):
    UNKNOWN = "unknown"
    PROGRAM_DATABASE = "pdb"
    ELF = "elf"
    PORTABLE_EXECUTABLE = "pe"
    MACH_OBJECT = "macho"


_ENDIANNESS_BY_BYTE = {
    0x01: Endianness.LITTLE,
    0x02: Endianness.BIG,
}

_ELF_KIND_BY_VALUE = {
    0x00: ElfKind.NONE,
    0x01: ElfKind.RELOCATABLE,
    0x02: ElfKind.EXECUTABLE,
    0x03: ElfKind.SHARED_OBJECT,
    0x04: ElfKind.CORE,
}


@dataclass(frozen=True)
class ContainerFormat:
    """Classification of a file; ``elf_kind`` is set only for ELF containers."""

    kind: FormatKind
    elf_kind: Optional[ElfKind] = None

    @classmethod
    def elf(cls, elf_kind: ElfKind) -> "ContainerFormat":
        return cls(FormatKind.ELF, elf_kind)

    def __str__(self) -> str:
        if self.elf_kind is not None:
            return f"{self.kind.value}({self.elf_kind.value})"
        return self.kind.value


UNKNOWN = ContainerFormat(FormatKind.UNKNOWN)
PROGRAM_DATABASE = ContainerFormat(FormatKind.PROGRAM_DATABASE)
PORTABLE_EXECUTABLE = ContainerFormat(FormatKind.PORTABLE_EXECUTABLE)
MACH_OBJECT = ContainerFormat(FormatKind.MACH_OBJECT)

_SYMBOL_FILE_FORMATS = frozenset(
    {
        ContainerFormat.elf(ElfKind.EXECUTABLE),
        ContainerFormat.elf(ElfKind.SHARED_OBJECT),
        PROGRAM_DATABASE,
    }
)


def endianness_from_byte(value: int) -> Endianness:
    return _ENDIANNESS_BY_BYTE.get(value, Endianness.UNKNOWN)


def elf_kind_from_value(value: int) -> ElfKind:
    return _ELF_KIND_BY_VALUE.get(value, ElfKind.UNKNOWN)


def classify(header: bytes, file_length: int) -> ContainerFormat:
    """Classify a file from its first ``HEADER_SIZE`` bytes."""
    if file_length < HEADER_SIZE or len(header) < HEADER_SIZE:
        return UNKNOWN

    first = header[0]
    if first == ELF_MAGIC[0]:
        if header[:4] != ELF_MAGIC:
            return UNKNOWN
        return _classify_elf(header)
    if first == ord("M"):
        if header[1] == ord("Z"):
            return PORTABLE_EXECUTABLE
        if header[1] == ord("i") and header[: len(PDB_MAGIC)] == PDB_MAGIC:
            return PROGRAM_DATABASE
        return UNKNOWN
    if first == 0xFE:
        return MACH_OBJECT if header[1:4] in _MACHO_BIG_TAILS else UNKNOWN
    if first in (0xCE, 0xCF):
        return MACH_OBJECT if header[1:4] == _MACHO_LITTLE_TAIL else UNKNOWN
    return UNKNOWN


def _classify_elf(header: bytes) -> ContainerFormat:
    endianness = endianness_from_byte(header[_ELF_DATA_OFFSET])
    if endianness is Endianness.LITTLE:
        low, high = header[_ELF_TYPE_OFFSET], header[_ELF_TYPE_OFFSET + 1]
    elif endianness is Endianness.BIG:
        high, low = header[_ELF_TYPE_OFFSET], header[_ELF_TYPE_OFFSET + 1]
    else:
        return UNKNOWN
    return ContainerFormat.elf(elf_kind_from_value((high << 8) | low))


def sniff_file(path: Path | str) -> ContainerFormat:
    """Read the header of ``path`` and classify it.

    Raises:
        SniffError: if the file cannot be opened or read.
    """
    try:
        with open(path, "rb") as handle:
            file_length = os.fstat(handle.fileno()).st_size
            if file_length < HEADER_SIZE:
                return UNKNOWN
            header = handle.read(HEADER_SIZE)
    except OSError as exc:
        raise SniffError(f"Failed to read header of {path}: {exc}") from exc
    return classify(header, file_length)


def is_possible_symbol_file(container: ContainerFormat) -> bool:
    """Return True for formats that may carry a source file list worth linking."""
    return container in _SYMBOL_FILE_FORMATS


__all__ = [
    "ContainerFormat",
    "ElfKind",
    "Endianness",
    "FormatKind",
    "HEADER_SIZE",
    "MACH_OBJECT",
    "PORTABLE_EXECUTABLE",
    "PROGRAM_DATABASE",
    "SniffError",
    "UNKNOWN",
    "classify",
    "elf_kind_from_value",
    "endianness_from_byte",
    "is_possible_symbol_file",
    "sniff_file",
]
