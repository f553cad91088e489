"""Tests for header-based container format detection."""

from __future__ import annotations

from pathlib import Path

import pytest

from sourcelynk import magic
from sourcelynk.magic import (
    ContainerFormat,
    ElfKind,
    Endianness,
    SniffError,
    classify,
    is_possible_symbol_file,
    sniff_file,
)

PDB_HEADER = b"Microsoft C/C++ MSF 7.00\r\n\x1a\x44\x53\x00\x00\x00"


def _padded(prefix: bytes, size: int = 32) -> bytes:
    return prefix + b"\x00" * (size - len(prefix))


@pytest.mark.parametrize("length", [0, 1, 4, 31])
def test_short_files_are_unknown(length: int) -> None:
    header = (b"\x7fELF\x02\x01\x01" + b"\x00" * 32)[:length]
    assert classify(header, length) == magic.UNKNOWN


def test_short_file_length_wins_over_header_content(elf_header) -> None:
    assert classify(elf_header(0x02)[:32], 31) == magic.UNKNOWN


def test_little_endian_executable(elf_header) -> None:
    header = elf_header(0x02)[:32]
    assert header[16:18] == b"\x02\x00"
    assert classify(header, 4096) == ContainerFormat.elf(ElfKind.EXECUTABLE)


def test_big_endian_executable_matches_little_endian(elf_header) -> None:
    header = elf_header(0x02, big_endian=True)[:32]
    assert header[5] == 0x02
    assert header[16:18] == b"\x00\x02"
    assert classify(header, 4096) == ContainerFormat.elf(ElfKind.EXECUTABLE)


@pytest.mark.parametrize(
    "value, kind",
    [
        (0x00, ElfKind.NONE),
        (0x01, ElfKind.RELOCATABLE),
        (0x03, ElfKind.SHARED_OBJECT),
        (0x04, ElfKind.CORE),
        (0xFE00, ElfKind.UNKNOWN),
    ],
)
def test_elf_object_types(elf_header, value: int, kind: ElfKind) -> None:
    assert classify(elf_header(value)[:32], 64) == ContainerFormat.elf(kind)


def test_elf_with_unknown_endianness_is_unknown(elf_header) -> None:
    header = bytearray(elf_header(0x02)[:32])
    header[5] = 0x03
    assert classify(bytes(header), 64) == magic.UNKNOWN


def test_elf_prefix_without_magic_is_unknown() -> None:
    assert classify(_padded(b"\x7fELG\x02\x01"), 64) == magic.UNKNOWN


def test_program_database_signature() -> None:
    assert classify(PDB_HEADER, 1024) == magic.PROGRAM_DATABASE


@pytest.mark.parametrize("index", [2, 10, 25, 28])
def test_program_database_signature_must_match_exactly(index: int) -> None:
    header = bytearray(PDB_HEADER)
    header[index] ^= 0xFF
    assert classify(bytes(header), 1024) == magic.UNKNOWN


def test_portable_executable() -> None:
    assert classify(_padded(b"MZ\x90\x00"), 1024) == magic.PORTABLE_EXECUTABLE


def test_other_m_prefix_is_unknown() -> None:
    assert classify(_padded(b"MQ"), 1024) == magic.UNKNOWN


@pytest.mark.parametrize(
    "prefix",
    [b"\xfe\xed\xfa\xce", b"\xfe\xed\xfa\xcf", b"\xce\xfa\xed\xfe", b"\xcf\xfa\xed\xfe"],
)
def test_mach_object_magics(prefix: bytes) -> None:
    assert classify(_padded(prefix), 1024) == magic.MACH_OBJECT


@pytest.mark.parametrize("prefix", [b"\xfe\xed\xfa\xcd", b"\xce\xfa\xed\xff", b"PK\x03\x04"])
def test_near_miss_magics_are_unknown(prefix: bytes) -> None:
    assert classify(_padded(prefix), 1024) == magic.UNKNOWN


def test_endianness_from_byte() -> None:
    assert magic.endianness_from_byte(1) is Endianness.LITTLE
    assert magic.endianness_from_byte(2) is Endianness.BIG
    assert magic.endianness_from_byte(0) is Endianness.UNKNOWN


def test_symbol_file_allow_list() -> None:
    assert is_possible_symbol_file(ContainerFormat.elf(ElfKind.EXECUTABLE))
    assert is_possible_symbol_file(ContainerFormat.elf(ElfKind.SHARED_OBJECT))
    assert is_possible_symbol_file(magic.PROGRAM_DATABASE)

    for kind in (ElfKind.NONE, ElfKind.RELOCATABLE, ElfKind.CORE, ElfKind.UNKNOWN):
        assert not is_possible_symbol_file(ContainerFormat.elf(kind))
    for container in (magic.PORTABLE_EXECUTABLE, magic.MACH_OBJECT, magic.UNKNOWN):
        assert not is_possible_symbol_file(container)


def test_sniff_file_reads_header(make_binary) -> None:
    path = make_binary("libdemo.so", 0x03)
    assert sniff_file(path) == ContainerFormat.elf(ElfKind.SHARED_OBJECT)


def test_sniff_file_small_file_is_unknown(tmp_path: Path) -> None:
    path = tmp_path / "tiny"
    path.write_bytes(b"\x7fELF")
    assert sniff_file(path) == magic.UNKNOWN


def test_sniff_file_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(SniffError):
        sniff_file(tmp_path / "missing.bin")


def test_container_format_str() -> None:
    assert str(ContainerFormat.elf(ElfKind.EXECUTABLE)) == "elf(executable)"
    assert str(magic.PROGRAM_DATABASE) == "pdb"
