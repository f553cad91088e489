"""Tests for DWARF source file extraction."""

from __future__ import annotations

import io
from types import SimpleNamespace

import pytest

from sourcelynk import symbols
from sourcelynk.models import SourceFileRef
from sourcelynk.symbols import (
    DwarfSourceParser,
    MissingDebugSymbols,
    UnrecognizedFileFormat,
    line_program_paths,
)


def _lineprog(version: int, directories, files):  # type: ignore[no-untyped-def]
    header = {
        "version": version,
        "include_directory": directories,
        "file_entry": [SimpleNamespace(name=name, dir_index=index) for name, index in files],
    }
    return header


def test_dwarf4_paths_use_comp_dir_for_index_zero() -> None:
    prog = _lineprog(
        4,
        [b"/usr/include", b"src"],
        [(b"main.c", 0), (b"stdio.h", 1), (b"util.c", 2), (b"/abs/gen.c", 2)],
    )

    assert list(line_program_paths(prog, "/work/proj")) == [
        "/work/proj/main.c",
        "/usr/include/stdio.h",
        "/work/proj/src/util.c",
        "/abs/gen.c",
    ]


def test_dwarf5_paths_index_directories_from_zero() -> None:
    prog = _lineprog(5, [b"/work/proj", b"lib/../src"], [(b"main.c", 0), (b"util.c", 1)])

    assert list(line_program_paths(prog, "/work/proj")) == [
        "/work/proj/main.c",
        "/work/proj/src/util.c",
    ]


def test_relative_paths_without_comp_dir_are_dropped() -> None:
    prog = _lineprog(4, [], [(b"main.c", 0), (b"", 0)])
    assert list(line_program_paths(prog, "")) == []


def test_non_elf_input_is_unrecognized() -> None:
    handle = io.BytesIO(b"Microsoft C/C++ MSF 7.00\r\n\x1a\x44\x53" + b"\x00" * 64)
    with pytest.raises(UnrecognizedFileFormat):
        DwarfSourceParser().parse(handle)


class _FakeCU:
    def __init__(self, comp_dir):  # type: ignore[no-untyped-def]
        attributes = {}
        if comp_dir is not None:
            attributes["DW_AT_comp_dir"] = SimpleNamespace(value=comp_dir)
        self._die = SimpleNamespace(attributes=attributes)

    def get_top_DIE(self):  # type: ignore[no-untyped-def]
        return self._die


class _FakeDwarf:
    def __init__(self, units):  # type: ignore[no-untyped-def]
        self._units = units

    def iter_CUs(self):  # type: ignore[no-untyped-def]
        return iter(cu for cu, _ in self._units)

    def line_program_for_CU(self, cu):  # type: ignore[no-untyped-def]
        for candidate, prog in self._units:
            if candidate is cu:
                return prog
        return None


def _fake_elffile(sections, dwarf=None):  # type: ignore[no-untyped-def]
    class _ELFFile:
        def __init__(self, handle):  # type: ignore[no-untyped-def]
            self.handle = handle

        def get_section_by_name(self, name):  # type: ignore[no-untyped-def]
            return object() if name in sections else None

        def get_dwarf_info(self):  # type: ignore[no-untyped-def]
            return dwarf

    return _ELFFile


def test_missing_debug_info(monkeypatch) -> None:
    monkeypatch.setattr(symbols, "ELFFile", _fake_elffile({".text"}))
    with pytest.raises(MissingDebugSymbols):
        DwarfSourceParser().parse(io.BytesIO(b""))


def test_sources_deduplicated_across_units(monkeypatch) -> None:
    first = _FakeCU(b"/work/proj")
    second = _FakeCU(b"/work/proj")
    empty = _FakeCU(None)
    dwarf = _FakeDwarf(
        [
            (first, _lineprog(4, [], [(b"main.c", 0), (b"util.h", 0)])),
            (second, _lineprog(4, [], [(b"util.h", 0), (b"util.c", 0)])),
            (empty, None),
        ]
    )
    monkeypatch.setattr(symbols, "ELFFile", _fake_elffile({".debug_info"}, dwarf))

    sources = DwarfSourceParser().parse(io.BytesIO(b""))

    assert [str(ref.path) for ref in sources] == [
        "/work/proj/main.c",
        "/work/proj/util.h",
        "/work/proj/util.c",
    ]
    assert all(isinstance(ref, SourceFileRef) for ref in sources)
