"""Extract the source file list recorded in a binary's DWARF line tables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Iterator, List, Protocol, Set

from elftools.common.exceptions import DWARFError, ELFError, ELFParseError
from elftools.elf.elffile import ELFFile

from .models import SourceFileRef

_DEBUG_INFO_SECTIONS = (".debug_info", ".zdebug_info")


class SymbolParseError(RuntimeError):
    """Raised when debug information cannot be read from a file."""


class MissingDebugSymbols(SymbolParseError):
    """Raised when a recognised file carries no debug information."""


class UnrecognizedFileFormat(SymbolParseError):
    """Raised when the parser does not understand the file's container."""


class DebugSymbolParser(Protocol):
    def parse(self, handle: BinaryIO) -> List[SourceFileRef]: ...


class DwarfSourceParser:
    """Reads compile-unit line programs from ELF files via pyelftools."""

    def parse(self, handle: BinaryIO) -> List[SourceFileRef]:
        try:
            elffile = ELFFile(handle)
        except ELFError as exc:
            raise UnrecognizedFileFormat(str(exc)) from exc

        if not any(elffile.get_section_by_name(name) for name in _DEBUG_INFO_SECTIONS):
            raise MissingDebugSymbols("no .debug_info section")

        seen: Set[str] = set()
        sources: List[SourceFileRef] = []
        try:
            dwarfinfo = elffile.get_dwarf_info()
            for cu in dwarfinfo.iter_CUs():
                comp_dir = _decode(cu.get_top_DIE().attributes.get("DW_AT_comp_dir"))
                lineprog = dwarfinfo.line_program_for_CU(cu)
                if lineprog is None:
                    continue
                for path in line_program_paths(lineprog, comp_dir):
                    if path not in seen:
                        seen.add(path)
                        sources.append(SourceFileRef(Path(path)))
        except (DWARFError, ELFError, ELFParseError) as exc:
            raise SymbolParseError(f"malformed DWARF data: {exc}") from exc
        return sources


def line_program_paths(lineprog, comp_dir: str) -> Iterator[str]:
    """Yield absolute, normalised paths from a line program's file table."""
    version = lineprog["version"]
    directories = [_decode(entry) for entry in lineprog["include_directory"]]
    for entry in lineprog["file_entry"]:
        name = _decode(entry.name)
        if not name:
            continue
        directory = _directory_for(entry.dir_index, version, directories, comp_dir)
        path = os.path.normpath(os.path.join(comp_dir, directory, name))
        if os.path.isabs(path):
            yield path


def _directory_for(index: int, version: int, directories: List[str], comp_dir: str) -> str:
    # DWARF 5 indexes directories from 0; earlier versions reserve 0 for comp_dir
    if version < 5:
        if index == 0:
            return comp_dir
        index -= 1
    if 0 <= index < len(directories):
        return directories[index]
    return comp_dir


def _decode(value) -> str:
    if value is None:
        return ""
    value = getattr(value, "value", value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


__all__ = [
    "DebugSymbolParser",
    "DwarfSourceParser",
    "MissingDebugSymbols",
    "SymbolParseError",
    "UnrecognizedFileFormat",
    "line_program_paths",
]
