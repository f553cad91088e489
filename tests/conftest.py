from __future__ import annotations

import logging
import struct
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _reset_sourcelynk_logger():
    """Undo CLI logging configuration so caplog keeps seeing records."""
    yield
    logger = logging.getLogger("sourcelynk")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def _elf_header(elf_type: int, *, big_endian: bool = False) -> bytes:
    data = b"\x02" if big_endian else b"\x01"
    ident = b"\x7fELF" + b"\x02" + data + b"\x01" + b"\x00" * 9
    order = ">" if big_endian else "<"
    return ident + struct.pack(f"{order}HHI", elf_type, 0x3E, 1) + b"\x00" * 40


@pytest.fixture
def elf_header():
    """Return a factory producing 64-byte ELF headers of the requested type."""
    return _elf_header


@pytest.fixture
def make_binary(tmp_path: Path):
    """Write a fake ELF file of the given type and return its path."""

    def _make(name: str, elf_type: int = 0x02, *, directory: Path | None = None) -> Path:
        target = (directory or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(_elf_header(elf_type) + b"\x00" * 64)
        return target

    return _make
