"""Shared test fixtures for the mif_converter test suite.

WHY: The join tests need small binaries on disk laid out the way the
join instructions describe them. Building them through one fixture keeps
byte layouts explicit in each test and avoids duplicated file handling.

HOW: ``write_bin`` writes bytes to a file inside a per-test ``bins``
directory and returns its path. ``mifs_dir`` is an empty output
directory. ``sample_files`` is the two-binary join from the README
shrunk to a few words.

RULES:
- All file I/O happens under pytest's tmp_path
- Byte layouts are spelled out in hex in the tests, not generated
"""

from pathlib import Path
from typing import Callable

import pytest

from mif_converter.core.instructions import Area, Joins, Skips
from mif_converter.core.mif import First


@pytest.fixture
def bins_dir(tmp_path) -> Path:
    path = tmp_path / "bins"
    path.mkdir()
    return path


@pytest.fixture
def mifs_dir(tmp_path) -> Path:
    path = tmp_path / "mifs"
    path.mkdir()
    return path


@pytest.fixture
def write_bin(bins_dir) -> Callable[[str, bytes], Path]:
    """Write ``data`` to ``<bins>/<name>`` and return the path."""

    def _write(name: str, data: bytes) -> Path:
        path = bins_dir / name
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def sample_files(write_bin):
    """Two ROMs with a 24-bit program area, 0xFFFFFF padding and 16-bit data.

    a.rom: program 000001 000001 000002 | pad FFFFFF | data (msb) 1234
    b.rom: program 000003               | pad FFFFFF FFFFFF | data (lsb) 5678
    """
    write_bin("a.rom", bytes.fromhex("010000" "010000" "020000" "ffffff" "1234"))
    write_bin("b.rom", bytes.fromhex("030000" "ffffff" "ffffff" "7856"))
    return {
        "a.rom": [
            Area(depth=3, width=24, instr=Joins(["a.prog.mif", "ab.prog.mif"])),
            Area(depth=1, width=24, instr=Skips([0xFFFFFF])),
            Area(depth=1, first=First.MSB, instr=Joins(["ab.data.mif"])),
        ],
        "b.rom": [
            Area(depth=1, width=24, instr=Joins(["ab.prog.mif"])),
            Area(depth=2, width=24, instr=Skips([0xFFFFFF])),
            Area(depth=1, instr=Joins(["ab.data.mif"])),
        ],
    }
