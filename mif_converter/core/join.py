"""Dump one binary as MIF, or join binaries' memory areas to MIFs.

WHY: ROM images often concatenate several memory areas (program, data,
unused padding) of different word widths. The FPGA build needs one MIF
per memory block, possibly collecting the same area from several ROMs.
This module drives Mif instances across all binaries and areas declared
in the join instructions and writes the resulting MIFs.

HOW: join_areas() walks the binaries in declaration order. Each area is
read into a transient Mif, then either verified (skips) or joined into
one accumulating Mif per target name (joins), after recording the
binary's name as an area comment. Every binary must be consumed exactly.
write_mifs() serializes the accumulators in first-created order.
dump() is the single-binary mode without areas or comments.

RULES:
- Binaries and their areas are processed strictly in declaration order
- A target MIF keeps the width of the area that created it; another
  width for the same target raises WidthMismatch
- Skips with an empty word list are not verified
- Leftover bytes after the last area raise TrailingBytes
- Output files are only created once every binary was processed
- Errors raised for an area carry the binary path and area index
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Dict, List, TextIO, Union

from mif_converter.core.instructions import Files, Joins, Skips
from mif_converter.core.mif import First, Mif, MifError
from mif_converter.core.sources import MifIOError

logger = logging.getLogger(__name__)


class NotIntegralMultiple(MifError, ValueError):
    """Raised when a dumped byte count is no multiple of the word width."""

    def __init__(self, count: int, align: int) -> None:
        self.count = count
        self.align = align
        super().__init__(
            "No integral multiple of word width: {} B in words of {} B".format(
                count, align)
        )


class SkipVerificationFailed(MifError):
    """Raised when a skipped memory area contains a word not listed to skip."""

    def __init__(self, path: str, word: int) -> None:
        self.path = path
        self.word = word
        super().__init__("Invalid word {:X} to skip in `{}`".format(word, path))


class WidthMismatch(MifError, ValueError):
    """Raised when a target MIF is joined with two different word widths."""

    def __init__(self, target: str, expected: int, actual: int) -> None:
        self.target = target
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Different width to join `{}`: {} instead of {}".format(
                target, actual, expected)
        )


class TrailingBytes(MifError):
    """Raised when bytes are left over after a binary's last memory area."""

    def __init__(self, count: int, path: str) -> None:
        self.count = count
        self.path = path
        super().__init__("{} B left over in `{}`".format(count, path))


def dump(
    lines: TextIO,
    reader: BinaryIO,
    count: int,
    width: int,
    first: Union[First, str] = First.LSB,
    name: str = "-",
) -> Mif:
    """Dump ``count`` bytes from ``reader`` as MIF to ``lines``.

    Args:
        lines: Text writer the MIF is written to.
        reader: Byte reader the words are read from.
        count: Count of bytes to read.
        width: Word width in bits from 1 to 128.
        first: LSB/MSB first (little/big-endian).
        name: Path of the input, or ``-`` for standard input, used in
            error messages.

    Returns:
        The MIF that was written, without area comments.

    Raises:
        WidthOutOfRange: If ``width`` is invalid.
        NotIntegralMultiple: If ``count`` is no multiple of the word width.
        MifIOError: If ``reader`` fails.
    """
    mif = Mif(width)
    align = mif.align()
    depth, rest = divmod(count, align)
    if rest:
        raise NotIntegralMultiple(count, align)
    logger.debug("Dumping %d words of %d bits", depth, width)
    try:
        mif.read(reader, depth, First.parse(first))
    except OSError as exc:
        raise MifIOError(
            "standard input" if name == "-" else name, "Cannot read"
        ) from exc
    mif.write(lines, False)
    return mif


def _verify_skips(path: str, mif: Mif, skips: Skips) -> None:
    """Ensure a skipped area holds only the expected words.

    Each run is checked once, so long padding runs cost a single lookup.
    An empty word list accepts anything.
    """
    if not skips.words:
        return
    allowed = set(skips.words)
    for word, _bulk in mif.words:
        if word not in allowed:
            raise SkipVerificationFailed(path, word)


def _join_into(
    mifs: Dict[str, Mif],
    path: str,
    mif: Mif,
    joins: Joins,
) -> None:
    """Join one area into each of its target MIFs.

    RULES:
    - A target is created on first reference, with this area's width
    - A later area of another width raises WidthMismatch
    - The area is labeled with the binary path before its words
    """
    for target in joins.mifs:
        if target not in mifs:
            logger.debug("Creating `%s` with width %d", target, mif.width)
            mifs[target] = Mif(mif.width)
        joined = mifs[target]
        if joined.width != mif.width:
            raise WidthMismatch(target, joined.width, mif.width)
        joined.area(path)
        joined.join(mif)


def join_areas(files: Files, bins: Union[str, Path] = ".") -> Dict[str, Mif]:
    """Read the memory areas of binary ``files`` and join them to MIFs.

    Args:
        files: Binary files split into memory areas.
        bins: Directory the binary paths are relative to.

    Returns:
        Target MIF names mapped to their joined MIFs, in the order the
        names were first referenced.

    Raises:
        MifError: The first error encountered; nothing is retried.
    """
    mifs: Dict[str, Mif] = {}
    for path, areas in files.items():
        abs_path = Path(bins) / path
        logger.info("Reading `%s` (%d areas)", abs_path, len(areas))
        try:
            bin_file = open(abs_path, "rb")
        except OSError as exc:
            raise MifIOError(str(abs_path)) from exc
        with bin_file:
            for index, area in enumerate(areas):
                try:
                    mif_area = Mif(area.width)
                    try:
                        mif_area.read(bin_file, area.depth, area.first)
                    except OSError as exc:
                        raise MifIOError(str(abs_path), "Cannot read") from exc
                    if isinstance(area.instr, Skips):
                        _verify_skips(path, mif_area, area.instr)
                        logger.debug("Skipped area %d of `%s` (%d words)",
                                     index, path, area.depth)
                    else:
                        _join_into(mifs, path, mif_area, area.instr)
                        logger.debug("Joined area %d of `%s` to %s",
                                     index, path, ", ".join(area.instr.mifs))
                except MifError as exc:
                    if exc.where is None:
                        exc.where = "area {} of `{}`".format(index, path)
                    raise
            try:
                leftover = len(bin_file.read())
            except OSError as exc:
                raise MifIOError(str(abs_path), "Cannot read") from exc
        if leftover:
            raise TrailingBytes(leftover, path)
    return mifs


def write_mifs(
    mifs: Dict[str, Mif],
    mifs_dir: Union[str, Path] = ".",
    areas: bool = True,
) -> List[Path]:
    """Write each MIF to ``<mifs_dir>/<name>``, in the given order.

    Args:
        mifs: Target MIF names mapped to their MIFs.
        mifs_dir: Directory the MIF names are relative to.
        areas: Whether to comment memory areas, see Mif.write().

    Returns:
        The written paths.

    Raises:
        MifIOError: If a MIF cannot be written. Files written before stay.
    """
    written: List[Path] = []
    for name, mif in mifs.items():
        out_path = Path(mifs_dir) / name
        try:
            with open(out_path, "w", encoding="utf-8", newline="\n") as lines:
                mif.write(lines, areas)
        except OSError as exc:
            raise MifIOError(str(out_path), "Cannot write") from exc
        logger.info("Wrote `%s` (%d words)", out_path, mif.depth)
        written.append(out_path)
    return written


def join(
    files: Files,
    bins: Union[str, Path] = ".",
    mifs_dir: Union[str, Path] = ".",
    areas: bool = True,
) -> Dict[str, Mif]:
    """Join memory areas of binary ``files`` and write them as MIFs.

    See join_areas() and write_mifs().
    """
    mifs = join_areas(files, bins)
    write_mifs(mifs, mifs_dir, areas)
    return mifs
