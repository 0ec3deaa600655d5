"""Native MIF representation: run-length collapsed words of fixed width.

WHY: A Memory Initialization File lists the content of a memory block
word by word. ROM dumps are full of long runs of identical words (erased
flash, zero padding), so the in-memory form stores each run once with a
repeat count. Both subcommands (dump and join) build one of these and
serialize it at the end.

HOW: Mif holds the word width, the running depth, an ordered list of
(word, bulk) pairs and a log of named areas. Words are pushed one run at
a time; a run equal to the last one is merged into it. read() decodes
fixed-width words from a byte reader, write() renders the MIF text.

RULES:
- Width is 1 to MAX_WIDTH (128) bits, fixed at construction
- No two adjacent (word, bulk) pairs hold the same word
- Pushing a bulk of 0 changes nothing and never fails
- A failed push has already advanced depth: treat the Mif as poisoned
- Addresses are padded to ceil(log16(depth)) hex digits, words to
  ceil(width / 4) hex digits, both upper-case
- Area comments come before the header block
"""

from __future__ import annotations

import enum
import io
from dataclasses import dataclass, field
from typing import BinaryIO, List, TextIO, Tuple

MAX_ALIGN = 16
"""Maximum word width in bytes (128-bit words)."""

MAX_WIDTH = MAX_ALIGN * 8
"""Maximum word width in bits."""


class MifError(Exception):
    """Base class of every error raised while building or writing MIFs.

    ``where`` is filled in by the join loop with the binary file and area
    index the error was raised for, so messages point at the fault.
    """

    where: str | None = None

    def __str__(self) -> str:
        message = super().__str__()
        if self.where:
            return "{} ({})".format(message, self.where)
        return message


class WidthOutOfRange(MifError, ValueError):
    """Raised when a word width is outside ``[1, MAX_WIDTH]``."""

    def __init__(self, width: int, max_width: int = MAX_WIDTH) -> None:
        self.width = width
        self.max_width = max_width
        super().__init__("Width {} out of [1, {}]".format(width, max_width))


class ValueOutOfWidth(MifError, ValueError):
    """Raised when a word does not fit into the MIF's word width.

    ``depth`` is the address at which the offending word would start.
    """

    def __init__(self, depth: int, width: int) -> None:
        self.depth = depth
        self.width = width
        super().__init__("Word at depth {} out of width {}".format(depth, width))


class MissingWords(MifError):
    """Raised when a reader runs dry before the expected depth was read."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__("Missing {} words".format(count))


class NeitherLsbNorMsbFirst(MifError, ValueError):
    """Raised for a byte order other than ``lsb`` or ``msb``."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__("Valid values are `lsb` and `msb`, not `{}`".format(value))


class First(str, enum.Enum):
    """LSB/MSB first (little/big-endian).

    Inherits from str so values compare and print as their TOML and CLI
    spelling.
    """

    LSB = "lsb"
    MSB = "msb"

    @classmethod
    def parse(cls, value: str) -> First:
        try:
            return cls(value)
        except ValueError:
            raise NeitherLsbNorMsbFirst(value) from None

    @property
    def byteorder(self) -> str:
        """Byte order name understood by ``int.from_bytes``."""
        return "little" if self is First.LSB else "big"


def _hex_digits(count: int) -> int:
    """Number of hex digits ``n`` with ``16 ** n >= count``.

    Same as ``ceil(log16(count))`` but exact for powers of 16 and defined
    for counts of 0 and 1 (both give 0, i.e. no padding).
    """
    digits = 0
    while 16 ** digits < count:
        digits += 1
    return digits


def _hex(value: int, pads: int) -> str:
    """Upper-case hex of ``value`` zero-padded to at least ``pads`` digits."""
    return format(value, "X").zfill(pads)


@dataclass
class Mif:
    """Memory Initialization File of words with a fixed ``width``.

    WHY: The single data model behind dumping one binary and joining
    many binaries' memory areas.

    HOW: ``words`` is the run-length collapsed content, ``areas`` the
    (address, label) log written as comments. Build it with push(),
    join(), area() and read(), render it with write().

    RULES:
    - Construct with ``Mif(width)``; raises WidthOutOfRange if invalid
    - ``depth`` always equals the sum of all pushed bulks
    - Never shrinks
    """

    width: int
    depth: int = 0
    words: List[Tuple[int, int]] = field(default_factory=list)
    areas: List[Tuple[int, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 1 <= self.width <= MAX_WIDTH:
            raise WidthOutOfRange(self.width, MAX_WIDTH)

    @staticmethod
    def max_width() -> int:
        """Maximum word width in bits."""
        return MAX_WIDTH

    @staticmethod
    def max_align() -> int:
        """Maximum word width in bytes."""
        return MAX_ALIGN

    def max_value(self) -> int:
        """Largest word that fits into ``width`` bits, ``2 ** width - 1``."""
        return (1 << self.width) - 1

    def align(self) -> int:
        """Word width in bytes, ``ceil(width / 8)``."""
        return (self.width + 7) // 8

    def area(self, label: str) -> None:
        """Address memory area ``label`` at the current depth."""
        self.areas.append((self.depth, label))

    def push(self, word: int, bulk: int = 1) -> None:
        """Push ``bulk`` times ``word``, adding up to the last run if equal.

        Raises:
            ValueOutOfWidth: If ``word`` does not fit into ``width`` bits.
                Depth has been advanced by ``bulk`` before raising and the
                word is not stored.
        """
        if bulk == 0:
            return
        if self.words and self.words[-1][0] == word:
            last_word, last_bulk = self.words[-1]
            self.words[-1] = (last_word, last_bulk + bulk)
            self.depth += bulk
            return
        depth = self.depth
        self.depth += bulk
        if not 0 <= word <= self.max_value():
            raise ValueOutOfWidth(depth, self.width)
        self.words.append((word, bulk))

    def join(self, other: Mif) -> None:
        """Join in all words of ``other``.

        Stops at the first word exceeding this MIF's width; words joined
        until then stay joined.
        """
        for word, bulk in other.words:
            self.push(word, bulk)

    def read(self, reader: BinaryIO, depth: int, first: First = First.LSB) -> None:
        """Read ``depth`` LSB/MSB-``first`` words from a byte ``reader``.

        Raises:
            MissingWords: If the reader ends before ``depth`` words.
            ValueOutOfWidth: If a word does not fit into ``width`` bits.
        """
        align = self.align()
        byteorder = First.parse(first).byteorder
        for words in range(depth):
            chunk = reader.read(align)
            # Raw and pipe readers may return short reads before EOF.
            while chunk and len(chunk) < align:
                more = reader.read(align - len(chunk))
                if not more:
                    break
                chunk += more
            if len(chunk) < align:
                raise MissingWords(depth - words)
            self.push(int.from_bytes(chunk, byteorder), 1)

    def write(self, lines: TextIO, areas: bool = True) -> None:
        """Write the MIF to the ``lines`` writer.

        Args:
            lines: Text writer the MIF is written to.
            areas: Whether to comment memory areas as in
                   ``-- 0000: name.bin``.
        """
        addr_pads = _hex_digits(self.depth)
        word_pads = (self.width + 3) // 4
        if areas and self.areas:
            for addr, label in self.areas:
                lines.write("-- {}: {}\n".format(_hex(addr, addr_pads), label))
            lines.write("\n")
        lines.write(
            "WIDTH={};\n"
            "DEPTH={};\n"
            "\n"
            "ADDRESS_RADIX=HEX;\n"
            "DATA_RADIX=HEX;\n"
            "\n"
            "CONTENT BEGIN\n".format(self.width, self.depth)
        )
        addr = 0
        for word, bulk in self.words:
            if bulk == 1:
                lines.write("\t{}  :   {};\n".format(
                    _hex(addr, addr_pads), _hex(word, word_pads)))
            else:
                lines.write("\t[{}..{}]  :   {};\n".format(
                    _hex(addr, addr_pads),
                    _hex(addr + bulk - 1, addr_pads),
                    _hex(word, word_pads),
                ))
            addr += bulk
        lines.write("END;\n")

    def to_text(self, areas: bool = True) -> str:
        """Render the MIF as a string, see write()."""
        buffer = io.StringIO()
        self.write(buffer, areas)
        return buffer.getvalue()
