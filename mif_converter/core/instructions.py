"""Join instructions: binary files split into memory areas.

WHY: Joining is driven by a TOML file that lists, per binary file, its
memory areas in order and says for each whether to skip it (optionally
verifying its content) or to join it into one or more MIFs. Keeping the
file reproducible is the whole point of the join subcommand, so the
document is validated strictly before any binary is opened.

HOW: tomli parses the TOML text. The resulting dict is validated with
jsonschema against join_schema.json, then converted into Area
dataclasses holding a Skips or Joins instruction. Files maps each binary
path to its areas in document order.

RULES:
- ``first`` defaults to "lsb", ``width`` to 16, ``depth`` is required
- Exactly one of ``skips`` and ``joins`` per area
- An empty ``skips`` list skips the area without verification
- A skip word is an integer or a ``[msb, lsb]`` pair of 64-bit halves,
  since TOML integers cannot hold 128-bit words
- Word width is checked later by Mif, not here
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema
import tomli

from mif_converter.core.mif import First, MifError
from mif_converter.core.sources import MifIOError

DEFAULT_AREA_WIDTH = 16
"""Word width of a memory area when the instruction file omits it."""

DEFAULT_AREA_FIRST = "lsb"
"""Byte order of a memory area when the instruction file omits it."""

_SCHEMA_PATH = Path(__file__).resolve().parent / "join_schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def _get_schema() -> Dict[str, Any]:
    """Load and cache the join instructions JSON schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


class InvalidInstructions(MifError, ValueError):
    """Raised when a join instruction document cannot be parsed or is invalid.

    Attributes:
        source: Where the document came from, a path or ``-``.
        message: What is wrong with it.
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__("Cannot load `{}`: {}".format(source, message))


@dataclass
class Skips:
    """Skip a memory area, ensuring it contains the given ``words`` only.

    An empty list skips without verification.
    """

    words: List[int] = field(default_factory=list)


@dataclass
class Joins:
    """Join a memory area to the given MIFs, in order."""

    mifs: List[str] = field(default_factory=list)


Instr = Union[Skips, Joins]


@dataclass
class Area:
    """One memory area of a binary file.

    Attributes:
        depth: Depth in words.
        instr: Whether to skip or join this memory area.
        first: LSB/MSB first (little/big-endian).
        width: Word width in bits from 1 to 128.
    """

    depth: int
    instr: Instr
    first: First = First.LSB
    width: int = DEFAULT_AREA_WIDTH


Files = Dict[str, List[Area]]
"""Binary files split into memory areas, in document order."""


def word_value(raw: Union[int, List[int]]) -> int:
    """Resolve a skip word of either TOML shape to one integer.

    ``[msb, lsb]`` becomes ``msb << 64 | lsb``.
    """
    if isinstance(raw, list):
        msb, lsb = raw
        return msb << 64 | lsb
    return raw


def _area_from_dict(data: Dict[str, Any]) -> Area:
    """Build an Area from one schema-validated TOML table, filling defaults."""
    instr: Instr
    if "skips" in data:
        instr = Skips([word_value(raw) for raw in data["skips"]])
    else:
        instr = Joins(list(data["joins"]))
    return Area(
        depth=data["depth"],
        instr=instr,
        first=First.parse(data.get("first", DEFAULT_AREA_FIRST)),
        width=data.get("width", DEFAULT_AREA_WIDTH),
    )


def parse_instructions(text: str, source: str = "-") -> Files:
    """Parse a TOML join instruction document.

    Args:
        text: The TOML document.
        source: Where ``text`` came from, used in error messages.

    Returns:
        Binary file paths mapped to their memory areas, in document order.

    Raises:
        InvalidInstructions: If the TOML is malformed or does not match
            the join instructions schema.
    """
    try:
        document = tomli.loads(text)
    except tomli.TOMLDecodeError as exc:
        raise InvalidInstructions(source, str(exc)) from exc

    try:
        jsonschema.validate(instance=document, schema=_get_schema())
    except jsonschema.ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "document"
        raise InvalidInstructions(
            source, "{} at `{}`".format(exc.message, location)
        ) from exc

    return {
        path: [_area_from_dict(area) for area in areas]
        for path, areas in document.items()
    }


def load_instructions(path: Union[str, Path]) -> Files:
    """Load a TOML join instruction file, or standard input for ``-``.

    Raises:
        MifIOError: If the file cannot be read.
        InvalidInstructions: See parse_instructions().
    """
    source = str(path)
    try:
        if source == "-":
            text = sys.stdin.read()
        else:
            text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise MifIOError(source, "Cannot read") from exc
    return parse_instructions(text, source)
