"""Byte sources of known length: files and standard input.

WHY: The dump subcommand needs the byte count up front to derive the
depth in words, and must accept a pipe as well as a file.

HOW: A file is opened buffered and measured with stat(). Standard input
(``-``) has no usable length, so it is read completely into memory and
wrapped in a BytesIO.

RULES:
- ``-`` means standard input
- Every OSError is re-raised as MifIOError naming the path
- The caller owns and closes the returned reader
"""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import BinaryIO, Tuple, Union

from mif_converter.core.mif import MifError


class MifIOError(MifError):
    """Raised when reading or writing a file fails.

    Wraps the underlying OSError (available as ``__cause__``) with the
    path or stream it occurred on.
    """

    def __init__(self, path: str, action: str = "Cannot open") -> None:
        self.path = path
        self.action = action
        super().__init__("{} `{}`".format(action, path))

    def __str__(self) -> str:
        message = "{} `{}`".format(self.action, self.path)
        if self.__cause__ is not None:
            message = "{}: {}".format(message, self.__cause__)
        if self.where:
            message = "{} ({})".format(message, self.where)
        return message


def open_input(path: Union[str, Path]) -> Tuple[BinaryIO, int]:
    """Open a file or standard input ``-`` as a byte reader of known count.

    Returns:
        The reader and its length in bytes.

    Raises:
        MifIOError: If the input cannot be opened or read.
    """
    if str(path) == "-":
        try:
            data = sys.stdin.buffer.read()
        except OSError as exc:
            raise MifIOError("standard input", "Cannot read") from exc
        return io.BytesIO(data), len(data)

    try:
        reader = open(path, "rb")
    except OSError as exc:
        raise MifIOError(str(path)) from exc
    try:
        count = Path(path).stat().st_size
    except OSError as exc:
        reader.close()
        raise MifIOError(str(path)) from exc
    return reader, count
