"""Command-line interface for the MIF converter.

WHY: MIFs are produced inside FPGA and firmware build scripts. The CLI
wires the core behind two subcommands so a Makefile can dump one binary
or reproducibly join many binaries' memory areas from a checked-in TOML
file.

HOW: Uses argparse with ``dump`` and ``join`` subparsers. ``dump`` reads
a file or standard input and writes the MIF to stdout. ``join`` loads the
TOML instructions, reads binaries relative to --bins and writes MIFs
relative to --mifs. Status messages and log records go to stderr.

RULES:
- ``dump [input]``: input defaults to ``-`` (standard input)
- ``dump`` never writes area comments
- ``join [toml]``: toml defaults to ``-`` (standard input)
- ``join --no-comments`` drops the ``-- addr: name`` comments
- Defaults come from config (MIF_* environment variables / .env)
- An invalid MIF_FIRST or MIF_WIDTH only fails the ``dump`` subcommand
- Any MifError or OSError prints ``Error: ...`` to stderr and exits 1
"""

from __future__ import annotations

import argparse
import io
import logging
import sys
from typing import List, Optional

from mif_converter import __version__
from mif_converter.config import (
    DEFAULT_BINS_DIR,
    DEFAULT_FIRST,
    DEFAULT_MIFS_DIR,
    DEFAULT_WIDTH,
    LOG_LEVEL,
)
from mif_converter.core.instructions import load_instructions
from mif_converter.core.join import dump, join_areas, write_mifs
from mif_converter.core.mif import MAX_WIDTH, First, MifError
from mif_converter.core.sources import open_input


def _status(msg: str) -> None:
    """Print a status message to stderr.

    Status output must not pollute stdout, where ``dump`` writes the MIF.
    """
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(verbose: int) -> None:
    """Send log records to stderr; each -v lowers the threshold one level."""
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _run_dump(args: argparse.Namespace) -> None:
    """Dump one binary to stdout.

    The MIF is encoded to stdout's byte buffer so lines end in ``\\n``
    on every platform, as in the files ``join`` writes.
    """
    first = First.parse(args.first)
    reader, count = open_input(args.input)
    text = io.StringIO()
    with reader:
        dump(text, reader, count, args.width, first, args.input)
    sys.stdout.flush()
    sys.stdout.buffer.write(text.getvalue().encode("utf-8"))
    sys.stdout.buffer.flush()


def _run_join(args: argparse.Namespace) -> None:
    files = load_instructions(args.toml)
    mifs = join_areas(files, args.bins)
    written = write_mifs(mifs, args.mifs, not args.no_comments)
    _status("Joined {} binaries to {} MIF(s)".format(len(files), len(written)))
    for path in written:
        _status("  {}".format(path))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separate from main() so tests can inspect the parser without running
    a subcommand.
    """
    parser = argparse.ArgumentParser(
        prog="mif",
        description="Memory Initialization File.",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-v info, -vv debug).",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="<subcommand>")
    subparsers.required = True

    dump_parser = subparsers.add_parser("dump", help="Dumps binary as MIF.")
    dump_parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Input file or standard input (-) (default: %(default)s).",
    )
    dump_parser.add_argument(
        "-w", "--width",
        type=int,
        default=DEFAULT_WIDTH,
        metavar="bits",
        help="Word width in bits from 1 to {} (default: %(default)s).".format(MAX_WIDTH),
    )
    dump_parser.add_argument(
        "-f", "--first",
        choices=["lsb", "msb"],
        default=DEFAULT_FIRST,
        help="LSB/MSB first (little/big-endian) (default: %(default)s).",
    )
    dump_parser.set_defaults(run=_run_dump)

    join_parser = subparsers.add_parser(
        "join", help="Joins binaries' memory areas to MIFs.")
    join_parser.add_argument(
        "toml",
        nargs="?",
        default="-",
        help="TOML file or standard input (-) (default: %(default)s).",
    )
    join_parser.add_argument(
        "-i", "--bins",
        default=DEFAULT_BINS_DIR,
        metavar="path",
        help="Input directory (default: %(default)s).",
    )
    join_parser.add_argument(
        "-o", "--mifs",
        default=DEFAULT_MIFS_DIR,
        metavar="path",
        help="Output directory (default: %(default)s).",
    )
    join_parser.add_argument(
        "-n", "--no-comments",
        action="store_true",
        help="No comments in MIFs.",
    )
    join_parser.set_defaults(run=_run_join)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``mif`` console script and ``python -m``.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        args.run(args)
    except (MifError, OSError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
