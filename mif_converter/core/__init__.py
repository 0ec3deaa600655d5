"""Core MIF model, join instructions, and the dump/join drivers.

WHY: The core package holds everything with real invariants (word width
arithmetic, byte order, run-length collapsing, join order) so it can be
used and tested without the command line.

HOW: mif.py defines the Mif model and its errors, instructions.py the
typed join instructions and their TOML loader, sources.py byte sources
of known length, join.py the dump and join drivers.

RULES:
- Every error raised here derives from mif.MifError
- Nothing here writes to stdout or stderr; logging only
"""
