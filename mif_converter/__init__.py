"""MIF Converter: dump binaries and join their memory areas as MIFs.

WHY: FPGA memory blocks are preloaded from Memory Initialization Files
(MIF), while firmware and ROM builds produce raw binaries that often
concatenate several memory areas. This package converts in one
direction only, binary to MIF, reproducibly.

HOW: core.mif holds the native MIF model, core.join drives it across
binaries and areas declared in a TOML instruction file (core.instructions),
cli exposes the ``dump`` and ``join`` subcommands.

RULES:
- Output is byte-for-byte reproducible for identical inputs
- Word widths from 1 to 128 bits
- One direction only: MIF files are never read back
"""

__version__ = "0.3.0"
