"""Configuration defaults and .env loading.

WHY: The CLI defaults (word width, byte order, input and output
directories, log level) should be easy to find and to override per
project without editing code or repeating flags in build scripts.

HOW: python-dotenv loads the .env file on import. Defaults are module
level constants read from ``MIF_*`` environment variables with built-in
fallbacks. Format limits such as the maximum word width live in
core.mif, instruction file defaults in core.instructions; neither is
configurable.

RULES:
- Built-in defaults match the instruction file defaults: width 16, lsb
- Environment variables only change CLI defaults, never TOML semantics
- Importing this module never fails; overrides are checked by the CLI
  when the subcommand using them runs, like any other argument
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the tool is run from)
load_dotenv()

# Kept as strings: argparse converts and checks them like typed flags.
DEFAULT_WIDTH = os.getenv("MIF_WIDTH", "16").strip()
DEFAULT_FIRST = os.getenv("MIF_FIRST", "lsb").strip().lower()
DEFAULT_BINS_DIR = os.getenv("MIF_BINS_DIR", ".")
DEFAULT_MIFS_DIR = os.getenv("MIF_MIFS_DIR", ".")
LOG_LEVEL = os.getenv("MIF_LOG_LEVEL", "WARNING").strip().upper()
