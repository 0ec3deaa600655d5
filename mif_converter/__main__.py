"""Package entry point for ``python -m mif_converter``.

WHY: Users run the converter as ``python -m mif_converter dump rom.bin``
when the ``mif`` console script is not on the PATH.

HOW: Delegates to the CLI's main() function.
"""

from mif_converter.cli import main

if __name__ == "__main__":
    main()
