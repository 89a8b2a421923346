"""
Run a CHIP-8 ROM: python main.py <rom_path> [--slow|--med|--fast]
"""

import sys

from chipvm.cli import main

if __name__ == "__main__":
    sys.exit(main())
