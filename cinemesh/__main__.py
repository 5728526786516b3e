"""
Entry point for running Cinemesh as a module.

Usage:
    python -m cinemesh <command>
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
