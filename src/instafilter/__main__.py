"""
Entry point for running Instafilter as a module.

Usage:
    python -m instafilter
"""

import sys

from instafilter.main import main

if __name__ == "__main__":
    sys.exit(main())
