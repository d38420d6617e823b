#!/usr/bin/env python3
"""
Build script for markdown-ebook-binder.

Usage:
    python build.py field                     Build epub + mobi
    python build.py field --epub-only         Build epub only
    python build.py fetch field               Download remote images only
    python build.py validate field            Run epubcheck on existing epub

See binderlib/cli.py for every option.
"""

import os
import sys

# Ensure binderlib is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from binderlib.cli import run


if __name__ == "__main__":
    run()
