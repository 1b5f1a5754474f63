#!/usr/bin/env python3
"""
main.py - Quick-start entry point.

Drop images into ``images/`` and run:

    python main.py batch

Or call the CLI module directly:

    python -m palette_quant.cli batch --help
    python -m palette_quant.cli single my_photo.jpg --palette pico8
"""

from palette_quant.cli import app

if __name__ == "__main__":
    app()
