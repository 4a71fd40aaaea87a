#!/usr/bin/env python3
"""
main.py: quick-start entry point.

Drop images into ``images/`` and run:

    python main.py batch

Or use the full CLI:

    python -m pixel_canvas.cli batch --help
    python -m pixel_canvas.cli single my_photo.png --mode simple
"""

from pixel_canvas.cli import app

if __name__ == "__main__":
    app()
