"""
OSC Panel - Entry point

Run with: python -m osc_panel_lib
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
