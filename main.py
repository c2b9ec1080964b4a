#!/usr/bin/env python3
"""
HRV Monitor – main entry point.

    python main.py --help
"""

import sys

from hrv_monitor.cli import main

if __name__ == "__main__":
    sys.exit(main())
