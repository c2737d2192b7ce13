#!/usr/bin/env python3
"""
Investment Tax Engine - Main Entry Point

Usage:
    python main.py asset disposal.json
    python main.py sip sip.json --prices nav_history.xlsx
    python main.py --fiscal-year 2024-25 --json asset disposal.json
"""

import sys

from investment_tax.cli import main

if __name__ == "__main__":
    sys.exit(main())
