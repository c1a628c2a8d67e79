#!/usr/bin/env python3
"""Thin wrapper: run pyjit CLI. Usage: python main.py <cmd> ... (same as python -m pyjit)."""

import sys

if __name__ == "__main__":
    from pyjit.cli import main
    sys.exit(main())
