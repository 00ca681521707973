"""
Main entry point for Biosignal Bridge package

This allows running the package with: python -m biosignal_bridge
"""

import sys

from .cli.main import main

if __name__ == "__main__":
    sys.exit(main())
