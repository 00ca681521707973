"""
Command-line interface for Biosignal Bridge
"""

from .main import main

__all__ = ['main']
