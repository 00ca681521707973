"""
Session recording and export
"""

from .recorder import SessionRecorder, SessionEntry

__all__ = ['SessionRecorder', 'SessionEntry']
