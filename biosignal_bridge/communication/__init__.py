"""
Communication interfaces

This module handles the rendering collaborator: the listener contract,
UDP forwarding and console status output.
"""

from .listeners import PipelineListener, ConsoleStatus, notify
from .udp_sender import UdpSender

__all__ = ['PipelineListener', 'ConsoleStatus', 'notify', 'UdpSender']
