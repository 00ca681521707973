"""
Biosignal data acquisition sources

This module handles different types of device streams including
BrainFlow boards, LSL streams, and synthetic data generation.
"""

from .sources import DeviceStream, BrainFlowSource, LSLSource, FakeBiosignalSource

__all__ = ['DeviceStream', 'BrainFlowSource', 'LSLSource', 'FakeBiosignalSource']
