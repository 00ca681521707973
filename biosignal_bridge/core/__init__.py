"""
Core data types and structures for Biosignal Bridge

This module contains the fundamental data classes used throughout the system.
"""

from .data_types import (
    RawSample, DemuxedSample, SequenceGap, BandPowerVector, BandPowerReport,
    BeatReport, BPMState, HRVState, EmotionalState, Goal, ChannelId,
    StateHistoryEntry, StateUpdate,
)
from .config import PipelineConfig
from .ring_buffer import RingBuffer

__all__ = [
    'RawSample', 'DemuxedSample', 'SequenceGap', 'BandPowerVector', 'BandPowerReport',
    'BeatReport', 'BPMState', 'HRVState', 'EmotionalState', 'Goal', 'ChannelId',
    'StateHistoryEntry', 'StateUpdate', 'PipelineConfig', 'RingBuffer',
]
