"""
Signal processing components

This module contains sample demultiplexing, ECG preprocessing and EEG
band-power analysis for real-time processing.
"""

from .demux import demultiplex, SequenceTracker
from .preprocessor import Preprocessor
from .features import BandPowerAnalyzer, composite_score

__all__ = ['demultiplex', 'SequenceTracker', 'Preprocessor', 'BandPowerAnalyzer', 'composite_score']
