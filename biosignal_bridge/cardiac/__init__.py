"""
Cardiac analysis components

R-peak detection on the ECG channel and the heart-rate / HRV statistics
derived from the detected beats.
"""

from .peak_detector import CardiacPeakDetector
from .bpm import BPMEstimator
from .hrv import HRVEngine, time_domain_hrv

__all__ = ['CardiacPeakDetector', 'BPMEstimator', 'HRVEngine', 'time_domain_hrv']
