"""
Biosignal Bridge - Real-time EEG/ECG processing

A modular Python package that turns a two-channel EEG plus one-channel ECG
sample stream into band-power distributions, heart rate and HRV statistics,
and a temporally smoothed mental-state label.

Python: 3.10+
"""

__version__ = "1.0.0"

# Main package imports for easy access
from .core.data_types import (
    RawSample, BandPowerVector, BandPowerReport, BeatReport, BPMState, HRVState,
    EmotionalState, Goal,
)
from .core.config import PipelineConfig
from .acquisition.sources import DeviceStream, BrainFlowSource, LSLSource, FakeBiosignalSource
from .processing.features import BandPowerAnalyzer
from .cardiac.peak_detector import CardiacPeakDetector
from .cardiac.bpm import BPMEstimator
from .cardiac.hrv import HRVEngine
from .detection.classifier import classify, ClassifierPolicy
from .detection.aggregator import TemporalStateAggregator
from .communication.listeners import PipelineListener
from .communication.udp_sender import UdpSender
from .session.recorder import SessionRecorder
from .runtime.pipeline import Pipeline

__all__ = [
    'RawSample', 'BandPowerVector', 'BandPowerReport', 'BeatReport', 'BPMState', 'HRVState',
    'EmotionalState', 'Goal', 'PipelineConfig',
    'DeviceStream', 'BrainFlowSource', 'LSLSource', 'FakeBiosignalSource',
    'BandPowerAnalyzer', 'CardiacPeakDetector', 'BPMEstimator', 'HRVEngine',
    'classify', 'ClassifierPolicy', 'TemporalStateAggregator',
    'PipelineListener', 'UdpSender', 'SessionRecorder', 'Pipeline',
]
