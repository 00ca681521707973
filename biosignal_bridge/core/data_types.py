"""
Core data types for Biosignal Bridge

This module defines the fundamental data structures used throughout the system
for representing raw samples, derived band powers, cardiac statistics and
mental states.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

BAND_NAMES = ("delta", "theta", "alpha", "beta", "gamma")


class EmotionalState(str, Enum):
    """Discrete state shown to the user"""
    NO_DATA = "no_data"
    STRESSED = "stressed"
    RELAXED = "relaxed"
    HAPPY = "happy"
    FOCUSED = "focused"
    NEUTRAL = "neutral"
    MILD_STRESS = "mild_stress"


class Goal(str, Enum):
    """Session goal selecting the composite band-power score"""
    ANXIETY = "anxiety"
    MEDITATION = "meditation"
    SLEEP = "sleep"


class ChannelId(str, Enum):
    EEG0 = "eeg0"
    EEG1 = "eeg1"
    ECG = "ecg"


@dataclass(frozen=True)
class RawSample:
    """One multi-channel sample as delivered by the device"""
    sequence_counter: int
    eeg0: float
    eeg1: float
    ecg: float


@dataclass(frozen=True)
class DemuxedSample:
    """Per-channel values of one sample; None marks a rejected value"""
    sequence_counter: int
    eeg: Optional[Tuple[float, float]]  # (eeg0, eeg1), rejected as a pair
    ecg: Optional[float]


@dataclass(frozen=True)
class SequenceGap:
    """Counter discontinuity seen by the demultiplexer"""
    expected: int
    received: int
    missing: int  # 0 for duplicate / backwards counters


@dataclass
class BandPowerVector:
    """Smoothed percentage of in-window spectral power per band"""
    delta: float = 0.0
    theta: float = 0.0
    alpha: float = 0.0
    beta: float = 0.0
    gamma: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in BAND_NAMES}

    def dominant_band(self) -> str:
        values = self.as_dict()
        return max(values, key=values.get)


@dataclass
class BandPowerReport:
    """Result of one band-power tick across both EEG channels"""
    sample_index: int
    timestamp_ms: float
    channels: Tuple[BandPowerVector, BandPowerVector]
    symmetry: float
    goal: Goal
    score: float


@dataclass
class BeatReport:
    """Result of one peak-detection tick"""
    sample_index: int                     # accepted ECG samples so far
    timestamp_ms: float
    beat_indices: Tuple[int, ...]         # absolute sample indices in the window
    window_ibis_ms: Tuple[float, ...]     # IBIs between beats in the window
    new_ibis_ms: Tuple[float, ...]        # IBIs not reported by an earlier tick
    instant_bpm: Optional[float]          # None when fewer than two beats


@dataclass
class BPMState:
    displayed: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    avg: Optional[float] = None


@dataclass
class HRVState:
    current: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    avg: Optional[float] = None
    sdnn: Optional[float] = None
    rmssd: Optional[float] = None
    pnn50: Optional[float] = None


@dataclass(frozen=True)
class StateHistoryEntry:
    state: EmotionalState
    timestamp_ms: float


@dataclass
class StateUpdate:
    """Committed aggregator output together with the classifier input"""
    timestamp_ms: float
    state: EmotionalState
    classified: EmotionalState
    hrv: HRVState = field(default_factory=HRVState)
