"""
Shared fixtures for the Biosignal Bridge test suite
"""

from __future__ import annotations

from collections import defaultdict

import numpy as np
import pytest

from biosignal_bridge.communication.listeners import PipelineListener
from biosignal_bridge.core.config import PipelineConfig
from biosignal_bridge.core.data_types import RawSample

FS = 500


def sine(freq_hz: float, n_samples: int, fs: float = FS, amplitude: float = 10.0) -> np.ndarray:
    t = np.arange(n_samples) / fs
    return amplitude * np.sin(2 * np.pi * freq_hz * t)


def synthetic_ecg(n_samples: int, rr_samples: int, first_beat: int = 100,
                  width: float = 6.0, amplitude: float = 1.0) -> np.ndarray:
    """Regular train of Gaussian QRS complexes centred on exact sample indices"""
    idx = np.arange(n_samples)
    ecg = np.zeros(n_samples)
    for beat in range(first_beat, n_samples + 3 * int(width), rr_samples):
        ecg += amplitude * np.exp(-0.5 * ((idx - beat) / width) ** 2)
    return ecg


def make_stream(n_samples: int, rr_samples: int = 400, start_counter: int = 0) -> list[RawSample]:
    """Alpha-dominated EEG on both channels plus a regular ECG"""
    rng = np.random.default_rng(7)
    eeg0 = sine(10, n_samples, amplitude=20) + rng.normal(0, 2, n_samples)
    eeg1 = sine(20, n_samples, amplitude=20) + rng.normal(0, 2, n_samples)
    ecg = synthetic_ecg(n_samples, rr_samples)
    return [RawSample(start_counter + i, float(a), float(b), float(c))
            for i, (a, b, c) in enumerate(zip(eeg0, eeg1, ecg))]


class RecordingListener(PipelineListener):
    """Collects every notification per hook"""

    def __init__(self, record_raw: bool = False):
        self.events = defaultdict(list)
        self.record_raw = record_raw

    def on_raw(self, counter, value, channel):
        if self.record_raw:
            self.events["raw"].append((counter, value, channel))

    def on_band_power(self, report):
        self.events["band_power"].append(report)

    def on_bpm(self, state):
        self.events["bpm"].append(state)

    def on_hrv(self, state):
        self.events["hrv"].append(state)

    def on_state(self, state):
        self.events["state"].append(state)

    def on_gap(self, gap):
        self.events["gap"].append(gap)


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def config() -> PipelineConfig:
    # Large inboxes so a fast producer never forces drop-oldest in tests
    return PipelineConfig(inbox_capacity=1_000_000)
