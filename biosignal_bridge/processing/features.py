"""
EEG band-power analysis

This module keeps a sliding window per EEG channel and, on a fixed stride,
estimates the power spectral density with Welch's method to produce smoothed
per-band percentages, an inter-channel alpha symmetry metric and a
goal-dependent composite score.
"""

import logging
from typing import Dict, Optional, Tuple
import numpy as np
from scipy import signal as sp_signal

from ..core.config import (
    FS_EXPECTED, WINDOW_SIZE, BAND_STRIDE, BAND_SMOOTHING, FREQ_BANDS,
)
from ..core.data_types import BAND_NAMES, BandPowerReport, BandPowerVector, Goal
from ..core.ring_buffer import RingBuffer


def composite_score(vectors: Tuple[BandPowerVector, ...], goal: Goal) -> float:
    """
    Goal-dependent score from the channel-mean band percentages

    anxiety: alpha/beta ratio, meditation: theta level, sleep: delta level.
    """
    alpha = float(np.mean([v.alpha for v in vectors]))
    beta = float(np.mean([v.beta for v in vectors]))
    if goal == Goal.ANXIETY:
        return alpha / beta if beta > 0 else 0.0
    if goal == Goal.MEDITATION:
        return float(np.mean([v.theta for v in vectors]))
    return float(np.mean([v.delta for v in vectors]))


class BandPowerAnalyzer:
    """
    Sliding-window band-power estimation for the two EEG channels

    Both channel windows are pushed together, so every tick compares
    windows ending at the same sample. Until the windows are full
    (Filling) `push` returns None; afterwards (Ready) it returns a
    report every `stride` accepted samples.
    """

    def __init__(self, fs: float = FS_EXPECTED, window_size: int = WINDOW_SIZE,
                 stride: int = BAND_STRIDE, smoothing: float = BAND_SMOOTHING,
                 freq_bands: Dict[str, Tuple[float, float]] = FREQ_BANDS,
                 goal: Goal = Goal.ANXIETY):
        if stride <= 0:
            raise ValueError(f"Stride must be positive, got {stride}")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"Smoothing factor must be in [0, 1), got {smoothing}")
        self.fs = fs
        self.window_size = window_size
        self.stride = stride
        self.smoothing = smoothing
        self.freq_bands = freq_bands
        self.goal = Goal(goal)

        self.windows = (RingBuffer(window_size), RingBuffer(window_size))
        self.sample_index = 0
        self.current: Optional[Tuple[BandPowerVector, BandPowerVector]] = None

    @property
    def is_ready(self) -> bool:
        return self.windows[0].is_full

    def set_goal(self, goal: Goal):
        """Select the composite score; applies from the next tick"""
        self.goal = Goal(goal)

    def push(self, eeg0: float, eeg1: float) -> Optional[BandPowerReport]:
        """
        Add one validated sample pair and run a tick if one is due

        Returns:
            BandPowerReport when a tick ran, otherwise None
        """
        self.windows[0].push(eeg0)
        self.windows[1].push(eeg1)
        self.sample_index += 1

        if self.sample_index % self.stride != 0 or not self.is_ready:
            return None
        return self.tick()

    def tick(self) -> BandPowerReport:
        """Analyze snapshots of both full windows"""
        snapshots = (self.windows[0].snapshot(), self.windows[1].snapshot())
        raw = tuple(self.band_percentages(data) for data in snapshots)

        if self.current is None:
            smoothed = tuple(BandPowerVector(**values) for values in raw)
        else:
            smoothed = tuple(self._smooth(prev, values) for prev, values in zip(self.current, raw))
        self.current = smoothed

        report = BandPowerReport(
            sample_index=self.sample_index,
            timestamp_ms=self.sample_index * 1000.0 / self.fs,
            channels=smoothed,
            symmetry=abs(smoothed[0].alpha - smoothed[1].alpha),
            goal=self.goal,
            score=composite_score(smoothed, self.goal),
        )
        logging.debug(f"Band tick {self.sample_index}: alpha {smoothed[0].alpha:.1f}/"
                      f"{smoothed[1].alpha:.1f}, score {report.score:.2f}")
        return report

    def compute_welch_psd(self, data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Power spectral density of one window

        A single Hann-windowed segment spans the whole window, so the
        frequency resolution is fs / window_size.
        """
        nperseg = min(self.window_size, len(data))
        freqs, psd = sp_signal.welch(data, fs=self.fs, nperseg=nperseg,
                                     noverlap=nperseg // 2, window='hann')
        return freqs, psd

    def band_percentages(self, data: np.ndarray) -> Dict[str, float]:
        """
        Share of in-band energy per band, in percent

        The reference total is the summed energy of all configured bands,
        so the percentages add up to 100 unless the window carries no
        in-band energy at all (then every band is 0).
        """
        freqs, psd = self.compute_welch_psd(data)

        energies = {}
        for band_name in BAND_NAMES:
            low, high = self.freq_bands[band_name]
            mask = (freqs >= low) & (freqs < high)
            energies[band_name] = float(np.sum(psd[mask])) if np.any(mask) else 0.0

        total = sum(energies.values())
        if total <= 0 or not np.isfinite(total):
            return {name: 0.0 for name in BAND_NAMES}
        return {name: 100.0 * energy / total for name, energy in energies.items()}

    def _smooth(self, previous: BandPowerVector, values: Dict[str, float]) -> BandPowerVector:
        s = self.smoothing
        return BandPowerVector(**{
            name: s * getattr(previous, name) + (1 - s) * values[name]
            for name in BAND_NAMES
        })

    def reset(self):
        """Drop windows and smoothing history"""
        for window in self.windows:
            window.clear()
        self.sample_index = 0
        self.current = None
