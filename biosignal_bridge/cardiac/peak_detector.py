"""
R-peak detection on the ECG stream

The detector owns a 5-second ring buffer of ECG samples. Once per second it
band-passes a snapshot of the buffer, finds R-peaks with amplitude,
prominence and refractory-distance constraints and reports the beats and
inter-beat intervals (IBIs) found in the window.
"""

import logging
from typing import List, Optional
import numpy as np
from scipy.signal import find_peaks

from ..core.config import (
    FS_EXPECTED, ECG_BUFFER_SIZE, PEAK_STRIDE, QRS_BAND, MIN_RR_MS, PEAK_PROMINENCE_FRAC,
)
from ..core.data_types import BeatReport
from ..core.ring_buffer import RingBuffer
from ..processing.preprocessor import Preprocessor


class CardiacPeakDetector:
    """
    Heartbeat detection over a sliding ECG window

    Consecutive windows overlap, so a beat can be seen by several ticks.
    Beats are tracked by absolute sample index and only reported as new
    once; IBIs are only formed between beats inside the same window.
    """

    EDGE_GUARD_SEC = 0.2  # filter transients at both snapshot ends; late beats wait for the next tick
    POLARITY_RATIO = 1.15

    def __init__(self, fs: float = FS_EXPECTED, buffer_size: int = ECG_BUFFER_SIZE,
                 stride: int = PEAK_STRIDE, qrs_band=QRS_BAND,
                 min_rr_ms: float = MIN_RR_MS, prominence_frac: float = PEAK_PROMINENCE_FRAC):
        if stride <= 0:
            raise ValueError(f"Stride must be positive, got {stride}")
        self.fs = fs
        self.stride = stride
        self.min_distance = max(1, int(min_rr_ms / 1000.0 * fs))
        self.prominence_frac = prominence_frac
        self.edge_guard = int(self.EDGE_GUARD_SEC * fs)

        self.buffer = RingBuffer(buffer_size)
        self.preprocessor = Preprocessor(fs, qrs_band)
        self.sample_index = 0
        self.last_beat: Optional[int] = None

    def push(self, value: float) -> Optional[BeatReport]:
        """
        Add one validated ECG sample and run detection if due

        Returns:
            BeatReport when a detection tick ran, otherwise None
        """
        self.buffer.push(value)
        self.sample_index += 1
        if self.sample_index % self.stride != 0:
            return None
        return self.detect()

    def find_beats(self, snapshot: np.ndarray) -> np.ndarray:
        """
        Locate R-peaks in a raw ECG snapshot

        Args:
            snapshot: Raw ECG samples, oldest first

        Returns:
            np.ndarray: Peak positions within the snapshot
        """
        if len(snapshot) < self.preprocessor.min_length or np.ptp(snapshot) == 0:
            return np.array([], dtype=int)

        filtered = self.preprocessor.filter_data(snapshot)

        # Inverted leads put the R wave below the baseline
        if -np.min(filtered) > self.POLARITY_RATIO * np.max(filtered):
            filtered = -filtered

        amplitude = np.percentile(np.abs(filtered), 99)
        if amplitude <= 0:
            return np.array([], dtype=int)
        threshold = self.prominence_frac * amplitude

        peaks, _ = find_peaks(filtered, height=threshold, prominence=threshold,
                              distance=self.min_distance)
        inside = (peaks >= self.edge_guard) & (peaks < len(filtered) - self.edge_guard)
        return peaks[inside]

    def detect(self) -> BeatReport:
        """Run one detection tick on a snapshot of the buffer"""
        snapshot = self.buffer.snapshot()
        base = self.sample_index - len(snapshot)
        beats = [base + int(p) for p in self.find_beats(snapshot)]

        window_ibis = [self._ms(b - a) for a, b in zip(beats, beats[1:])]
        new_ibis: List[float] = []
        for i, beat in enumerate(beats):
            if self.last_beat is not None and beat <= self.last_beat + self.min_distance // 2:
                continue
            if i > 0:
                new_ibis.append(window_ibis[i - 1])
            self.last_beat = beat

        instant_bpm = None
        if len(beats) >= 2:
            instant_bpm = 60000.0 / window_ibis[-1]
        else:
            logging.debug(f"Peak tick {self.sample_index}: {len(beats)} beat(s), no BPM available")

        return BeatReport(
            sample_index=self.sample_index,
            timestamp_ms=self._ms(self.sample_index),
            beat_indices=tuple(beats),
            window_ibis_ms=tuple(window_ibis),
            new_ibis_ms=tuple(new_ibis),
            instant_bpm=instant_bpm,
        )

    def _ms(self, n_samples: int) -> float:
        return n_samples * 1000.0 / self.fs

    def reset(self):
        self.buffer.clear()
        self.sample_index = 0
        self.last_beat = None
