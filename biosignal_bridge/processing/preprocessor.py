"""
ECG signal preprocessing

Zero-phase band-pass filtering that isolates the QRS complex before R-peak
detection. Filtering happens on buffer snapshots, never on the live buffer.
"""

import logging
from typing import Tuple
import numpy as np
from scipy import signal as sp_signal

from ..core.config import FS_EXPECTED, QRS_BAND


class Preprocessor:
    """
    Band-pass filter for ECG snapshots

    The default 5-15 Hz band keeps the steep QRS slopes and suppresses
    baseline wander, T waves and mains interference.
    """

    def __init__(self, fs: float = FS_EXPECTED, bandpass: Tuple[float, float] = QRS_BAND,
                 order: int = 4):
        self.fs = fs
        self.bandpass = bandpass
        self.order = order

        # Design filters
        self._design_filters()

    def _design_filters(self):
        """Design digital filters for preprocessing"""
        nyquist = self.fs / 2
        low = self.bandpass[0] / nyquist
        high = self.bandpass[1] / nyquist
        self.bp_b, self.bp_a = sp_signal.butter(self.order, [low, high], btype='band')
        self.min_length = 3 * max(len(self.bp_a), len(self.bp_b)) + 1

        logging.info(f"ECG filter designed: BP {self.bandpass}Hz at {self.fs}Hz")

    def filter_data(self, data: np.ndarray) -> np.ndarray:
        """
        Apply the band-pass filter to a 1-D snapshot

        Args:
            data: Raw ECG samples

        Returns:
            np.ndarray: Filtered samples (input returned unchanged if too short to filter)
        """
        if len(data) < self.min_length:
            return np.asarray(data, dtype=np.float64).copy()
        return sp_signal.filtfilt(self.bp_b, self.bp_a, data)
