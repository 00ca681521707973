"""
Sample demultiplexing

Splits raw device samples into per-channel values, rejects non-finite values
before they reach any buffer, and reports sequence-counter discontinuities.
Nothing here reorders, drops or resynthesizes samples.
"""

import logging
import math
from typing import Optional

from ..core.data_types import RawSample, DemuxedSample, SequenceGap


def demultiplex(sample: RawSample) -> DemuxedSample:
    """
    Split a raw sample into validated channel values

    A non-finite EEG value rejects both EEG values so the two channel windows
    stay in lock-step; the ECG value is validated on its own.
    """
    eeg = None
    if math.isfinite(sample.eeg0) and math.isfinite(sample.eeg1):
        eeg = (float(sample.eeg0), float(sample.eeg1))
    ecg = float(sample.ecg) if math.isfinite(sample.ecg) else None
    return DemuxedSample(sample.sequence_counter, eeg, ecg)


class SequenceTracker:
    """
    Detect gaps in the device sequence counter

    Gaps are informational: the caller keeps processing every sample it
    receives. With a modulus set, the counter is expected to wrap around.
    """

    def __init__(self, modulus: Optional[int] = None):
        self.modulus = modulus
        self.last_counter: Optional[int] = None
        self.gap_count = 0
        self.missing_total = 0

    def check(self, counter: int) -> Optional[SequenceGap]:
        """Record a counter and return the gap it reveals, if any"""
        previous = self.last_counter
        self.last_counter = counter
        if previous is None:
            return None

        expected = previous + 1
        if self.modulus is not None:
            expected %= self.modulus
            missing = (counter - expected) % self.modulus
            # A wrapped distance past half the range is a repeat, not a loss
            if missing > self.modulus // 2:
                missing = 0
        else:
            missing = max(counter - expected, 0)

        if counter == expected:
            return None

        gap = SequenceGap(expected=expected, received=counter, missing=missing)
        self.gap_count += 1
        self.missing_total += missing
        logging.warning(f"Sequence gap: expected {expected}, got {counter} ({missing} missing)")
        return gap

    def reset(self):
        self.last_counter = None
        self.gap_count = 0
        self.missing_total = 0
