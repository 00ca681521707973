"""
Displayed heart rate

Turns noisy instantaneous BPM readings into a calm display value: a short
moving average, followed by a rate limiter that moves the shown value toward
the average by a bounded step per update.
"""

from collections import deque
from typing import Optional

import numpy as np

from ..core.config import BPM_WINDOW, BPM_MAX_STEP
from ..core.data_types import BPMState


class BPMEstimator:
    """
    Rate-limited BPM with session statistics

    high/low/avg describe the displayed values over the whole session and
    survive gaps in detection; only `reset` clears them.
    """

    def __init__(self, window: int = BPM_WINDOW, max_step: float = BPM_MAX_STEP):
        self.max_step = max_step
        self.recent = deque(maxlen=window)
        self.displayed: Optional[float] = None
        self.high: Optional[float] = None
        self.low: Optional[float] = None
        self._sum = 0.0
        self._count = 0

    def update(self, instant_bpm: Optional[float]) -> BPMState:
        """
        Feed the latest instantaneous reading (None when no BPM is available)

        Returns:
            BPMState: Current display value and session statistics
        """
        if instant_bpm is None or not np.isfinite(instant_bpm):
            # Stale readings are never shown as current
            self.recent.clear()
            self.displayed = None
            return self.state

        self.recent.append(float(instant_bpm))
        target = float(np.mean(self.recent))

        if self.displayed is None:
            self.displayed = target
        else:
            step = float(np.clip(target - self.displayed, -self.max_step, self.max_step))
            self.displayed += step

        self.high = self.displayed if self.high is None else max(self.high, self.displayed)
        self.low = self.displayed if self.low is None else min(self.low, self.displayed)
        self._sum += self.displayed
        self._count += 1
        return self.state

    @property
    def state(self) -> BPMState:
        avg = self._sum / self._count if self._count else None
        return BPMState(displayed=self.displayed, high=self.high, low=self.low, avg=avg)

    def reset(self):
        self.recent.clear()
        self.displayed = None
        self.high = None
        self.low = None
        self._sum = 0.0
        self._count = 0
