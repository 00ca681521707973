"""
Heart-rate variability

Time-domain HRV statistics over a bounded history of inter-beat intervals:
SDNN (population standard deviation), RMSSD (root mean square of successive
differences) and pNN50 (fraction of successive differences above 50 ms).
"""

from collections import deque
from typing import Iterable, Optional, Tuple

import numpy as np

from ..core.config import IBI_HISTORY
from ..core.data_types import HRVState

NN50_MS = 50.0


def time_domain_hrv(ibis_ms) -> Optional[Tuple[float, float, float]]:
    """
    Compute (SDNN, RMSSD, pNN50) for a sequence of IBIs in milliseconds

    Returns None when fewer than two IBIs are available.
    """
    rr = np.asarray(ibis_ms, dtype=np.float64)
    if rr.size < 2:
        return None
    diffs = np.diff(rr)
    sdnn = float(np.std(rr))
    rmssd = float(np.sqrt(np.mean(diffs * diffs)))
    pnn50 = float(np.mean(np.abs(diffs) > NN50_MS))
    return sdnn, rmssd, pnn50


class HRVEngine:
    """
    Streaming HRV statistics

    `current` is the RMSSD of the retained window; high/low/avg track it
    over the session the same way the BPM statistics do.
    """

    def __init__(self, history: int = IBI_HISTORY):
        self.ibis = deque(maxlen=history)
        self.sdnn: Optional[float] = None
        self.rmssd: Optional[float] = None
        self.pnn50: Optional[float] = None
        self.high: Optional[float] = None
        self.low: Optional[float] = None
        self._sum = 0.0
        self._count = 0

    def update(self, new_ibis_ms: Iterable[float]) -> HRVState:
        """Append newly detected IBIs and recompute the statistics"""
        self.ibis.extend(float(ibi) for ibi in new_ibis_ms)

        stats = time_domain_hrv(self.ibis)
        if stats is None:
            self.sdnn = self.rmssd = self.pnn50 = None
            return self.state

        self.sdnn, self.rmssd, self.pnn50 = stats
        self.high = self.rmssd if self.high is None else max(self.high, self.rmssd)
        self.low = self.rmssd if self.low is None else min(self.low, self.rmssd)
        self._sum += self.rmssd
        self._count += 1
        return self.state

    def clear_window(self) -> HRVState:
        """Forget retained IBIs after a detection dropout"""
        self.ibis.clear()
        self.sdnn = self.rmssd = self.pnn50 = None
        return self.state

    @property
    def state(self) -> HRVState:
        avg = self._sum / self._count if self._count else None
        return HRVState(current=self.rmssd, high=self.high, low=self.low, avg=avg,
                        sdnn=self.sdnn, rmssd=self.rmssd, pnn50=self.pnn50)

    def reset(self):
        self.clear_window()
        self.high = None
        self.low = None
        self._sum = 0.0
        self._count = 0
