"""
Temporal smoothing of classifier output

The displayed state is a majority vote over the trailing window of classifier
outputs, committed at most once per commit interval, and pinned to no_data
during the warm-up period after each connection.
"""

import logging
from collections import Counter, deque
from typing import Optional

from ..core.config import WARMUP_MS, STATE_WINDOW_MS, STATE_COMMIT_MS
from ..core.data_types import EmotionalState, StateHistoryEntry


class TemporalStateAggregator:
    """
    Warm-up gate plus trailing-window majority vote

    Times are milliseconds on any monotonic clock supplied by the caller.
    """

    def __init__(self, warmup_ms: float = WARMUP_MS, window_ms: float = STATE_WINDOW_MS,
                 commit_ms: float = STATE_COMMIT_MS):
        self.warmup_ms = warmup_ms
        self.window_ms = window_ms
        self.commit_ms = commit_ms
        self.history = deque()
        self.connection_start: Optional[float] = None
        self.last_commit: Optional[float] = None
        self.output = EmotionalState.NO_DATA

    @property
    def is_connected(self) -> bool:
        return self.connection_start is not None

    def is_warming_up(self, now_ms: float) -> bool:
        return not self.is_connected or now_ms - self.connection_start < self.warmup_ms

    def connect(self, now_ms: float):
        """Start a session; output stays no_data until warm-up ends"""
        self.history.clear()
        self.connection_start = now_ms
        self.last_commit = now_ms
        self.output = EmotionalState.NO_DATA

    def disconnect(self):
        self.history.clear()
        self.connection_start = None
        self.last_commit = None
        self.output = EmotionalState.NO_DATA

    def update(self, state: EmotionalState, now_ms: float) -> EmotionalState:
        """
        Record one classifier output and return the displayed state

        Outputs are recorded during warm-up too, so the first vote after
        warm-up already has a full window behind it.
        """
        if not self.is_connected:
            return EmotionalState.NO_DATA

        self.history.append(StateHistoryEntry(EmotionalState(state), now_ms))
        cutoff = now_ms - self.window_ms
        while self.history and self.history[0].timestamp_ms < cutoff:
            self.history.popleft()

        if self.is_warming_up(now_ms):
            return EmotionalState.NO_DATA

        if now_ms - self.last_commit >= self.commit_ms:
            self.output = self.majority()
            self.last_commit = now_ms
            logging.info(f"State committed: {self.output.value}")
        return self.output

    def majority(self) -> EmotionalState:
        """Most frequent state in the history; ties go to the first one seen"""
        if not self.history:
            return EmotionalState.NO_DATA
        # Counter keeps insertion order and most_common() sorts stably
        counts = Counter(entry.state for entry in self.history)
        return counts.most_common(1)[0][0]
