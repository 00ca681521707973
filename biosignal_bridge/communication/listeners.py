"""
Rendering collaborator interface

Listeners receive fire-and-forget notifications from the pipeline. A
listener that raises is logged and skipped; it never stops the data path.
"""

import logging
import time
from typing import Iterable

from ..core.data_types import (
    BandPowerReport, BPMState, ChannelId, EmotionalState, HRVState, SequenceGap,
)


class PipelineListener:
    """Base listener; override the hooks you need"""

    def on_raw(self, counter: int, value: float, channel: ChannelId):
        pass

    def on_band_power(self, report: BandPowerReport):
        pass

    def on_bpm(self, state: BPMState):
        pass

    def on_hrv(self, state: HRVState):
        pass

    def on_state(self, state: EmotionalState):
        pass

    def on_gap(self, gap: SequenceGap):
        pass


def notify(listeners: Iterable[PipelineListener], hook: str, *args):
    """Call `hook` on every listener, isolating listener failures"""
    for listener in listeners:
        try:
            getattr(listener, hook)(*args)
        except Exception as e:
            logging.error(f"Listener {type(listener).__name__}.{hook} failed: {e}")


class ConsoleStatus(PipelineListener):
    """Print a one-line status summary at a fixed interval"""

    def __init__(self, interval: float = 2.0):
        self.interval = interval
        self.last_print = 0.0
        self.bpm = BPMState()
        self.hrv = HRVState()
        self.state = EmotionalState.NO_DATA
        self.report = None

    def on_band_power(self, report: BandPowerReport):
        self.report = report
        self._maybe_print()

    def on_bpm(self, state: BPMState):
        self.bpm = state

    def on_hrv(self, state: HRVState):
        self.hrv = state

    def on_state(self, state: EmotionalState):
        self.state = state

    def _maybe_print(self):
        now = time.time()
        if now - self.last_print < self.interval:
            return
        self.last_print = now
        print(self.format_line())

    def format_line(self) -> str:
        bpm = f"{self.bpm.displayed:5.1f}" if self.bpm.displayed is not None else "   --"
        hrv = f"{self.hrv.current:5.1f}" if self.hrv.current is not None else "   --"
        alpha = score = "--"
        if self.report is not None:
            alpha = "/".join(f"{ch.alpha:.0f}" for ch in self.report.channels)
            score = f"{self.report.score:.2f}"
        return (f"State: {self.state.value:>11} | BPM: {bpm} | HRV: {hrv} | "
                f"Alpha%: {alpha} | Score: {score}")
