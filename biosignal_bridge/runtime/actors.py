"""
Analysis actors

Each actor is a worker thread with an exclusive bounded inbox and exclusive
ownership of the components it drives. The ingestion path only posts
messages; a full inbox evicts its oldest message instead of blocking the
producer. Messages are handled strictly in arrival order.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from ..cardiac.bpm import BPMEstimator
from ..cardiac.hrv import HRVEngine
from ..cardiac.peak_detector import CardiacPeakDetector
from ..core.config import INBOX_CAPACITY
from ..core.data_types import (
    BandPowerReport, BeatReport, BPMState, Goal, HRVState, StateUpdate,
)
from ..detection.aggregator import TemporalStateAggregator
from ..detection.classifier import ClassifierPolicy, DEFAULT_POLICY, classify
from ..processing.features import BandPowerAnalyzer

_STOP = object()


@dataclass(frozen=True)
class SetGoal:
    goal: Goal


class Actor:
    """
    Sequential message handler running on its own thread

    Subclasses implement `handle`. Results must be published through
    `emit`, which drops them once the actor has been cancelled so nothing
    from a torn-down session reaches the listeners.
    """

    DROP_LOG_EVERY = 1000

    def __init__(self, name: str, capacity: int = INBOX_CAPACITY):
        self.name = name
        self.inbox = queue.Queue(maxsize=capacity)
        self.dropped = 0
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logging.debug(f"Actor {self.name} started")

    def send(self, message) -> None:
        """Post a message without blocking; evicts the oldest one when full"""
        if self._cancelled.is_set():
            return
        while True:
            try:
                self.inbox.put_nowait(message)
                return
            except queue.Full:
                try:
                    self.inbox.get_nowait()
                    self.inbox.task_done()
                    self.dropped += 1
                    if self.dropped % self.DROP_LOG_EVERY == 1:
                        logging.warning(f"Actor {self.name} inbox full, dropped {self.dropped} message(s)")
                except queue.Empty:
                    continue

    def emit(self, callback: Callable, *args) -> None:
        if not self._cancelled.is_set():
            callback(*args)

    def _run(self):
        while True:
            message = self.inbox.get()
            try:
                if message is _STOP:
                    return
                if not self._cancelled.is_set():
                    self.handle(message)
            except Exception as e:
                logging.error(f"Actor {self.name} failed on {type(message).__name__}: {e}")
            finally:
                self.inbox.task_done()

    def handle(self, message):
        raise NotImplementedError

    def flush(self):
        """Block until every message posted so far has been handled"""
        self.inbox.join()

    def stop(self, timeout: float = 5.0):
        """Cancel pending work, discard the inbox and join the thread"""
        self._cancelled.set()
        while True:
            try:
                self.inbox.get_nowait()
                self.inbox.task_done()
            except queue.Empty:
                break
        if self._thread is not None:
            self.inbox.put(_STOP)
            self._thread.join(timeout)
            if self._thread.is_alive():
                logging.error(f"Actor {self.name} did not stop within {timeout}s")
            self._thread = None
        logging.debug(f"Actor {self.name} stopped")


class BandPowerActor(Actor):
    """Runs the band-power analyzer on (eeg0, eeg1) sample pairs"""

    def __init__(self, analyzer: BandPowerAnalyzer,
                 on_report: Callable[[BandPowerReport], None],
                 capacity: int = INBOX_CAPACITY):
        super().__init__("band-power", capacity)
        self.analyzer = analyzer
        self.on_report = on_report

    def handle(self, message):
        if isinstance(message, SetGoal):
            self.analyzer.set_goal(message.goal)
            return
        report = self.analyzer.push(*message)
        if report is not None:
            self.emit(self.on_report, report)


class CardiacActor(Actor):
    """Runs peak detection and BPM estimation on ECG samples"""

    def __init__(self, detector: CardiacPeakDetector, bpm: BPMEstimator,
                 on_bpm: Callable[[BPMState], None],
                 on_beats: Callable[[BeatReport], None],
                 capacity: int = INBOX_CAPACITY):
        super().__init__("cardiac", capacity)
        self.detector = detector
        self.bpm = bpm
        self.on_bpm = on_bpm
        self.on_beats = on_beats

    def handle(self, message):
        report = self.detector.push(message)
        if report is None:
            return
        if report.instant_bpm is not None and not report.new_ibis_ms:
            # No beat since the last tick; its reading is already averaged in
            state = self.bpm.state
        else:
            state = self.bpm.update(report.instant_bpm)
        self.emit(self.on_bpm, state)
        self.emit(self.on_beats, report)


class StateActor(Actor):
    """Turns beat reports into HRV statistics and the displayed state"""

    def __init__(self, hrv: HRVEngine, aggregator: TemporalStateAggregator,
                 on_hrv: Callable[[HRVState], None],
                 on_state: Callable[[StateUpdate], None],
                 policy: ClassifierPolicy = DEFAULT_POLICY,
                 capacity: int = INBOX_CAPACITY):
        super().__init__("state", capacity)
        self.hrv = hrv
        self.aggregator = aggregator
        self.policy = policy
        self.on_hrv = on_hrv
        self.on_state = on_state

    def handle(self, message: BeatReport):
        if message.instant_bpm is None:
            hrv_state = self.hrv.clear_window()
        else:
            hrv_state = self.hrv.update(message.new_ibis_ms)
        self.emit(self.on_hrv, hrv_state)

        classified = classify(hrv_state.sdnn, hrv_state.rmssd, hrv_state.pnn50, self.policy)
        last_commit = self.aggregator.last_commit
        output = self.aggregator.update(classified, message.timestamp_ms)
        if self.aggregator.last_commit != last_commit:
            self.emit(self.on_state, StateUpdate(message.timestamp_ms, output, classified, hrv_state))
