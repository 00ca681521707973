"""
Real-time processing pipeline

Wires demultiplexing on the ingestion path to the three analysis actors and
fans results out to the listeners. Every connection builds a fresh set of
components and actors, so nothing derived in one session can leak into the
next.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from ..cardiac.bpm import BPMEstimator
from ..cardiac.hrv import HRVEngine
from ..cardiac.peak_detector import CardiacPeakDetector
from ..communication.listeners import PipelineListener, notify
from ..core.config import PipelineConfig
from ..core.data_types import (
    BandPowerReport, BPMState, ChannelId, EmotionalState, Goal, HRVState, RawSample,
    StateUpdate,
)
from ..detection.aggregator import TemporalStateAggregator
from ..detection.classifier import ClassifierPolicy, DEFAULT_POLICY
from ..processing.demux import SequenceTracker, demultiplex
from ..processing.features import BandPowerAnalyzer
from .actors import BandPowerActor, CardiacActor, SetGoal, StateActor


class Pipeline:
    """
    Biosignal processing pipeline for one device stream

    `on_sample` is the device callback. It never blocks on analysis work:
    it validates and posts messages to the actors and returns.
    """

    def __init__(self, config: Optional[PipelineConfig] = None,
                 listeners: Iterable[PipelineListener] = (),
                 goal: Goal = Goal.ANXIETY,
                 policy: ClassifierPolicy = DEFAULT_POLICY):
        self.config = (config or PipelineConfig()).validate()
        self.listeners: List[PipelineListener] = list(listeners)
        self.goal = Goal(goal)
        self.policy = policy

        self.connected = False
        self.tracker = SequenceTracker(self.config.counter_modulus)
        self.samples_received = 0
        self.rejected_eeg = 0
        self.rejected_ecg = 0
        self.state = EmotionalState.NO_DATA
        self._session = 0
        self._publish_lock = threading.Lock()
        self._actors = ()

    def add_listener(self, listener: PipelineListener):
        self.listeners.append(listener)

    def connect(self):
        """Start a session with fresh analysis state"""
        if self.connected:
            return
        cfg = self.config
        with self._publish_lock:
            self._session += 1
        session = self._session

        analyzer = BandPowerAnalyzer(cfg.fs, cfg.window_size, cfg.band_stride,
                                     cfg.band_smoothing, cfg.freq_bands, self.goal)
        detector = CardiacPeakDetector(cfg.fs, cfg.ecg_buffer_size, cfg.peak_stride,
                                       cfg.qrs_band, cfg.min_rr_ms, cfg.peak_prominence_frac)
        aggregator = TemporalStateAggregator(cfg.warmup_ms, cfg.state_window_ms, cfg.state_commit_ms)
        # Session clock starts at the first sample
        aggregator.connect(0.0)

        self._state_actor = StateActor(HRVEngine(cfg.ibi_history), aggregator,
                                       self._publisher(session, self._publish_hrv),
                                       self._publisher(session, self._publish_state),
                                       self.policy, cfg.inbox_capacity)
        self._cardiac_actor = CardiacActor(detector, BPMEstimator(cfg.bpm_window, cfg.bpm_max_step),
                                           self._publisher(session, self._publish_bpm), self._state_actor.send,
                                           cfg.inbox_capacity)
        self._band_actor = BandPowerActor(analyzer, self._publisher(session, self._publish_band_power),
                                          cfg.inbox_capacity)
        # Cardiac feeds state, so it must be drained first
        self._actors = (self._band_actor, self._cardiac_actor, self._state_actor)

        self.tracker.reset()
        self.samples_received = 0
        self.rejected_eeg = 0
        self.rejected_ecg = 0
        for actor in self._actors:
            actor.start()
        self.connected = True
        logging.info(f"Pipeline connected ({cfg.fs} Hz, goal {self.goal.value})")
        self._publish_reset()

    def disconnect(self):
        """Tear down the session and revert every output to its sentinel"""
        if not self.connected:
            return
        self.connected = False
        # Results still in flight belong to the old session and are dropped
        with self._publish_lock:
            self._session += 1
        for actor in self._actors:
            actor.stop()
        dropped = sum(actor.dropped for actor in self._actors)
        self._actors = ()
        logging.info(f"Pipeline disconnected: {self.samples_received} samples, "
                     f"{self.tracker.gap_count} gaps, {dropped} dropped messages, "
                     f"{self.rejected_eeg + self.rejected_ecg} rejected values")
        self.tracker.reset()
        self._publish_reset()

    def on_sample(self, sample: RawSample):
        """Device callback: ingest one raw sample"""
        if not self.connected:
            return
        self.samples_received += 1

        gap = self.tracker.check(sample.sequence_counter)
        if gap is not None:
            notify(self.listeners, "on_gap", gap)

        demuxed = demultiplex(sample)
        counter = demuxed.sequence_counter
        if demuxed.eeg is not None:
            self._band_actor.send(demuxed.eeg)
            notify(self.listeners, "on_raw", counter, demuxed.eeg[0], ChannelId.EEG0)
            notify(self.listeners, "on_raw", counter, demuxed.eeg[1], ChannelId.EEG1)
        else:
            self.rejected_eeg += 1
            logging.debug(f"Rejected non-finite EEG values in sample {counter}")

        if demuxed.ecg is not None:
            self._cardiac_actor.send(demuxed.ecg)
            notify(self.listeners, "on_raw", counter, demuxed.ecg, ChannelId.ECG)
        else:
            self.rejected_ecg += 1
            logging.debug(f"Rejected non-finite ECG value in sample {counter}")

    def set_sample_rate(self, fs: float):
        """
        Adopt the sample rate reported by the device

        Components are built on connect, so the new rate applies from the
        next session.
        """
        if fs == self.config.fs:
            return
        logging.info(f"Device streams at {fs} Hz, configured {self.config.fs} Hz; using {fs} Hz")
        self.config = replace(self.config, fs=fs).validate()

    def set_goal(self, goal: Goal):
        """Change the composite score goal; applies from the next band tick"""
        self.goal = Goal(goal)
        if self.connected:
            self._band_actor.send(SetGoal(self.goal))

    def flush(self):
        """Wait until all samples posted so far are fully processed"""
        for actor in self._actors:
            actor.flush()

    @property
    def dropped_messages(self) -> int:
        return sum(actor.dropped for actor in self._actors)

    def _publisher(self, session: int, publish: Callable) -> Callable:
        """Bind a publish hook to one session; results of an older session are dropped"""
        def deliver(payload):
            with self._publish_lock:
                if session == self._session:
                    publish(payload)
        return deliver

    def _publish_band_power(self, report: BandPowerReport):
        notify(self.listeners, "on_band_power", report)

    def _publish_bpm(self, state: BPMState):
        notify(self.listeners, "on_bpm", state)

    def _publish_hrv(self, state: HRVState):
        notify(self.listeners, "on_hrv", state)

    def _publish_state(self, update: StateUpdate):
        self.state = update.state
        notify(self.listeners, "on_state", update.state)

    def _publish_reset(self):
        self.state = EmotionalState.NO_DATA
        notify(self.listeners, "on_state", EmotionalState.NO_DATA)
        notify(self.listeners, "on_bpm", BPMState())
        notify(self.listeners, "on_hrv", HRVState())
