"""
Tests for the synthetic device stream and the command-line entry points
"""

import json
import time

import numpy as np
import pandas as pd
import pytest

from biosignal_bridge.acquisition.sources import DeviceStream, FakeBiosignalSource
from biosignal_bridge.cli.main import (
    create_parser, create_source, main, read_replay_csv, run_realtime_processing,
)
from biosignal_bridge.core.config import PipelineConfig
from biosignal_bridge.core.data_types import RawSample
from biosignal_bridge.runtime.pipeline import Pipeline
from biosignal_bridge.processing.demux import SequenceTracker
from biosignal_bridge.processing.features import BandPowerAnalyzer
from biosignal_bridge.cardiac.peak_detector import CardiacPeakDetector

from conftest import RecordingListener, make_stream


class BoardRateStream(DeviceStream):
    """Device that only reveals its true rate once opened, then streams a 10 Hz rhythm"""

    def __init__(self, board_fs: float = 250.0, n_samples: int = 1000):
        super().__init__(fs=500)
        self.board_fs = board_fs
        self.n_samples = n_samples

    def _open(self) -> bool:
        self.fs = self.board_fs
        return True

    def _poll(self) -> bool:
        t = np.arange(self.n_samples) / self.fs
        eeg = 20 * np.sin(2 * np.pi * 10 * t)
        for i, value in enumerate(eeg):
            self._push(RawSample(i, float(value), float(value), 0.0))
        return False


class TestFakeBiosignalSource:

    def test_same_seed_same_samples(self):
        a = FakeBiosignalSource(seed=3).generate(1000)
        b = FakeBiosignalSource(seed=3).generate(1000)
        assert a == b

    def test_counters_are_contiguous_without_loss(self):
        samples = FakeBiosignalSource().generate(500)
        assert [s.sequence_counter for s in samples] == list(range(500))

    def test_drop_rate_creates_gaps(self):
        samples = FakeBiosignalSource(drop_rate=0.05, seed=1).generate(2000)
        assert len(samples) < 2000
        tracker = SequenceTracker()
        gaps = [tracker.check(s.sequence_counter) for s in samples]
        assert any(gap is not None for gap in gaps)

    def test_eeg_channels_carry_alpha_and_beta(self):
        samples = FakeBiosignalSource().generate(256)
        analyzer = BandPowerAnalyzer(stride=256)
        report = None
        for s in samples:
            report = analyzer.push(s.eeg0, s.eeg1) or report
        assert report.channels[0].dominant_band() == "alpha"
        assert report.channels[1].beta > report.channels[0].beta

    def test_ecg_heart_rate(self):
        source = FakeBiosignalSource(heart_rate=60.0, rr_jitter=0.0)
        detector = CardiacPeakDetector()
        reports = [detector.push(s.ecg) for s in source.generate(5000)]
        last = [r for r in reports if r is not None][-1]
        assert last.instant_bpm == pytest.approx(60.0, abs=1.0)

    def test_pushes_to_callback_until_max_samples(self):
        received = []
        source = FakeBiosignalSource(received.append, realtime=False, max_samples=600)
        assert source.connect()
        deadline = time.time() + 5.0
        while source.is_connected and time.time() < deadline:
            time.sleep(0.01)
        source.disconnect()
        assert len(received) == 600
        assert not source.is_connected


class TestCli:

    def test_mode_is_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--run", "--replay", "x.csv"])

    def test_create_fake_source(self):
        args = create_parser().parse_args(["--run", "--heart-rate", "90", "--drop-rate", "0.1"])
        source = create_source(args)
        assert isinstance(source, FakeBiosignalSource)
        assert source.heart_rate == 90.0
        assert source.drop_rate == 0.1

    def test_read_replay_csv(self, tmp_path):
        path = tmp_path / "stream.csv"
        pd.DataFrame({"counter": [0, 1], "eeg0": [1.0, np.nan], "eeg1": [2.0, 3.0],
                      "ecg": [0.1, 0.2]}).to_csv(path, index=False)
        samples = list(read_replay_csv(str(path)))
        assert samples[0].eeg1 == 2.0
        assert np.isnan(samples[1].eeg0)

    def test_replay_csv_requires_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        pd.DataFrame({"counter": [0], "eeg0": [1.0]}).to_csv(path, index=False)
        with pytest.raises(ValueError):
            list(read_replay_csv(str(path)))

    def test_replay_exports_session(self, tmp_path):
        stream = tmp_path / "stream.csv"
        pd.DataFrame([
            {"counter": s.sequence_counter, "eeg0": s.eeg0, "eeg1": s.eeg1, "ecg": s.ecg}
            for s in make_stream(1500)
        ]).to_csv(stream, index=False)
        export = tmp_path / "summary.json"

        code = main(["--replay", str(stream), "--no-udp", "--goal", "meditation",
                     "--export", str(export)])

        assert code == 0
        with open(export) as f:
            document = json.load(f)
        assert document["summary"]["ticks"] == len(range(260, 1501, 10))

    def test_missing_replay_file_fails(self, tmp_path):
        assert main(["--replay", str(tmp_path / "missing.csv"), "--no-udp"]) == 1


class TestRealtimeProcessing:

    def test_pipeline_runs_at_device_rate(self):
        listener = RecordingListener()
        pipeline = Pipeline(PipelineConfig(fs=500, inbox_capacity=1_000_000), [listener])

        assert run_realtime_processing(pipeline, BoardRateStream(board_fs=250.0))

        assert pipeline.config.fs == 250.0
        reports = listener.events["band_power"]
        assert [r.sample_index for r in reports] == list(range(260, 1001, 10))
        assert all(r.channels[0].dominant_band() == "alpha" for r in reports)
        assert reports[0].timestamp_ms == pytest.approx(260 * 4.0)

    def test_unusable_device_rate_aborts(self):
        source = BoardRateStream(board_fs=0.0)
        pipeline = Pipeline(PipelineConfig())
        assert not run_realtime_processing(pipeline, source)
        assert not pipeline.connected
        assert not source.is_open
