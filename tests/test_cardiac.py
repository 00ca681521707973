"""
Tests for R-peak detection, BPM estimation and HRV statistics
"""

import numpy as np
import pytest

from biosignal_bridge.cardiac.bpm import BPMEstimator
from biosignal_bridge.cardiac.hrv import HRVEngine, time_domain_hrv
from biosignal_bridge.cardiac.peak_detector import CardiacPeakDetector

from conftest import synthetic_ecg


def run_detector(detector, ecg):
    reports = []
    for value in ecg:
        report = detector.push(value)
        if report is not None:
            reports.append(report)
    return reports


class TestCardiacPeakDetector:

    def test_detection_runs_once_per_second(self):
        detector = CardiacPeakDetector()
        reports = run_detector(detector, synthetic_ecg(3000, 400))
        assert [r.sample_index for r in reports] == [500, 1000, 1500, 2000, 2500, 3000]

    def test_regular_rhythm_gives_expected_ibis(self):
        detector = CardiacPeakDetector()
        reports = run_detector(detector, synthetic_ecg(2500, 400))
        last = reports[-1]
        assert len(last.beat_indices) == 6
        for ibi in last.window_ibis_ms:
            assert ibi == pytest.approx(800.0, abs=4.0)
        assert last.instant_bpm == pytest.approx(75.0, abs=0.5)

    def test_fewer_than_two_beats_means_no_bpm(self):
        detector = CardiacPeakDetector()
        reports = run_detector(detector, synthetic_ecg(500, 400))
        assert len(reports) == 1
        assert reports[0].instant_bpm is None
        assert reports[0].new_ibis_ms == ()

    def test_flat_signal_has_no_beats(self):
        detector = CardiacPeakDetector()
        reports = run_detector(detector, np.zeros(2500))
        assert all(r.beat_indices == () and r.instant_bpm is None for r in reports)

    def test_beats_reported_once_across_overlapping_windows(self):
        detector = CardiacPeakDetector()
        reports = run_detector(detector, synthetic_ecg(6000, 400))
        new_ibis = [ibi for r in reports for ibi in r.new_ibis_ms]
        # Beats at 100, 500, ..., 5700; the one at 5900 is still inside the edge guard
        assert len(new_ibis) == 14
        assert np.allclose(new_ibis, 800.0, atol=4.0)

    def test_buffer_is_bounded(self):
        detector = CardiacPeakDetector()
        run_detector(detector, synthetic_ecg(6000, 400))
        assert len(detector.buffer) == 2500

    def test_inverted_lead_is_detected(self):
        detector = CardiacPeakDetector()
        reports = run_detector(detector, -synthetic_ecg(2500, 500))
        assert reports[-1].instant_bpm == pytest.approx(60.0, abs=0.5)

    def test_reset_clears_state(self):
        detector = CardiacPeakDetector()
        run_detector(detector, synthetic_ecg(1500, 400))
        detector.reset()
        assert len(detector.buffer) == 0
        assert detector.sample_index == 0
        assert detector.last_beat is None


class TestBPMEstimator:

    def test_first_reading_is_adopted(self):
        bpm = BPMEstimator()
        assert bpm.update(70.0).displayed == 70.0

    def test_rate_limited_steps(self):
        bpm = BPMEstimator()
        rng = np.random.default_rng(3)
        previous = None
        for value in rng.uniform(40, 160, 200):
            shown = bpm.update(float(value)).displayed
            if previous is not None:
                assert abs(shown - previous) <= 2.0 + 1e-9
            previous = shown

    def test_tracks_trend_toward_window_mean(self):
        bpm = BPMEstimator()
        states = [bpm.update(v) for v in (60.0, 100.0, 100.0, 100.0)]
        assert [s.displayed for s in states] == pytest.approx([60.0, 62.0, 64.0, 66.0])

    def test_no_reading_resets_display(self):
        bpm = BPMEstimator()
        bpm.update(70.0)
        state = bpm.update(None)
        assert state.displayed is None
        assert len(bpm.recent) == 0
        # Next reading starts fresh rather than stepping from the stale value
        assert bpm.update(90.0).displayed == 90.0

    def test_session_statistics(self):
        bpm = BPMEstimator()
        for value in (70.0, 71.0, 72.0):
            bpm.update(value)
        bpm.update(None)
        state = bpm.state
        assert state.high == pytest.approx(70.0 + 1.0)
        assert state.low == 70.0
        assert state.avg == pytest.approx((70.0 + 70.5 + 71.0) / 3)

    def test_reset(self):
        bpm = BPMEstimator()
        bpm.update(80.0)
        bpm.reset()
        state = bpm.state
        assert (state.displayed, state.high, state.low, state.avg) == (None, None, None, None)


class TestHRV:

    def test_reference_ibis(self):
        sdnn, rmssd, pnn50 = time_domain_hrv([800, 810, 790, 805])
        assert sdnn == pytest.approx(np.sqrt(218.75 / 4))
        assert sdnn == pytest.approx(7.3951, abs=1e-4)
        assert rmssd == pytest.approx(np.sqrt(725 / 3))
        assert rmssd == pytest.approx(15.5456, abs=1e-4)
        assert pnn50 == 0.0

    def test_pnn50_is_a_fraction(self):
        _, _, pnn50 = time_domain_hrv([800, 900, 800, 820])
        assert pnn50 == pytest.approx(2 / 3)

    def test_requires_two_ibis(self):
        engine = HRVEngine()
        state = engine.update([800.0])
        assert (state.sdnn, state.rmssd, state.pnn50, state.current) == (None, None, None, None)
        state = engine.update([])
        assert state.sdnn is None

    def test_engine_matches_reference(self):
        engine = HRVEngine()
        engine.update([800, 810])
        state = engine.update([790, 805])
        assert state.sdnn == pytest.approx(7.3951, abs=1e-4)
        assert state.rmssd == pytest.approx(15.5456, abs=1e-4)
        assert state.current == state.rmssd

    def test_history_is_bounded(self):
        engine = HRVEngine(history=60)
        engine.update([800.0 + (i % 3) for i in range(200)])
        assert len(engine.ibis) == 60

    def test_clear_window_keeps_session_statistics(self):
        engine = HRVEngine()
        engine.update([800, 850, 800])
        state = engine.clear_window()
        assert state.rmssd is None
        assert state.high == pytest.approx(50.0)
        assert state.avg == pytest.approx(50.0)

    def test_reset(self):
        engine = HRVEngine()
        engine.update([800, 850, 800])
        engine.reset()
        assert engine.state.high is None
        assert len(engine.ibis) == 0
