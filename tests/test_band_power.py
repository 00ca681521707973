"""
Tests for the EEG band-power analyzer
"""

import numpy as np
import pytest

from biosignal_bridge.core.data_types import BandPowerVector, Goal
from biosignal_bridge.processing.features import BandPowerAnalyzer, composite_score

from conftest import sine


def feed(analyzer, ch0, ch1):
    reports = []
    for a, b in zip(ch0, ch1):
        report = analyzer.push(a, b)
        if report is not None:
            reports.append(report)
    return reports


class TestFillingState:

    def test_no_output_before_window_is_full(self):
        analyzer = BandPowerAnalyzer()
        data = sine(10, 255)
        assert feed(analyzer, data, data) == []
        assert not analyzer.is_ready

    def test_first_tick_on_stride_after_window_fills(self):
        analyzer = BandPowerAnalyzer()
        data = sine(10, 260)
        results = [analyzer.push(a, a) for a in data]
        assert all(r is None for r in results[:-1])
        assert results[-1] is not None
        assert results[-1].sample_index == 260

    def test_tick_cadence_follows_stride(self):
        analyzer = BandPowerAnalyzer()
        data = sine(10, 1000)
        reports = feed(analyzer, data, data)
        assert [r.sample_index for r in reports] == list(range(260, 1001, 10))


class TestSpectralEstimate:

    @pytest.mark.parametrize("freq,band", [
        (2.5, "delta"), (6.0, "theta"), (10.0, "alpha"), (20.0, "beta"), (50.0, "gamma"),
    ])
    def test_pure_sinusoid_dominant_band(self, freq, band):
        analyzer = BandPowerAnalyzer(stride=256)
        data = sine(freq, 256)
        reports = feed(analyzer, data, data)
        assert len(reports) == 1
        assert reports[0].channels[0].dominant_band() == band
        assert reports[0].channels[1].dominant_band() == band

    def test_percentages_sum_to_100(self):
        analyzer = BandPowerAnalyzer()
        rng = np.random.default_rng(1)
        values = analyzer.band_percentages(rng.normal(0, 1, 256))
        assert sum(values.values()) == pytest.approx(100.0)

    def test_percentages_within_bounds(self):
        analyzer = BandPowerAnalyzer()
        rng = np.random.default_rng(2)
        ch0 = rng.normal(0, 30, 3000)
        ch1 = sine(12, 3000) + rng.normal(0, 3, 3000)
        for report in feed(analyzer, ch0, ch1):
            for vector in report.channels:
                for value in vector.as_dict().values():
                    assert 0.0 <= value <= 100.0

    def test_silent_window_yields_zero_percentages(self):
        analyzer = BandPowerAnalyzer()
        values = analyzer.band_percentages(np.zeros(256))
        assert all(v == 0.0 for v in values.values())

    def test_exponential_smoothing_between_ticks(self):
        analyzer = BandPowerAnalyzer(smoothing=0.7)
        ch = np.concatenate([sine(10, 260), sine(20, 10)])
        reports = feed(analyzer, ch, ch)
        assert len(reports) == 2
        first = reports[0].channels[0]
        raw = analyzer.band_percentages(analyzer.windows[0].snapshot())
        second = reports[1].channels[0]
        for name, value in raw.items():
            assert getattr(second, name) == pytest.approx(0.7 * getattr(first, name) + 0.3 * value)

    def test_output_replaces_previous_vector(self):
        analyzer = BandPowerAnalyzer()
        data = sine(10, 600)
        feed(analyzer, data, data)
        assert isinstance(analyzer.current, tuple)
        assert len(analyzer.current) == 2


class TestDerivedMetrics:

    def test_symmetry_is_alpha_difference(self):
        analyzer = BandPowerAnalyzer(stride=256)
        reports = feed(analyzer, sine(10, 256), sine(20, 256))
        report = reports[0]
        expected = abs(report.channels[0].alpha - report.channels[1].alpha)
        assert report.symmetry == pytest.approx(expected)
        assert report.symmetry > 50

    def test_identical_channels_are_symmetric(self):
        analyzer = BandPowerAnalyzer(stride=256)
        data = sine(10, 256)
        assert feed(analyzer, data, data)[0].symmetry == pytest.approx(0.0)

    def test_composite_scores(self):
        vectors = (BandPowerVector(delta=10, theta=20, alpha=40, beta=20, gamma=10),
                   BandPowerVector(delta=30, theta=10, alpha=20, beta=20, gamma=20))
        assert composite_score(vectors, Goal.ANXIETY) == pytest.approx(30 / 20)
        assert composite_score(vectors, Goal.MEDITATION) == pytest.approx(15)
        assert composite_score(vectors, Goal.SLEEP) == pytest.approx(20)

    def test_anxiety_score_without_beta(self):
        vectors = (BandPowerVector(alpha=100), BandPowerVector(alpha=100))
        assert composite_score(vectors, Goal.ANXIETY) == 0.0

    def test_goal_change_applies_to_next_tick(self):
        analyzer = BandPowerAnalyzer()
        data = sine(10, 280)
        reports = feed(analyzer, data[:270], data[:270])
        assert reports[-1].goal == Goal.ANXIETY
        analyzer.set_goal(Goal.SLEEP)
        reports = feed(analyzer, data[270:], data[270:])
        assert reports[-1].goal == Goal.SLEEP
        assert reports[-1].score == pytest.approx(reports[-1].channels[0].delta)

    def test_reset_returns_to_filling(self):
        analyzer = BandPowerAnalyzer()
        data = sine(10, 300)
        feed(analyzer, data, data)
        analyzer.reset()
        assert analyzer.current is None
        assert feed(analyzer, data[:255], data[:255]) == []


class TestValidation:

    def test_rejects_bad_stride(self):
        with pytest.raises(ValueError):
            BandPowerAnalyzer(stride=0)

    def test_rejects_bad_smoothing(self):
        with pytest.raises(ValueError):
            BandPowerAnalyzer(smoothing=1.0)
