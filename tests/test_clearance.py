"""Unit tests for linkplan/clearance.py"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from linkplan.clearance import (
    ViolationInterval, analyze_clearance, clearance_pct, is_violation, required_elevation,
)
from linkplan.elevation import ElevationProvider, ElevationResult, FlatProvider
from linkplan.geodesy import GeoPoint
from linkplan.profile import PathSample, sample_path

A = GeoPoint(50.0, 30.0)
B = GeoPoint(50.0, 30.07)  # about 5 km east
FREQ_HZ = 5.8e9


class RidgeProvider(ElevationProvider):
    """100m ridges over the given fractions of the A->B longitude span"""

    def __init__(self, *spans):
        self.spans = spans

    def lookup(self, lat, lon):
        frac = (lon - A.lon) / (B.lon - A.lon)
        for lo, hi in self.spans:
            if lo <= frac <= hi:
                return ElevationResult(100.0, True)
        return ElevationResult(0.0, True)


def test_flat_path_passes():
    samples = sample_path(A, B, FREQ_HZ, FlatProvider(), 30.0, 30.0, samples=64)
    result = analyze_clearance(samples, 60.0)

    assert result.violations == ()
    assert result.passes
    assert result.min_clearance_pct >= 60.0
    assert result.total_distance_m == samples[-1].distance_m
    assert len(result.clearance_pct) == 65


def test_endpoints_report_zero_percent():
    samples = sample_path(A, B, FREQ_HZ, FlatProvider(), 30.0, 30.0, samples=16)
    result = analyze_clearance(samples)
    assert result.clearance_pct[0] == 0.0
    assert result.clearance_pct[-1] == 0.0
    # The endpoints do not drag the minimum to 0
    assert result.min_clearance_pct > 0.0


def test_middle_third_obstruction():
    samples = sample_path(A, B, FREQ_HZ, RidgeProvider((1 / 3, 2 / 3)), 30.0, 30.0, samples=64)
    result = analyze_clearance(samples, 60.0)

    assert not result.passes
    assert result.violations == (
        ViolationInterval(samples[22].distance_m, samples[43].distance_m),
    )
    assert result.min_clearance_pct < 0.0


def test_two_obstructions_are_separate_and_ordered():
    samples = sample_path(A, B, FREQ_HZ, RidgeProvider((0.18, 0.32), (0.58, 0.72)),
                          30.0, 30.0, samples=20)
    result = analyze_clearance(samples)

    assert len(result.violations) == 2
    first, second = result.violations
    assert first.end_m <= second.start_m
    assert first == ViolationInterval(samples[4].distance_m, samples[7].distance_m)
    assert second == ViolationInterval(samples[12].distance_m, samples[15].distance_m)


def test_run_reaching_the_end_closes_at_total_distance():
    samples = [
        PathSample(0.0, 0.0, 0.0, 50.0),
        PathSample(100.0, 5.0, 0.0, 50.0),
        PathSample(200.0, 5.0, 48.0, 50.0),
        PathSample(300.0, 0.0, 60.0, 50.0),
    ]
    result = analyze_clearance(samples, 60.0, total_distance_m=305.0)
    assert result.violations == (ViolationInterval(200.0, 305.0),)


def test_endpoint_above_line_of_sight_is_a_violation():
    samples = [
        PathSample(0.0, 0.0, 51.0, 50.0),
        PathSample(100.0, 5.0, 0.0, 50.0),
        PathSample(200.0, 0.0, 0.0, 50.0),
    ]
    result = analyze_clearance(samples, 60.0)
    assert result.violations == (ViolationInterval(0.0, 100.0),)
    assert result.min_clearance_pct == pytest.approx(1000.0)


def test_endpoint_touching_line_of_sight_is_fine():
    s = PathSample(0.0, 0.0, 50.0, 50.0)
    assert not is_violation(s, 60.0)
    assert clearance_pct(s) == 0.0


def test_clearance_and_required_elevation():
    s = PathSample(500.0, 10.0, 44.0, 50.0)
    assert clearance_pct(s) == pytest.approx(60.0)
    assert required_elevation(s, 60.0) == pytest.approx(44.0)
    # Exactly at the target is not a violation
    assert not is_violation(s, 60.0)
    assert is_violation(s, 61.0)


def test_zero_length_path():
    samples = sample_path(A, A, FREQ_HZ, FlatProvider(), 30.0, 30.0, samples=8)
    result = analyze_clearance(samples)
    assert result.min_clearance_pct == 0.0
    assert result.violations == ()
    assert result.total_distance_m == 0.0


def test_zero_length_path_inside_terrain_has_no_intervals():
    samples = [PathSample(0.0, 0.0, 100.0, 30.0)] * 3
    result = analyze_clearance(samples)
    assert result.violations == ()


@pytest.mark.parametrize("target", [0.0, -5.0, 100.5])
def test_rejects_bad_target(target):
    with pytest.raises(ValueError):
        analyze_clearance([PathSample(0.0, 0.0, 0.0, 10.0)], target)


def test_rejects_empty_samples():
    with pytest.raises(ValueError):
        analyze_clearance([])


def test_full_target_accepted():
    samples = sample_path(A, B, FREQ_HZ, FlatProvider(), 30.0, 30.0, samples=8)
    assert analyze_clearance(samples, 100.0).passes
