"""Unit tests for linkplan/link.py"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from linkplan.clearance import ClearanceResult
from linkplan.elevation import FlatProvider
from linkplan.geodesy import GeoPoint, distance
from linkplan.hgt import HgtElevationProvider
from linkplan.link import analyze_link

A = GeoPoint(50.2, 30.2)
B = GeoPoint(50.3, 30.4)


def test_flat_link():
    link = analyze_link(A, B, 5.8e9, FlatProvider(), 20.0, 15.0, samples=32)

    assert link['distance_m'] == pytest.approx(distance(A, B))
    assert link['ground_a_m'] == 0.0
    assert link['height_a_m'] == 20.0
    assert link['height_b_m'] == 15.0
    assert link['passes']
    assert link['violations'] == []
    assert link['data_gaps'] == 0
    assert len(link['samples']) == 33
    assert isinstance(link['result'], ClearanceResult)
    assert link['max_fresnel_radius_m'] == max(s.fresnel_radius_m for s in link['samples'])
    assert 0.0 <= link['bearing_ab'] < 360.0
    assert link['bearing_ba'] == pytest.approx((link['bearing_ab'] + 180.0) % 360.0, abs=0.5)


def test_ground_elevation_raises_antennas(write_hgt, flat_grid):
    dem = HgtElevationProvider(write_hgt('N50E030', flat_grid(200)).parent)
    link = analyze_link(A, B, 5.8e9, dem, 10.0, 12.0, samples=16)

    assert link['ground_a_m'] == pytest.approx(200.0)
    assert link['ground_b_m'] == pytest.approx(200.0)
    assert link['height_a_m'] == pytest.approx(210.0)
    assert link['height_b_m'] == pytest.approx(212.0)
    assert link['data_gaps'] == 0


def test_missing_tiles_count_as_gaps(hgt_dir):
    link = analyze_link(A, B, 5.8e9, HgtElevationProvider(hgt_dir), 10.0, 10.0, samples=16)

    assert link['data_gaps'] == 17
    assert link['ground_a_m'] == 0.0
    assert link['passes']


def test_low_antennas_over_a_plateau_fail(write_hgt, flat_grid):
    # Antennas sit 1m above a flat plateau; the zone dips into the ground
    dem = HgtElevationProvider(write_hgt('N50E030', flat_grid(300)).parent)
    link = analyze_link(A, B, 5.8e9, dem, 1.0, 1.0, samples=16)

    assert not link['passes']
    assert link['violations'][0][0] > 0.0
    assert link['violations'][-1][1] == pytest.approx(link['distance_m'])
    assert link['min_clearance_pct'] < 60.0
