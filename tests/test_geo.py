"""
Tests for autoctx/utils/geo.py.
"""

import math

import pytest

from autoctx.utils.geo import clamp, haversine, is_valid_coord, ms_to_kmh


def test_haversine_one_degree_latitude():
    d = haversine((0.0, 0.0), (1.0, 0.0))
    assert d == pytest.approx(111_195, rel=1e-4)


def test_haversine_same_point_is_zero():
    assert haversine((48.85, 2.35), (48.85, 2.35)) == 0.0


def test_haversine_nan_propagates():
    assert math.isnan(haversine((float("nan"), 0.0), (1.0, 0.0)))


def test_is_valid_coord():
    assert is_valid_coord(48.85, 2.35)
    assert not is_valid_coord(float("nan"), 2.35)
    assert not is_valid_coord(91.0, 0.0)
    assert not is_valid_coord(0.0, float("inf"))


def test_unit_helpers():
    assert ms_to_kmh(10.0) == pytest.approx(36.0)
    assert clamp(150.0, 0.0, 100.0) == 100.0
    assert clamp(-1.0, 0.0, 100.0) == 0.0
