"""Tests for the sample filter."""

from __future__ import annotations

from pawwalk.core.filter import FilterConfig, Rejection, accept, check


def test_first_point_accepted_regardless_of_distance(sample):
    config = FilterConfig(min_distance_m=5.0, max_accuracy_m=None)
    assert accept(sample(0, accuracy_m=500), None, config)


def test_accuracy_gate_applies_to_first_point(sample):
    config = FilterConfig(min_distance_m=1.5, max_accuracy_m=50.0)
    assert check(sample(0, accuracy_m=200), None, config) is Rejection.ACCURACY
    assert not accept(sample(0, accuracy_m=200), None, config)


def test_accuracy_gate_boundary_is_inclusive(sample):
    config = FilterConfig(max_accuracy_m=50.0)
    assert accept(sample(0, accuracy_m=50.0), None, config)


def test_unknown_accuracy_passes(sample):
    config = FilterConfig(max_accuracy_m=10.0)
    assert accept(sample(0, accuracy_m=0.0), None, config)


def test_jitter_below_min_distance_rejected(sample):
    config = FilterConfig(min_distance_m=1.5)
    last = sample(0)
    assert check(sample(1.0, seconds=3), last, config) is Rejection.TOO_CLOSE


def test_movement_at_min_distance_accepted(sample):
    config = FilterConfig(min_distance_m=1.5)
    last = sample(0)
    assert accept(sample(1.6, seconds=3), last, config)


def test_thresholds_are_configurable(sample):
    last = sample(0)
    candidate = sample(3.0, seconds=3)
    assert accept(candidate, last, FilterConfig(min_distance_m=1.0))
    assert not accept(candidate, last, FilterConfig(min_distance_m=5.0))
