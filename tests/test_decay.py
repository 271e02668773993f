"""Tests for staleness decay."""

from datetime import timedelta

import pytest

from skillcred.config import DecayConfig
from skillcred.scoring.decay import DecayCalculator, days_between, decay_multiplier


def test_fresh_has_no_decay():
    assert decay_multiplier(0) == 1.0

def test_grace_period():
    assert decay_multiplier(89.9) == 1.0
    assert decay_multiplier(90) == 1.0

def test_400_days():
    assert decay_multiplier(400) == pytest.approx(1 - 310 / 730)

def test_floor_reached_at_455_days():
    assert decay_multiplier(455) == pytest.approx(0.5)

def test_floor():
    assert decay_multiplier(820) == 0.5
    assert decay_multiplier(10000) == 0.5

def test_monotonic_non_increasing():
    values = [decay_multiplier(d) for d in range(0, 2000, 7)]
    assert all(a >= b for a, b in zip(values, values[1:]))
    assert min(values) >= 0.5

def test_custom_floor():
    assert decay_multiplier(10000, DecayConfig(floor=0.8)) == 0.8


class TestDecayCalculator:
    def test_missing_record(self, now):
        assert DecayCalculator().compute(None, now=now) == 1.0

    def test_from_timestamp(self, now):
        stale = now - timedelta(days=400)
        assert DecayCalculator().compute(stale, now=now) == pytest.approx(0.5753, abs=1e-4)

    def test_fractional_days(self, now):
        assert days_between(now - timedelta(hours=36), now) == pytest.approx(1.5)
