from __future__ import annotations

import pytest

from autotrader_py.market_data.price_series import MAX_SAMPLES, PriceSeries


def test_capacity_is_bounded_and_evicts_oldest_first():
  series = PriceSeries("AAPL")
  for i in range(250):
    series.append(i)
    assert len(series) <= MAX_SAMPLES
  assert len(series) == 100
  assert series.values() == [float(i) for i in range(150, 250)]
  assert series.last == 249.0


def test_values_are_chronological_and_copied():
  series = PriceSeries("AAPL", capacity=3)
  for p in (1, 2, 3, 4):
    series.append(p)
  values = series.values()
  values.append(99)
  assert series.values() == [2.0, 3.0, 4.0]


def test_empty_series():
  series = PriceSeries("AAPL")
  assert len(series) == 0
  assert series.last is None


def test_capacity_must_be_positive():
  with pytest.raises(ValueError):
    PriceSeries("AAPL", capacity=0)
