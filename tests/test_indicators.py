from __future__ import annotations

import pytest

from autotrader_py.utils.indicators import ema, pct_change, rsi, sma, std


def test_sma_example():
  assert sma([1, 2, 3, 4, 5], 3) == [2, 3, 4]


@pytest.mark.parametrize("period", [1, 2, 5, 20])
def test_sma_length_and_window_means(period):
  prices = [100 + (i * 7) % 13 for i in range(40)]
  out = sma(prices, period)
  assert len(out) == len(prices) - period + 1
  for i, value in enumerate(out):
    window = prices[i : i + period]
    assert value == pytest.approx(sum(window) / period)


def test_sma_requires_enough_values():
  with pytest.raises(ValueError):
    sma([1, 2], 3)


def test_ema_seeds_with_first_value_and_keeps_length():
  out = ema([10, 20, 20], 3)
  assert len(out) == 3
  assert out[0] == 10
  assert out[1] == pytest.approx(15)
  assert out[2] == pytest.approx(17.5)


@pytest.mark.parametrize("period", [10, 30, 50])
def test_ema_of_constant_series_is_exact(period):
  # any drift would make equal averages look crossed
  assert ema([100.0] * 60, period) == [100.0] * 60


def test_ema_empty():
  assert ema([], 10) == []


def test_rsi_all_increasing_is_100():
  assert rsi([float(i) for i in range(1, 30)]) == 100.0


def test_rsi_all_decreasing_is_0():
  assert rsi([float(i) for i in range(30, 0, -1)]) == pytest.approx(0.0)


def test_rsi_balanced_moves_is_50():
  assert rsi([1, 2, 1], period=2) == pytest.approx(50.0)


def test_rsi_uses_first_period_changes_only():
  prices = [1, 2, 1] + [100, 0, 100]
  assert rsi(prices, period=2) == pytest.approx(50.0)


def test_rsi_stays_in_range():
  prices = [100 + ((i * 37) % 11) - 5 for i in range(60)]
  for end in range(15, len(prices)):
    assert 0 <= rsi(prices[:end]) <= 100


def test_rsi_requires_period_plus_one_values():
  with pytest.raises(ValueError):
    rsi([1.0] * 14, period=14)


def test_std_is_population_over_trailing_window():
  assert std([2, 4, 4, 4, 5, 5, 7, 9], 8) == pytest.approx(2.0)
  assert std([1000, 2, 4, 4, 4, 5, 5, 7, 9], 8) == pytest.approx(2.0)


def test_pct_change():
  assert pct_change(100, 110) == pytest.approx(0.10)
  with pytest.raises(ValueError):
    pct_change(0, 1)
