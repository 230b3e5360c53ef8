from __future__ import annotations

import pytest

from autotrader_py.signal.strategies import MIN_HISTORY, StrategyEvaluator, StrategyParams, evaluate
from autotrader_py.types import StrategyId


def test_unknown_strategy_holds():
  prices = [100.0 + i for i in range(100)]
  assert evaluate("does_not_exist", prices) == "hold"
  assert evaluate(None, prices) == "hold"


@pytest.mark.parametrize("strategy", list(StrategyId))
def test_short_history_holds(strategy):
  # a violent move that would trigger every rule given enough samples
  n = MIN_HISTORY[strategy] - 1
  prices = [100.0] * (n - 1) + [1.0] if n > 1 else [1.0]
  assert evaluate(strategy, prices) == "hold"


def test_string_ids_are_accepted():
  prices = [100.0] * 50 + [200.0]
  assert evaluate("sma_crossover", prices) == evaluate(StrategyId.SMA_CROSSOVER, prices) == "buy"


def test_sma_crossover():
  flat = [100.0] * 50
  assert evaluate(StrategyId.SMA_CROSSOVER, flat + [200.0]) == "buy"
  assert evaluate(StrategyId.SMA_CROSSOVER, flat + [50.0]) == "sell"
  assert evaluate(StrategyId.SMA_CROSSOVER, flat + [100.0]) == "hold"


def test_sma_crossover_needs_a_previous_point():
  assert evaluate(StrategyId.SMA_CROSSOVER, [100.0] * 49 + [200.0]) == "hold"


def test_sma_crossover_only_fires_on_the_cross():
  # fast already above slow on the previous sample
  prices = [100.0] * 49 + [200.0, 210.0]
  assert evaluate(StrategyId.SMA_CROSSOVER, prices) == "hold"


def test_ema_crossover():
  flat = [100.0] * 50
  assert evaluate(StrategyId.EMA_CROSSOVER, flat + [200.0]) == "buy"
  assert evaluate(StrategyId.EMA_CROSSOVER, flat + [50.0]) == "sell"
  assert evaluate(StrategyId.EMA_CROSSOVER, flat + [100.0]) == "hold"


def test_rsi_oversold_reads_latest_samples():
  falling = [200.0 - i for i in range(25)]
  rising = [100.0 + i for i in range(25)]
  assert evaluate(StrategyId.RSI_OVERSOLD, falling) == "buy"
  assert evaluate(StrategyId.RSI_OVERSOLD, rising) == "sell"
  assert evaluate(StrategyId.RSI_OVERSOLD, rising + falling[:15]) == "buy"


def test_rsi_oversold_neutral_holds():
  zigzag = [100.0, 101.0] * 12
  assert evaluate(StrategyId.RSI_OVERSOLD, zigzag) == "hold"


def test_momentum():
  assert evaluate(StrategyId.MOMENTUM, [100.0] * 9 + [103.0]) == "buy"
  assert evaluate(StrategyId.MOMENTUM, [100.0] * 9 + [97.0]) == "sell"
  assert evaluate(StrategyId.MOMENTUM, [100.0] * 9 + [101.0]) == "hold"


def test_momentum_uses_last_ten_samples():
  prices = [50.0] * 20 + [100.0] * 9 + [101.0]
  assert evaluate(StrategyId.MOMENTUM, prices) == "hold"


def test_mean_reversion():
  base = [100.0] * 19
  assert evaluate(StrategyId.MEAN_REVERSION, base + [96.0]) == "buy"
  assert evaluate(StrategyId.MEAN_REVERSION, base + [104.0]) == "sell"
  assert evaluate(StrategyId.MEAN_REVERSION, base + [101.0]) == "hold"


def test_bollinger_bands():
  base = [100.0] * 19
  assert evaluate(StrategyId.BOLLINGER_BANDS, base + [80.0]) == "buy"
  assert evaluate(StrategyId.BOLLINGER_BANDS, base + [120.0]) == "sell"
  assert evaluate(StrategyId.BOLLINGER_BANDS, [100.0, 102.0] * 10) == "hold"


def test_params_override_thresholds():
  prices = [100.0] * 9 + [101.0]
  loose = StrategyEvaluator(StrategyParams(momentum_threshold=0.005))
  assert loose.evaluate(StrategyId.MOMENTUM, prices) == "buy"
  assert StrategyEvaluator().evaluate(StrategyId.MOMENTUM, prices) == "hold"


def test_evaluation_is_deterministic():
  prices = [100 + ((i * 17) % 9) - 4 for i in range(100)]
  for strategy in StrategyId:
    first = evaluate(strategy, prices)
    assert all(evaluate(strategy, list(prices)) == first for _ in range(5))
