from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from autotrader_py.types import Signal, StrategyId
from autotrader_py.utils.indicators import ema, pct_change, rsi, sma, std


@dataclass(slots=True, frozen=True)
class StrategyParams:
  sma_fast: int = 20
  sma_slow: int = 50
  ema_fast: int = 10
  ema_slow: int = 30
  rsi_period: int = 14
  rsi_oversold: float = 30
  rsi_overbought: float = 70
  momentum_lookback: int = 10
  momentum_threshold: float = 0.02
  mean_reversion_period: int = 20
  mean_reversion_band: float = 0.03
  bollinger_period: int = 20
  bollinger_width: float = 2


MIN_HISTORY: dict[StrategyId, int] = {
  StrategyId.SMA_CROSSOVER: 50,
  StrategyId.EMA_CROSSOVER: 50,
  StrategyId.RSI_OVERSOLD: 20,
  StrategyId.MOMENTUM: 10,
  StrategyId.MEAN_REVERSION: 20,
  StrategyId.BOLLINGER_BANDS: 20,
}


def _cross(fast: Sequence[float], slow: Sequence[float]) -> Signal:
  if len(fast) < 2 or len(slow) < 2:
    return "hold"
  prev_fast, cur_fast = fast[-2], fast[-1]
  prev_slow, cur_slow = slow[-2], slow[-1]
  if prev_fast <= prev_slow and cur_fast > cur_slow:
    return "buy"
  if prev_fast >= prev_slow and cur_fast < cur_slow:
    return "sell"
  return "hold"


def _sma_crossover(prices: Sequence[float], p: StrategyParams) -> Signal:
  return _cross(sma(prices, p.sma_fast), sma(prices, p.sma_slow))


def _ema_crossover(prices: Sequence[float], p: StrategyParams) -> Signal:
  return _cross(ema(prices, p.ema_fast), ema(prices, p.ema_slow))


def _rsi_oversold(prices: Sequence[float], p: StrategyParams) -> Signal:
  # latest window only, so the reading follows the newest samples
  value = rsi(prices[-(p.rsi_period + 1):], p.rsi_period)
  if value < p.rsi_oversold:
    return "buy"
  if value > p.rsi_overbought:
    return "sell"
  return "hold"


def _momentum(prices: Sequence[float], p: StrategyParams) -> Signal:
  recent = prices[-p.momentum_lookback:]
  change = pct_change(recent[0], recent[-1])
  if change > p.momentum_threshold:
    return "buy"
  if change < -p.momentum_threshold:
    return "sell"
  return "hold"


def _mean_reversion(prices: Sequence[float], p: StrategyParams) -> Signal:
  mean = sma(prices, p.mean_reversion_period)[-1]
  deviation = pct_change(mean, prices[-1])
  if deviation <= -p.mean_reversion_band:
    return "buy"
  if deviation >= p.mean_reversion_band:
    return "sell"
  return "hold"


def _bollinger_bands(prices: Sequence[float], p: StrategyParams) -> Signal:
  mid = sma(prices, p.bollinger_period)[-1]
  width = p.bollinger_width * std(prices, p.bollinger_period)
  last = prices[-1]
  if last < mid - width:
    return "buy"
  if last > mid + width:
    return "sell"
  return "hold"


_RULES: dict[StrategyId, Callable[[Sequence[float], StrategyParams], Signal]] = {
  StrategyId.SMA_CROSSOVER: _sma_crossover,
  StrategyId.EMA_CROSSOVER: _ema_crossover,
  StrategyId.RSI_OVERSOLD: _rsi_oversold,
  StrategyId.MOMENTUM: _momentum,
  StrategyId.MEAN_REVERSION: _mean_reversion,
  StrategyId.BOLLINGER_BANDS: _bollinger_bands,
}


def evaluate(strategy: StrategyId | str | None, prices: Sequence[float], params: StrategyParams | None = None) -> Signal:
  if isinstance(strategy, str) and not isinstance(strategy, StrategyId):
    strategy = StrategyId.parse(strategy)
  if strategy is None:
    return "hold"
  if len(prices) < MIN_HISTORY[strategy]:
    return "hold"
  return _RULES[strategy](prices, params or StrategyParams())


class StrategyEvaluator:
  def __init__(self, params: StrategyParams | None = None) -> None:
    self.params = params or StrategyParams()

  def evaluate(self, strategy: StrategyId | str | None, prices: Sequence[float]) -> Signal:
    return evaluate(strategy, prices, self.params)
