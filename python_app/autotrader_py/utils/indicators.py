from __future__ import annotations

from collections.abc import Sequence
from math import sqrt


def sma(values: Sequence[float], period: int) -> list[float]:
  if period < 1 or len(values) < period:
    raise ValueError("sma requires len(values) >= period >= 1")
  return [sum(values[i - period + 1 : i + 1]) / period for i in range(period - 1, len(values))]


def ema(values: Sequence[float], period: int) -> list[float]:
  if period < 1:
    raise ValueError("ema requires period >= 1")
  if not values:
    return []
  k = 2 / (period + 1)
  out = [float(values[0])]
  for v in values[1:]:
    out.append(out[-1] + k * (v - out[-1]))
  return out


def rsi(values: Sequence[float], period: int = 14) -> float:
  """Plain-average RSI over the first `period` price changes."""
  if period < 1 or len(values) < period + 1:
    raise ValueError("rsi requires len(values) >= period + 1")
  gains: list[float] = []
  losses: list[float] = []
  for i in range(1, period + 1):
    diff = values[i] - values[i - 1]
    gains.append(max(diff, 0))
    losses.append(max(-diff, 0))
  avg_gain = sum(gains) / period
  avg_loss = sum(losses) / period
  if avg_loss == 0:
    return 100.0
  rs = avg_gain / avg_loss
  return 100 - (100 / (1 + rs))


def std(values: Sequence[float], period: int) -> float:
  if period < 1 or len(values) < period:
    raise ValueError("std requires len(values) >= period >= 1")
  window = values[-period:]
  mu = sum(window) / period
  variance = sum((v - mu) ** 2 for v in window) / period
  return sqrt(variance)


def pct_change(start: float, end: float) -> float:
  if start == 0:
    raise ValueError("pct_change start cannot be zero")
  return (end - start) / start
