from __future__ import annotations

from collections import deque


MAX_SAMPLES = 100


class PriceSeries:
  """Most recent prices for one symbol, oldest first."""

  def __init__(self, symbol: str, capacity: int = MAX_SAMPLES) -> None:
    if capacity < 1:
      raise ValueError("capacity must be >= 1")
    self.symbol = symbol
    self.capacity = capacity
    self._prices: deque[float] = deque(maxlen=capacity)

  def append(self, price: float) -> None:
    self._prices.append(float(price))

  def values(self) -> list[float]:
    return list(self._prices)

  @property
  def last(self) -> float | None:
    return self._prices[-1] if self._prices else None

  def __len__(self) -> int:
    return len(self._prices)
