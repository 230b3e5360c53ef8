from __future__ import annotations

import random
from datetime import UTC, datetime

from autotrader_py.execution.base import Broker
from autotrader_py.types import OrderResult, Side


BASE_PRICES: dict[str, float] = {
  "AAPL": 150.0,
  "TSLA": 200.0,
  "NVDA": 400.0,
  "MSFT": 300.0,
  "GOOGL": 130.0,
  "AMZN": 140.0,
}
DEFAULT_BASE_PRICE = 100.0


class PaperBroker(Broker):
  """Simulated quotes (random walk kept within a band around a base price) and instant fills."""

  def __init__(
    self,
    rng: random.Random | None = None,
    step_pct: float = 0.02,
    max_drift_pct: float = 0.10,
    base_prices: dict[str, float] | None = None,
  ) -> None:
    self.rng = rng or random.Random()
    self.step_pct = step_pct
    self.max_drift_pct = max_drift_pct
    self.base_prices = dict(BASE_PRICES if base_prices is None else base_prices)
    self._last: dict[str, float] = {}
    self._seq = 0

  def base_price(self, symbol: str) -> float:
    return self.base_prices.get(symbol, DEFAULT_BASE_PRICE)

  def get_latest_price(self, symbol: str) -> float:
    base = self.base_price(symbol)
    prev = self._last.get(symbol, base)
    step = (self.rng.random() - 0.5) * 2 * self.step_pct
    low = base * (1 - self.max_drift_pct)
    high = base * (1 + self.max_drift_pct)
    price = min(high, max(low, prev * (1 + step)))
    self._last[symbol] = price
    return price

  def submit_market_order(self, symbol: str, qty: int, side: Side, price_hint: float) -> OrderResult:
    self._seq += 1
    order_id = f"PAPER-{symbol}-{int(datetime.now(UTC).timestamp() * 1000)}-{self._seq}"
    return OrderResult(order_id=order_id, symbol=symbol, side=side, qty=qty, fill_price=float(price_hint))

  def preflight_check(self) -> dict[str, object]:
    return {"ok": True, "mode": "paper", "message": "Paper broker ready"}
