from __future__ import annotations

import pytest

from autotrader_py.config import BotConfig, ServiceSettings
from autotrader_py.execution.base import Broker
from autotrader_py.notify.telegram import Notifier
from autotrader_py.types import OrderResult, Side


class FakeBroker(Broker):
  def __init__(self, prices: dict[str, list[float]] | None = None) -> None:
    self.prices = {k: list(v) for k, v in (prices or {}).items()}
    self.orders: list[OrderResult] = []
    self.fail_orders = False
    self.fail_prices = False
    self.price_calls: list[str] = []

  def get_latest_price(self, symbol: str) -> float:
    self.price_calls.append(symbol)
    if self.fail_prices:
      raise RuntimeError("quote service down")
    queue = self.prices.get(symbol) or [100.0]
    return queue.pop(0) if len(queue) > 1 else queue[0]

  def submit_market_order(self, symbol: str, qty: int, side: Side, price_hint: float) -> OrderResult:
    if self.fail_orders:
      raise RuntimeError("order rejected")
    order = OrderResult(order_id=f"T-{len(self.orders) + 1}", symbol=symbol, side=side, qty=qty, fill_price=price_hint)
    self.orders.append(order)
    return order

  def preflight_check(self) -> dict[str, object]:
    return {"ok": True}


class RecordingNotifier(Notifier):
  def __init__(self) -> None:
    self.messages: list[str] = []

  def send(self, message: str) -> None:
    self.messages.append(message)

  def containing(self, text: str) -> list[str]:
    return [m for m in self.messages if text in m]


@pytest.fixture
def broker() -> FakeBroker:
  return FakeBroker()


@pytest.fixture
def notifier() -> RecordingNotifier:
  return RecordingNotifier()


@pytest.fixture
def bot_config() -> BotConfig:
  return BotConfig(api_key="key", secret_key="secret", symbols=("AAPL", "TSLA"))


@pytest.fixture
def settings() -> ServiceSettings:
  return ServiceSettings(
    min_interval_seconds=120,
    max_interval_seconds=300,
    error_cooldown_seconds=300,
    symbol_delay_seconds=5,
    fallback_price=100.0,
  )
