from __future__ import annotations

from abc import ABC, abstractmethod

from autotrader_py.types import OrderResult, Side


class Broker(ABC):
  @abstractmethod
  def get_latest_price(self, symbol: str) -> float: ...

  @abstractmethod
  def submit_market_order(self, symbol: str, qty: int, side: Side, price_hint: float) -> OrderResult: ...

  @abstractmethod
  def preflight_check(self) -> dict[str, object]: ...

  def close(self) -> None:
    return
