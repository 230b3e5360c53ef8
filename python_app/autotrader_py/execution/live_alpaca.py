from __future__ import annotations

import httpx

from autotrader_py.execution.base import Broker
from autotrader_py.types import OrderResult, Side


class AlpacaBroker(Broker):
  def __init__(
    self,
    api_key: str,
    secret_key: str,
    trading_url: str = "https://api.alpaca.markets",
    data_url: str = "https://data.alpaca.markets",
    time_in_force: str = "day",
    client: httpx.Client | None = None,
  ) -> None:
    self.trading_url = trading_url.rstrip("/")
    self.data_url = data_url.rstrip("/")
    self.time_in_force = time_in_force
    self.client = client or httpx.Client(timeout=30.0)
    self.client.headers.update(
      {
        "APCA-API-KEY-ID": api_key,
        "APCA-API-SECRET-KEY": secret_key,
      }
    )

  def preflight_check(self) -> dict[str, object]:
    res = self.client.get(f"{self.trading_url}/v2/account")
    if res.status_code >= 400:
      return {"ok": False, "mode": "live", "message": f"Live preflight failed {res.status_code}: {res.text}"}
    data = res.json() or {}
    return {
      "ok": True,
      "mode": "live",
      "message": "Live preflight passed",
      "accountId": data.get("id"),
      "accountStatus": data.get("status"),
    }

  def get_latest_price(self, symbol: str) -> float:
    res = self.client.get(f"{self.data_url}/v2/stocks/{symbol}/trades/latest")
    res.raise_for_status()
    trade = (res.json() or {}).get("trade") or {}
    price = float(trade.get("p") or 0)
    if price <= 0:
      raise RuntimeError(f"No latest trade for {symbol}")
    return price

  def submit_market_order(self, symbol: str, qty: int, side: Side, price_hint: float) -> OrderResult:
    body = {
      "symbol": symbol,
      "qty": str(qty),
      "side": side,
      "type": "market",
      "time_in_force": self.time_in_force,
    }
    res = self.client.post(f"{self.trading_url}/v2/orders", json=body)
    raw = res.text
    if res.status_code >= 400:
      raise RuntimeError(f"Live order failed {res.status_code}: {raw}")
    data = res.json() or {}
    order_id = str(data.get("id") or "").strip()
    if not order_id:
      raise RuntimeError(f"Live order missing id: {raw}")
    # market orders usually come back before the fill is reported
    fill_price = float(data.get("filled_avg_price") or 0) or float(price_hint)
    return OrderResult(order_id=order_id, symbol=symbol, side=side, qty=qty, fill_price=fill_price)

  def close(self) -> None:
    self.client.close()
