from __future__ import annotations

import logging
import math
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from autotrader_py.execution.base import Broker
from autotrader_py.types import BreakevenPolicy, ClosedTrade, Position, Stats


logger = logging.getLogger(__name__)

HISTORY_LIMIT = 500


def _now() -> str:
  return datetime.now(UTC).isoformat()


class PositionLedger:
  """Open long positions and realized P&L for one bot.

  Positions are kept per symbol in fill order; a signal-driven close always
  takes the oldest one. Broker calls happen outside the lock so status reads
  never wait on the network.
  """

  def __init__(
    self,
    broker: Broker,
    notify: Callable[[str], None],
    breakeven_policy: BreakevenPolicy = BreakevenPolicy.LOSS,
    on_trade_closed: Callable[[ClosedTrade], None] | None = None,
    history_limit: int = HISTORY_LIMIT,
  ) -> None:
    self.broker = broker
    self.notify = notify
    self.breakeven_policy = breakeven_policy
    self.on_trade_closed = on_trade_closed
    self.stats = Stats()
    self.positions: dict[str, list[Position]] = {}
    self.history: deque[ClosedTrade] = deque(maxlen=history_limit)
    self._lock = threading.Lock()

  def open(
    self,
    symbol: str,
    price: float,
    budget: float,
    stop_loss_pct: float | None = None,
    take_profit_pct: float | None = None,
  ) -> Position | None:
    if price <= 0:
      return None
    qty = math.floor(budget / price)
    if qty < 1:
      return None
    try:
      order = self.broker.submit_market_order(symbol, qty, "buy", price)
    except Exception as err:  # noqa: BLE001
      logger.exception("Buy failed for %s", symbol)
      self.notify(f"❌ Buy error {symbol}: {err}")
      return None

    position = Position(
      symbol=symbol,
      qty=order.qty,
      entry_price=order.fill_price,
      side="buy",
      opened_at=_now(),
      order_id=order.order_id,
    )
    with self._lock:
      self.positions.setdefault(symbol, []).append(position)
      self.stats.total_trades += 1
      self.stats.daily_trades += 1

    lines = [
      "📈 BUY EXECUTED",
      "",
      f"🎯 Symbol: {symbol}",
      f"💰 Quantity: {position.qty}",
      f"💵 Price: ${position.entry_price:.2f}",
      f"💸 Value: ${position.qty * position.entry_price:.2f}",
    ]
    if stop_loss_pct is not None:
      lines.append(f"🛑 Stop Loss: ${position.entry_price * (1 - stop_loss_pct / 100):.2f}")
    if take_profit_pct is not None:
      lines.append(f"🎯 Take Profit: ${position.entry_price * (1 + take_profit_pct / 100):.2f}")
    self.notify("\n".join(lines))
    return position

  def close(self, symbol: str, price: float, reason: str = "signal") -> ClosedTrade | None:
    with self._lock:
      open_positions = self.positions.get(symbol)
      oldest = open_positions[0] if open_positions else None
    if oldest is None:
      return None
    return self._close_position(oldest, price, reason)

  def check_risk(self, symbol: str, price: float, stop_loss_pct: float, take_profit_pct: float) -> list[ClosedTrade]:
    closed: list[ClosedTrade] = []
    for position in self.open_positions(symbol):
      pct = (price - position.entry_price) / position.entry_price * 100
      if pct <= -stop_loss_pct:
        trade = self._close_position(position, price, "stop_loss")
        if trade is not None:
          closed.append(trade)
          self.notify(f"🛑 Stop Loss triggered for {symbol}")
      # checked independently; a position closed above is no longer open here
      if pct >= take_profit_pct and self._is_open(position):
        trade = self._close_position(position, price, "take_profit")
        if trade is not None:
          closed.append(trade)
          self.notify(f"🎯 Take Profit triggered for {symbol}")
    return closed

  def open_positions(self, symbol: str | None = None) -> list[Position]:
    with self._lock:
      if symbol is not None:
        return list(self.positions.get(symbol, []))
      return [p for items in self.positions.values() for p in items]

  def open_count(self) -> int:
    with self._lock:
      return sum(len(items) for items in self.positions.values())

  def snapshot_stats(self) -> Stats:
    with self._lock:
      return replace(self.stats)

  def reset_daily(self) -> None:
    with self._lock:
      self.stats.daily_pl = 0.0
      self.stats.daily_trades = 0

  def reset_monthly(self) -> None:
    with self._lock:
      self.stats.monthly_pl = 0.0

  def _is_open(self, position: Position) -> bool:
    with self._lock:
      return any(p is position for p in self.positions.get(position.symbol, []))

  def _close_position(self, position: Position, price: float, reason: str) -> ClosedTrade | None:
    symbol = position.symbol
    try:
      order = self.broker.submit_market_order(symbol, position.qty, "sell", price)
    except Exception as err:  # noqa: BLE001
      logger.exception("Sell failed for %s", symbol)
      self.notify(f"❌ Sell error {symbol}: {err}")
      return None

    exit_price = order.fill_price
    pnl = (exit_price - position.entry_price) * position.qty
    trade = ClosedTrade(
      symbol=symbol,
      qty=position.qty,
      entry_price=position.entry_price,
      exit_price=exit_price,
      pnl=pnl,
      reason=reason,
      opened_at=position.opened_at,
      closed_at=_now(),
      order_id=order.order_id,
    )
    with self._lock:
      items = self.positions.get(symbol, [])
      self.positions[symbol] = [p for p in items if p is not position]
      if not self.positions[symbol]:
        self.positions.pop(symbol)
      self.stats.total_pl += pnl
      self.stats.daily_pl += pnl
      self.stats.monthly_pl += pnl
      self._classify(pnl)
      self.history.append(trade)
      total_pl = self.stats.total_pl
      win_rate = self.stats.win_rate

    if self.on_trade_closed is not None:
      try:
        self.on_trade_closed(trade)
      except Exception:  # noqa: BLE001
        logger.exception("Could not record closed trade for %s", symbol)

    won = pnl > 0
    self.notify(
      "\n".join(
        [
          f"{'✅' if won else '❌'} SELL EXECUTED - {'PROFIT' if won else 'LOSS'}",
          "",
          f"🎯 Symbol: {symbol}",
          f"💰 Quantity: {position.qty}",
          f"📈 Entry price: ${position.entry_price:.2f}",
          f"📉 Exit price: ${exit_price:.2f}",
          f"💵 P&L: {'+' if won else ''}${pnl:.2f}",
          f"📊 Total P&L: ${total_pl:.2f}",
          f"🎯 Win Rate: {win_rate:.1f}%",
        ]
      )
    )
    return trade

  def _classify(self, pnl: float) -> None:
    if pnl > 0:
      self.stats.wins += 1
    elif pnl < 0:
      self.stats.losses += 1
    elif self.breakeven_policy is BreakevenPolicy.WIN:
      self.stats.wins += 1
    elif self.breakeven_policy is BreakevenPolicy.LOSS:
      self.stats.losses += 1
