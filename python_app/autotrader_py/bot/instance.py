from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable

from autotrader_py.config import BotConfig, ServiceSettings
from autotrader_py.execution.base import Broker
from autotrader_py.market_data.price_series import PriceSeries
from autotrader_py.notify.telegram import Notifier
from autotrader_py.persistence.base import Persistence
from autotrader_py.risk.ledger import PositionLedger
from autotrader_py.signal.strategies import StrategyEvaluator
from autotrader_py.types import BotStatus, ClosedTrade, Signal


logger = logging.getLogger(__name__)


class TradingBotInstance:
  """One user's autonomous trading loop.

  The loop yields only while sleeping (between cycles, between symbols, after
  a failed cycle) and while waiting on the broker or the notifier. `stop()`
  flips the active flag and wakes a pending sleep; it never interrupts a
  broker call that is already in flight.
  """

  def __init__(
    self,
    user_id: str,
    config: BotConfig,
    broker: Broker,
    notifier: Notifier,
    settings: ServiceSettings | None = None,
    evaluator: StrategyEvaluator | None = None,
    persistence: Persistence | None = None,
    sleep: Callable[[float], object] | None = None,
    rng: random.Random | None = None,
  ) -> None:
    self.user_id = user_id
    self.config = config
    self.broker = broker
    self.notifier = notifier
    self.settings = settings or ServiceSettings()
    self.evaluator = evaluator or StrategyEvaluator()
    self.persistence = persistence
    self.rng = rng or random.Random()
    self.sleep = sleep or self._wait
    self.price_history: dict[str, PriceSeries] = {}
    self.ledger = PositionLedger(
      broker,
      self._notify,
      breakeven_policy=config.breakeven_policy,
      on_trade_closed=self._record_trade,
    )
    self._active = False
    self._closing = False
    self._released = False
    self._state_lock = threading.Lock()
    self._wake = threading.Event()
    # set while no loop is running on this instance
    self._idle = threading.Event()
    self._idle.set()
    self._thread: threading.Thread | None = None

  @property
  def is_active(self) -> bool:
    return self._active

  def start(self, background: bool = True) -> None:
    with self._state_lock:
      if self._active:
        return
      if self._closing:
        raise RuntimeError(f"Bot for user {self.user_id} has been shut down")
    # a stopped loop may still be inside a broker call; let it exit first
    self._idle.wait()
    with self._state_lock:
      if self._active or not self._idle.is_set():
        return
      self._active = True
      self._idle.clear()
      self._wake.clear()
    cfg = self.config
    logger.info("Bot started for user %s (%s, %s)", self.user_id, cfg.mode, cfg.strategy_name)
    self._notify(
      "\n".join(
        [
          "🚀 BOT STARTED!",
          "",
          f"⚙️ Mode: {cfg.mode.upper()}",
          f"💰 Budget per trade: ${cfg.trade_amount:g}",
          f"📈 Strategy: {cfg.strategy_name}",
          f"🎯 Symbols: {', '.join(cfg.symbols)}",
          f"🛑 Stop Loss: {cfg.stop_loss_pct:g}%",
          f"🎯 Take Profit: {cfg.take_profit_pct:g}%",
          "🔄 Status: ACTIVE 24/7",
        ]
      )
    )
    if not background:
      self.run_forever()
      return
    self._thread = threading.Thread(target=self.run_forever, name=f"bot-{self.user_id}", daemon=True)
    self._thread.start()

  def stop(self) -> None:
    with self._state_lock:
      if not self._active:
        return
      self._active = False
      self._wake.set()
    logger.info("Bot stopped for user %s", self.user_id)
    self._notify("⏹️ Bot stopped by user")

  def shutdown(self) -> None:
    """Stop for good and close the broker and notifier once the loop has exited."""
    self.stop()
    with self._state_lock:
      self._closing = True
      idle = self._idle.is_set()
    if idle:
      self._release()

  def join(self, timeout: float | None = None) -> None:
    if self._thread is not None and self._thread is not threading.current_thread():
      self._thread.join(timeout)

  def run_forever(self) -> None:
    try:
      while self._active:
        try:
          self.run_cycle()
        except Exception as err:  # noqa: BLE001
          logger.exception("Trading cycle failed for user %s", self.user_id)
          self._notify(f"❌ Error: {err}")
          self.sleep(self.settings.error_cooldown_seconds)
          continue
        if not self._active:
          break
        self.sleep(self.next_interval())
    finally:
      with self._state_lock:
        release = self._closing
        self._idle.set()
      if release:
        self._release()

  def next_interval(self) -> float:
    return self.rng.uniform(self.settings.min_interval_seconds, self.settings.max_interval_seconds)

  def run_cycle(self) -> None:
    if self.ledger.snapshot_stats().daily_trades >= self.config.max_trades:
      logger.info("Daily trade limit reached for user %s, skipping cycle", self.user_id)
      return
    symbols = self.config.symbols
    for idx, symbol in enumerate(symbols):
      if not self._active:
        break
      try:
        self.process_symbol(symbol)
      except Exception:  # noqa: BLE001
        logger.exception("Error processing %s for user %s", symbol, self.user_id)
      if idx < len(symbols) - 1:
        self.sleep(self.settings.symbol_delay_seconds)
    self._persist_stats()

  def process_symbol(self, symbol: str) -> Signal:
    cfg = self.config
    price = self.current_price(symbol)
    series = self.series(symbol)
    series.append(price)
    signal = self.evaluator.evaluate(cfg.strategy, series.values())
    if signal == "buy":
      self.ledger.open(symbol, price, cfg.trade_amount, cfg.stop_loss_pct, cfg.take_profit_pct)
    elif signal == "sell":
      self.ledger.close(symbol, price)
    self.ledger.check_risk(symbol, price, cfg.stop_loss_pct, cfg.take_profit_pct)
    return signal

  def current_price(self, symbol: str) -> float:
    try:
      return float(self.broker.get_latest_price(symbol))
    except Exception as err:  # noqa: BLE001
      logger.warning("Price unavailable for %s (%s), using fallback %s", symbol, err, self.settings.fallback_price)
      return self.settings.fallback_price

  def series(self, symbol: str) -> PriceSeries:
    if symbol not in self.price_history:
      self.price_history[symbol] = PriceSeries(symbol)
    return self.price_history[symbol]

  def status(self) -> BotStatus:
    return BotStatus(
      is_active=self._active,
      stats=self.ledger.snapshot_stats(),
      open_positions=self.ledger.open_count(),
      symbols=list(self.config.symbols),
      closed_trades=len(self.ledger.history),
    )

  def reset_daily_stats(self) -> None:
    self.ledger.reset_daily()

  def reset_monthly_stats(self) -> None:
    self.ledger.reset_monthly()

  def _release(self) -> None:
    with self._state_lock:
      if self._released:
        return
      self._released = True
    for name, resource in (("broker", self.broker), ("notifier", self.notifier)):
      try:
        resource.close()
      except Exception:  # noqa: BLE001
        logger.exception("Could not close %s for user %s", name, self.user_id)

  def _wait(self, seconds: float) -> None:
    self._wake.wait(max(0.0, seconds))

  def _notify(self, message: str) -> None:
    try:
      self.notifier.send(message)
    except Exception:  # noqa: BLE001
      logger.exception("Notification failed for user %s", self.user_id)

  def _record_trade(self, trade: ClosedTrade) -> None:
    if self.persistence is not None:
      self.persistence.insert_trade(self.user_id, trade)

  def _persist_stats(self) -> None:
    if self.persistence is None:
      return
    try:
      self.persistence.upsert_stats(self.user_id, self.ledger.snapshot_stats())
    except Exception:  # noqa: BLE001
      logger.exception("Could not persist stats for user %s", self.user_id)
