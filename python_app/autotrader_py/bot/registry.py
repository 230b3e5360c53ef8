from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from autotrader_py.bot.instance import TradingBotInstance
from autotrader_py.config import BotConfig, BotConfigError, ServiceSettings, bot_config_from_dict
from autotrader_py.execution.base import Broker
from autotrader_py.execution.live_alpaca import AlpacaBroker
from autotrader_py.execution.paper import PaperBroker
from autotrader_py.notify.telegram import Notifier, notifier_for
from autotrader_py.persistence.base import NoopPersistence, Persistence
from autotrader_py.types import BotStatus


logger = logging.getLogger(__name__)

BotFactory = Callable[[str, BotConfig], TradingBotInstance]


class BotRegistry:
  """User id -> at most one live bot. Start/stop for one user are serialized."""

  def __init__(
    self,
    settings: ServiceSettings | None = None,
    persistence: Persistence | None = None,
    broker_factory: Callable[[BotConfig], Broker] | None = None,
    notifier_factory: Callable[[BotConfig], Notifier] | None = None,
    bot_factory: BotFactory | None = None,
  ) -> None:
    self.settings = settings or ServiceSettings()
    self.persistence = persistence or NoopPersistence()
    self.broker_factory = broker_factory or self._default_broker
    self.notifier_factory = notifier_factory or (lambda cfg: notifier_for(cfg.telegram_token, cfg.chat_id))
    self.bot_factory = bot_factory or self._build_bot
    self._bots: dict[str, TradingBotInstance] = {}
    self._guard = threading.Lock()
    self._user_locks: dict[str, threading.Lock] = {}

  def start_bot(self, user_id: str, config: BotConfig | dict[str, object]) -> dict[str, object]:
    if not user_id:
      raise BotConfigError("userId is required")
    cfg = config if isinstance(config, BotConfig) else bot_config_from_dict(config)
    if not cfg.api_key or not cfg.secret_key:
      raise BotConfigError("apiKey and secretKey are required")
    with self._lock_for(user_id):
      with self._guard:
        previous = self._bots.pop(user_id, None)
      if previous is not None:
        logger.info("Replacing running bot for user %s", user_id)
        previous.shutdown()
      bot = self.bot_factory(user_id, cfg)
      with self._guard:
        self._bots[user_id] = bot
      bot.start()
    return {"success": True, "message": "Bot started"}

  def stop_bot(self, user_id: str) -> dict[str, object]:
    with self._lock_for(user_id):
      with self._guard:
        bot = self._bots.pop(user_id, None)
      if bot is not None:
        bot.shutdown()
    return {"success": True, "message": "Bot stopped"}

  def get_status(self, user_id: str) -> BotStatus:
    with self._guard:
      bot = self._bots.get(user_id)
    if bot is None:
      return BotStatus(is_active=False)
    return bot.status()

  def get_bot(self, user_id: str) -> TradingBotInstance | None:
    with self._guard:
      return self._bots.get(user_id)

  def active_count(self) -> int:
    with self._guard:
      return sum(1 for bot in self._bots.values() if bot.is_active)

  def health(self) -> dict[str, object]:
    with self._guard:
      total = len(self._bots)
      active = sum(1 for bot in self._bots.values() if bot.is_active)
    return {"status": "online", "activeBots": active, "totalUsers": total}

  def stop_all(self) -> None:
    with self._guard:
      bots = list(self._bots.items())
      self._bots.clear()
    for user_id, bot in bots:
      with self._lock_for(user_id):
        bot.shutdown()

  def reset_daily_stats(self) -> None:
    for bot in self._snapshot():
      bot.reset_daily_stats()

  def reset_monthly_stats(self) -> None:
    for bot in self._snapshot():
      bot.reset_monthly_stats()

  def save_config(self, user_id: str, config: dict[str, object]) -> None:
    self.persistence.save_config(user_id, config)

  def load_config(self, user_id: str) -> dict[str, object]:
    return self.persistence.load_config(user_id) or {}

  def _snapshot(self) -> list[TradingBotInstance]:
    with self._guard:
      return list(self._bots.values())

  def _lock_for(self, user_id: str) -> threading.Lock:
    with self._guard:
      lock = self._user_locks.get(user_id)
      if lock is None:
        lock = threading.Lock()
        self._user_locks[user_id] = lock
      return lock

  def _default_broker(self, cfg: BotConfig) -> Broker:
    if cfg.is_paper:
      return PaperBroker()
    return AlpacaBroker(
      cfg.api_key,
      cfg.secret_key,
      trading_url=self.settings.alpaca_live_url,
      data_url=self.settings.alpaca_data_url,
    )

  def _build_bot(self, user_id: str, cfg: BotConfig) -> TradingBotInstance:
    return TradingBotInstance(
      user_id,
      cfg,
      broker=self.broker_factory(cfg),
      notifier=self.notifier_factory(cfg),
      settings=self.settings,
      persistence=self.persistence,
    )
