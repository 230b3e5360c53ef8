from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from autotrader_py.types import BreakevenPolicy, Mode, StrategyId


load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ("AAPL", "TSLA", "NVDA")


class BotConfigError(ValueError):
  pass


@dataclass(slots=True, frozen=True)
class BotConfig:
  api_key: str
  secret_key: str
  mode: Mode = "paper"
  strategy: StrategyId | None = StrategyId.SMA_CROSSOVER
  strategy_name: str = StrategyId.SMA_CROSSOVER.value
  symbols: tuple[str, ...] = DEFAULT_SYMBOLS
  trade_amount: float = 1000.0
  stop_loss_pct: float = 5.0
  take_profit_pct: float = 10.0
  max_trades: int = 10
  telegram_token: str = ""
  chat_id: str = ""
  breakeven_policy: BreakevenPolicy = BreakevenPolicy.LOSS

  @property
  def is_paper(self) -> bool:
    return self.mode == "paper"

  def to_dict(self) -> dict[str, object]:
    return {
      "apiKey": self.api_key,
      "secretKey": self.secret_key,
      "mode": self.mode,
      "strategy": self.strategy_name,
      "symbols": list(self.symbols),
      "tradeAmount": self.trade_amount,
      "stopLoss": self.stop_loss_pct,
      "takeProfit": self.take_profit_pct,
      "maxTrades": self.max_trades,
      "telegramToken": self.telegram_token,
      "chatId": self.chat_id,
      "breakevenPolicy": self.breakeven_policy.value,
    }


def _pick(raw: dict[str, object], *keys: str, default: object = None) -> object:
  for key in keys:
    value = raw.get(key)
    if value is not None and value != "":
      return value
  return default


def _parse_symbols(value: object) -> tuple[str, ...]:
  if isinstance(value, str):
    items = value.split(",")
  else:
    items = [str(x) for x in value]  # type: ignore[union-attr]
  out: list[str] = []
  for item in items:
    symbol = item.strip().upper()
    if symbol and symbol not in out:
      out.append(symbol)
  return tuple(out)


def bot_config_from_dict(raw: dict[str, object]) -> BotConfig:
  api_key = str(_pick(raw, "apiKey", "api_key", default="")).strip()
  secret_key = str(_pick(raw, "secretKey", "secret_key", default="")).strip()
  if not api_key or not secret_key:
    raise BotConfigError("apiKey and secretKey are required")

  mode = str(_pick(raw, "mode", default="paper")).strip().lower()
  if mode not in {"paper", "live"}:
    raise BotConfigError(f"Unknown mode: {mode}")

  strategy_name = str(_pick(raw, "strategy", default=StrategyId.SMA_CROSSOVER.value)).strip()
  strategy = StrategyId.parse(strategy_name)
  if strategy is None:
    logger.warning("Unknown strategy %r, bot will only hold", strategy_name)

  symbols = _parse_symbols(_pick(raw, "symbols", default=DEFAULT_SYMBOLS))
  if not symbols:
    raise BotConfigError("At least one symbol is required")

  try:
    trade_amount = float(_pick(raw, "tradeAmount", "trade_amount", default=1000))  # type: ignore[arg-type]
    stop_loss = float(_pick(raw, "stopLoss", "stop_loss_pct", default=5))  # type: ignore[arg-type]
    take_profit = float(_pick(raw, "takeProfit", "take_profit_pct", default=10))  # type: ignore[arg-type]
    max_trades = int(_pick(raw, "maxTrades", "max_trades", default=10))  # type: ignore[arg-type]
  except (TypeError, ValueError) as err:
    raise BotConfigError(f"Invalid numeric setting: {err}") from err
  if trade_amount <= 0:
    raise BotConfigError("tradeAmount must be positive")
  if stop_loss < 0 or take_profit < 0:
    raise BotConfigError("stopLoss and takeProfit cannot be negative")
  if max_trades < 1:
    raise BotConfigError("maxTrades must be at least 1")

  policy_raw = str(_pick(raw, "breakevenPolicy", "breakeven_policy", default="loss")).strip().lower()
  try:
    policy = BreakevenPolicy(policy_raw)
  except ValueError as err:
    raise BotConfigError(f"Unknown breakevenPolicy: {policy_raw}") from err

  return BotConfig(
    api_key=api_key,
    secret_key=secret_key,
    mode=mode,  # type: ignore[arg-type]
    strategy=strategy,
    strategy_name=strategy_name,
    symbols=symbols,
    trade_amount=trade_amount,
    stop_loss_pct=stop_loss,
    take_profit_pct=take_profit,
    max_trades=max_trades,
    telegram_token=str(_pick(raw, "telegramToken", "telegram_token", default="")).strip(),
    chat_id=str(_pick(raw, "chatId", "chat_id", default="")).strip(),
    breakeven_policy=policy,
  )


@dataclass(slots=True)
class ServiceSettings:
  min_interval_seconds: float = 120.0
  max_interval_seconds: float = 300.0
  error_cooldown_seconds: float = 300.0
  symbol_delay_seconds: float = 5.0
  fallback_price: float = 100.0
  alpaca_live_url: str = "https://api.alpaca.markets"
  alpaca_data_url: str = "https://data.alpaca.markets"
  database_url: str = ""
  stats_reset_tick_seconds: int = 30
  stats_reset_timezone: str = "America/New_York"


def service_settings_from_env() -> ServiceSettings:
  min_interval = float(os.getenv("BOT_MIN_INTERVAL_SECONDS", "120"))
  max_interval = float(os.getenv("BOT_MAX_INTERVAL_SECONDS", "300"))
  if max_interval < min_interval:
    raise RuntimeError("BOT_MAX_INTERVAL_SECONDS must be >= BOT_MIN_INTERVAL_SECONDS")
  return ServiceSettings(
    min_interval_seconds=min_interval,
    max_interval_seconds=max_interval,
    error_cooldown_seconds=float(os.getenv("BOT_ERROR_COOLDOWN_SECONDS", "300")),
    symbol_delay_seconds=float(os.getenv("BOT_SYMBOL_DELAY_SECONDS", "5")),
    fallback_price=float(os.getenv("BOT_FALLBACK_PRICE", "100")),
    alpaca_live_url=os.getenv("ALPACA_LIVE_URL", "https://api.alpaca.markets").strip(),
    alpaca_data_url=os.getenv("ALPACA_DATA_URL", "https://data.alpaca.markets").strip(),
    database_url=os.getenv("DATABASE_URL", "").strip(),
    stats_reset_tick_seconds=int(os.getenv("STATS_RESET_TICK_SECONDS", "30")),
    stats_reset_timezone=os.getenv("STATS_RESET_TIMEZONE", "America/New_York").strip(),
  )


def configure_logging(level: str | None = None) -> None:
  name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
  logging.basicConfig(
    level=getattr(logging, name, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )
