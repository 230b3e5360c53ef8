from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


Signal = Literal["buy", "sell", "hold"]
Side = Literal["buy", "sell"]
Mode = Literal["paper", "live"]


class StrategyId(str, Enum):
  SMA_CROSSOVER = "sma_crossover"
  EMA_CROSSOVER = "ema_crossover"
  RSI_OVERSOLD = "rsi_oversold"
  MOMENTUM = "momentum"
  MEAN_REVERSION = "mean_reversion"
  BOLLINGER_BANDS = "bollinger_bands"

  @classmethod
  def parse(cls, raw: str | None) -> StrategyId | None:
    if not raw:
      return None
    try:
      return cls(raw.strip().lower())
    except ValueError:
      return None


class BreakevenPolicy(str, Enum):
  LOSS = "loss"
  WIN = "win"
  NEUTRAL = "neutral"


@dataclass(slots=True)
class OrderResult:
  order_id: str
  symbol: str
  side: Side
  qty: int
  fill_price: float


@dataclass(slots=True)
class Position:
  symbol: str
  qty: int
  entry_price: float
  side: Side
  opened_at: str
  order_id: str


@dataclass(slots=True)
class ClosedTrade:
  symbol: str
  qty: int
  entry_price: float
  exit_price: float
  pnl: float
  reason: str
  opened_at: str
  closed_at: str
  order_id: str


@dataclass(slots=True)
class Stats:
  total_trades: int = 0
  wins: int = 0
  losses: int = 0
  total_pl: float = 0.0
  daily_pl: float = 0.0
  monthly_pl: float = 0.0
  daily_trades: int = 0

  @property
  def win_rate(self) -> float:
    if self.total_trades == 0:
      return 0.0
    return self.wins / self.total_trades * 100

  def to_dict(self) -> dict[str, object]:
    return {
      "totalTrades": self.total_trades,
      "wins": self.wins,
      "losses": self.losses,
      "totalPL": self.total_pl,
      "dailyPL": self.daily_pl,
      "monthlyPL": self.monthly_pl,
      "dailyTrades": self.daily_trades,
      "winRate": self.win_rate,
    }


@dataclass(slots=True)
class BotStatus:
  is_active: bool
  stats: Stats = field(default_factory=Stats)
  open_positions: int = 0
  symbols: list[str] = field(default_factory=list)
  closed_trades: int = 0

  def to_dict(self) -> dict[str, object]:
    return {
      "isActive": self.is_active,
      **self.stats.to_dict(),
      "openPositions": self.open_positions,
      "symbols": list(self.symbols),
      "closedTrades": self.closed_trades,
    }
