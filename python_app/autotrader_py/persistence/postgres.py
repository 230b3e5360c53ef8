from __future__ import annotations

from psycopg import connect
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from autotrader_py.persistence.base import Persistence
from autotrader_py.types import ClosedTrade, Stats


class PostgresPersistence(Persistence):
  def __init__(self, database_url: str) -> None:
    self.database_url = database_url

  def init(self) -> None:
    with connect(self.database_url, autocommit=True) as conn, conn.cursor() as cur:
      cur.execute(
        """
        CREATE TABLE IF NOT EXISTS user_configs (
          user_id TEXT PRIMARY KEY,
          config JSONB NOT NULL,
          updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        CREATE TABLE IF NOT EXISTS closed_trades (
          id BIGSERIAL PRIMARY KEY,
          user_id TEXT NOT NULL,
          symbol TEXT NOT NULL,
          qty INTEGER NOT NULL,
          entry_price DOUBLE PRECISION NOT NULL,
          exit_price DOUBLE PRECISION NOT NULL,
          pnl DOUBLE PRECISION NOT NULL,
          reason TEXT NOT NULL,
          opened_at TIMESTAMPTZ NOT NULL,
          closed_at TIMESTAMPTZ NOT NULL,
          order_id TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS bot_stats (
          user_id TEXT PRIMARY KEY,
          total_trades INTEGER NOT NULL,
          wins INTEGER NOT NULL,
          losses INTEGER NOT NULL,
          total_pl DOUBLE PRECISION NOT NULL,
          daily_pl DOUBLE PRECISION NOT NULL,
          monthly_pl DOUBLE PRECISION NOT NULL,
          daily_trades INTEGER NOT NULL,
          updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        """
      )

  def save_config(self, user_id: str, config: dict[str, object]) -> None:
    with connect(self.database_url, autocommit=True) as conn, conn.cursor() as cur:
      cur.execute(
        """
        INSERT INTO user_configs (user_id, config, updated_at)
        VALUES (%s,%s,now())
        ON CONFLICT (user_id) DO UPDATE SET config=excluded.config, updated_at=now()
        """,
        (user_id, Jsonb(config)),
      )

  def load_config(self, user_id: str) -> dict[str, object] | None:
    with connect(self.database_url, row_factory=dict_row) as conn, conn.cursor() as cur:
      cur.execute("SELECT config FROM user_configs WHERE user_id=%s", (user_id,))
      row = cur.fetchone()
    return None if row is None else dict(row["config"])

  def insert_trade(self, user_id: str, trade: ClosedTrade) -> None:
    with connect(self.database_url, autocommit=True) as conn, conn.cursor() as cur:
      cur.execute(
        """
        INSERT INTO closed_trades
          (user_id, symbol, qty, entry_price, exit_price, pnl, reason, opened_at, closed_at, order_id)
        VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
        """,
        (
          user_id,
          trade.symbol,
          trade.qty,
          trade.entry_price,
          trade.exit_price,
          trade.pnl,
          trade.reason,
          trade.opened_at,
          trade.closed_at,
          trade.order_id,
        ),
      )

  def upsert_stats(self, user_id: str, stats: Stats) -> None:
    with connect(self.database_url, autocommit=True) as conn, conn.cursor() as cur:
      cur.execute(
        """
        INSERT INTO bot_stats
          (user_id, total_trades, wins, losses, total_pl, daily_pl, monthly_pl, daily_trades, updated_at)
        VALUES (%s,%s,%s,%s,%s,%s,%s,%s,now())
        ON CONFLICT (user_id) DO UPDATE
          SET total_trades=excluded.total_trades,
              wins=excluded.wins,
              losses=excluded.losses,
              total_pl=excluded.total_pl,
              daily_pl=excluded.daily_pl,
              monthly_pl=excluded.monthly_pl,
              daily_trades=excluded.daily_trades,
              updated_at=now()
        """,
        (
          user_id,
          stats.total_trades,
          stats.wins,
          stats.losses,
          stats.total_pl,
          stats.daily_pl,
          stats.monthly_pl,
          stats.daily_trades,
        ),
      )
