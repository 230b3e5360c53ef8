from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from autotrader_py.types import ClosedTrade, Stats


class Persistence(ABC):
  @abstractmethod
  def init(self) -> None: ...

  @abstractmethod
  def save_config(self, user_id: str, config: dict[str, object]) -> None: ...

  @abstractmethod
  def load_config(self, user_id: str) -> dict[str, object] | None: ...

  @abstractmethod
  def insert_trade(self, user_id: str, trade: ClosedTrade) -> None: ...

  @abstractmethod
  def upsert_stats(self, user_id: str, stats: Stats) -> None: ...


class NoopPersistence(Persistence):
  """Keeps saved configs in memory for the life of the process; drops everything else."""

  def __init__(self) -> None:
    self._configs: dict[str, dict[str, object]] = {}
    self._lock = threading.Lock()

  def init(self) -> None:
    return

  def save_config(self, user_id: str, config: dict[str, object]) -> None:
    with self._lock:
      self._configs[user_id] = dict(config)

  def load_config(self, user_id: str) -> dict[str, object] | None:
    with self._lock:
      config = self._configs.get(user_id)
    return None if config is None else dict(config)

  def insert_trade(self, user_id: str, trade: ClosedTrade) -> None:
    return

  def upsert_stats(self, user_id: str, stats: Stats) -> None:
    return
