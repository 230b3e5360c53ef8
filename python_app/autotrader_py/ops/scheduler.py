from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo


logger = logging.getLogger(__name__)


class StatsResetScheduler:
  def __init__(
    self,
    reset_daily: Callable[[], None],
    reset_monthly: Callable[[], None],
    tick_seconds: int = 30,
    timezone: str = "America/New_York",
    now: Callable[[], datetime] | None = None,
  ) -> None:
    self.reset_daily = reset_daily
    self.reset_monthly = reset_monthly
    self.tick_seconds = max(1, int(tick_seconds))
    self.tz = ZoneInfo(timezone)
    self.now = now or (lambda: datetime.now(self.tz))
    self.last_runs: dict[str, str] = {}
    self.last_errors: dict[str, str] = {}
    current = self.now()
    self._day = current.strftime("%Y-%m-%d")
    self._month = current.strftime("%Y-%m")
    self._stop = threading.Event()
    self._thread: threading.Thread | None = None

  def start(self) -> None:
    if self._thread and self._thread.is_alive():
      return
    self._stop.clear()
    self._thread = threading.Thread(target=self._loop, name="stats-reset", daemon=True)
    self._thread.start()

  def stop(self) -> None:
    self._stop.set()

  def is_running(self) -> bool:
    return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

  def get_state(self) -> dict[str, object]:
    return {
      "enabled": self.is_running(),
      "tickSeconds": self.tick_seconds,
      "timezone": str(self.tz),
      "lastRuns": dict(self.last_runs),
      "lastErrors": dict(self.last_errors),
    }

  def _loop(self) -> None:
    while not self._stop.is_set():
      try:
        self.tick()
      except Exception as err:  # noqa: BLE001
        logger.exception("Stats reset tick failed")
        self.last_errors["tick"] = str(err)
      self._stop.wait(self.tick_seconds)

  def tick(self) -> None:
    current = self.now()
    day = current.strftime("%Y-%m-%d")
    month = current.strftime("%Y-%m")
    if day != self._day:
      self._day = day
      self._try_run("daily", self.reset_daily, current)
    if month != self._month:
      self._month = month
      self._try_run("monthly", self.reset_monthly, current)

  def _try_run(self, job: str, fn: Callable[[], None], at: datetime) -> None:
    try:
      fn()
      self.last_runs[job] = at.isoformat()
      self.last_errors.pop(job, None)
      logger.info("Stats reset (%s) done", job)
    except Exception as err:  # noqa: BLE001
      logger.exception("Stats reset (%s) failed", job)
      self.last_errors[job] = str(err)
