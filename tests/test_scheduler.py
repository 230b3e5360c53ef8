from __future__ import annotations

from datetime import datetime

from autotrader_py.ops.scheduler import StatsResetScheduler


class Clock:
  def __init__(self, *stamps: str) -> None:
    self.stamps = [datetime.fromisoformat(s) for s in stamps]

  def __call__(self) -> datetime:
    return self.stamps.pop(0) if len(self.stamps) > 1 else self.stamps[0]


def make(clock, calls, daily=None):
  return StatsResetScheduler(
    reset_daily=daily or (lambda: calls.append("daily")),
    reset_monthly=lambda: calls.append("monthly"),
    now=clock,
  )


def test_no_reset_within_the_same_day():
  calls = []
  scheduler = make(Clock("2024-03-05T09:00:00", "2024-03-05T15:00:00", "2024-03-05T23:59:59"), calls)
  scheduler.tick()
  scheduler.tick()
  assert calls == []


def test_daily_reset_fires_once_per_day_change():
  calls = []
  scheduler = make(Clock("2024-03-05T23:59:00", "2024-03-06T00:00:10", "2024-03-06T00:00:40"), calls)
  scheduler.tick()
  scheduler.tick()
  assert calls == ["daily"]
  assert scheduler.last_runs["daily"] == "2024-03-06T00:00:10"


def test_month_change_fires_both_resets():
  calls = []
  scheduler = make(Clock("2024-03-31T23:59:30", "2024-04-01T00:00:00"), calls)
  scheduler.tick()
  assert calls == ["daily", "monthly"]


def test_failed_reset_is_recorded_and_does_not_block_monthly():
  calls = []

  def broken():
    raise RuntimeError("db down")

  scheduler = make(Clock("2024-03-31T22:00:00", "2024-04-01T00:00:01"), calls, daily=broken)
  scheduler.tick()
  assert calls == ["monthly"]
  assert scheduler.last_errors == {"daily": "db down"}
  assert "monthly" in scheduler.last_runs


def test_state_reports_config():
  calls = []
  scheduler = make(Clock("2024-03-05T09:00:00"), calls)
  state = scheduler.get_state()
  assert state["enabled"] is False
  assert state["tickSeconds"] == 30
  assert state["timezone"] == "America/New_York"
  assert state["lastRuns"] == {}


def test_start_and_stop_thread():
  calls = []
  scheduler = make(Clock("2024-03-05T09:00:00"), calls)
  scheduler.start()
  try:
    assert scheduler.is_running()
  finally:
    scheduler.stop()
  assert not scheduler.is_running()
