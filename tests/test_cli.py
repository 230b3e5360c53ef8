from __future__ import annotations

import json

from typer.testing import CliRunner

from autotrader_py.cli import app


runner = CliRunner()


def test_signal_command_reports_hold_for_short_history():
  result = runner.invoke(app, ["signal", "--strategy", "sma_crossover", "--prices", "1,2,3"])
  assert result.exit_code == 0
  data = json.loads(result.stdout)
  assert data == {"strategy": "sma_crossover", "known": True, "minHistory": 50, "samples": 3, "signal": "hold"}


def test_signal_command_unknown_strategy_holds():
  prices = ",".join(str(100 - i) for i in range(30))
  result = runner.invoke(app, ["signal", "--strategy", "astrology", "--prices", prices])
  assert result.exit_code == 0
  data = json.loads(result.stdout)
  assert data["known"] is False
  assert data["signal"] == "hold"


def test_signal_command_rsi_oversold_buys():
  prices = ",".join(str(100 - i) for i in range(20))
  result = runner.invoke(app, ["signal", "--strategy", "rsi_oversold", "--prices", prices])
  assert result.exit_code == 0
  assert json.loads(result.stdout)["signal"] == "buy"


def test_paper_preflight():
  result = runner.invoke(app, ["preflight", "--mode", "paper"])
  assert result.exit_code == 0
  assert json.loads(result.stdout)["mode"] == "paper"
