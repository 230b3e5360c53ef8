from __future__ import annotations

import json

import typer

from autotrader_py.bot.instance import TradingBotInstance
from autotrader_py.config import BotConfigError, bot_config_from_dict, configure_logging, service_settings_from_env
from autotrader_py.execution.base import Broker
from autotrader_py.execution.live_alpaca import AlpacaBroker
from autotrader_py.execution.paper import PaperBroker
from autotrader_py.notify.telegram import notifier_for
from autotrader_py.signal.strategies import MIN_HISTORY, evaluate
from autotrader_py.types import StrategyId

app = typer.Typer(help="Per-user autonomous trading bot")


def _parse_prices(raw: str) -> list[float]:
  try:
    return [float(x) for x in raw.split(",") if x.strip()]
  except ValueError as err:
    raise typer.BadParameter(f"prices must be comma separated numbers: {err}") from err


@app.command()
def signal(
  strategy: str = typer.Option(..., "--strategy", help="Strategy id, e.g. sma_crossover"),
  prices: str = typer.Option(..., "--prices", help="CSV list, oldest first."),
) -> None:
  values = _parse_prices(prices)
  parsed = StrategyId.parse(strategy)
  typer.echo(
    json.dumps(
      {
        "strategy": strategy,
        "known": parsed is not None,
        "minHistory": MIN_HISTORY.get(parsed, 0) if parsed else None,
        "samples": len(values),
        "signal": evaluate(parsed, values),
      },
      indent=2,
    )
  )


@app.command()
def preflight(
  mode: str = typer.Option("live", "--mode"),
  api_key: str = typer.Option("", "--api-key", envvar="ALPACA_API_KEY"),
  secret_key: str = typer.Option("", "--secret-key", envvar="ALPACA_SECRET_KEY"),
) -> None:
  settings = service_settings_from_env()
  broker: Broker
  if mode == "paper":
    broker = PaperBroker()
  else:
    if not api_key or not secret_key:
      raise typer.BadParameter("ALPACA_API_KEY and ALPACA_SECRET_KEY are required")
    broker = AlpacaBroker(api_key, secret_key, trading_url=settings.alpaca_live_url, data_url=settings.alpaca_data_url)
  try:
    typer.echo(json.dumps(broker.preflight_check(), indent=2))
  finally:
    broker.close()


@app.command("run-bot")
def run_bot(
  user_id: str = typer.Option("local", "--user-id"),
  strategy: str = typer.Option("sma_crossover", "--strategy"),
  symbols: str = typer.Option("AAPL,TSLA,NVDA", "--symbols", help="CSV list."),
  mode: str = typer.Option("paper", "--mode"),
  trade_amount: float = typer.Option(1000, "--trade-amount"),
  stop_loss: float = typer.Option(5, "--stop-loss"),
  take_profit: float = typer.Option(10, "--take-profit"),
  max_trades: int = typer.Option(10, "--max-trades"),
  api_key: str = typer.Option("paper", "--api-key", envvar="ALPACA_API_KEY"),
  secret_key: str = typer.Option("paper", "--secret-key", envvar="ALPACA_SECRET_KEY"),
  telegram_token: str = typer.Option("", "--telegram-token", envvar="TELEGRAM_BOT_TOKEN"),
  chat_id: str = typer.Option("", "--chat-id", envvar="TELEGRAM_CHAT_ID"),
) -> None:
  configure_logging()
  try:
    cfg = bot_config_from_dict(
      {
        "apiKey": api_key,
        "secretKey": secret_key,
        "mode": mode,
        "strategy": strategy,
        "symbols": symbols,
        "tradeAmount": trade_amount,
        "stopLoss": stop_loss,
        "takeProfit": take_profit,
        "maxTrades": max_trades,
        "telegramToken": telegram_token,
        "chatId": chat_id,
      }
    )
  except BotConfigError as err:
    raise typer.BadParameter(str(err)) from err
  settings = service_settings_from_env()
  broker: Broker = (
    PaperBroker()
    if cfg.is_paper
    else AlpacaBroker(cfg.api_key, cfg.secret_key, trading_url=settings.alpaca_live_url, data_url=settings.alpaca_data_url)
  )
  notifier = notifier_for(cfg.telegram_token, cfg.chat_id)
  bot = TradingBotInstance(user_id, cfg, broker, notifier, settings=settings)
  try:
    bot.start(background=False)
  except KeyboardInterrupt:
    bot.stop()
  finally:
    typer.echo(json.dumps(bot.status().to_dict(), indent=2))
    bot.shutdown()
