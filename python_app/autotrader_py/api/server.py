from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from autotrader_py.bot.registry import BotRegistry
from autotrader_py.config import BotConfigError, configure_logging, service_settings_from_env
from autotrader_py.ops.scheduler import StatsResetScheduler
from autotrader_py.persistence.base import NoopPersistence, Persistence
from autotrader_py.persistence.postgres import PostgresPersistence


logger = logging.getLogger(__name__)


class StartBotRequest(BaseModel):
  user_id: str = Field(..., alias="userId", min_length=1)
  config: dict[str, Any] = Field(default_factory=dict)


class StopBotRequest(BaseModel):
  user_id: str = Field(..., alias="userId", min_length=1)


class SaveConfigRequest(BaseModel):
  user_id: str = Field(..., alias="userId", min_length=1)
  config: dict[str, Any] = Field(default_factory=dict)


def create_registry() -> tuple[BotRegistry, StatsResetScheduler]:
  settings = service_settings_from_env()
  persistence: Persistence = PostgresPersistence(settings.database_url) if settings.database_url else NoopPersistence()
  persistence.init()
  registry = BotRegistry(settings=settings, persistence=persistence)
  scheduler = StatsResetScheduler(
    reset_daily=registry.reset_daily_stats,
    reset_monthly=registry.reset_monthly_stats,
    tick_seconds=settings.stats_reset_tick_seconds,
    timezone=settings.stats_reset_timezone,
  )
  return registry, scheduler


def create_app(registry: BotRegistry | None = None, scheduler: StatsResetScheduler | None = None) -> FastAPI:
  if registry is None:
    registry, scheduler = create_registry()
  started_at = time.monotonic()

  @asynccontextmanager
  async def lifespan(_: FastAPI):
    if scheduler is not None:
      scheduler.start()
    yield
    logger.info("Shutting down, stopping all bots")
    if scheduler is not None:
      scheduler.stop()
    registry.stop_all()

  app = FastAPI(title="Autotrader API", version="0.1.0", lifespan=lifespan)
  app.state.registry = registry

  @app.post("/api/start-bot")
  def start_bot(req: StartBotRequest):
    try:
      return registry.start_bot(req.user_id, req.config)
    except BotConfigError as err:
      return JSONResponse(status_code=400, content={"error": str(err)})
    except Exception as err:  # noqa: BLE001
      logger.exception("Could not start bot for %s", req.user_id)
      return JSONResponse(status_code=500, content={"error": str(err)})

  @app.post("/api/stop-bot")
  def stop_bot(req: StopBotRequest) -> dict[str, object]:
    return registry.stop_bot(req.user_id)

  @app.get("/api/bot-status/{user_id}")
  def bot_status(user_id: str) -> dict[str, object]:
    return registry.get_status(user_id).to_dict()

  @app.post("/api/save-config")
  def save_config(req: SaveConfigRequest) -> dict[str, object]:
    registry.save_config(req.user_id, req.config)
    return {"success": True}

  @app.get("/api/load-config/{user_id}")
  def load_config(user_id: str) -> dict[str, object]:
    return registry.load_config(user_id)

  @app.get("/health")
  def health() -> dict[str, object]:
    return {
      **registry.health(),
      "uptime": time.monotonic() - started_at,
      "statsReset": scheduler.get_state() if scheduler is not None else None,
    }

  return app


def build_default_app() -> FastAPI:
  configure_logging()
  return create_app()
