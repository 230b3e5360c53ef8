from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx


logger = logging.getLogger(__name__)

MESSAGE_HEADER = "🤖 TradingBot Pro"


class Notifier(ABC):
  @abstractmethod
  def send(self, message: str) -> None: ...

  def close(self) -> None:
    return


class NoopNotifier(Notifier):
  def send(self, message: str) -> None:
    logger.debug("notification skipped: %s", message.splitlines()[0] if message else "")


class TelegramNotifier(Notifier):
  """Best-effort Telegram sender; errors are logged and never raised."""

  def __init__(
    self,
    token: str,
    chat_id: str,
    base_url: str = "https://api.telegram.org",
    client: httpx.Client | None = None,
  ) -> None:
    self.token = token
    self.chat_id = chat_id
    self.base_url = base_url.rstrip("/")
    self.client = client or httpx.Client(timeout=10.0)

  def send(self, message: str) -> None:
    url = f"{self.base_url}/bot{self.token}/sendMessage"
    try:
      res = self.client.post(url, json={"chat_id": self.chat_id, "text": f"{MESSAGE_HEADER}\n\n{message}"})
      if res.status_code >= 400:
        logger.error("Telegram send failed %s: %s", res.status_code, res.text)
    except httpx.HTTPError as err:
      logger.error("Telegram send error: %s", err)

  def close(self) -> None:
    self.client.close()


def notifier_for(token: str, chat_id: str) -> Notifier:
  if token and chat_id:
    return TelegramNotifier(token, chat_id)
  return NoopNotifier()
