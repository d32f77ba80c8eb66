"""Telegram notification helpers."""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from recount_service.config import TelegramSettings, get_settings
from recount_service.logging import logger


def escape_html(text: str) -> str:
    """Escape special characters for Telegram HTML."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class TelegramNotifier:
    """Send operational notifications about the recount service to Telegram."""

    def __init__(self, telegram: TelegramSettings | None = None, app_name: str | None = None) -> None:
        if telegram is None:
            try:
                settings = get_settings()
            except ValidationError:
                logger.info("Telegram notifications disabled: configuration is incomplete")
                telegram = TelegramSettings(bot_token="", critical_chat_id=0)
                app_name = app_name or "Stock Recount"
            else:
                telegram = settings.telegram
                app_name = app_name or settings.app_name
        self.app_name = app_name or "Stock Recount"
        self.critical_chat_id = telegram.critical_chat_id

        token = telegram.bot_token
        if not token or token == "replace-me":
            self._client: httpx.AsyncClient | None = None
            self._enabled = False
            logger.info("Telegram notifications disabled: bot token is not configured")
        else:
            self._client = httpx.AsyncClient(base_url=f"https://api.telegram.org/bot{token}", timeout=10)
            self._enabled = True

    async def send_message(self, chat_id: int, text: str) -> None:
        if not self._enabled or self._client is None:
            logger.debug("Skipping Telegram notification because notifier is disabled")
            return
        if not chat_id:
            logger.warning("Skipping Telegram notification because chat id is not configured")
            return

        payload = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
        response = await self._client.post("/sendMessage", json=payload)
        if response.is_error:
            logger.error(
                "Failed to send Telegram message",
                status_code=response.status_code,
                body=response.text,
                chat_id=chat_id,
            )
            response.raise_for_status()

    async def notify_startup(self, ok: bool, details: str) -> None:
        status = "✅" if ok else "❌"
        text = f"{status} <b>{escape_html(self.app_name)} startup check</b>\n{escape_html(details)}"
        await self.send_message(self.critical_chat_id, text)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


__all__ = ["TelegramNotifier", "escape_html"]
