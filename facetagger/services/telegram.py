import logging
from typing import List, Optional

import httpx

from facetagger.config import Settings
from facetagger.errors import ChatTransportError
from facetagger.schemas.telegram import SendMessage, SendPhoto

log = logging.getLogger("facetagger.telegram")


_MARKDOWN_SPECIAL = "_*`["


def escape_markdown(text: str) -> str:
    """Escape operator-supplied text for the legacy Markdown parse mode."""
    return "".join(f"\\{ch}" if ch in _MARKDOWN_SPECIAL else ch for ch in text)


def split_text(text: str, limit: int) -> List[str]:
    if not text:
        return [text]
    return [text[i:i + limit] for i in range(0, len(text), limit)]


class TelegramClient:
    """Bot API client over the process-wide httpx client."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http = http_client

    def _url(self, method: str) -> str:
        return f"{self.settings.TELEGRAM_API_URL}/bot{self.settings.TELEGRAM_BOT_TOKEN}/{method}"

    async def _call(self, method: str, payload: dict) -> dict:
        try:
            r = await self.http.post(
                self._url(method),
                json=payload,
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as exc:
            raise ChatTransportError(f"{method} request failed") from exc
        if r.status_code >= 300:
            raise ChatTransportError(f"{method} failed", status=r.status_code, body=r.text[:200])
        try:
            return r.json()
        except ValueError as exc:
            raise ChatTransportError(f"{method} returned a non-JSON body", body=r.text[:200]) from exc

    async def send_message(self, chat_id: int, text: str, reply_to: Optional[int] = None):
        for chunk in split_text(text, self.settings.TELEGRAM_MAX_MESSAGE_LEN):
            body = SendMessage(chat_id=chat_id, text=chunk, reply_to_message_id=reply_to)
            await self._call("sendMessage", body.model_dump(exclude_none=True))

    async def send_photo(
        self,
        chat_id: int,
        photo_url: str,
        caption: Optional[str] = None,
        reply_to: Optional[int] = None,
    ):
        body = SendPhoto(chat_id=chat_id, photo=photo_url, caption=caption, reply_to_message_id=reply_to)
        await self._call("sendPhoto", body.model_dump(exclude_none=True))
