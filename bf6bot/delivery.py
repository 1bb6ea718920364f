from __future__ import annotations

from typing import Union

from telegram import Message
from telegram.error import BadRequest

from .config import logger
from .errors import BotError
from .formatting import StatsCard, card_to_html

# Telegram rejects photo captions longer than this
CAPTION_LIMIT = 1024

Content = Union[str, StatsCard]


class Sender:
    """Delivers plain HTML strings and cards to one destination.

    Cards with a thumbnail go out as a photo with the card as caption and fall
    back to plain text when Telegram rejects the photo. Transport errors
    propagate so a photo that did arrive is never posted twice.
    """

    async def send_text(self, html: str) -> None:
        raise NotImplementedError

    async def send_photo(self, photo: str, caption: str) -> None:
        raise NotImplementedError

    async def __call__(self, content: Content) -> None:
        if isinstance(content, str):
            await self.send_text(content)
            return

        html = card_to_html(content)
        if content.thumbnail and len(html) <= CAPTION_LIMIT:
            try:
                await self.send_photo(content.thumbnail, html)
                return
            except BadRequest as e:
                logger.warning(f"Photo send failed ({e}), falling back to text only")
        await self.send_text(html)


class ChannelSender(Sender):
    """Posts to the configured destination chat."""

    def __init__(self, bot, chat_id: int | str):
        self.bot = bot
        self.chat_id = chat_id

    def _require_chat(self) -> None:
        if self.chat_id in (None, ""):
            raise BotError("Channel not found: CHANNEL_ID is not configured")

    async def send_text(self, html: str) -> None:
        self._require_chat()
        await self.bot.send_message(self.chat_id, html, parse_mode="HTML")

    async def send_photo(self, photo: str, caption: str) -> None:
        self._require_chat()
        await self.bot.send_photo(self.chat_id, photo=photo, caption=caption, parse_mode="HTML")


class ReplySender(Sender):
    """Replies to the message that carried a command."""

    def __init__(self, message: Message):
        self.message = message

    async def send_text(self, html: str) -> None:
        await self.message.reply_text(html, parse_mode="HTML")

    async def send_photo(self, photo: str, caption: str) -> None:
        await self.message.reply_photo(photo=photo, caption=caption, parse_mode="HTML")
