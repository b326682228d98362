# tests/conftest.py
from unittest.mock import AsyncMock, MagicMock

import pytest

from mediarelay.config import Settings

ADMIN_ID = 111
USER_ID = 555
LOG_GROUP_ID = -1009876543210


class FakeStore:
    """In-memory stand-in for MediaStore."""

    def __init__(self):
        self.records = {}
        self.save_calls = 0
        self.find_calls = 0

    async def save(self, record):
        self.save_calls += 1
        if record.token in self.records:
            return False
        self.records[record.token] = record
        return True

    async def find(self, token):
        self.find_calls += 1
        return self.records.get(token)


@pytest.fixture
def settings():
    return Settings(
        bot_token="123:abc",
        database_url="postgresql://localhost/test",
        required_channels=("@chan_one", -100200300),
        required_channel_urls=("https://t.me/chan_one", "https://t.me/+two"),
        admin_ids=frozenset({ADMIN_ID}),
        log_group_id=LOG_GROUP_ID,
        bot_username="RelayBot",
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def bot():
    bot = AsyncMock()
    bot.username = "RelayBot"
    posted = MagicMock(message_id=4242)
    for name in ("send_photo", "send_video", "send_document", "send_voice", "send_sticker"):
        getattr(bot, name).return_value = posted
    return bot


def make_message(chat_id=USER_ID, caption=None, **media):
    msg = MagicMock()
    msg.chat_id = chat_id
    msg.chat.id = chat_id
    msg.caption = caption
    for kind in ("sticker", "photo", "video", "document", "voice"):
        setattr(msg, kind, media.get(kind))
    msg.reply_text = AsyncMock()
    return msg


def make_update(user_id=USER_ID, message=None, username="someone"):
    update = MagicMock()
    update.effective_user.id = user_id
    update.effective_user.username = username
    update.effective_user.first_name = "Some"
    update.effective_message = message or make_message(chat_id=user_id)
    return update


def make_context(bot, args=None):
    ctx = MagicMock()
    ctx.bot = bot
    ctx.args = args or []
    return ctx
