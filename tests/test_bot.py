# tests/test_bot.py
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from telegram import Chat, Message, MessageEntity, PhotoSize, Update, User
from telegram.ext import CallbackQueryHandler, CommandHandler, MessageHandler

from conftest import ADMIN_ID, FakeStore
from mediarelay import bot as relay_bot
from mediarelay.bot import build_application
from mediarelay.errors import StartupConfigError

CHANNEL_ID = -100200300


def photo_message(chat=None, from_user=None):
    return Message(
        message_id=1, date=datetime.now(timezone.utc),
        chat=chat or Chat(id=ADMIN_ID, type=Chat.PRIVATE),
        from_user=from_user, photo=(PhotoSize("p-1", "u-1", 90, 90),), caption="cat",
    )


def start_message(text="/start abc123xyz"):
    msg = Message(
        message_id=2, date=datetime.now(timezone.utc), chat=Chat(id=ADMIN_ID, type=Chat.PRIVATE),
        from_user=User(id=ADMIN_ID, first_name="Admin", is_bot=False), text=text,
        entities=(MessageEntity(type=MessageEntity.BOT_COMMAND, offset=0, length=6),),
    )
    msg.set_bot(MagicMock(username="RelayBot"))
    return msg


@pytest.fixture
def app(settings):
    return build_application(settings, FakeStore())


def test_build_application_registers_handlers(app):
    handlers = app.handlers[0]
    assert [type(h) for h in handlers] == [CommandHandler, MessageHandler, CallbackQueryHandler]
    assert handlers[0].commands == frozenset({"start"})
    assert app.error_handlers
    assert app.concurrent_updates


def test_media_handler_only_takes_new_messages(app):
    media = app.handlers[0][1]
    admin = User(id=ADMIN_ID, first_name="Admin", is_bot=False)
    channel = Chat(id=CHANNEL_ID, type=Chat.CHANNEL)

    assert media.check_update(Update(1, message=photo_message(from_user=admin)))
    assert not media.check_update(Update(2, edited_message=photo_message(from_user=admin)))
    assert not media.check_update(Update(3, channel_post=photo_message(chat=channel)))
    assert not media.check_update(Update(4, edited_channel_post=photo_message(chat=channel)))


def test_start_handler_ignores_edited_commands(app):
    start = app.handlers[0][0]
    assert start.check_update(Update(1, message=start_message()))
    assert not start.check_update(Update(2, edited_message=start_message()))


def test_run_exits_on_bad_config():
    def bad_env(*args, **kwargs):
        raise StartupConfigError("BOT_TOKEN is not set")

    with patch.object(relay_bot.Settings, "from_env", side_effect=bad_env), \
         patch.object(relay_bot, "main") as main:
        with pytest.raises(SystemExit) as exc:
            relay_bot.run()
    assert exc.value.code == 1
    main.assert_not_called()
