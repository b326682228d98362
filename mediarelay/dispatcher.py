# dispatcher.py - Telegram update handlers
import logging
from typing import Optional, Tuple

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.ext import CallbackQueryHandler, CommandHandler, ContextTypes, MessageHandler, filters
from telegram.error import TelegramError

from mediarelay.archiver import Archiver
from mediarelay.config import Settings
from mediarelay.errors import ArchiveError, AuthorizationError, PersistenceError
from mediarelay.membership import MembershipChecker
from mediarelay.models import MediaKind, deep_link, is_start_param, is_token
from mediarelay.store import MediaStore

logger = logging.getLogger(__name__)

CLOSE = "close"

JOIN_PROMPT = "You need to join our channels to use this bot. Please join both channels below, then try again:"
NOT_AUTHORIZED = "You are not authorized to store media."
NOT_FOUND = "Media not found."
LOOKUP_FAILED = "An error occurred. Please try again."

# new messages only; edits and channel posts are ignored
MEDIA_FILTER = (filters.Sticker.ALL | filters.PHOTO | filters.VIDEO | filters.Document.ALL | filters.VOICE) & filters.UpdateType.MESSAGE


# ---------- Keyboards ----------
def join_keyboard(settings:Settings, retry_link:Optional[str]=None) -> InlineKeyboardMarkup:
    url1, url2 = settings.required_channel_urls
    rows = [
        [InlineKeyboardButton("Join Channel 1", url=url1)],
        [InlineKeyboardButton("Join Channel 2", url=url2)],
    ]
    if retry_link:
        rows.append([InlineKeyboardButton("Try Again", url=retry_link)])
    return InlineKeyboardMarkup(rows)

def close_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton("Close", callback_data=CLOSE)]])


# ---------- Media extraction ----------
def extract_media(msg:Message) -> Optional[Tuple[MediaKind, str, str]]:
    """(kind, file_id, caption) for the first supported attachment, or None."""
    caption = msg.caption or ""
    if msg.sticker:
        return MediaKind.STICKER, msg.sticker.file_id, ""
    if msg.photo:
        # sizes arrive smallest first
        return MediaKind.PHOTO, msg.photo[-1].file_id, caption
    if msg.video:
        return MediaKind.VIDEO, msg.video.file_id, caption
    if msg.document:
        return MediaKind.DOCUMENT, msg.document.file_id, caption
    if msg.voice:
        return MediaKind.VOICE, msg.voice.file_id, caption
    return None


class Dispatcher:
    """Routes media uploads, /start and button presses to the relay components."""

    def __init__(self, settings:Settings, store:MediaStore, checker:MembershipChecker, archiver:Archiver):
        self.settings = settings
        self.store = store
        self.checker = checker
        self.archiver = archiver

    def handlers(self) -> list:
        return [
            CommandHandler("start", self.start_handler, filters=filters.UpdateType.MESSAGE),
            MessageHandler(MEDIA_FILTER, self.media_handler),
            CallbackQueryHandler(self.callback_handler),
        ]

    def link_for(self, ctx:ContextTypes.DEFAULT_TYPE, token:str) -> str:
        return deep_link(self.settings.bot_username or ctx.bot.username, token)

    async def media_handler(self, update:Update, ctx:ContextTypes.DEFAULT_TYPE):
        msg = update.effective_message; user = update.effective_user
        media = extract_media(msg)
        if media is None:
            return
        kind, file_id, caption = media
        try:
            record = await self.archiver.archive(user.id, kind, file_id, caption)
        except AuthorizationError:
            await msg.reply_text(NOT_AUTHORIZED)
            return
        except (ArchiveError, PersistenceError) as e:
            logger.error(f"store {kind.value} error for user {user.id}: {e}")
            await msg.reply_text(f"An error occurred while storing the {kind.value}. Please try again later.")
            return
        await msg.reply_text(f"{kind.value} stored! Access it via: {self.link_for(ctx, record.token)}")

    async def start_handler(self, update:Update, ctx:ContextTypes.DEFAULT_TYPE):
        msg = update.effective_message; user = update.effective_user
        token = " ".join(ctx.args or []).strip() or None

        if not await self.checker.is_member(user.id):
            retry = self.link_for(ctx, token) if token and is_start_param(token) else None
            await msg.reply_text(JOIN_PROMPT, reply_markup=join_keyboard(self.settings, retry))
            return

        if token is None:
            name = user.username or user.first_name
            await msg.reply_text(f"Hello {name}\n\nI am a file store bot.", reply_markup=close_keyboard())
            return

        if not is_token(token):
            await msg.reply_text(NOT_FOUND)
            return
        try:
            record = await self.store.find(token)
        except PersistenceError as e:
            logger.error(f"lookup {token} error for user {user.id}: {e}")
            await msg.reply_text(LOOKUP_FAILED)
            return
        if record is None:
            await msg.reply_text(NOT_FOUND)
            return
        try:
            await ctx.bot.forward_message(
                chat_id=msg.chat_id, from_chat_id=self.settings.log_group_id, message_id=record.archive_message_id)
        except TelegramError as e:
            logger.error(f"forward {token} error for user {user.id}: {e}")
            await msg.reply_text(LOOKUP_FAILED)

    async def callback_handler(self, update:Update, ctx:ContextTypes.DEFAULT_TYPE):
        query = update.callback_query
        try:
            await query.answer()
        except TelegramError as e:
            # expired queries can no longer be answered
            logger.warning(f"callback answer error for user {query.from_user.id}: {e}")
        if query.data != CLOSE or query.message is None:
            return
        try:
            await ctx.bot.delete_message(chat_id=query.message.chat.id, message_id=query.message.message_id)
        except TelegramError as e:
            logger.warning(f"close error for user {query.from_user.id}: {e}")


async def error_handler(update:object, ctx:ContextTypes.DEFAULT_TYPE):
    logger.error(f"unhandled error while processing {update!r}", exc_info=ctx.error)
