# archiver.py - copy admin uploads into the log channel and record them
import dataclasses
import logging

from telegram import Bot, Message
from telegram.error import TelegramError

from mediarelay.config import Settings
from mediarelay.errors import ArchiveError, AuthorizationError, PersistenceError
from mediarelay.models import MediaKind, MediaRecord, generate_token
from mediarelay.store import MediaStore

logger = logging.getLogger(__name__)

TOKEN_ATTEMPTS = 5


class Archiver:
    def __init__(self, bot:Bot, store:MediaStore, settings:Settings):
        self.bot = bot
        self.store = store
        self.settings = settings

    async def _post(self, kind:MediaKind, file_id:str, caption:str) -> Message:
        chat_id = self.settings.log_group_id
        caption = caption or None
        if kind is MediaKind.PHOTO:
            return await self.bot.send_photo(chat_id=chat_id, photo=file_id, caption=caption)
        if kind is MediaKind.VIDEO:
            return await self.bot.send_video(chat_id=chat_id, video=file_id, caption=caption)
        if kind is MediaKind.DOCUMENT:
            return await self.bot.send_document(chat_id=chat_id, document=file_id, caption=caption)
        if kind is MediaKind.VOICE:
            return await self.bot.send_voice(chat_id=chat_id, voice=file_id, caption=caption)
        if kind is MediaKind.STICKER:
            return await self.bot.send_sticker(chat_id=chat_id, sticker=file_id)
        raise ValueError(f"unsupported media kind: {kind!r}")

    async def archive(self, sender_id:int, kind:MediaKind, content_reference:str, caption:str="") -> MediaRecord:
        """Re-post the media into the log channel and persist a record for it.

        Raises AuthorizationError for non-admins before anything is sent. A
        PersistenceError after a successful post leaves the log-channel copy in place.
        """
        if not self.settings.is_admin(sender_id):
            logger.info(f"rejected {kind.value} from non-admin user {sender_id}")
            raise AuthorizationError(sender_id)
        if kind is MediaKind.STICKER:
            caption = ""
        try:
            posted = await self._post(kind, content_reference, caption)
        except TelegramError as e:
            raise ArchiveError(f"could not post {kind.value} to log group {self.settings.log_group_id}: {e}") from e

        record = MediaRecord(
            token=generate_token(), media_kind=kind, content_reference=content_reference,
            owner_id=sender_id, archive_message_id=posted.message_id, caption=caption or "")
        for _ in range(TOKEN_ATTEMPTS):
            if await self.store.save(record):
                logger.info(f"archived {kind.value} as {record.token} (log message {posted.message_id}) for user {sender_id}")
                return record
            logger.warning(f"token collision on {record.token}, re-rolling")
            record = dataclasses.replace(record, token=generate_token())
        raise PersistenceError(f"no free token after {TOKEN_ATTEMPTS} attempts (log message {posted.message_id} orphaned)")
