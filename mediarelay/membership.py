# membership.py - required-channel gate
import logging
from typing import Sequence

from telegram import Bot
from telegram.constants import ChatMemberStatus
from telegram.error import TelegramError

from mediarelay.config import ChatRef
from mediarelay.errors import MembershipCheckError

logger = logging.getLogger(__name__)

JOINED = (ChatMemberStatus.MEMBER, ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.OWNER)


class MembershipChecker:
    def __init__(self, bot:Bot, channels:Sequence[ChatRef]):
        self.bot = bot
        self.channels = tuple(channels)

    async def _status(self, channel:ChatRef, uid:int) -> str:
        try:
            member = await self.bot.get_chat_member(chat_id=channel, user_id=uid)
        except TelegramError as e:
            raise MembershipCheckError(f"get_chat_member({channel}, {uid}) failed: {e}") from e
        return member.status

    async def is_member(self, uid:int) -> bool:
        """True only if ``uid`` has joined every required channel. Lookup failures count as not joined."""
        for channel in self.channels:
            try:
                status = await self._status(channel, uid)
            except MembershipCheckError as e:
                logger.error(f"membership check error for user {uid}: {e}")
                return False
            if status not in JOINED:
                logger.info(f"user {uid} not joined to {channel} (status={status})")
                return False
        return True
