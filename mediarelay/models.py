# models.py - archived media records and share tokens
import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

TOKEN_LENGTH = 9
TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_RE = re.compile(f"[a-z0-9]{{{TOKEN_LENGTH}}}")
# Telegram deep-link payload: up to 64 of A-Z a-z 0-9 _ -
START_PARAM_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    DOCUMENT = "document"
    VOICE = "voice"
    STICKER = "sticker"


@dataclass(frozen=True)
class MediaRecord:
    token: str
    media_kind: MediaKind
    content_reference: str
    owner_id: int
    archive_message_id: int
    caption: str = ""
    created_at: Optional[datetime] = None


def generate_token() -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def is_token(value:str) -> bool:
    return TOKEN_RE.fullmatch(value) is not None


def is_start_param(value:str) -> bool:
    """Whether ``value`` can ride in a ``?start=`` payload unescaped."""
    return START_PARAM_RE.fullmatch(value) is not None


def deep_link(bot_username:str, token:str) -> str:
    """Share link that opens the bot with ``/start <token>``."""
    return f"https://t.me/{bot_username}?start={token}"
