# config.py - environment configuration, validated once at startup
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple, Union

from dotenv import load_dotenv

from mediarelay.errors import StartupConfigError

ChatRef = Union[int, str]

DEFAULT_PORT = 10000
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration. Built once by ``from_env`` and passed around by reference."""

    bot_token: str
    database_url: str
    required_channels: Tuple[ChatRef, ChatRef]
    required_channel_urls: Tuple[str, str]
    admin_ids: frozenset
    log_group_id: int
    port: int = DEFAULT_PORT
    bot_username: Optional[str] = None
    log_level: str = "INFO"

    def is_admin(self, uid:int) -> bool:
        return uid in self.admin_ids

    @classmethod
    def from_env(cls, env:Optional[Mapping[str, str]]=None) -> "Settings":
        """Read settings from ``env`` (``os.environ`` after loading ``.env`` when omitted).

        Every problem is collected so one ``StartupConfigError`` names all offending
        variables at once.
        """
        if env is None:
            load_dotenv()
            env = os.environ
        problems = []

        def required(name):
            value = (env.get(name) or "").strip()
            if not value:
                problems.append(f"{name} is not set")
            return value

        bot_token = required("BOT_TOKEN")
        database_url = required("DATABASE_URL")

        channels = []
        for name in ("REQUIRED_CHANNEL_ID_1", "REQUIRED_CHANNEL_ID_2"):
            raw = required(name)
            if raw:
                try:
                    channels.append(_parse_chat(raw))
                except ValueError:
                    problems.append(f"{name} must be a numeric chat id or an @username, got {raw!r}")

        urls = []
        for name in ("REQUIRED_CHANNEL_URL_1", "REQUIRED_CHANNEL_URL_2"):
            raw = required(name)
            if raw and not raw.startswith(("https://", "http://")):
                problems.append(f"{name} must be an http(s) URL, got {raw!r}")
            urls.append(raw)

        admin_ids = frozenset()
        raw_admins = required("ADMIN_IDS")
        if raw_admins:
            try:
                admin_ids = frozenset(int(x) for x in raw_admins.replace(" ", "").split(",") if x)
            except ValueError:
                problems.append(f"ADMIN_IDS must be comma-separated integers, got {raw_admins!r}")
            else:
                if not admin_ids:
                    problems.append("ADMIN_IDS must list at least one user id")

        log_group_id = 0
        raw_log_group = required("LOG_GROUP_ID")
        if raw_log_group:
            try:
                log_group_id = int(raw_log_group)
            except ValueError:
                problems.append(f"LOG_GROUP_ID must be an integer, got {raw_log_group!r}")

        port = DEFAULT_PORT
        raw_port = (env.get("PORT") or "").strip()
        if raw_port:
            try:
                port = int(raw_port)
                if not 0 < port < 65536:
                    raise ValueError(raw_port)
            except ValueError:
                problems.append(f"PORT must be an integer between 1 and 65535, got {raw_port!r}")

        bot_username = (env.get("BOT_USERNAME") or "").strip().lstrip("@") or None
        log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
        if log_level not in LOG_LEVELS:
            problems.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

        if problems:
            raise StartupConfigError("; ".join(problems))
        return cls(
            bot_token=bot_token,
            database_url=database_url,
            required_channels=(channels[0], channels[1]),
            required_channel_urls=(urls[0], urls[1]),
            admin_ids=admin_ids,
            log_group_id=log_group_id,
            port=port,
            bot_username=bot_username,
            log_level=log_level,
        )


def _parse_chat(raw:str) -> ChatRef:
    if raw.startswith("@") and len(raw) > 1:
        return raw
    return int(raw)
