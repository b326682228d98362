# store.py - MediaRecord persistence on PostgreSQL (asyncpg)
from typing import Optional

import asyncpg

from mediarelay.errors import PersistenceError
from mediarelay.models import MediaKind, MediaRecord

DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

SCHEMA = """CREATE TABLE IF NOT EXISTS media (
    token TEXT PRIMARY KEY, media_kind TEXT NOT NULL, content_reference TEXT NOT NULL,
    owner_id BIGINT NOT NULL, caption TEXT NOT NULL DEFAULT '', archive_message_id BIGINT NOT NULL,
    created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
)"""


class MediaStore:
    """Token -> archived message lookup. Rows are insert-only."""

    def __init__(self, pool:asyncpg.pool.Pool):
        self.pool = pool

    async def init(self):
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(SCHEMA)
        except DB_ERRORS as e:
            raise PersistenceError(f"could not create media table: {e}") from e

    async def save(self, record:MediaRecord) -> bool:
        """Insert ``record``. Returns False when its token is already taken."""
        try:
            async with self.pool.acquire() as conn:
                inserted = await conn.fetchval(
                    "INSERT INTO media (token,media_kind,content_reference,owner_id,caption,archive_message_id) "
                    "VALUES ($1,$2,$3,$4,$5,$6) ON CONFLICT (token) DO NOTHING RETURNING token",
                    record.token, record.media_kind.value, record.content_reference,
                    record.owner_id, record.caption, record.archive_message_id)
        except DB_ERRORS as e:
            raise PersistenceError(f"could not save media {record.token}: {e}") from e
        return inserted is not None

    async def find(self, token:str) -> Optional[MediaRecord]:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT token,media_kind,content_reference,owner_id,caption,archive_message_id,created_at "
                    "FROM media WHERE token = $1", token)
        except DB_ERRORS as e:
            raise PersistenceError(f"could not look up media {token}: {e}") from e
        if row is None:
            return None
        return MediaRecord(
            token=row['token'], media_kind=MediaKind(row['media_kind']),
            content_reference=row['content_reference'], owner_id=row['owner_id'],
            archive_message_id=row['archive_message_id'], caption=row['caption'] or "",
            created_at=row['created_at'])

    async def count(self) -> int:
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT COUNT(*) FROM media")
        except DB_ERRORS as e:
            raise PersistenceError(f"could not count media: {e}") from e
