"""
Relational side of the comment store.

``CommentRepository`` is the protocol the store depends on.
``SqlCommentRepository`` is the production implementation on SQLAlchemy's
async engine; ``InMemoryCommentRepository`` keeps rows in a dict and backs
fast unit tests and local experiments.

Each SQL method opens its own session from the shared session factory, so
concurrent requests draw independent connections from the engine pool.
Driver and pool failures are translated into ``BackendUnavailableError``;
a duplicate primary key on insert becomes ``CommentConflictError``.
"""
import asyncio
import logging
from typing import Protocol

from pydantic import ValidationError
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from comment_svc.errors import (
    BackendUnavailableError,
    CommentConflictError,
    CommentNotFoundError,
    SerializationError,
)
from comment_svc.models import CommentRecord
from comment_svc.schemas import Comment

logger = logging.getLogger(__name__)

# Driver, pool and connect failures. asyncio.TimeoutError is only an alias of
# the builtin TimeoutError (an OSError) from Python 3.11 on.
_BACKEND_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class CommentRepository(Protocol):
    async def fetch_for_video(self, video_id: str) -> list[Comment]: ...

    async def fetch_one(self, comment_id: str) -> Comment: ...

    async def insert(self, comment: Comment) -> None: ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------

def _scan(comment_id, video_id, user_id, date_created, content, likes, dislikes) -> Comment:
    try:
        return Comment(
            id=comment_id,
            video_id=video_id,
            user=user_id,
            date_posted=date_created,
            content=content,
            likes=likes,
            dislikes=dislikes,
        )
    except ValidationError as exc:
        raise SerializationError(f"Could not scan comment row {comment_id!r}: {exc}") from exc


class SqlCommentRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_for_video(self, video_id: str) -> list[Comment]:
        q = select(
            CommentRecord.id,
            CommentRecord.user_id,
            CommentRecord.date_created,
            CommentRecord.content,
            CommentRecord.likes,
            CommentRecord.dislikes,
        ).where(CommentRecord.video_id == video_id)
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(q)).all()
        except _BACKEND_ERRORS as exc:
            logger.error("Comment list query failed for video_id=%r: %s", video_id, exc)
            raise BackendUnavailableError(
                f"Could not load comments for video {video_id!r}: {exc}", "database"
            ) from exc

        return [
            _scan(row.id, video_id, row.user_id, row.date_created, row.content, row.likes, row.dislikes)
            for row in rows
        ]

    async def fetch_one(self, comment_id: str) -> Comment:
        q = select(
            CommentRecord.video_id,
            CommentRecord.user_id,
            CommentRecord.date_created,
            CommentRecord.content,
            CommentRecord.likes,
            CommentRecord.dislikes,
        ).where(CommentRecord.id == comment_id)
        try:
            async with self._session_factory() as session:
                row = (await session.execute(q)).one_or_none()
        except _BACKEND_ERRORS as exc:
            logger.error("Comment query failed for id=%r: %s", comment_id, exc)
            raise BackendUnavailableError(
                f"Could not load comment {comment_id!r}: {exc}", "database"
            ) from exc

        if row is None:
            raise CommentNotFoundError(comment_id)
        return _scan(
            comment_id, row.video_id, row.user_id, row.date_created, row.content, row.likes, row.dislikes
        )

    async def insert(self, comment: Comment) -> None:
        stmt = insert(CommentRecord).values(
            id=comment.id,
            video_id=comment.video_id,
            user_id=comment.user,
            date_created=comment.date_posted,
            content=comment.content,
            likes=comment.likes,
            dislikes=comment.dislikes,
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(stmt)
        except IntegrityError as exc:
            logger.error("Comment insert rejected for id=%r: %s", comment.id, exc)
            raise CommentConflictError(comment.id) from exc
        except _BACKEND_ERRORS as exc:
            logger.error("Comment insert failed for id=%r: %s", comment.id, exc)
            raise BackendUnavailableError(
                f"Could not insert comment {comment.id!r}: {exc}", "database"
            ) from exc


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryCommentRepository:
    """Dict-backed repository; rows come back in insertion order."""

    def __init__(self) -> None:
        self._rows: dict[str, Comment] = {}
        self.queries: int = 0

    async def fetch_for_video(self, video_id: str) -> list[Comment]:
        self.queries += 1
        return [c for c in self._rows.values() if c.video_id == video_id]

    async def fetch_one(self, comment_id: str) -> Comment:
        self.queries += 1
        try:
            return self._rows[comment_id]
        except KeyError:
            raise CommentNotFoundError(comment_id) from None

    async def insert(self, comment: Comment) -> None:
        self.queries += 1
        if comment.id in self._rows:
            raise CommentConflictError(comment.id)
        self._rows[comment.id] = comment
