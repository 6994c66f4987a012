"""
Comment store: cache-aside reads and write-through creation of comments.

Design notes
------------
- Reads consult the cache first.  A miss queries the repository, encodes
  the result with ``codec`` and stores it under the same key before
  returning; a hit decodes the payload directly.  Any cache failure other
  than a miss is raised before the repository is consulted.
- Cache keys come in two families: ``<video_id>_comments`` for a video's
  list and ``comment_<id>`` for a single comment.  Entries are stored
  without expiry unless a positive ``cache_ttl`` is given.
- Writes derive the id from the submission time, the video id and the
  content (md5 hex digest).  The timestamp text used for the id is the
  same text stored as ``date_created``, so a later read returns a record
  equal to the one the write returned.
- After a successful insert the single-comment key is populated and, when
  ``invalidate_list_on_write`` is set, the video's list key is deleted so
  the next list read goes back to the database.  Failures in either cache
  step are logged and never fail the write.
- The store never retries and never catches cancellation; timeouts belong
  to the underlying clients.
"""
import hashlib
import logging
from datetime import datetime, timezone
from typing import Callable

from comment_svc import codec
from comment_svc.cache import CacheBackend
from comment_svc.errors import CommentStoreError, CommentValidationError
from comment_svc.repository import CommentRepository
from comment_svc.schemas import Comment, CommentList, WriteRequest

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

LIST_KEY_SUFFIX = "_comments"
SINGLE_KEY_PREFIX = "comment_"


def list_cache_key(video_id: str) -> str:
    return f"{video_id}{LIST_KEY_SUFFIX}"


def single_cache_key(comment_id: str) -> str:
    return f"{SINGLE_KEY_PREFIX}{comment_id}"


def make_comment_id(timestamp: str, video_id: str, content: str) -> str:
    """Return the hex md5 of ``timestamp + video_id + content``."""
    return hashlib.md5(f"{timestamp}{video_id}{content}".encode("utf-8")).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class CommentStore:
    def __init__(
        self,
        repository: CommentRepository,
        cache: CacheBackend,
        *,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] = _utcnow,
        cache_ttl: int | None = None,
        invalidate_list_on_write: bool = True,
    ) -> None:
        if cache_ttl is not None and cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be a positive number of seconds, got {cache_ttl}")
        self._repository = repository
        self._cache = cache
        # The logger is the only observability hook; there are no tracing
        # spans. Per-request timing and query counts come from
        # RequestMetricsMiddleware.
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._cache_ttl = cache_ttl
        self._invalidate_list_on_write = invalidate_list_on_write

    async def list_by_video(self, video_id: str) -> CommentList:
        """
        Return every comment for *video_id*, empty when there are none.

        Backend and serialization failures propagate; the cache is only
        written once the list has been loaded and encoded.
        """
        cache_key = list_cache_key(video_id)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            self._logger.debug("Cache hit key=%r", cache_key)
            return codec.decode_comment_list(cached)

        self._logger.debug("Cache miss key=%r", cache_key)
        comments = await self._repository.fetch_for_video(video_id)
        result = CommentList(video_id=video_id, comments=comments)
        await self._cache.set(cache_key, codec.encode_comment_list(result), ttl=self._cache_ttl)
        return result

    async def get_single(self, comment_id: str) -> Comment:
        """
        Return the comment identified by *comment_id*.

        Raises ``CommentNotFoundError`` when no row matches.
        """
        cache_key = single_cache_key(comment_id)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            self._logger.debug("Cache hit key=%r", cache_key)
            return codec.decode_comment(cached)

        self._logger.debug("Cache miss key=%r", cache_key)
        comment = await self._repository.fetch_one(comment_id)
        await self._cache.set(cache_key, codec.encode_comment(comment), ttl=self._cache_ttl)
        return comment

    async def write(self, request: WriteRequest) -> Comment:
        """
        Insert a new comment and return it with its assigned id.

        The insert is authoritative: once it succeeds the comment is
        returned even if populating or invalidating the cache fails.
        """
        missing = [
            name
            for name in ("video_id", "user", "content")
            if not (getattr(request, name, None) or "").strip()
        ]
        if missing:
            raise CommentValidationError(missing)

        timestamp = str(self._clock())
        comment = Comment(
            id=make_comment_id(timestamp, request.video_id, request.content),
            video_id=request.video_id,
            user=request.user,
            content=request.content,
            date_posted=timestamp,
            likes=0,
            dislikes=0,
        )
        await self._repository.insert(comment)
        self._logger.info("Comment %s written for video_id=%r", comment.id, comment.video_id)

        cache_key = single_cache_key(comment.id)
        try:
            await self._cache.set(cache_key, codec.encode_comment(comment), ttl=self._cache_ttl)
        except CommentStoreError as exc:
            self._logger.warning("Could not cache new comment key=%r: %s", cache_key, exc)

        if self._invalidate_list_on_write:
            list_key = list_cache_key(comment.video_id)
            try:
                await self._cache.delete(list_key)
            except CommentStoreError as exc:
                self._logger.warning("Could not invalidate key=%r: %s", list_key, exc)

        return comment
