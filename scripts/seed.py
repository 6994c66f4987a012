"""Database seeder: writes sample comments through the CommentStore."""
import asyncio
import argparse
import random
import time

from comment_svc.cache import build_cache
from comment_svc.database import engine, async_session, Base
from comment_svc.repository import SqlCommentRepository
from comment_svc.schemas import WriteRequest
from comment_svc.services.comment_service import (
    LIST_KEY_SUFFIX,
    SINGLE_KEY_PREFIX,
    CommentStore,
)

PHRASES = ["Great video!", "First!", "Thanks for sharing.", "Can you do a follow-up?",
           "The audio is a bit quiet.", "Watched this three times already.",
           "Timestamp 2:31 is gold.", "Subscribed."]


async def clear_comment_keys(cache) -> int:
    """Drop both comment key families; cached entries never expire on their own."""
    removed = await cache.delete_pattern(f"*{LIST_KEY_SUFFIX}")
    removed += await cache.delete_pattern(f"{SINGLE_KEY_PREFIX}*")
    return removed


async def seed(small: bool = False, *, db_engine=None, session_factory=None, cache=None):
    db_engine = db_engine or engine
    session_factory = session_factory or async_session

    num_videos = 10 if small else 500
    num_users = 10 if small else 200
    max_comments_per_video = 3 if small else 20

    print(f"Seeding: {num_videos} videos, up to {max_comments_per_video} comments each")
    start = time.perf_counter()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    own_cache = cache is None
    if own_cache:
        cache = build_cache()
        await cache.connect()
    try:
        removed = await clear_comment_keys(cache)
        print(f"  Cleared {removed} cached key(s)")

        store = CommentStore(SqlCommentRepository(session_factory), cache)
        total_comments = 0
        for v in range(num_videos):
            video_id = f"video_{v:05d}"
            for n in range(random.randint(0, max_comments_per_video)):
                await store.write(WriteRequest(
                    video_id=video_id,
                    user=f"user_{random.randrange(num_users):04d}",
                    content=f"{random.choice(PHRASES)} (#{n})",
                ))
                total_comments += 1
            if (v + 1) % 50 == 0:
                print(f"  {v + 1} videos seeded")
    finally:
        if own_cache:
            await cache.disconnect()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Videos: {num_videos}")
    print(f"  Comments: {total_comments}")
    return total_comments


async def _run(small: bool) -> None:
    try:
        await seed(small=small)
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Seed the comments database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (10 videos)")
    args = parser.parse_args()
    asyncio.run(_run(args.small))


if __name__ == "__main__":
    main()
