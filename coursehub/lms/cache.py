"""Redis cache helpers for the LMS domain.

Key schema
----------
course:{course_id}:lessons    JSON list   TTL settings.lesson_cache_ttl_secs   ordered active lessons

All functions are best-effort: a missing client or a Redis failure is a
cache miss, never an error for the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def _lessons_key(course_id: UUID) -> str:
    return f"course:{course_id}:lessons"


async def get_course_lessons(course_id: UUID, redis: Redis | None) -> list[dict[str, Any]] | None:
    """Return the cached lesson listing or None on a miss."""
    if redis is None:
        return None
    try:
        val = await redis.get(_lessons_key(course_id))
    except RedisError:
        logger.warning("Lesson cache read failed for course %s", course_id, exc_info=True)
        return None
    return json.loads(val) if val is not None else None


async def set_course_lessons(
    course_id: UUID,
    lessons: list[dict[str, Any]],
    ttl_secs: int,
    redis: Redis | None,
) -> None:
    if redis is None:
        return
    try:
        await redis.setex(_lessons_key(course_id), ttl_secs, json.dumps(lessons))
    except RedisError:
        logger.warning("Lesson cache write failed for course %s", course_id, exc_info=True)


async def invalidate_course_lessons(course_id: UUID, redis: Redis | None) -> None:
    if redis is None:
        return
    try:
        await redis.delete(_lessons_key(course_id))
    except RedisError:
        logger.warning("Lesson cache invalidation failed for course %s", course_id, exc_info=True)
