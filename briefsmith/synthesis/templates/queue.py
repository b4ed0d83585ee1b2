# Producer side of the async job queue. Emitted by both the business-logic
# and the scheduling synthesizers with identical content.
QUEUE_HELPERS = r'''"""Enqueue helpers for the background job streams."""

import json
import os
from typing import Any, Optional

import redis.asyncio as redis

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

EMAIL_STREAM = "jobs:email"
NOTIFICATION_STREAM = "jobs:notification"
FILE_PROCESSING_STREAM = "jobs:file_processing"

STREAMS = (EMAIL_STREAM, NOTIFICATION_STREAM, FILE_PROCESSING_STREAM)

_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.from_url(REDIS_URL, decode_responses=True)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


async def enqueue(stream: str, payload: dict[str, Any], attempt: int = 0) -> str:
    """Append a job to a stream and return its entry id."""
    fields = {"payload": json.dumps(payload, default=str), "attempt": str(attempt)}
    return await get_redis().xadd(stream, fields, maxlen=10_000, approximate=True)


class QueueHelpers:
    @staticmethod
    async def add_email_job(to: str, subject: str, html: str) -> str:
        return await enqueue(EMAIL_STREAM, {"to": to, "subject": subject, "html": html})

    @staticmethod
    async def add_notification_job(user_id: str, type: str, message: str,
                                   reference_id: Optional[str] = None) -> str:
        return await enqueue(NOTIFICATION_STREAM, {
            "user_id": user_id,
            "type": type,
            "message": message,
            "reference_id": reference_id,
        })

    @staticmethod
    async def add_file_processing_job(file_id: str, file_path: str, user_id: str) -> str:
        return await enqueue(FILE_PROCESSING_STREAM, {
            "file_id": file_id,
            "file_path": file_path,
            "user_id": user_id,
        })
'''
