"""
Intake metrics
--------------
Plain Redis counters, incremented best-effort from the async request path and
read back by /admin/metrics. A Redis outage never breaks a conversation: the
failure is logged and the counter is skipped.
"""
from __future__ import annotations

from typing import Dict

from leadchat.observability.logging import log
from leadchat.store.redis_conn import get_async_redis

K_LOOKUP_ACCEPTED = "metrics:lookup:accepted"
K_LOOKUP_REJECTED = "metrics:lookup:rejected"
K_LOOKUP_UNAVAILABLE = "metrics:lookup:unavailable"

K_RECORD_CREATED = "metrics:records:created"
K_RECORD_UPDATED = "metrics:records:updated"
K_PERSIST_FAILED = "metrics:records:failed"

K_NOTICE_SENT = "metrics:notice:sent"
K_NOTICE_FAILED = "metrics:notice:failed"
K_NOTICE_RETRIED = "metrics:notice:retried"

ALL_KEYS = (
    K_LOOKUP_ACCEPTED,
    K_LOOKUP_REJECTED,
    K_LOOKUP_UNAVAILABLE,
    K_RECORD_CREATED,
    K_RECORD_UPDATED,
    K_PERSIST_FAILED,
    K_NOTICE_SENT,
    K_NOTICE_FAILED,
    K_NOTICE_RETRIED,
)


async def increment(key: str, amount: int = 1) -> None:
    try:
        r = get_async_redis()
        try:
            await r.incr(key, amount)
        finally:
            await r.aclose()
    except Exception as e:
        log(event="metrics_increment_failed", key=key, errorType=type(e).__name__)


async def snapshot() -> Dict[str, int]:
    r = get_async_redis()
    try:
        values = await r.mget(list(ALL_KEYS))
    finally:
        await r.aclose()
    return {k.split(":", 1)[1]: int(v or 0) for k, v in zip(ALL_KEYS, values)}
