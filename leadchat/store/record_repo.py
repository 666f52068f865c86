import json
import uuid
from typing import Any, Dict, Optional, Protocol

from leadchat.core.errors import PersistenceError
from leadchat.observability.logging import log
from leadchat.settings import settings
from leadchat.store.redis_conn import get_async_redis, get_redis
from leadchat.utils.time import now_ms


class RecordStore(Protocol):
    async def create_record(self, fields: Dict[str, Any]) -> str: ...

    async def update_record(self, record_id: str, fields: Dict[str, Any]) -> None: ...

    async def get_record(self, record_id: str) -> Optional[Dict[str, Any]]: ...


def _key(record_id: str) -> str:
    return f"{settings.LEAD_KEY_PREFIX}{record_id}"


def _json_safe(obj):
    if isinstance(obj, (set, tuple)):
        return [_json_safe(v) for v in obj]
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_json_safe(v) for v in obj]
    return obj


class RedisRecordStore:
    """
    Lead records as one JSON document per key (lead:<id>).
    Updates are partial: only the non-null fields given are written.
    """

    def __init__(self, redis=None):
        self._redis = redis

    def _conn(self):
        if self._redis is None:
            self._redis = get_async_redis()
        return self._redis

    async def create_record(self, fields: Dict[str, Any]) -> str:
        record_id = uuid.uuid4().hex
        ts = now_ms()
        doc = {k: v for k, v in fields.items() if v is not None}
        doc.update({"id": record_id, "status": doc.get("status", "new"), "createdAtMs": ts, "updatedAtMs": ts})
        try:
            await self._conn().set(_key(record_id), json.dumps(_json_safe(doc), ensure_ascii=False))
        except Exception as e:
            log(event="record_create_failed", errorType=type(e).__name__, error=str(e)[:300])
            raise PersistenceError(f"create failed: {e}") from e
        log(event="record_created", recordId=record_id, keys=sorted(doc.keys()))
        return record_id

    async def update_record(self, record_id: str, fields: Dict[str, Any]) -> None:
        r = self._conn()
        try:
            raw = await r.get(_key(record_id))
            if not raw:
                raise PersistenceError(f"record {record_id} not found")
            doc = json.loads(raw)
            doc.update({k: v for k, v in fields.items() if v is not None})
            doc["updatedAtMs"] = now_ms()
            await r.set(_key(record_id), json.dumps(_json_safe(doc), ensure_ascii=False))
        except PersistenceError:
            log(event="record_update_missing", recordId=record_id)
            raise
        except Exception as e:
            log(event="record_update_failed", recordId=record_id, errorType=type(e).__name__, error=str(e)[:300])
            raise PersistenceError(f"update failed: {e}") from e
        log(event="record_updated", recordId=record_id, status=fields.get("status", ""))

    async def get_record(self, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self._conn().get(_key(record_id))
        except Exception as e:
            raise PersistenceError(f"read failed: {e}") from e
        return json.loads(raw) if raw else None


def load_record(record_id: str) -> Optional[Dict[str, Any]]:
    """Synchronous read, used by rq workers."""
    raw = get_redis().get(_key(record_id))
    return json.loads(raw) if raw else None
