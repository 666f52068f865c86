"""
Completion notice senders.

send_completion_notice(record_id) reports an ordinary negative outcome as
NoticeResult(success=False); it may still raise on unexpected transport
failures, which callers treat the same as success=False.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

from leadchat.notify.client import send_notice_http_async
from leadchat.notify.payloads import build_notice_payload
from leadchat.observability.logging import log
from leadchat.queue.jobs import send_completion_notice_job
from leadchat.queue.rq_conn import get_queue
from leadchat.settings import settings
from leadchat.store.record_repo import RecordStore


@dataclass(frozen=True)
class NoticeResult:
    success: bool
    error: Optional[str] = None


class Notifier(Protocol):
    async def send_completion_notice(self, record_id: str) -> NoticeResult: ...


class HttpNotifier:
    """Builds the e-mail payload from the stored record and POSTs it inline."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def send_completion_notice(self, record_id: str) -> NoticeResult:
        record = await self.store.get_record(record_id)
        if record is None:
            log(event="notice_missing_record", recordId=record_id)
            return NoticeResult(success=False, error="record not found")

        ok, status_code, error = await send_notice_http_async(build_notice_payload(record_id, record))
        log(event="notice_http_result", recordId=record_id, ok=bool(ok), statusCode=int(status_code), error=error or "")
        return NoticeResult(success=ok, error=error)


class QueueNotifier:
    """Hands delivery to an rq worker; success means the job was queued."""

    def __init__(self, queue_factory=get_queue):
        self.queue_factory = queue_factory

    def _enqueue(self, record_id: str) -> str:
        job = self.queue_factory().enqueue(send_completion_notice_job, record_id)
        return getattr(job, "id", "") or ""

    async def send_completion_notice(self, record_id: str) -> NoticeResult:
        try:
            job_id = await asyncio.to_thread(self._enqueue, record_id)
        except Exception as e:
            log(event="notice_enqueue_failed", recordId=record_id, errorType=type(e).__name__, error=str(e)[:300])
            return NoticeResult(success=False, error=f"{type(e).__name__}: {str(e)[:200]}")
        log(event="notice_enqueued", recordId=record_id, rq_job_id=job_id, queue=settings.RQ_QUEUE_NAME)
        return NoticeResult(success=True)


def build_notifier(store: RecordStore) -> Notifier:
    mode = (settings.NOTIFY_MODE or "http").lower()
    if mode == "rq":
        return QueueNotifier()
    return HttpNotifier(store)
