"""
Persistence Orchestrator
------------------------
Background store/notify work for one conversation:

- create   : once, when leaving `phone` with name+phone set and no record yet
- update   : every later committed step (status in_progress, or complete after mainDifficulty)
- finalize : once, when the next step is `done` and a record exists
             final update -> settle pause -> send notice -> (on failure) one scheduled retry

Work for each committed step runs as its own task, chained after the previous
step's task so the store sees calls in commit order. None of it is awaited by
the conversation; failures surface as notices only.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Tuple

from leadchat.core import notices
from leadchat.core import state_machine as sm
from leadchat.core.errors import PersistenceError
from leadchat.core.formatting import digits_only
from leadchat.notify.notifier import Notifier
from leadchat.observability.logging import log
import leadchat.observability.metrics as metrics
from leadchat.settings import settings
from leadchat.store.models import CollectedData
from leadchat.store.record_repo import RecordStore

IN_PROGRESS = "in_progress"
COMPLETE = "complete"

NoticeSink = Callable[[notices.Notice], None]


def contact_key(phone: str) -> str:
    """Placeholder contact address derived from the phone; same phone -> same key."""
    return f"{digits_only(phone)}@{settings.PLACEHOLDER_CONTACT_DOMAIN}"


def record_fields(data: CollectedData) -> Dict[str, Any]:
    fields = data.snapshot()
    fields["hasTaxId"] = bool(data.taxId)
    return fields


async def _send_notice(notifier: Notifier, record_id: str) -> Tuple[bool, str]:
    try:
        result = await notifier.send_completion_notice(record_id)
    except Exception as e:
        # Raised transport errors count as a failed send
        log(event="notice_send_exception", recordId=record_id, errorType=type(e).__name__, error=str(e)[:300])
        return False, str(e) or type(e).__name__
    return bool(result.success), (result.error or "")


@dataclass(frozen=True)
class RetryJob:
    """Everything the scheduled resend needs, captured when it is scheduled."""
    record_id: str
    delay_sec: float


async def run_notice_retry(job: RetryJob, notifier: Notifier, on_notice: NoticeSink) -> bool:
    await asyncio.sleep(job.delay_sec)
    await metrics.increment(metrics.K_NOTICE_RETRIED)
    ok, error = await _send_notice(notifier, job.record_id)
    if ok:
        log(event="notice_retry_delivered", recordId=job.record_id)
        await metrics.increment(metrics.K_NOTICE_SENT)
        on_notice(notices.make_notice(notices.NOTICE_RETRY_SENT))
        return True
    log(event="notice_retry_exhausted", recordId=job.record_id, error=error[:300])
    await metrics.increment(metrics.K_NOTICE_FAILED)
    on_notice(notices.make_notice(notices.NOTICE_TERMINAL_FAILURE))
    return False


class PersistenceOrchestrator:
    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        *,
        session_id: str = "",
        on_record_id: Optional[Callable[[str], None]] = None,
        on_notice: Optional[NoticeSink] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.session_id = session_id
        self.record_id: Optional[str] = None
        self._on_record_id = on_record_id or (lambda _rid: None)
        self._on_notice = on_notice or (lambda _n: None)
        self._tail: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._create_issued = False
        self._finalized = False

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def dispatch(self, previous_step: str, data: CollectedData, next_step: str) -> asyncio.Task:
        """Issue the store work for one committed step without waiting for it."""
        prev = self._tail
        task = self._track(asyncio.create_task(self._run_after(prev, previous_step, data, next_step)))
        self._tail = task
        return task

    async def _run_after(self, prev: Optional[asyncio.Task], previous_step: str, data: CollectedData, next_step: str):
        if prev is not None and not prev.done():
            await asyncio.wait({prev})
        await self.persist_step(previous_step, data, next_step)

    async def persist_step(self, previous_step: str, data: CollectedData, next_step: str) -> None:
        if (
            previous_step == sm.PHONE
            and self.record_id is None
            and not self._create_issued
            and data.name
            and data.phone
        ):
            self._create_issued = True
            await self._create(data)
        elif self.record_id is not None:
            status = COMPLETE if previous_step == sm.MAIN_DIFFICULTY else IN_PROGRESS
            await self._update(data, status)

        if next_step == sm.DONE and self.record_id is not None:
            await self.finalize(data)

    async def _create(self, data: CollectedData) -> None:
        fields = {
            "name": data.name,
            "phone": data.phone,
            "email": contact_key(data.phone),
            # The flow asks for the CNPJ directly, so every lead is a company
            "hasTaxId": True,
            "status": IN_PROGRESS,
        }
        try:
            record_id = await self.store.create_record(fields)
        except PersistenceError as e:
            await self._persistence_failed("create", e)
            return
        self.record_id = record_id
        await metrics.increment(metrics.K_RECORD_CREATED)
        log(event="lead_record_created", sessionId=self.session_id, recordId=record_id)
        self._on_record_id(record_id)

    async def _update(self, data: CollectedData, status: str) -> bool:
        try:
            await self.store.update_record(self.record_id, {**record_fields(data), "status": status})
        except PersistenceError as e:
            await self._persistence_failed("update", e)
            return False
        await metrics.increment(metrics.K_RECORD_UPDATED)
        return True

    async def _persistence_failed(self, op: str, err: Exception) -> None:
        log(event="lead_record_save_failed", sessionId=self.session_id, op=op, recordId=self.record_id or "", error=str(err)[:300])
        await metrics.increment(metrics.K_PERSIST_FAILED)
        self._on_notice(notices.make_notice(notices.PERSISTENCE_FAILED))

    async def finalize(self, data: CollectedData) -> None:
        if self._finalized:
            return
        self._finalized = True
        record_id = self.record_id

        try:
            await self.store.update_record(record_id, {**record_fields(data), "status": COMPLETE})
        except PersistenceError as e:
            log(event="lead_finalize_failed", sessionId=self.session_id, recordId=record_id, error=str(e)[:300])
            self._on_notice(notices.make_notice(notices.FINALIZE_FAILED))
            return

        await asyncio.sleep(settings.FINALIZE_SETTLE_SEC)
        log(event="notice_send_attempt", sessionId=self.session_id, recordId=record_id, attempt=1)
        ok, error = await _send_notice(self.notifier, record_id)
        if ok:
            await metrics.increment(metrics.K_NOTICE_SENT)
            self._on_notice(notices.make_notice(notices.NOTICE_SENT))
            return

        await metrics.increment(metrics.K_NOTICE_FAILED)
        self._on_notice(notices.make_notice(notices.NOTICE_FAILED, error=error or "Erro desconhecido"))
        job = RetryJob(record_id=record_id, delay_sec=settings.NOTIFY_RETRY_DELAY_SEC)
        log(event="notice_retry_scheduled", sessionId=self.session_id, recordId=record_id, delaySec=job.delay_sec)
        self._track(asyncio.create_task(run_notice_retry(job, self.notifier, self._on_notice)))

    async def drain(self) -> None:
        """Wait for every outstanding store/notify task, including a scheduled retry."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
