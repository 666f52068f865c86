import asyncio
from unittest.mock import AsyncMock

import pytest

import leadchat.observability.metrics as metrics
from leadchat.core import state_machine as sm
from leadchat.core.errors import PersistenceError
from leadchat.lookup.client import VerificationResult
from leadchat.notify.notifier import NoticeResult
from leadchat.settings import settings

ANSWERS = {
    sm.NAME: "Ana",
    sm.PHONE: "11999998888",
    sm.TAX_ID: "11222333000181",
    sm.CURRENT_PLAN_NAME: "Amil",
    sm.CURRENT_PLAN_COST: "35000",
    sm.MAIN_DIFFICULTY: "Alto custo",
}


class FakeStore:
    """In-memory RecordStore that records every call as (op, record_id, fields)."""

    def __init__(self, fail_create=False, fail_update=False, fail_on_status=None, create_delay=0.0):
        self.records = {}
        self.calls = []
        self.fail_create = fail_create
        self.fail_update = fail_update
        self.fail_on_status = fail_on_status
        self.create_delay = create_delay

    async def create_record(self, fields):
        self.calls.append(("create", None, dict(fields)))
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.fail_create:
            raise PersistenceError("store unavailable")
        record_id = f"rec-{len(self.records) + 1}"
        self.records[record_id] = dict(fields)
        return record_id

    async def update_record(self, record_id, fields):
        self.calls.append(("update", record_id, dict(fields)))
        if self.fail_update or (self.fail_on_status and fields.get("status") == self.fail_on_status):
            raise PersistenceError("store unavailable")
        self.records.setdefault(record_id, {}).update({k: v for k, v in fields.items() if v is not None})

    async def get_record(self, record_id):
        return self.records.get(record_id)

    def ops(self, op):
        return [c for c in self.calls if c[0] == op]


class FakeNotifier:
    """Returns the queued results in order; an Exception instance is raised instead."""

    def __init__(self, results=None, after_call=None):
        self.results = list(results or [NoticeResult(success=True)])
        self.calls = []
        self.after_call = after_call

    async def send_completion_notice(self, record_id):
        self.calls.append(record_id)
        result = self.results.pop(0) if self.results else NoticeResult(success=True)
        if self.after_call:
            self.after_call(len(self.calls))
        if isinstance(result, Exception):
            raise result
        return result


def make_verifier(result=None, error=None):
    calls = []

    async def verifier(tax_id):
        calls.append(tax_id)
        if error is not None:
            raise error
        return result if result is not None else VerificationResult(is_valid=True, enrichment={"legalName": "Acme"})

    verifier.calls = calls
    return verifier


@pytest.fixture(autouse=True)
def fast_timers(monkeypatch):
    monkeypatch.setattr(settings, "NOTIFY_RETRY_DELAY_SEC", 0.0)
    monkeypatch.setattr(settings, "FINALIZE_SETTLE_SEC", 0.0)
    monkeypatch.setattr(settings, "TYPING_DELAY_SEC", 0.0)


@pytest.fixture(autouse=True)
def no_metrics(monkeypatch):
    mock = AsyncMock()
    monkeypatch.setattr(metrics, "increment", mock)
    return mock


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def answer_until():
    """Submit the canned answers until the conversation reaches `target`."""

    async def _answer_until(convo, target, has_plan="Sim"):
        while convo.state.currentStep != target:
            step = convo.state.currentStep
            if step == sm.HAS_EXISTING_PLAN:
                result = await convo.submit(has_plan)
            else:
                convo.set_draft_input(ANSWERS[step])
                result = await convo.submit()
            assert result.accepted, (step, result.notice)
        return convo

    return _answer_until
