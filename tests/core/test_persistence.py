import asyncio

from conftest import FakeNotifier, FakeStore
from leadchat.core import notices
from leadchat.core import state_machine as sm
from leadchat.core.persistence import (
    COMPLETE,
    IN_PROGRESS,
    PersistenceOrchestrator,
    RetryJob,
    contact_key,
    record_fields,
    run_notice_retry,
)
from leadchat.notify.notifier import NoticeResult
from leadchat.store.models import CollectedData

ANA = CollectedData(name="Ana", phone="11999998888")


def _orchestrator(store, notifier, sink=None):
    seen = []
    orch = PersistenceOrchestrator(
        store,
        notifier,
        session_id="s-1",
        on_record_id=seen.append,
        on_notice=(sink.append if sink is not None else None),
    )
    return orch, seen


def test_contact_key_is_derived_from_phone_digits():
    assert contact_key("11999998888") == "11999998888@whatsapp.cliente"
    assert contact_key("(11) 99999-8888") == contact_key("11999998888")


def test_record_fields_flags_tax_id():
    assert record_fields(ANA)["hasTaxId"] is False
    assert record_fields(ANA.with_value("taxId", "11222333000181"))["hasTaxId"] is True


def test_name_step_writes_nothing():
    store = FakeStore()

    async def scenario():
        orch, _ = _orchestrator(store, FakeNotifier())
        orch.dispatch(sm.NAME, CollectedData(name="Ana"), sm.PHONE)
        await orch.drain()

    asyncio.run(scenario())
    assert store.calls == []


def test_update_waits_for_slow_create():
    store = FakeStore(create_delay=0.05)

    async def scenario():
        orch, seen = _orchestrator(store, FakeNotifier())
        orch.dispatch(sm.PHONE, ANA, sm.TAX_ID)
        orch.dispatch(sm.TAX_ID, ANA.with_value("taxId", "11222333000181"), sm.HAS_EXISTING_PLAN)
        await orch.drain()
        return orch, seen

    orch, seen = asyncio.run(scenario())
    assert [c[0] for c in store.calls] == ["create", "update"]
    assert store.calls[1][1] == "rec-1"
    assert store.calls[1][2]["status"] == IN_PROGRESS
    assert orch.record_id == "rec-1"
    assert seen == ["rec-1"]


def test_create_is_issued_once():
    store = FakeStore()

    async def scenario():
        orch, _ = _orchestrator(store, FakeNotifier())
        orch.dispatch(sm.PHONE, ANA, sm.TAX_ID)
        orch.dispatch(sm.PHONE, ANA, sm.TAX_ID)
        await orch.drain()

    asyncio.run(scenario())
    assert len(store.ops("create")) == 1
    assert len(store.ops("update")) == 1


def test_last_answer_marks_complete_and_sends_notice():
    store = FakeStore()
    notifier = FakeNotifier()
    sink = []

    async def scenario():
        orch, _ = _orchestrator(store, notifier, sink)
        orch.dispatch(sm.PHONE, ANA, sm.TAX_ID)
        orch.dispatch(sm.MAIN_DIFFICULTY, ANA.with_value("mainDifficulty", "Outro"), sm.DONE)
        await orch.drain()

    asyncio.run(scenario())
    statuses = [c[2]["status"] for c in store.ops("update")]
    assert statuses == [COMPLETE, COMPLETE]
    assert notifier.calls == ["rec-1"]
    assert [n.code for n in sink] == [notices.NOTICE_SENT]


def test_finalize_runs_once():
    store = FakeStore()
    notifier = FakeNotifier()

    async def scenario():
        orch, _ = _orchestrator(store, notifier)
        orch.record_id = "rec-7"
        await orch.finalize(ANA)
        await orch.finalize(ANA)
        await orch.drain()

    asyncio.run(scenario())
    assert notifier.calls == ["rec-7"]


def test_failed_send_reports_error_text():
    sink = []
    notifier = FakeNotifier([NoticeResult(success=False, error="502 Bad Gateway"), NoticeResult(success=True)])

    async def scenario():
        orch, _ = _orchestrator(FakeStore(), notifier, sink)
        orch.record_id = "rec-3"
        await orch.finalize(ANA)
        await orch.drain()

    asyncio.run(scenario())
    assert sink[0].code == notices.NOTICE_FAILED
    assert "502 Bad Gateway" in sink[0].text
    assert sink[1].code == notices.NOTICE_RETRY_SENT
    assert notifier.calls == ["rec-3", "rec-3"]


def test_retry_job_sends_exactly_once():
    sink = []
    notifier = FakeNotifier([NoticeResult(success=False)])
    ok = asyncio.run(run_notice_retry(RetryJob(record_id="rec-5", delay_sec=0.0), notifier, sink.append))
    assert ok is False
    assert notifier.calls == ["rec-5"]
    assert [n.code for n in sink] == [notices.NOTICE_TERMINAL_FAILURE]


def test_update_failure_is_reported_not_raised():
    store = FakeStore(fail_update=True)
    sink = []

    async def scenario():
        orch, _ = _orchestrator(store, FakeNotifier(), sink)
        orch.dispatch(sm.PHONE, ANA, sm.TAX_ID)
        orch.dispatch(sm.TAX_ID, ANA, sm.HAS_EXISTING_PLAN)
        orch.dispatch(sm.HAS_EXISTING_PLAN, ANA.with_value("hasExistingPlan", False), sm.MAIN_DIFFICULTY)
        await orch.drain()

    asyncio.run(scenario())
    assert len(store.ops("update")) == 2
    assert [n.code for n in sink] == [notices.PERSISTENCE_FAILED, notices.PERSISTENCE_FAILED]
