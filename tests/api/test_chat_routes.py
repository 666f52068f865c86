import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from conftest import FakeNotifier, FakeStore, make_verifier
from leadchat.api.routes import get_registry
from leadchat.core.reducer import BeginAsync
from leadchat.lookup.client import VerificationResult
from leadchat.main import app
from leadchat.settings import settings
from leadchat.store.session_registry import SessionRegistry


@pytest.fixture
def registry(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "")
    reg = SessionRegistry(FakeStore(), FakeNotifier(), verifier=make_verifier())
    app.dependency_overrides[get_registry] = lambda: reg
    yield reg
    app.dependency_overrides = {}


def test_create_session_returns_greeting_and_first_question(registry):
    with TestClient(app) as client:
        resp = client.post("/api/chat/sessions")

    assert resp.status_code == 200
    body = resp.json()
    assert body["currentStep"] == "name"
    assert body["acceptingInput"] is True
    assert [m["origin"] for m in body["transcript"]] == ["system", "system"]
    assert len(registry) == 1


def test_draft_is_masked_and_submit_advances(registry):
    with TestClient(app) as client:
        sid = client.post("/api/chat/sessions").json()["sessionId"]

        r = client.post(f"/api/chat/sessions/{sid}/submit", json={"text": "Ana"})
        assert r.json()["accepted"] is True
        assert r.json()["step"] == "phone"

        r = client.put(f"/api/chat/sessions/{sid}/draft", json={"text": "11999998888"})
        assert r.json()["draftInput"] == "(11) 99999-8888"

        r = client.post(f"/api/chat/sessions/{sid}/submit", json={})
        body = r.json()
        assert body["accepted"] is True
        assert body["session"]["currentStep"] == "taxId"
        assert body["session"]["transcript"][-2]["text"] == "(11) 99999-8888"


def test_invalid_answer_returns_notice(registry):
    with TestClient(app) as client:
        sid = client.post("/api/chat/sessions").json()["sessionId"]
        r = client.post(f"/api/chat/sessions/{sid}/submit", json={"text": " "})

    body = r.json()
    assert r.status_code == 200
    assert body["accepted"] is False
    assert body["notice"]["code"] == "validation"
    assert body["session"]["currentStep"] == "name"


def test_rejected_tax_id_keeps_step(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "")
    reg = SessionRegistry(FakeStore(), FakeNotifier(), verifier=make_verifier(VerificationResult(is_valid=False)))
    app.dependency_overrides[get_registry] = lambda: reg
    try:
        with TestClient(app) as client:
            sid = client.post("/api/chat/sessions").json()["sessionId"]
            client.post(f"/api/chat/sessions/{sid}/submit", json={"text": "Ana"})
            client.post(f"/api/chat/sessions/{sid}/submit", json={"text": "11999998888"})
            r = client.post(f"/api/chat/sessions/{sid}/submit", json={"text": "11222333000181"})
    finally:
        app.dependency_overrides = {}

    body = r.json()
    assert body["accepted"] is False
    assert body["notice"]["code"] == "verification_rejected"
    assert body["session"]["currentStep"] == "taxId"
    assert body["session"]["draftInput"] == "11.222.333/0001-81"


def test_option_submit_on_plan_question(registry):
    with TestClient(app) as client:
        sid = client.post("/api/chat/sessions").json()["sessionId"]
        for text in ("Ana", "11999998888", "11222333000181"):
            client.post(f"/api/chat/sessions/{sid}/submit", json={"text": text})
        view = client.get(f"/api/chat/sessions/{sid}").json()
        assert view["transcript"][-1]["options"] == ["Sim", "Não"]

        r = client.post(f"/api/chat/sessions/{sid}/submit", json={"option": "Não"})

    assert r.json()["session"]["currentStep"] == "mainDifficulty"


def test_unknown_session_is_404(registry):
    with TestClient(app) as client:
        assert client.get("/api/chat/sessions/nope").status_code == 404
        assert client.post("/api/chat/sessions/nope/submit", json={}).status_code == 404
        assert client.delete("/api/chat/sessions/nope").status_code == 404


def test_closed_session_is_gone(registry):
    with TestClient(app) as client:
        sid = client.post("/api/chat/sessions").json()["sessionId"]
        r = client.delete(f"/api/chat/sessions/{sid}")
        assert r.json() == {"sessionId": sid, "closed": True}
        assert client.get(f"/api/chat/sessions/{sid}").status_code == 404


def test_api_key_enforced_when_configured(registry, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "secret")
    with TestClient(app) as client:
        assert client.post("/api/chat/sessions").status_code == 401
        assert client.post("/api/chat/sessions", headers={"x-api-key": "secret"}).status_code == 200


def test_health():
    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}


def test_admin_record_lookup(registry, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_RBAC_ENABLED", True)
    monkeypatch.setattr(settings, "ADMIN_API_KEY", "adm")
    registry.store.records["rec-1"] = {"name": "Ana", "status": "complete"}

    with TestClient(app) as client:
        assert client.get("/admin/records/rec-1").status_code == 403
        r = client.get("/admin/records/rec-1", headers={"x-admin-key": "adm"})
        assert r.json() == {"recordId": "rec-1", "record": {"name": "Ana", "status": "complete"}}
        assert client.get("/admin/records/ghost", headers={"x-admin-key": "adm"}).status_code == 404


def test_admin_metrics(registry, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_RBAC_ENABLED", False)
    with patch("leadchat.observability.metrics.snapshot", AsyncMock(return_value={"notice:sent": 3})):
        with TestClient(app) as client:
            client.post("/api/chat/sessions")
            r = client.get("/admin/metrics")

    assert r.json() == {"liveSessions": 1, "counters": {"notice:sent": 3}}


def test_busy_submit_keeps_in_flight_draft(registry):
    with TestClient(app) as client:
        sid = client.post("/api/chat/sessions").json()["sessionId"]

        convo = registry.get(sid)
        convo.set_draft_input("Ana")
        convo.dispatch(BeginAsync())

        r = client.post(f"/api/chat/sessions/{sid}/submit", json={"text": "Beatriz"})

    body = r.json()
    assert body["accepted"] is False
    assert body["notice"]["code"] == "busy"
    assert body["session"]["draftInput"] == "Ana"
    assert body["session"]["currentStep"] == "name"
