from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from leadchat.api.auth import require_api_key
from leadchat.api.schemas import DraftRequest, SessionView, SubmitRequest, SubmitResponse
from leadchat.core.conversation import Conversation
from leadchat.notify.notifier import build_notifier
from leadchat.store.record_repo import RedisRecordStore
from leadchat.store.session_registry import SessionRegistry

router = APIRouter(prefix="/api/chat", dependencies=[Depends(require_api_key)])

_registry: Optional[SessionRegistry] = None


def get_registry() -> SessionRegistry:
    global _registry
    if _registry is None:
        store = RedisRecordStore()
        _registry = SessionRegistry(store, build_notifier(store))
    return _registry


def _conversation(session_id: str, registry: SessionRegistry) -> Conversation:
    convo = registry.get(session_id)
    if convo is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return convo


@router.post("/sessions", response_model=SessionView)
async def create_session(registry: SessionRegistry = Depends(get_registry)):
    convo = registry.create()
    await convo.start()
    return convo.view()


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _conversation(session_id, registry).view()


@router.put("/sessions/{session_id}/draft", response_model=SessionView)
async def set_draft(session_id: str, body: DraftRequest, registry: SessionRegistry = Depends(get_registry)):
    convo = _conversation(session_id, registry)
    convo.set_draft_input(body.text)
    return convo.view()


@router.post("/sessions/{session_id}/submit", response_model=SubmitResponse)
async def submit(session_id: str, body: SubmitRequest, registry: SessionRegistry = Depends(get_registry)):
    convo = _conversation(session_id, registry)
    result = await convo.submit(body.option, text=body.text)
    notice = None
    if result.notice is not None:
        notice = {"level": result.notice.level, "code": result.notice.code, "text": result.notice.text}
    return {"accepted": result.accepted, "step": result.step, "notice": notice, "session": convo.view()}


@router.delete("/sessions/{session_id}")
async def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    if not registry.close(session_id):
        raise HTTPException(status_code=404, detail="Unknown session")
    return {"sessionId": session_id, "closed": True}
