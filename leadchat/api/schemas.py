from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

Origin = Literal["user", "system"]


class MessageOut(BaseModel):
    origin: Origin
    text: str
    options: List[str] = Field(default_factory=list)


class NoticeOut(BaseModel):
    level: str
    code: str
    text: str


class SessionView(BaseModel):
    sessionId: str
    currentStep: str
    draftInput: str = ""
    recordId: Optional[str] = None
    awaitingAsync: bool = False
    progress: float
    progressPercent: int
    placeholder: str
    acceptingInput: bool
    closed: bool = False
    transcript: List[MessageOut] = Field(default_factory=list)
    notices: List[NoticeOut] = Field(default_factory=list)


class DraftRequest(BaseModel):
    text: str = ""


class SubmitRequest(BaseModel):
    # A clicked suggestion; when absent the current draft is submitted
    option: Optional[str] = None
    # Convenience for API clients: set the draft and submit in one call
    text: Optional[str] = None


class SubmitResponse(BaseModel):
    accepted: bool
    step: str
    notice: Optional[NoticeOut] = None
    session: SessionView


class RecordOut(BaseModel):
    recordId: str
    record: Optional[Dict[str, Any]] = None
