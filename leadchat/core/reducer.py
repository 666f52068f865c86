from dataclasses import dataclass, replace
from typing import Union

from leadchat.core.formatting import format_input
from leadchat.store.models import CollectedData, ConversationState, Message


@dataclass(frozen=True)
class SetDraftInput:
    text: str


@dataclass(frozen=True)
class BeginAsync:
    pass


@dataclass(frozen=True)
class EndAsync:
    pass


@dataclass(frozen=True)
class AppendMessage:
    message: Message


@dataclass(frozen=True)
class SetRecordId:
    record_id: str


@dataclass(frozen=True)
class Advance:
    next_step: str
    data: CollectedData


Action = Union[SetDraftInput, BeginAsync, EndAsync, AppendMessage, SetRecordId, Advance]


def reduce(state: ConversationState, action: Action) -> ConversationState:
    """Pure transition; the input state is never modified."""
    if isinstance(action, SetDraftInput):
        return replace(state, draftInput=format_input(state.currentStep, action.text))
    if isinstance(action, BeginAsync):
        return replace(state, awaitingAsync=True)
    if isinstance(action, EndAsync):
        return replace(state, awaitingAsync=False)
    if isinstance(action, AppendMessage):
        return replace(state, transcript=state.transcript + (action.message,))
    if isinstance(action, SetRecordId):
        return replace(state, recordId=action.record_id)
    if isinstance(action, Advance):
        return replace(state, currentStep=action.next_step, data=action.data, draftInput="")
    return state
