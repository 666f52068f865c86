"""
Conversation State Machine
--------------------------
Owns the authoritative ConversationState for one intake session. State only
changes through `dispatch(action)` (see core.reducer); `submit()` is the single
orchestration that validates an answer, verifies the CNPJ, commits, advances,
hands the step to the persistence orchestrator and renders the next prompt.

INVARIANTS:
- A rejected answer (local format, registry rejection or registry outage)
  leaves currentStep, draftInput, transcript and data untouched.
- awaitingAsync is the only concurrency guard: a submit arriving while it is
  set is refused.
- After close(), every dispatch is a no-op; background persistence keeps
  running detached.
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from leadchat.core import notices
from leadchat.core import state_machine as sm
from leadchat.core.errors import ValidationError, VerificationRejected, VerificationUnavailable
from leadchat.core.formatting import format_input, input_placeholder, is_valid, normalize_value
from leadchat.core.persistence import PersistenceOrchestrator
from leadchat.core.reducer import (
    Action,
    AppendMessage,
    Advance,
    BeginAsync,
    EndAsync,
    SetDraftInput,
    SetRecordId,
    reduce,
)
from leadchat.core.step_graph import greeting, next_step, prompt
from leadchat.lookup.client import VerificationResult, display_name, summarize_enrichment, verify_tax_id
from leadchat.notify.notifier import Notifier
from leadchat.observability.logging import log
from leadchat.settings import settings
from leadchat.store.models import SYSTEM, USER, ConversationState, Message, initial_state
from leadchat.store.record_repo import RecordStore

Verifier = Callable[[str], Awaitable[VerificationResult]]


@dataclass(frozen=True)
class SubmitResult:
    accepted: bool
    step: str
    notice: Optional[notices.Notice] = None


class Conversation:
    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        *,
        session_id: Optional[str] = None,
        verifier: Verifier = verify_tax_id,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.state: ConversationState = initial_state(greeting())
        self.notices: List[notices.Notice] = []
        self.closed = False
        self._verifier = verifier
        self.persistence = PersistenceOrchestrator(
            store,
            notifier,
            session_id=self.session_id,
            on_record_id=lambda rid: self.dispatch(SetRecordId(rid)),
            on_notice=self._notify,
        )

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    def dispatch(self, action: Action) -> ConversationState:
        if self.closed:
            return self.state
        self.state = reduce(self.state, action)
        return self.state

    def _notify(self, notice: notices.Notice) -> None:
        log(event="notice", sessionId=self.session_id, code=notice.code, level=notice.level, closed=self.closed)
        if not self.closed:
            self.notices.append(notice)

    def _reject(self, code: str, **params) -> SubmitResult:
        notice = notices.make_notice(code, **params)
        self._notify(notice)
        return SubmitResult(accepted=False, step=self.state.currentStep, notice=notice)

    @property
    def accepting_input(self) -> bool:
        return not self.closed and self.state.currentStep != sm.DONE

    def view(self) -> Dict[str, Any]:
        """Everything a renderer needs to draw the chat."""
        st = self.state
        return {
            "sessionId": self.session_id,
            "currentStep": st.currentStep,
            "draftInput": st.draftInput,
            "recordId": st.recordId,
            "awaitingAsync": st.awaitingAsync,
            "progress": sm.progress(st.currentStep),
            "progressPercent": sm.progress_percent(st.currentStep),
            "placeholder": input_placeholder(st.currentStep),
            "acceptingInput": self.accepting_input,
            "closed": self.closed,
            "transcript": [m.to_dict() for m in st.transcript],
            "notices": [{"level": n.level, "code": n.code, "text": n.text} for n in self.notices],
        }

    # ------------------------------------------------------------------
    # Host events
    # ------------------------------------------------------------------
    def set_draft_input(self, text: str) -> str:
        return self.dispatch(SetDraftInput(text)).draftInput

    async def start(self) -> None:
        """Render the first question after the seeded greeting."""
        await self._render_prompt(self.state.currentStep)

    def close(self) -> None:
        if not self.closed:
            log(event="conversation_closed", sessionId=self.session_id, step=self.state.currentStep)
        self.closed = True

    async def drain(self) -> None:
        await self.persistence.drain()

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------
    async def submit(self, option: Optional[str] = None, text: Optional[str] = None) -> SubmitResult:
        """
        Submit a clicked option, or the draft. `text`, when given without an
        option, replaces the draft first, but only once the submit is past
        the busy/closed guards.
        """
        if self.closed:
            return self._reject(notices.CLOSED)
        if self.state.awaitingAsync:
            return self._reject(notices.BUSY)
        if self.state.currentStep == sm.DONE:
            return self._reject(notices.CLOSED)
        if option is None and text is not None:
            self.set_draft_input(text)

        step = self.state.currentStep
        raw = option if option is not None else self.state.draftInput
        value = format_input(step, raw or "")

        try:
            if not value.strip() or not is_valid(step, value):
                raise ValidationError(step)
            enrichment = await self._verify(step, value) if step == sm.TAX_ID else None
        except ValidationError:
            log(event="answer_invalid", sessionId=self.session_id, step=step)
            return self._reject(notices.VALIDATION)
        except VerificationUnavailable:
            return self._reject(notices.VERIFICATION_UNAVAILABLE)
        except VerificationRejected:
            return self._reject(notices.VERIFICATION_REJECTED)

        if self.closed:
            return SubmitResult(accepted=False, step=step)

        data = self.state.data
        if enrichment is not None:
            data = data.with_value("enrichmentRecord", enrichment)
            self.dispatch(AppendMessage(Message(origin=SYSTEM, text=summarize_enrichment(enrichment))))
            self._notify(notices.make_notice(notices.VERIFIED, company=display_name(enrichment)))
        elif step == sm.TAX_ID:
            self._notify(notices.make_notice(notices.VERIFIED_NO_DETAILS))

        self.dispatch(AppendMessage(Message(origin=USER, text=value)))
        data = data.with_value(sm.STEP_FIELD[step], normalize_value(step, value))
        following = next_step(step, data)
        self.dispatch(Advance(following, data))
        log(event="step_committed", sessionId=self.session_id, step=step, nextStep=following)

        self.persistence.dispatch(step, data, following)
        await self._render_prompt(following)
        return SubmitResult(accepted=True, step=following)

    async def _verify(self, step: str, value: str) -> Optional[Dict[str, Any]]:
        self.dispatch(BeginAsync())
        try:
            result = await self._verifier(value)
        except VerificationUnavailable:
            log(event="tax_id_unavailable", sessionId=self.session_id)
            raise
        except Exception as e:
            # Any other lookup failure is an outage too; nothing escapes submit
            log(event="tax_id_lookup_error", sessionId=self.session_id, errorType=type(e).__name__, error=str(e)[:300])
            raise VerificationUnavailable(str(e)) from e
        finally:
            self.dispatch(EndAsync())
        if not result.is_valid:
            log(event="tax_id_rejected", sessionId=self.session_id)
            raise VerificationRejected(value)
        return result.enrichment

    async def _render_prompt(self, step: str) -> None:
        p = prompt(step, self.state.data)
        if not p.text:
            return
        delay = float(settings.TYPING_DELAY_SEC or 0)
        if delay > 0:
            self.dispatch(BeginAsync())
            try:
                await asyncio.sleep(delay)
            finally:
                self.dispatch(EndAsync())
        self.dispatch(AppendMessage(Message(origin=SYSTEM, text=p.text, options=p.options)))
