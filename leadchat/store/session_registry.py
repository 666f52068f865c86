import time
from typing import Dict, Optional, Tuple

from leadchat.core.conversation import Conversation, Verifier
from leadchat.lookup.client import verify_tax_id
from leadchat.notify.notifier import Notifier
from leadchat.observability.logging import log
from leadchat.settings import settings
from leadchat.store.record_repo import RecordStore


class SessionRegistry:
    """
    In-process map of live conversations. Conversation state itself is never
    persisted; closing or evicting a session only detaches it, so its
    background persistence keeps running to completion.
    """

    def __init__(self, store: RecordStore, notifier: Notifier, verifier: Verifier = verify_tax_id):
        self.store = store
        self.notifier = notifier
        self.verifier = verifier
        self._sessions: Dict[str, Tuple[Conversation, float]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> Conversation:
        self.evict_idle()
        if len(self._sessions) >= int(settings.MAX_SESSIONS):
            oldest = min(self._sessions, key=lambda sid: self._sessions[sid][1])
            self.close(oldest)
        convo = Conversation(self.store, self.notifier, verifier=self.verifier)
        self._sessions[convo.session_id] = (convo, time.monotonic())
        log(event="conversation_started", sessionId=convo.session_id, live=len(self._sessions))
        return convo

    def get(self, session_id: str) -> Optional[Conversation]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        convo = entry[0]
        self._sessions[session_id] = (convo, time.monotonic())
        return convo

    def close(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        entry[0].close()
        return True

    def evict_idle(self) -> int:
        ttl = float(settings.SESSION_IDLE_TTL_SEC or 0)
        if ttl <= 0:
            return 0
        cutoff = time.monotonic() - ttl
        stale = [sid for sid, (_, seen) in self._sessions.items() if seen < cutoff]
        for sid in stale:
            self.close(sid)
        if stale:
            log(event="conversations_evicted", count=len(stale))
        return len(stale)
