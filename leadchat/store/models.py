from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

from leadchat.core import state_machine as sm

USER = "user"
SYSTEM = "system"


@dataclass(frozen=True)
class Message:
    origin: str  # user/system
    text: str
    options: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"origin": self.origin, "text": self.text, "options": list(self.options)}


@dataclass(frozen=True)
class CollectedData:
    # Field names match the persisted lead record
    name: Optional[str] = None
    phone: Optional[str] = None  # digits only
    taxId: Optional[str] = None  # digits only
    hasExistingPlan: Optional[bool] = None
    # Only present when hasExistingPlan is True
    currentPlanName: Optional[str] = None
    currentPlanCost: Optional[str] = None  # decimal string, e.g. "350.00"
    mainDifficulty: Optional[str] = None
    # Registry payload for the verified taxId; provider-defined shape
    enrichmentRecord: Optional[Dict[str, Any]] = None

    def with_value(self, name: str, value: Any) -> "CollectedData":
        return replace(self, **{name: value})

    def snapshot(self) -> Dict[str, Any]:
        """Set fields only; unset (None) fields are left out."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class ConversationState:
    currentStep: str = sm.NAME
    draftInput: str = ""
    recordId: Optional[str] = None
    data: CollectedData = field(default_factory=CollectedData)
    transcript: Tuple[Message, ...] = ()
    # Set while a lookup or a typing pause is in flight; gates duplicate submits
    awaitingAsync: bool = False


def initial_state(greeting: str) -> ConversationState:
    return ConversationState(transcript=(Message(origin=SYSTEM, text=greeting),))
