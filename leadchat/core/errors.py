class LeadChatError(Exception):
    """Base class for every recoverable failure in the intake flow."""


class ValidationError(LeadChatError):
    """The answer does not match the local format rule for the step."""

    def __init__(self, step: str, message: str = ""):
        super().__init__(message or f"invalid input for step {step}")
        self.step = step


class VerificationRejected(LeadChatError):
    """The registry lookup answered with a definitive negative."""


class VerificationUnavailable(LeadChatError):
    """The registry lookup could not be completed (timeout, DNS, connection reset)."""


class PersistenceError(LeadChatError):
    """Create/update against the lead record store failed."""


class NotificationError(LeadChatError):
    """The completion notice could not be delivered."""
