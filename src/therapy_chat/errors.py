"""Errors raised by the chat core and mapped to HTTP responses by the API."""


class TherapyChatError(Exception):
    """Base class for caller-visible chat errors."""

    def __init__(self, message: str, session_id: str | None = None):
        self.message = message
        self.session_id = session_id
        super().__init__(self.message)


class Unauthenticated(TherapyChatError):
    """No resolvable caller identity."""


class SessionNotFound(TherapyChatError):
    """Session is missing or owned by someone else."""


class UserNotFound(TherapyChatError):
    """The caller's user record no longer exists."""


class InvalidMessage(TherapyChatError):
    """Message body is missing or blank."""


class ReplyProviderError(TherapyChatError):
    """The LLM provider failed while generating the reply."""


class StoreUnavailable(TherapyChatError):
    """A read or write against the session store failed."""
