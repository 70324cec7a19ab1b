"""
Application errors for clean API error handling.

Tier failures (model, web search) are raised by the outbound clients and are
always recovered inside the answer resolver. The remaining errors are raised by
services and mapped to HTTP status codes by the API layer.
"""


class EmptyQueryError(ValueError):
    """Raised when a query is empty or whitespace-only after sanitizing."""

    def __init__(self, message: str = "Query cannot be empty") -> None:
        self.message = message
        super().__init__(message)


class TierFailure(Exception):
    """An outbound call for one resolver tier failed (timeout, non-2xx, empty result)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ModelUnavailableError(TierFailure):
    """Raised when the local model service is unreachable or returns no text."""


class SearchUnavailableError(TierFailure):
    """Raised when the web-search API call fails."""


class SearchNotConfiguredError(TierFailure):
    """Raised when the web-search API key or engine id is missing."""


class RegistrationError(ValueError):
    """Raised when registration input is invalid or the user already exists."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidCredentialsError(Exception):
    """Raised on login with an unknown username or wrong password."""


class SessionNotFoundError(LookupError):
    """Raised when a chat session id is unknown."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class UserDataError(Exception):
    """Raised when users.json exists but cannot be parsed; nothing is written over it."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
