"""Error taxonomy shared by the domain modules and the HTTP layer.

Every failure a caller can observe is one of these classes. The API renders
them as ``{"error": message}`` with ``status_code``; nothing in the core
retries on its own.
"""

from __future__ import annotations

from fastapi import status


class FlashdeckError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Unexpected error"
    # Local input problems are not system errors and are not logged as such
    log_as_error: bool = True

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(FlashdeckError, ValueError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"
    log_as_error = False


class InvalidInput(ValidationFailed):
    """Server-side re-validation failure (bad topic, empty commit...)."""


class AuthenticationRequired(FlashdeckError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class AuthorizationDenied(FlashdeckError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not own this set"


class SetNotFound(FlashdeckError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Learning set not found"
    log_as_error = False


class CardNotFound(FlashdeckError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Flashcard not found"
    log_as_error = False


class SessionNotFound(FlashdeckError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Learning session not found"
    log_as_error = False


class DraftNotFound(FlashdeckError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Draft not found"
    log_as_error = False


class GenerationInProgress(FlashdeckError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "A generation is already running for this set"


class InvalidSessionState(FlashdeckError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Action not allowed in the current session state"
    log_as_error = False


class NoCards(FlashdeckError):
    status_code = 422
    default_message = "No cards to study"
    log_as_error = False


class RateLimited(FlashdeckError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class QuotaExhausted(FlashdeckError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "AI credits exhausted. Please top up your quota."


class UpstreamMalformed(FlashdeckError):
    default_message = "Invalid response from the AI service"


class UpstreamUnknown(FlashdeckError):
    default_message = "Failed to generate flashcards"


class PersistenceFailure(FlashdeckError):
    default_message = "Storage operation failed"


__all__ = [
    "FlashdeckError",
    "ValidationFailed",
    "InvalidInput",
    "AuthenticationRequired",
    "AuthorizationDenied",
    "SetNotFound",
    "CardNotFound",
    "SessionNotFound",
    "DraftNotFound",
    "GenerationInProgress",
    "InvalidSessionState",
    "NoCards",
    "RateLimited",
    "QuotaExhausted",
    "UpstreamMalformed",
    "UpstreamUnknown",
    "PersistenceFailure",
]
