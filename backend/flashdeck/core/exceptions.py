"""
Flashdeck - Domain Errors
Every error carries the message shown to the user and the HTTP status the
routers answer with.
"""
from fastapi import status


class FlashdeckError(Exception):
    """Base error for all domain failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ============================================================================
# Access
# ============================================================================

class UnauthorizedError(FlashdeckError):
    """No identity on the request."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(FlashdeckError):
    """Identity present, ownership check failed."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden: You don't have access to this deck"


class ResourceNotFoundError(ForbiddenError):
    """Ownership-scoped lookup found nothing (missing or not owned)."""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Deck not found or access denied"


class PlanLimitExceededError(FlashdeckError):
    """Entitlement flags deny the action."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "This action is not available on your plan."


class ValidationError(FlashdeckError):
    """Malformed input."""
    status_code = 422
    default_message = "Invalid input."


# ============================================================================
# Text-generation provider
# ============================================================================

class ProviderError(FlashdeckError):
    """Base for failures of the text-generation provider."""
    status_code = status.HTTP_502_BAD_GATEWAY


class ProviderConfigError(ProviderError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = (
        "OpenAI API key is not configured. "
        "Please add OPENAI_API_KEY to your environment variables."
    )


class ProviderFormatError(ProviderError):
    default_message = (
        "AI response format error. This might be a temporary issue. "
        "Please try again, or if the problem persists, try editing your deck "
        "description to be more specific."
    )


class ProviderAuthError(ProviderError):
    default_message = (
        "OpenAI API key is invalid or not configured. "
        "Please check your OPENAI_API_KEY environment variable."
    )


class ProviderQuotaError(ProviderError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = (
        "OpenAI API quota exceeded or billing issue. "
        "Please check your OpenAI account."
    )


class ProviderRateLimitError(ProviderError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "OpenAI API rate limit reached. Please try again in a few moments."


class ProviderGenericError(ProviderError):
    default_message = "Failed to generate flashcards with AI. Please try again."


class CountMismatchError(ProviderError):
    """Generation returned fewer cards than required."""
    default_message = "AI did not generate any flashcards. Please try again."

    def __init__(self, actual: int = 0, expected: int = 20, message: str | None = None):
        self.actual = actual
        self.expected = expected
        if message is None and actual > 0:
            message = (
                f"AI generated only {actual} cards instead of {expected}. "
                "This is likely a temporary issue. Please try generating again."
            )
        super().__init__(message)
