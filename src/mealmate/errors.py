"""
MealMate - Error taxonomy.

Every failure the core surfaces carries a plain-language message for the
user. Raw provider bodies are kept on the exception for logging only.

Retry policy:
- QuotaExceededError (HTTP 429/402) is the only retryable class
- Everything else fails fast and lets the caller decide
"""

# =============================================================================
# Status code -> user message table
# =============================================================================

STATUS_MESSAGES: dict[int, str] = {
    401: "The recipe service rejected the API key. Check your key in your profile.",
    402: "The recipe service quota for today has been used up. Please try again later.",
    404: "That recipe could not be found.",
    429: "Too many recipe requests right now. Please wait a minute and try again.",
}

SERVER_ERROR_MESSAGE = "The recipe service is having problems. Please try again later."
GENERIC_MESSAGE = "Something went wrong. Please try again."

QUOTA_STATUS_CODES = frozenset({402, 429})


class MealMateError(Exception):
    """Base class for errors that carry a user-facing message."""

    user_message: str = GENERIC_MESSAGE

    def __init__(self, message: str | None = None, *, user_message: str | None = None):
        super().__init__(message or user_message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ProviderError(MealMateError):
    """Non-2xx response from the recipe provider."""

    def __init__(self, status_code: int, body: str = "", url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(
            f"Recipe provider returned HTTP {status_code}",
            user_message=message_for_status(status_code),
        )


class QuotaExceededError(ProviderError):
    """HTTP 429 (rate limited) or 402 (plan quota used up)."""


class InvalidResponseError(MealMateError):
    """Provider response is missing fields the gateway depends on."""

    user_message = "The recipe service sent an unexpected response. Please try again later."


class NoResultsFoundError(MealMateError):
    """Every relaxation tier came back empty."""

    def __init__(self, period: str):
        self.period = period
        super().__init__(
            f"No {period} recipes found after relaxing all constraints",
            user_message=(
                f"Unable to find {period} recipes matching your preferences. "
                "Try adjusting your dietary restrictions."
            ),
        )


class AuthenticationRequiredError(MealMateError):
    """No signed-in user."""

    user_message = "Please log in to continue."


class PersistenceError(MealMateError):
    """Document store read or write failed."""

    user_message = "We couldn't save your changes. Please try again."


class InvalidRequestError(MealMateError):
    """Caller input rejected before any work is done."""


# =============================================================================
# Helpers
# =============================================================================


def message_for_status(status_code: int) -> str:
    """Plain-language message for a provider HTTP status."""
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    if status_code >= 500:
        return SERVER_ERROR_MESSAGE
    return GENERIC_MESSAGE


def provider_error(status_code: int, body: str = "", url: str = "") -> ProviderError:
    """Build the right ProviderError subclass for a status code."""
    if status_code in QUOTA_STATUS_CODES:
        return QuotaExceededError(status_code, body, url)
    return ProviderError(status_code, body, url)


def is_quota_error(exc: BaseException) -> bool:
    """True for failures the retry policy should back off and retry."""
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status in QUOTA_STATUS_CODES


def user_message_for(exc: BaseException) -> str:
    """Translate any exception into text that is safe to show a user."""
    if isinstance(exc, MealMateError):
        return exc.user_message
    status = getattr(getattr(exc, "response", None), "status_code", None)
    if isinstance(status, int):
        return message_for_status(status)
    return GENERIC_MESSAGE
