# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 14:05
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Error taxonomy of the translation pipeline
"""
from typing import Type

from models import TranslationMode


class TranslatorBotError(Exception):
    """Base class for every error raised by the bot itself."""


class InvalidTranslation(TranslatorBotError):
    """The completion was empty, unparseable or failed validation. Always retried."""


class TranslationFailed(TranslatorBotError):
    """All translation attempts are exhausted."""

    def __init__(self, mode: TranslationMode, last_error: BaseException | None = None):
        self.mode = mode
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        if mode == TranslationMode.WITH_HISTORY:
            message = "Failed to get valid translation with history after maximum retries"
        else:
            message = "Failed to get valid translation after maximum retries"
        super().__init__(f"{message}{detail}")

    @property
    def status_code(self) -> int | None:
        return getattr(self.last_error, "status_code", None)


class ProviderError(TranslatorBotError):
    """Transport-level failure of the completion provider."""

    status_code: int | None = None
    category = "translation error"
    log_level = "ERROR"

    def __init__(self, message: str = "", status_code: int | None = None):
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message or self.category)


class ProviderRateLimited(ProviderError):
    status_code = 429
    category = "rate limit"
    log_level = "WARNING"


class ProviderUnavailable(ProviderError):
    status_code = 503
    category = "service unavailable"
    log_level = "WARNING"


class ProviderAuthFailed(ProviderError):
    status_code = 401


class ProviderServerError(ProviderError):
    pass


class PersistenceFailure(TranslatorBotError):
    """Writing a message to the database API failed. Logged, never surfaced or retried."""


class BackendRequestError(TranslatorBotError):
    """The Q&A or project-context endpoint failed."""


class AttachmentTooLarge(TranslatorBotError):
    def __init__(self, size: int, max_size_mb: int):
        self.size = size
        self.max_size_mb = max_size_mb
        super().__init__(f"Audio file too large. Maximum size is {max_size_mb}MB")


class TranscriptionFailed(TranslatorBotError):
    pass


class DeliveryFailed(TranslatorBotError):
    """Posting a finished translation failed part way through."""

    def __init__(self, cause: BaseException, pending_files: list, original_deleted: bool):
        self.cause = cause
        self.pending_files = pending_files
        self.original_deleted = original_deleted
        super().__init__(str(cause))


_STATUS_CLASSES: dict[int, Type[ProviderError]] = {
    429: ProviderRateLimited,
    503: ProviderUnavailable,
    401: ProviderAuthFailed,
}


def extract_status_code(error: BaseException | None) -> int | None:
    """Status code of an error, looking through TranslationFailed to the last attempt."""
    if error is None:
        return None
    if isinstance(error, TranslationFailed):
        return error.status_code
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    return status if isinstance(status, int) else None


def classify_provider_error(error: BaseException | None) -> ProviderError | None:
    """Map an exception carrying an HTTP status onto the provider taxonomy."""
    if isinstance(error, ProviderError):
        return error
    if isinstance(error, TranslationFailed):
        return classify_provider_error(error.last_error)

    status = extract_status_code(error)
    if status is None:
        return None
    if error_class := _STATUS_CLASSES.get(status):
        return error_class(str(error), status_code=status)
    if status >= 500:
        return ProviderServerError(str(error), status_code=status)
    return ProviderError(str(error), status_code=status)


def describe_failure(error: BaseException | None) -> str:
    """User-facing category of a failure, never containing message content."""
    classified = classify_provider_error(error)
    if classified is None:
        return ProviderError.category
    return classified.category
