# -*- coding: utf-8 -*-
"""
Tests for provider error classification
"""
import pytest

from models import TranslationMode
from mybot.errors import (
    InvalidTranslation,
    ProviderAuthFailed,
    ProviderError,
    ProviderRateLimited,
    ProviderServerError,
    ProviderUnavailable,
    TranslationFailed,
    classify_provider_error,
    describe_failure,
    extract_status_code,
)


class StatusError(Exception):
    def __init__(self, status_code):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}")


@pytest.mark.parametrize(
    "status, expected_class, category",
    [
        (429, ProviderRateLimited, "rate limit"),
        (503, ProviderUnavailable, "service unavailable"),
        (401, ProviderAuthFailed, "translation error"),
        (500, ProviderServerError, "translation error"),
        (418, ProviderError, "translation error"),
    ],
)
def test_classify_by_status(status, expected_class, category):
    classified = classify_provider_error(StatusError(status))

    assert type(classified) is expected_class
    assert classified.status_code == status
    assert describe_failure(StatusError(status)) == category


def test_rate_limits_and_outages_log_as_warnings():
    assert ProviderRateLimited.log_level == "WARNING"
    assert ProviderUnavailable.log_level == "WARNING"
    assert ProviderServerError.log_level == "ERROR"


def test_translation_failed_exposes_last_status():
    error = TranslationFailed(TranslationMode.BASIC, ProviderRateLimited())

    assert error.status_code == 429
    assert extract_status_code(error) == 429
    assert describe_failure(error) == "rate limit"
    assert str(error).startswith("Failed to get valid translation after maximum retries")


def test_errors_without_status_are_generic():
    error = TranslationFailed(TranslationMode.WITH_HISTORY, InvalidTranslation("empty"))

    assert error.status_code is None
    assert classify_provider_error(error) is None
    assert describe_failure(error) == "translation error"
    assert describe_failure(None) == "translation error"
    assert "with history" in str(error)


def test_status_attribute_fallback():
    class LegacyError(Exception):
        status = 503

    assert extract_status_code(LegacyError()) == 503
