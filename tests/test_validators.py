"""Tests for input validation helpers."""

from __future__ import annotations

import logging

import pytest

from edu_gdpr.exceptions import ValidationError
from edu_gdpr.utils.validators import sanitize_audit_message, validate_pagination


def test_rejected_page_limit_is_logged(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="edu_gdpr.utils.validators"):
        with pytest.raises(ValidationError):
            validate_pagination(10000, 0, max_limit=500)

    assert "Rejected page limit 10000 (max 500)" in caplog.text


def test_long_audit_message_is_truncated_and_logged(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="edu_gdpr.utils.validators"):
        message = sanitize_audit_message("x" * 20, max_length=10)

    assert message == "x" * 10 + "...[truncated]"
    assert "Truncating audit message of 20 characters" in caplog.text
