import logging

from core.config import get_settings
from core.error_handler import (
    StructuredLogger,
    _correlation_id,
    correlation_scope,
    get_correlation_id,
    redact,
)


def test_redact_masks_sensitive_keys():
    # use non-sensitive placeholder values to avoid secret-detection false positives
    data = {
        "api_key": "placeholder_key",  # pragma: allowlist secret
        "utterance": "I practiced Al-Fatiha",
        "input_chars": 21,
    }
    sanitized = redact(data)

    assert sanitized["api_key"] == "[REDACTED]"
    assert sanitized["utterance"] == "[REDACTED]"
    assert sanitized["input_chars"] == 21


def test_redact_masks_nested_values():
    data = {
        "request": {"prompt": "secret words", "kind": "combined"},
        "items": [{"token": "t"}],
    }

    sanitized = redact(data)

    assert sanitized["request"] == {"prompt": "[REDACTED]", "kind": "combined"}
    assert sanitized["items"] == [{"token": "[REDACTED]"}]


def test_correlation_scope_binds_and_restores():
    with correlation_scope("conversation-1"):
        assert get_correlation_id() == "conversation-1"
        with correlation_scope("conversation-2"):
            assert get_correlation_id() == "conversation-2"
        assert get_correlation_id() == "conversation-1"
    assert _correlation_id.get() is None


def test_correlation_id_outside_scope_is_not_bound():
    first = get_correlation_id()
    second = get_correlation_id()

    assert first != second
    assert _correlation_id.get() is None


def test_text_format_includes_correlation_and_details(caplog):
    get_settings.cache_clear()
    logger = StructuredLogger("tests.text")

    with caplog.at_level(logging.INFO, logger="tests.text"):
        with correlation_scope("conversation-2"):
            logger.info("Chat turn extracted", portions=1, content="hidden")

    record = caplog.records[-1]
    assert record.getMessage() == (
        "[conversation-2] Chat turn extracted portions=1 content=[REDACTED]"
    )
    assert record.structured_data["correlation_id"] == "conversation-2"
