"""Tests for loose event validation."""

import pytest

from theanalyticsapi.core.errors import ValidationError
from theanalyticsapi.core.validation import validate_message


def test_valid_track_message_passes():
    validate_message({"event": "Signed Up", "userId": "u1", "properties": {"plan": "pro"}})
    validate_message({"event": "Signed Up", "anonymousId": 7, "timestamp": "2024-05-01T10:00:00Z"})


@pytest.mark.parametrize(
    "message",
    [
        {"userId": "u1"},
        {"event": "", "userId": "u1"},
        {"event": 12, "userId": "u1"},
        {"event": "Signed Up"},
        {"event": "Signed Up", "userId": "", "anonymousId": None},
        {"event": "Signed Up", "userId": "u1", "properties": ["not", "a", "dict"]},
        {"event": "Signed Up", "userId": "u1", "context": "nope"},
        {"event": "Signed Up", "userId": "u1", "timestamp": "yesterday-ish"},
        {"event": "Signed Up", "userId": "u1", "messageId": 5},
    ],
)
def test_malformed_messages_are_rejected(message):
    with pytest.raises(ValidationError):
        validate_message(message, "track")


def test_non_mapping_is_rejected():
    with pytest.raises(ValidationError, match="message object"):
        validate_message(["event", "Signed Up"])


def test_identity_error_message():
    with pytest.raises(ValidationError, match="anonymousId"):
        validate_message({"event": "Signed Up"})


def test_oversized_message_is_rejected():
    message = {"event": "Big", "userId": "u1", "properties": {"blob": "x" * (33 * 1024)}}

    with pytest.raises(ValidationError, match="32kb"):
        validate_message(message)


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_message({"event": "Signed Up"})
