"""Tests for the HTTP sender and its retry policy."""

import io
import json
import socket
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from theanalyticsapi.core.errors import TransportError
from theanalyticsapi.core.events import Batch
from theanalyticsapi.sender import HTTPSender, RetryPolicy, SenderConfig

URLOPEN = "theanalyticsapi.sender.http_sender.urlopen"


def ok_response(status=200):
    response = MagicMock()
    response.__enter__.return_value.status = status
    return response


def http_error(code, reason):
    return HTTPError("https://collector.test/api/track/events", code, reason, {}, io.BytesIO(b'{"error": "nope"}'))


def make_batch():
    when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return Batch(messages=({"event": "A", "userId": "u1", "timestamp": when},), timestamp=when, sent_at=when)


def make_sender(max_retries=3, timeout=None):
    delays = []
    config = SenderConfig(
        host="https://collector.test",
        write_key="wk_123",
        user_agent="theanalyticsapi-client-python/1.0.8",
        timeout_seconds=timeout,
        max_retries=max_retries,
    )
    policy = RetryPolicy(max_retries=max_retries, backoff_base=0.1, backoff_max=10.0, jitter=0.0)
    return HTTPSender(config, retry_policy=policy, sleep=delays.append), delays


@pytest.mark.parametrize(
    "error, expected",
    [
        (TransportError(503, "Service Unavailable"), True),
        (TransportError(500, "Server Error"), True),
        (TransportError(599, "Weird"), True),
        (TransportError(429, "Too Many Requests"), True),
        (TransportError(404, "Not Found"), False),
        (TransportError(400, "Bad Request"), False),
        (TransportError(401, "Unauthorized"), False),
        (http_error(502, "Bad Gateway"), True),
        (http_error(403, "Forbidden"), False),
        (URLError("Name or service not known"), True),
        (ConnectionResetError(), True),
        (socket.timeout("timed out"), True),
        (ValueError("not a network problem"), False),
    ],
)
def test_retry_classification(error, expected):
    assert RetryPolicy().is_retryable(error) is expected


def test_backoff_grows_exponentially_and_is_capped():
    policy = RetryPolicy(backoff_base=0.5, backoff_max=3.0, jitter=0.0)

    assert [policy.delay(attempt) for attempt in range(5)] == [0.5, 1.0, 2.0, 3.0, 3.0]


def test_backoff_jitter_stays_bounded():
    policy = RetryPolicy(backoff_base=1.0, backoff_max=10.0, jitter=0.2)

    for _ in range(50):
        assert 1.0 <= policy.delay(0) <= 1.2


def test_request_shape():
    """POST to the track endpoint with client and write-key headers."""
    sender, _ = make_sender(timeout=2.5)

    with patch(URLOPEN, return_value=ok_response()) as mock_urlopen:
        sender.send_batch(make_batch())

    request = mock_urlopen.call_args[0][0]
    assert request.full_url == "https://collector.test/api/track/events"
    assert request.get_method() == "POST"
    assert request.get_header("Api_key") == "wk_123"
    assert request.get_header("User-agent") == "theanalyticsapi-client-python/1.0.8"
    assert request.get_header("Content-type") == "application/json"
    assert mock_urlopen.call_args[1] == {"timeout": 2.5}

    body = json.loads(request.data.decode("utf-8"))
    assert body["batch"] == [{"event": "A", "userId": "u1", "timestamp": "2024-05-01T12:00:00+00:00"}]
    assert body["timestamp"] == "2024-05-01T12:00:00+00:00"
    assert body["sentAt"] == "2024-05-01T12:00:00+00:00"


def test_no_timeout_by_default():
    sender, _ = make_sender()

    with patch(URLOPEN, return_value=ok_response()) as mock_urlopen:
        sender.send_batch(make_batch())

    assert mock_urlopen.call_args[1] == {}


def test_transient_failure_is_retried_transparently():
    sender, delays = make_sender()

    with patch(URLOPEN, side_effect=[http_error(503, "Service Unavailable"), URLError("reset"), ok_response()]) as mock_urlopen:
        sender.send_batch(make_batch())

    assert mock_urlopen.call_count == 3
    assert delays == [0.1, 0.2]
    stats = sender.get_stats()
    assert stats["total_batches_sent"] == 1
    assert stats["total_retries"] == 2


def test_client_error_is_not_retried():
    sender, delays = make_sender()

    with patch(URLOPEN, side_effect=http_error(404, "Not Found")) as mock_urlopen:
        with pytest.raises(TransportError) as exc_info:
            sender.send_batch(make_batch())

    assert mock_urlopen.call_count == 1
    assert delays == []
    assert exc_info.value.status == 404
    assert exc_info.value.status_text == "Not Found"
    assert exc_info.value.response_body == '{"error": "nope"}'


def test_retries_are_exhausted():
    sender, delays = make_sender(max_retries=2)

    with patch(URLOPEN, side_effect=http_error(500, "Server Error")) as mock_urlopen:
        with pytest.raises(TransportError, match="Server Error"):
            sender.send_batch(make_batch())

    assert mock_urlopen.call_count == 3
    assert len(delays) == 2
    assert sender.get_stats()["total_batches_failed"] == 1


def test_network_error_surfaces_after_retries():
    sender, _ = make_sender(max_retries=1)

    with patch(URLOPEN, side_effect=URLError("Name or service not known")) as mock_urlopen:
        with pytest.raises(URLError):
            sender.send_batch(make_batch())

    assert mock_urlopen.call_count == 2
