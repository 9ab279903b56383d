"""Shared fixtures for the analytics client tests."""

import threading

import pytest

from theanalyticsapi import TheAnalyticsAPI
from theanalyticsapi.core.events import noop


class FakeSender:
    """Records delivered batches instead of talking to a collector."""

    def __init__(self, error=None):
        self.error = error
        self.batches = []
        self.threads = []
        self._lock = threading.Lock()

    def send_batch(self, batch):
        with self._lock:
            self.batches.append(batch)
            self.threads.append(threading.current_thread())
        if self.error is not None:
            raise self.error

    def events(self):
        """Event names per delivered batch."""
        return [[message["event"] for message in batch.messages] for batch in self.batches]


def drain(client, timeout=5.0):
    """Wait until every delivery scheduled so far has finished."""
    client.batcher.defer(noop).result(timeout=timeout)


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def make_client(sender):
    clients = []

    def factory(**options):
        options.setdefault("sender", sender)
        options.setdefault("flush_interval", 0)
        client = TheAnalyticsAPI("test-write-key", **options)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close(timeout=5.0)
