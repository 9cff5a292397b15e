from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

import pytest

from chatstack.settings import InMemoryKeyValueStore


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=None):
        self.status_code = status_code
        if content is None:
            content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        self.content = content


class FakeSession:
    """Stands in for ``requests.Session`` and records every request."""

    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.calls = []

    def request(self, method, url, data=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "data": data,
                "headers": headers,
                "timeout": timeout,
                "json": json.loads(data) if data else None,
            }
        )
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def settings():
    return InMemoryKeyValueStore()
