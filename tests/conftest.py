"""Shared fixtures: a scripted fake of the Van Nav API and client wiring."""

import json
from collections import defaultdict
from collections import deque

import httpx
import pytest

from van_nav.api import build_client
from van_nav.notices import Navigator
from van_nav.notices import NoticeBoard
from van_nav.session import SessionStore
from van_nav.storage import ClientStorage

BASE_URL = "http://api.test"


class FakeApi:
    """Answers requests from per-route queues; the last response of a queue repeats."""

    def __init__(self):
        self.routes = defaultdict(deque)
        self.requests = []

    def add(self, method, path, status=200, json_body=None, text=None):
        if text is None:
            text = "" if json_body is None else json.dumps(json_body)
        self.routes[(method.upper(), path)].append((status, text))
        return self

    def fail(self, method, path, error=httpx.ConnectError("connection refused")):
        self.routes[(method.upper(), path)].append(error)
        return self

    def calls(self, method=None, path=None):
        return [
            r for r in self.requests if (method is None or r.method == method) and (path is None or r.url.path == path)
        ]

    def handler(self, request):
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text=json.dumps({"message": "not found"}))
        entry = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(entry, Exception):
            raise entry
        status, text = entry
        return httpx.Response(status, text=text)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def storage(tmp_path):
    store = ClientStorage(tmp_path / "client")
    yield store
    store.close()


@pytest.fixture
def session(storage):
    return SessionStore(storage)


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def client(storage, fake_api, sleep):
    """NavClient talking to the fake API with instant retries."""
    return build_client(
        storage,
        base_url=BASE_URL,
        notices=NoticeBoard(),
        navigator=Navigator(),
        transport=fake_api.transport,
        retry_delay=0.25,
        redirect_delay=1.5,
        sleep=sleep,
    )
