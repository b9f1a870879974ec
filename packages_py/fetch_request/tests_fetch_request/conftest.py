import httpx
import pytest

from fetch_request.body import body_content
from fetch_request.errors import TransportError


class ScriptedTransport:
    """Plays back a list of outcomes: an httpx.Response or an exception to raise."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.bodies = []

    def _next(self, request):
        self.calls += 1
        content, _ = body_content(request.body)
        self.bodies.append(content if isinstance(content, (bytes, type(None))) else b"".join(content))
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def execute(self, request):
        return self._next(request)


class AsyncScriptedTransport(ScriptedTransport):
    async def execute(self, request):
        return self._next(request)


@pytest.fixture
def scripted_transport():
    def factory(*outcomes):
        return ScriptedTransport(outcomes)
    return factory


@pytest.fixture
def async_scripted_transport():
    def factory(*outcomes):
        return AsyncScriptedTransport(outcomes)
    return factory


@pytest.fixture
def ok_response():
    return httpx.Response(200, json={"ok": True})


@pytest.fixture
def connect_error():
    return TransportError("connection refused", cause=httpx.ConnectError("connection refused"))
