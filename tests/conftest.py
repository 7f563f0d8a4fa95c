import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from auth import AuthDecision, AuthVerifier
from event_names import JOIN_ROOM
from lifecycle import ConnectionManager
from registry import RoomRegistry

AUTH_BASE_URL = "http://auth.test"
VALID_TOKEN = "valid-token"


def auth_authority(request: httpx.Request) -> httpx.Response:
    if request.headers.get("Authorization") == f"Bearer {VALID_TOKEN}":
        return httpx.Response(200, json={"valid": True})
    return httpx.Response(200, json={"valid": False})


class FakeWebSocket:
    """Records what the server sends instead of writing to a socket."""

    def __init__(self):
        self.sent = []
        self.closed = None

    async def send_json(self, data):
        if self.closed is not None:
            raise RuntimeError("Cannot send once a close message has been sent")
        self.sent.append(data)

    async def close(self, code=1000, reason=None):
        self.closed = (code, reason)

    def events(self, name):
        return [frame["data"] for frame in self.sent if frame["event"] == name]


class GatedVerifier(AuthVerifier):
    """Holds every token check until `release` is set."""

    def __init__(self, decision=AuthDecision.VALID):
        super().__init__(base_url=AUTH_BASE_URL)
        self.decision = decision
        self.release = asyncio.Event()

    async def verify(self, token):
        if not token:
            return AuthDecision.ADMITTED
        await self.release.wait()
        return self.decision


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def verifier():
    return AuthVerifier(base_url=AUTH_BASE_URL, transport=httpx.MockTransport(auth_authority))


@pytest.fixture
def manager(registry, verifier):
    return ConnectionManager(registry, verifier)


@pytest.fixture
def connect(manager):
    async def _connect(target=None):
        return await (target or manager).connect(FakeWebSocket())

    return _connect


@pytest.fixture
def join(manager):
    async def _join(connection, room_id, name, token=None, target=None):
        data = {"roomId": room_id, "name": name}
        if token is not None:
            data["token"] = token
        await (target or manager).dispatch(connection, JOIN_ROOM, data)
        if connection.join_task is not None:
            await connection.join_task

    return _join


@pytest.fixture
def client(registry, verifier):
    app = create_app(registry=registry, verifier=verifier)
    with TestClient(app) as test_client:
        yield test_client
