"""Pytest configuration - loads .env and provides an in-process fake of the Robot webservice."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv

from hrobot.core.client import APIClient, Credentials
from hrobot.sdk import AsyncRobot

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

USERNAME = "#ws+test"
PASSWORD = "s3cr3t-password"


# =============================================================================
# Canned Payloads
# =============================================================================


SERVER = {
    "server_ip": "123.123.123.123",
    "server_ipv6_net": "2a01:f48:111:4221::",
    "server_number": 321,
    "server_name": "server1",
    "product": "DS 3000",
    "dc": "NBG1-DC1",
    "traffic": "5 TB",
    "status": "ready",
    "cancelled": False,
    "paid_until": "2010-09-02",
    "ip": ["123.123.123.123"],
    "subnet": [{"ip": "2a01:4f8:111:4221::", "mask": "64"}],
}

SERVER_FLAGS = {
    "reset": True,
    "rescue": True,
    "vnc": True,
    "windows": False,
    "plesk": False,
    "cpanel": False,
    "wol": True,
    "hot_swap": True,
    "linked_storagebox": None,
}

ERROR_BODY = {
    "error": {
        "status": 400,
        "code": "INVALID_INPUT",
        "message": "invalid input",
        "missing": ["minute", "hour"],
        "invalid": None,
    }
}


def error_body(status: int, code: str, message: str = "error") -> dict[str, Any]:
    return {"error": {"status": status, "code": code, "message": message}}


# =============================================================================
# Fake Robot Service
# =============================================================================


Handler = Callable[[httpx.Request], httpx.Response]


class FakeRobot:
    """Routes requests to canned responses and records every request received."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        status: int = 200,
        content: bytes | None = None,
    ) -> None:
        """Register a canned response for a method and raw (percent-encoded) path."""
        if content is None:
            content = b"" if json_body is None else json.dumps(json_body).encode()

        def respond(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, content=content)

        self.routes[(method, path)] = respond

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        respond = self.routes.get((request.method, path))
        if respond is None:
            return httpx.Response(404, json=error_body(404, "NOT_FOUND", f"no route for {request.method} {path}"))
        return respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def form_pairs(request: httpx.Request) -> list[tuple[str, str]]:
    """Decoded form fields of a recorded request, in order."""
    return parse_qsl(request.content.decode(), keep_blank_values=True)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def credentials():
    return Credentials(USERNAME, PASSWORD)


@pytest.fixture
def fake():
    return FakeRobot()


@pytest.fixture
def make_client(credentials, fake):
    """Factory for APIClients wired to the fake service."""

    def factory(**kwargs: Any) -> APIClient:
        kwargs.setdefault("transport", fake.transport())
        return APIClient(credentials, **kwargs)

    return factory


@pytest_asyncio.fixture
async def client(make_client):
    async with make_client() as api:
        yield api


@pytest_asyncio.fixture
async def robot(fake):
    async with AsyncRobot(USERNAME, PASSWORD, transport=fake.transport()) as robot:
        yield robot
