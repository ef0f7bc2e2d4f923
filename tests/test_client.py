"""Tests for the core request executor against an in-process fake."""

import asyncio
import logging

import httpx
import pytest

from hrobot.core.client import DEFAULT_BASE_URL, APIClient, Credentials, Request, build_path
from hrobot.core.envelope import Envelope
from hrobot.core.errors import (
    ApiError,
    ConfigurationError,
    DeserializationError,
    ErrorCode,
    TransportError,
    UnparseableResponseError,
)
from hrobot.core.types import Server
from tests.conftest import ERROR_BODY, PASSWORD, SERVER, USERNAME


# =============================================================================
# Credentials and Configuration
# =============================================================================


class TestCredentials:
    def test_repr_hides_password(self, credentials):
        assert USERNAME in repr(credentials)
        assert PASSWORD not in repr(credentials)
        assert PASSWORD not in str(credentials)

    def test_authorization_header(self):
        # RFC 7617 example
        assert Credentials("Aladdin", "open sesame").authorization_header == "Basic QWxhZGRpbjpvcGVuIHNlc2FtZQ=="

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HROBOT_USERNAME", "#ws+env")
        monkeypatch.setenv("HROBOT_PASSWORD", "from-env")

        assert Credentials.from_env() == Credentials("#ws+env", "from-env")

    def test_from_env_missing(self, monkeypatch):
        monkeypatch.setenv("HROBOT_USERNAME", "#ws+env")
        monkeypatch.delenv("HROBOT_PASSWORD", raising=False)

        with pytest.raises(ConfigurationError):
            Credentials.from_env()


class TestConfiguration:
    def test_default_base_url(self, make_client):
        assert make_client().base_url == DEFAULT_BASE_URL

    def test_rejects_plain_http(self, credentials):
        with pytest.raises(ConfigurationError):
            APIClient(credentials, base_url="http://robot-ws.your-server.de")

    def test_build_path_encodes_segments(self):
        assert build_path("/rdns/{ip}", ip="2a01:4f8::1") == "/rdns/2a01%3A4f8%3A%3A1"
        assert build_path("/key/{fingerprint}", fingerprint="a/b c") == "/key/a%2Fb%20c"
        assert build_path("/server/{server}", server=321) == "/server/321"


# =============================================================================
# Request Execution
# =============================================================================


class TestExecute:
    @pytest.mark.asyncio
    async def test_decodes_wrapped_payload(self, client, fake):
        fake.add("GET", "/server/321", {"server": SERVER})

        server = await client.get("/server/321", Envelope.wrapped("server"), Server.from_dict)

        assert server.id == 321
        assert fake.last.url.host == "robot-ws.your-server.de"
        assert fake.last.url.scheme == "https"

    @pytest.mark.asyncio
    async def test_basic_auth_header(self, client, fake, credentials):
        fake.add("GET", "/server", [])

        await client.get("/server", Envelope.wrapped_list("server"), Server.from_dict)

        assert fake.last.headers["Authorization"] == credentials.authorization_header

    @pytest.mark.asyncio
    async def test_get_has_no_content_type(self, client, fake):
        fake.add("GET", "/server", [])

        await client.get("/server", Envelope.wrapped_list("server"), Server.from_dict)

        assert "Content-Type" not in fake.last.headers
        assert fake.last.content == b""

    @pytest.mark.asyncio
    async def test_post_sends_form(self, client, fake):
        fake.add("POST", "/server/321", {"server": {**SERVER, "server_name": "renamed"}})

        server = await client.post(
            "/server/321", {"server_name": "renamed"}, Envelope.wrapped("server"), Server.from_dict
        )

        assert server.name == "renamed"
        assert fake.last.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert fake.last.content == b"server_name=renamed"

    @pytest.mark.asyncio
    async def test_query_params_skip_none(self, client, fake):
        fake.add("GET", "/traffic", {"traffic": {}})

        await client.get("/traffic", Envelope.wrapped("traffic"), dict, params={"type": "month", "ip": None})

        assert dict(fake.last.url.params) == {"type": "month"}

    @pytest.mark.asyncio
    async def test_no_content_on_204(self, client, fake):
        fake.add("DELETE", "/key/ab%3Acd", status=204)

        assert await client.delete("/key/ab%3Acd") is None

    @pytest.mark.asyncio
    async def test_no_content_ignores_body(self, client, fake):
        fake.add("POST", "/wol/321", {"wol": {"server_number": 321}})

        assert await client.post("/wol/321") is None

    @pytest.mark.asyncio
    async def test_encoded_path_reaches_server(self, client, fake):
        path = build_path("/rdns/{ip}", ip="2a01:4f8::1")
        fake.add("GET", path, {"rdns": {"ip": "2a01:4f8::1", "ptr": "host.example.com"}})

        entry = await client.get(path, Envelope.wrapped("rdns"), dict)

        assert entry["ptr"] == "host.example.com"
        assert fake.last.url.raw_path == b"/rdns/2a01%3A4f8%3A%3A1"

    @pytest.mark.asyncio
    async def test_execute_returns_raw_response(self, client, fake):
        fake.add("GET", "/server", content=b"not json", status=500)

        response = await client.execute(Request("GET", "/server"))

        assert response.status == 500
        assert response.body == b"not json"
        assert not response.ok


# =============================================================================
# Error Classification
# =============================================================================


class TestErrors:
    @pytest.mark.asyncio
    async def test_api_error(self, client, fake):
        fake.add("POST", "/server/321", ERROR_BODY, status=400)

        with pytest.raises(ApiError) as exc_info:
            await client.post("/server/321", {"server_name": ""}, Envelope.wrapped("server"), Server.from_dict)

        assert exc_info.value.error_code is ErrorCode.INVALID_INPUT
        assert exc_info.value.missing == ["minute", "hour"]
        assert exc_info.value.invalid is None

    @pytest.mark.asyncio
    async def test_api_error_on_no_content_call(self, client, fake):
        fake.add("DELETE", "/rdns/1.2.3.4", {"error": {"status": 404, "code": "RDNS_NOT_FOUND", "message": "x"}}, 404)

        with pytest.raises(ApiError) as exc_info:
            await client.delete("/rdns/1.2.3.4")

        assert exc_info.value.error_code is ErrorCode.RDNS_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unparseable_error(self, client, fake):
        fake.add("GET", "/server", content=b"<html>Service Unavailable</html>", status=503)

        with pytest.raises(UnparseableResponseError) as exc_info:
            await client.get("/server", Envelope.wrapped_list("server"), Server.from_dict)

        assert exc_info.value.status == 503
        assert "Service Unavailable" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_malformed_success_body(self, client, fake):
        fake.add("GET", "/server/321", {"server": {"server_number": 321}})

        with pytest.raises(DeserializationError):
            await client.get("/server/321", Envelope.wrapped("server"), Server.from_dict)

    @pytest.mark.asyncio
    async def test_connect_error(self, make_client):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get("/server", Envelope.wrapped_list("server"), Server.from_dict)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout(self, make_client):
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(transport=httpx.MockTransport(stall)) as client:
            with pytest.raises(TransportError):
                await client.post("/reset/321", {"type": "hw"})

    @pytest.mark.asyncio
    async def test_corrupt_content_encoding(self, make_client):
        def corrupt(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Encoding": "gzip"},
                stream=httpx.ByteStream(b"this is not gzip"),
            )

        async with make_client(transport=httpx.MockTransport(corrupt)) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get("/server", Envelope.wrapped_list("server"), Server.from_dict)

        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)


# =============================================================================
# Concurrency and Logging
# =============================================================================


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_calls_do_not_cross(self, client, fake):
        async def respond(request: httpx.Request) -> httpx.Response:
            number = int(request.url.path.rsplit("/", 1)[1])
            # Later requests complete first
            await asyncio.sleep((50 - number) / 1000)
            return httpx.Response(200, json={"server": {**SERVER, "server_number": number}})

        numbers = list(range(1, 21))
        for number in numbers:
            fake.route("GET", f"/server/{number}", respond)

        servers = await asyncio.gather(
            *(client.get(f"/server/{n}", Envelope.wrapped("server"), Server.from_dict) for n in numbers)
        )

        assert [s.id for s in servers] == numbers

    @pytest.mark.asyncio
    async def test_closed_client(self, make_client):
        client = make_client()
        await client.aclose()

        assert client.is_closed


class TestLogging:
    @pytest.mark.asyncio
    async def test_credentials_never_logged(self, client, fake, credentials, caplog):
        fake.add("GET", "/server", [{"server": SERVER}])

        with caplog.at_level(logging.DEBUG, logger="hrobot"):
            await client.get("/server", Envelope.wrapped_list("server"), Server.from_dict)

        assert "GET /server" in caplog.text
        assert PASSWORD not in caplog.text
        assert credentials.authorization_header.split()[1] not in caplog.text

    @pytest.mark.asyncio
    async def test_transport_failure_logged_as_warning(self, make_client, caplog):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(transport=httpx.MockTransport(refuse)) as client:
            with caplog.at_level(logging.WARNING, logger="hrobot"):
                with pytest.raises(TransportError):
                    await client.delete("/vswitch/1")

        assert any(record.levelno == logging.WARNING for record in caplog.records)
