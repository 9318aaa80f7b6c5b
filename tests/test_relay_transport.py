import json

import httpx
import pytest

import relay_transport
from bridge_errors import NetworkError, TransportError


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_send_returns_buffered_body():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"endpoints": []})

    async with mock_client(handler) as client:
        body = await relay_transport.send("get", "https://controller.example/devices?otp=123456", client=client)

    assert json.loads(body) == {"endpoints": []}
    assert seen[0].method == "GET"
    assert seen[0].url.params["otp"] == "123456"
    assert "content-type" not in seen[0].headers


@pytest.mark.asyncio
async def test_send_posts_json_body():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"{}")

    directive = {"directive": {"header": {"name": "TurnOn"}}}
    async with mock_client(handler) as client:
        await relay_transport.send("POST", "https://controller.example/control", directive, client=client)

    assert seen[0].method == "POST"
    assert seen[0].headers["content-type"] == "application/json"
    assert json.loads(seen[0].content) == directive


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [301, 401, 404, 500, 503])
async def test_non_2xx_raises_transport_error(status):
    async with mock_client(lambda request: httpx.Response(status, text="nope")) as client:
        with pytest.raises(TransportError) as exc_info:
            await relay_transport.send("GET", "https://controller.example/devices", client=client)
    assert exc_info.value.status == status


@pytest.mark.asyncio
async def test_connection_failure_raises_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(NetworkError):
            await relay_transport.send("GET", "https://controller.example/devices", client=client)


@pytest.mark.asyncio
async def test_timeout_raises_network_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(NetworkError):
            await relay_transport.send("GET", "https://controller.example/devices", client=client)


@pytest.mark.asyncio
async def test_single_attempt_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(502)

    async with mock_client(handler) as client:
        with pytest.raises(TransportError):
            await relay_transport.send("POST", "https://controller.example/control", {"a": 1}, client=client)
    assert len(calls) == 1
