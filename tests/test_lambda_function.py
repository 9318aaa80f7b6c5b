import json

import httpx
import pytest

import lambda_function
import otp
from bridge_config import RelayConfig
from bridge_errors import RelayFailed

SECRET = "relay-shared-secret"
NOW = 1_700_000_000
CLOCK = lambda: NOW  # noqa: E731


def config(version="3"):
    return RelayConfig(base_url="https://home.example/alexa", otp_secret=SECRET, payload_version=version)


class Controller:
    """Fake für den selbst gehosteten Controller."""

    def __init__(self, status=200, body=None):
        self.status = status
        self.body = body if body is not None else {}
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def v3_event(namespace, name, endpoint_id=None):
    directive = {
        "header": {"namespace": namespace, "name": name, "payloadVersion": "3",
                   "messageId": "msg-7", "correlationToken": "corr-7"},
        "payload": {}
    }
    if endpoint_id:
        directive["endpoint"] = {"endpointId": endpoint_id, "scope": {"type": "BearerToken", "token": "t"}}
    return {"directive": directive}


async def run(event, controller, version="3"):
    async with controller.client() as client:
        return await lambda_function.handle_event(event, config(version), client=client, clock=CLOCK)


def test_remote_url_carries_otp():
    url = lambda_function.remote_url(config(), "/devices", clock=CLOCK)
    assert url == f"https://home.example/alexa/devices?otp={otp.generate(SECRET, clock=CLOCK)}"


@pytest.mark.asyncio
async def test_discovery_wraps_remote_payload():
    controller = Controller(body={"endpoints": [{"endpointId": "A1"}]})
    response = await run(v3_event("Alexa.Discovery", "Discover"), controller)

    request = controller.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/alexa/devices"
    assert otp.verify(SECRET, request.url.params["otp"], clock=CLOCK)
    assert request.url.params["messageId"] == "msg-7"

    assert response["event"]["header"] == {
        "namespace": "Alexa.Discovery",
        "name": "Discover.Response",
        "messageId": "msg-7",
        "payloadVersion": "3"
    }
    assert response["event"]["payload"] == {"endpoints": [{"endpointId": "A1"}]}


@pytest.mark.asyncio
async def test_discovery_passes_full_envelope_through():
    envelope = {"event": {"header": {"name": "Discover.Response"}, "payload": {"endpoints": []}}}
    response = await run(v3_event("Alexa.Discovery", "Discover"), Controller(body=envelope))
    assert response == envelope


@pytest.mark.asyncio
async def test_control_forwards_whole_directive_and_returns_body_verbatim():
    remote = {"event": {"header": {"name": "Response"}}, "context": {"properties": []}}
    controller = Controller(body=remote)
    event = v3_event("Alexa.PowerController", "TurnOn", "A1")

    response = await run(event, controller)

    request = controller.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/alexa/control"
    assert json.loads(request.content) == event
    assert response == remote


@pytest.mark.asyncio
async def test_report_builds_header_and_takes_context_from_remote():
    remote = {"properties": [{"namespace": "Alexa.PowerController", "name": "powerState", "value": "ON"}]}
    controller = Controller(body=remote)
    event = v3_event("Alexa", "ReportState", "A1")

    response = await run(event, controller)

    assert controller.requests[0].url.path == "/alexa/report"
    header = response["event"]["header"]
    assert header["name"] == "StateReport"
    assert header["correlationToken"] == "corr-7"
    assert header["messageId"] == "msg-7"
    assert response["event"]["endpoint"] == event["directive"]["endpoint"]
    assert response["context"] == remote


@pytest.mark.asyncio
async def test_report_unwraps_context_block():
    remote = {"context": {"properties": []}, "extra": True}
    response = await run(v3_event("Alexa", "ReportState", "A1"), Controller(body=remote))
    assert response["context"] == {"properties": []}


@pytest.mark.asyncio
async def test_report_replaces_remote_envelope_header():
    remote = {
        "event": {
            "header": {"namespace": "Alexa", "name": "Response", "messageId": "remote-id",
                       "correlationToken": "remote-token", "payloadVersion": "3"},
            "endpoint": {"endpointId": "other"},
            "payload": {}
        },
        "context": {"properties": [{"namespace": "Alexa.PowerController", "name": "powerState", "value": "OFF"}]}
    }
    event = v3_event("Alexa", "ReportState", "A1")

    response = await run(event, Controller(body=remote))

    header = response["event"]["header"]
    assert header["name"] == "StateReport"
    assert header["messageId"] == "msg-7"
    assert header["correlationToken"] == "corr-7"
    assert response["event"]["endpoint"] == event["directive"]["endpoint"]
    assert response["context"] == remote["context"]


@pytest.mark.asyncio
async def test_legacy_discovery_wraps_appliance_list():
    controller = Controller(body=[{"applianceId": "A1"}])
    event = {"header": {"namespace": "Alexa.ConnectedHome.Discovery", "name": "DiscoverAppliancesRequest",
                        "payloadVersion": "2", "messageId": "msg-2"}, "payload": {}}

    response = await run(event, controller, version="2")

    assert response["header"]["name"] == "DiscoverAppliancesResponse"
    assert response["header"]["messageId"] == "msg-2"
    assert response["payload"] == {"discoveredAppliances": [{"applianceId": "A1"}]}


@pytest.mark.asyncio
async def test_legacy_control_is_forwarded():
    remote = {"header": {"name": "TurnOnConfirmation"}, "payload": {}}
    event = {"header": {"namespace": "Alexa.ConnectedHome.Control", "name": "TurnOnRequest",
                        "payloadVersion": "2", "messageId": "m"},
             "payload": {"appliance": {"applianceId": "A1"}}}
    response = await run(event, Controller(body=remote), version="2")
    assert response == remote


@pytest.mark.asyncio
async def test_remote_error_fails_request():
    with pytest.raises(RelayFailed) as exc_info:
        await run(v3_event("Alexa.PowerController", "TurnOn", "A1"), Controller(status=500))
    assert str(exc_info.value).startswith("Request failed")


@pytest.mark.asyncio
async def test_unknown_namespace_fails():
    controller = Controller()
    with pytest.raises(RelayFailed):
        await run(v3_event("Alexa.ColorController", "SetColor", "A1"), controller)
    assert controller.requests == []


def test_lambda_handler(monkeypatch):
    monkeypatch.setenv("REMOTE_CLOUD_BASE_URL", "https://home.example/alexa/")
    monkeypatch.setenv("REMOTE_CLOUD_OTP_SECRET", SECRET)
    monkeypatch.delenv("ALEXA_PAYLOAD_VERSION", raising=False)
    monkeypatch.setattr(lambda_function, "_config", None)

    calls = []

    async def fake_send(method, url, body=None, client=None, timeout=None):
        calls.append((method, url, body))
        return b'{"endpoints": []}'

    monkeypatch.setattr(lambda_function.relay_transport, "send", fake_send)

    response = lambda_function.lambda_handler(v3_event("Alexa.Discovery", "Discover"), None)

    assert response["event"]["payload"] == {"endpoints": []}
    method, url, body = calls[0]
    assert method == "GET"
    assert url.startswith("https://home.example/alexa/devices?otp=")
    assert body is None


def test_lambda_handler_malformed_request(monkeypatch):
    monkeypatch.setattr(lambda_function, "_config", config())
    with pytest.raises(RelayFailed):
        lambda_function.lambda_handler({"nothing": "here"}, None)
