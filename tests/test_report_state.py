import pytest

from directive_engine import create_engine
from edge_handler import EdgeHandler


def report_state(endpoint_id, correlation_token="dFMb0z+PgpgdDmluhJ1LddFvSqZ/jCc8ptlAKulUj90jSqg==",
                 message_id="abc-123-def-456"):
    return {
        "directive": {
            "header": {
                "namespace": "Alexa",
                "name": "ReportState",
                "payloadVersion": "3",
                "messageId": message_id,
                "correlationToken": correlation_token
            },
            "endpoint": {
                "scope": {"type": "BearerToken", "token": "access-token"},
                "endpointId": endpoint_id,
                "cookie": {}
            },
            "payload": {}
        }
    }


@pytest.fixture
def handler(registry):
    return EdgeHandler(create_engine("3", registry))


@pytest.mark.asyncio
async def test_report_state_echoes_tokens(handler):
    request = report_state("A1")
    result = await handler.handle(request)

    assert result.success
    header = result.payload["event"]["header"]
    assert header["name"] == "StateReport"
    assert header["namespace"] == "Alexa"
    assert header["payloadVersion"] == "3"
    assert header["correlationToken"] == request["directive"]["header"]["correlationToken"]
    assert header["messageId"] == request["directive"]["header"]["messageId"]
    assert result.payload["event"]["endpoint"] == request["directive"]["endpoint"]


@pytest.mark.asyncio
async def test_report_state_dimmable_properties(handler, lights):
    lights[0].power = True
    result = await handler.handle(report_state("A1"))

    properties = result.payload["context"]["properties"]
    assert [(p["namespace"], p["name"]) for p in properties] == [
        ("Alexa.EndpointHealth", "connectivity"),
        ("Alexa.PowerController", "powerState"),
        ("Alexa.BrightnessController", "brightness"),
    ]
    values = {p["name"]: p["value"] for p in properties}
    assert values == {"connectivity": {"value": "OK"}, "powerState": "ON", "brightness": 40}
    assert len({p["timeOfSample"] for p in properties}) == 1
    assert all(p["uncertaintyInMilliseconds"] == 0 for p in properties)


@pytest.mark.asyncio
async def test_report_state_switch_has_no_brightness(handler):
    result = await handler.handle(report_state("S1"))
    names = [p["name"] for p in result.payload["context"]["properties"]]
    assert names == ["connectivity", "powerState"]


@pytest.mark.asyncio
async def test_report_state_unknown_endpoint_fails(handler):
    result = await handler.handle(report_state("unknown"))
    assert not result.success


@pytest.mark.asyncio
async def test_report_state_without_correlation_token(handler):
    request = report_state("S1")
    del request["directive"]["header"]["correlationToken"]
    result = await handler.handle(request)
    assert "correlationToken" not in result.payload["event"]["header"]
