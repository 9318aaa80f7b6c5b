# lambda_function.py

"""Cloud-Lambda für den Alexa Smart Home Skill.

Leitet jede Direktive an den selbst gehosteten Controller weiter und hängt
dabei ein zeitbasiertes Einmal-Passwort an (`?otp=123456`). Benötigte
Umgebungsvariablen:

    REMOTE_CLOUD_BASE_URL
    REMOTE_CLOUD_OTP_SECRET (oder REMOTE_CLOUD_OTP_SECRET_PARAM für SSM)
"""

import asyncio
import json
import logging
import time
from urllib.parse import urlencode

import otp
import relay_transport
from alexa_response import AlexaResponse, ConnectedHomeResponse
from bridge_config import RelayConfig
from bridge_errors import BridgeError, RelayFailed

logger = logging.getLogger()
logger.setLevel(logging.INFO)

DEPLOY_DATE = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())

_config = None


def get_config():
    # Beim ersten Aufruf laden, bei Warm-Starts wiederverwenden
    global _config
    if _config is None:
        _config = RelayConfig.from_env()
    return _config


def remote_url(config, path, clock=time.time, params=None):
    code = otp.generate(config.otp_secret, clock=clock, window_seconds=config.otp_window_seconds)
    query = {"otp": code}
    query.update(params or {})
    return f"{config.base_url}{path}?{urlencode(query)}"


async def call_remote(config, method, path, body=None, clock=time.time, client=None, params=None):
    try:
        raw = await relay_transport.send(
            method, remote_url(config, path, clock, params), body, client=client, timeout=config.timeout_s
        )
        return json.loads(raw)
    except BridgeError as e:
        logger.error(f"RequestFailed: {e}")
        raise RelayFailed(f"Request failed: {e}") from e
    except ValueError as e:
        logger.error(f"RequestFailed: invalid JSON from controller: {e}")
        raise RelayFailed(f"Request failed: {e}") from e


# --- Payload v3 ---

async def handle_discovery(event, config, **kwargs):
    header = event["directive"]["header"]
    params = {"messageId": header["messageId"]} if header.get("messageId") else None
    body = await call_remote(config, "GET", "/devices", params=params, **kwargs)

    if isinstance(body, dict) and "event" in body:
        return body

    adr = AlexaResponse(namespace="Alexa.Discovery", name="Discover.Response", message_id=header.get("messageId"))
    response = adr.get()
    response["event"]["payload"] = body
    logger.info("Discovery: %s", json.dumps(response))
    return response


async def handle_control(event, config, **kwargs):
    body = await call_remote(config, "POST", "/control", event, **kwargs)
    logger.info("Control: %s", json.dumps(body))
    return body


async def handle_report(event, config, **kwargs):
    directive = event["directive"]
    header = directive["header"]
    body = await call_remote(config, "POST", "/report", event, **kwargs)
    logger.info("Report: %s", json.dumps(body))

    # Header und Endpoint immer aus der eingehenden Direktive, vom Controller nur der context
    adr = AlexaResponse(
        namespace="Alexa",
        name="StateReport",
        message_id=header.get("messageId"),
        correlation_token=header.get("correlationToken"),
        endpoint=directive.get("endpoint"),
    )
    response = adr.get()
    response["context"] = body.get("context", body) if isinstance(body, dict) else body
    return response


# --- Payload v2 ---

async def handle_legacy_discovery(event, config, **kwargs):
    header = event["header"]
    params = {"messageId": header["messageId"]} if header.get("messageId") else None
    body = await call_remote(config, "GET", "/devices", params=params, **kwargs)

    if isinstance(body, dict) and "header" in body:
        return body

    adr = ConnectedHomeResponse(
        namespace="Alexa.ConnectedHome.Discovery",
        name="DiscoverAppliancesResponse",
        message_id=header.get("messageId"),
    )
    if isinstance(body, dict):
        adr.payload = body
    else:
        adr.set_discovered_appliances(body)
    response = adr.get()
    logger.info("Discovery: %s", json.dumps(response))
    return response


async def handle_event(event, config, **kwargs):
    if config.payload_version == "2":
        namespace = event["header"]["namespace"]
        name = event["header"].get("name")
        if namespace == "Alexa.ConnectedHome.Discovery":
            return await handle_legacy_discovery(event, config, **kwargs)
        if namespace == "Alexa.ConnectedHome.Control":
            return await handle_control(event, config, **kwargs)
    else:
        header = event["directive"]["header"]
        namespace = header["namespace"]
        name = header.get("name")
        if namespace == "Alexa.Discovery":
            return await handle_discovery(event, config, **kwargs)
        if namespace == "Alexa" and name == "ReportState":
            return await handle_report(event, config, **kwargs)
        if namespace in ("Alexa.PowerController", "Alexa.BrightnessController"):
            return await handle_control(event, config, **kwargs)

    logger.error(f"Err: No supported namespace: {namespace} ({name})")
    raise RelayFailed("Something went wrong")


def lambda_handler(request, context):
    logger.info(f"--- LAMBDA START: {DEPLOY_DATE} ---")
    logger.info("Input: %s", json.dumps(request))

    config = get_config()
    try:
        return asyncio.run(handle_event(request, config))
    except (KeyError, TypeError) as e:
        logger.error(f"Malformed request: {e!r}")
        raise RelayFailed("Something went wrong") from e
