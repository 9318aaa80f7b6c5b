# relay_transport.py

import json
import logging

import httpx

from bridge_errors import NetworkError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def _encode_body(body):
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


async def send(method, url, body=None, client=None, timeout=DEFAULT_TIMEOUT):
    """Genau ein ausgehender Request, ohne Retry.

    Gibt den komplett gepufferten Body zurück. Status ausserhalb 200-299
    wirft TransportError, Verbindungsprobleme NetworkError. Ein übergebener
    AsyncClient wird wiederverwendet und nicht geschlossen.
    """
    content = _encode_body(body)
    headers = {}
    if content is not None:
        headers["Content-Type"] = "application/json"

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout)

    try:
        response = await client.request(method.upper(), url, content=content, headers=headers)
    except httpx.TransportError as e:
        logger.error(f"{method.upper()} {_redact(url)} failed: {e!r}")
        raise NetworkError(str(e) or e.__class__.__name__) from e
    finally:
        if owns_client:
            await client.aclose()

    if response.status_code < 200 or response.status_code > 299:
        logger.error(f"{method.upper()} {_redact(url)} -> {response.status_code}")
        raise TransportError(response.status_code, response.reason_phrase)

    return response.content


def _redact(url):
    # otp nicht ins Log schreiben
    return url.split("?", 1)[0]
