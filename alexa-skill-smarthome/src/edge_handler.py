# edge_handler.py

import json
import logging
import uuid
from dataclasses import dataclass

from bridge_errors import BridgeError
from directive_engine import Directive

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong"


@dataclass
class EdgeResult:
    success: bool
    payload: dict = None
    message: str = None

    @classmethod
    def succeed(cls, payload):
        return cls(True, payload=payload)

    @classmethod
    def fail(cls, message):
        return cls(False, message=message)


class EdgeHandler:
    """Nimmt rohe Direktiven an, verteilt sie nach Namespace an die Engine
    und macht aus Ergebnis oder Fehler ein succeed/fail."""

    def __init__(self, engine):
        self.engine = engine

    async def handle(self, raw_directive):
        logger.info("Input: %s", json.dumps(raw_directive))
        try:
            directive = self.engine.parse(raw_directive)
        except (AttributeError, TypeError) as e:
            logger.error(f"Malformed directive: {e!r}")
            return EdgeResult.fail("Request failed: malformed directive")
        return await self.handle_directive(directive)

    async def discover(self, message_id=None):
        """Discovery ohne Anfrage-Body (GET /devices)."""
        directive = Directive(
            namespace=self.engine.discovery_namespace,
            name="Discover",
            protocol_version=self.engine.version,
            message_id=message_id or str(uuid.uuid4()),
        )
        return await self.handle_directive(directive)

    async def handle_directive(self, directive):
        try:
            payload = await self._dispatch(directive)
        except BridgeError as e:
            logger.error(f"RequestFailed: {e.__class__.__name__}: {e}")
            return EdgeResult.fail(f"Request failed: {e}")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.exception("Malformed directive")
            return EdgeResult.fail(f"Request failed: malformed directive ({e.__class__.__name__})")

        if payload is None:
            return EdgeResult.fail(GENERIC_FAILURE)

        logger.info("Response: %s", json.dumps(payload))
        return EdgeResult.succeed(payload)

    async def _dispatch(self, directive):
        engine = self.engine
        namespace = directive.namespace

        if namespace == engine.discovery_namespace:
            return await engine.discover(directive)
        if namespace in engine.control_namespaces:
            return await engine.control(directive)
        if namespace == engine.report_namespace and directive.name == "ReportState":
            return await engine.report(directive)

        logger.error(f"Err: No supported namespace: {namespace}")
        return None
