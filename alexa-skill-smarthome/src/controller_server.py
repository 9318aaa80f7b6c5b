# controller_server.py

"""HTTP-Schnittstelle des selbst gehosteten Controllers.

    GET  /devices  -> Discovery-Antwort
    POST /control  -> Steuer-Direktive
    POST /report   -> ReportState-Direktive (nur v3)

Ist ein OTP-Secret konfiguriert, muss jeder Aufruf `?otp=<code>` tragen.

Start:
    python controller_server.py
"""

import json
import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

import otp
from accessory_registry import AccessoryKind, AccessoryRegistry, StaticAccessory
from bridge_config import ControllerConfig
from directive_engine import create_engine
from edge_handler import EdgeHandler, EdgeResult

logger = logging.getLogger(__name__)


def load_static_accessories(path):
    """Konfigurierte Zusatzgeräte aus einer JSON-Datei (Liste von Objekten)."""
    with open(path, "r", encoding="utf-8") as f:
        entries = json.load(f)
    accessories = []
    for entry in entries:
        accessories.append(StaticAccessory(
            serial=entry["serial"],
            name=entry.get("name", entry["serial"]),
            is_switch=entry.get("isSwitch", True),
            manufacturer=entry.get("manufacturer"),
            model=entry.get("model"),
            kind=entry.get("kind", AccessoryKind.GENERIC.value),
            categories=entry.get("categories"),
            description=entry.get("description"),
        ))
    return accessories


def build_registry(config):
    primary = []
    if config.device_table:
        from dynamodb_accessories import DynamoDBAccessorySource
        primary = DynamoDBAccessorySource.from_table_name(config.device_table, config.iot_topic)
    secondary = load_static_accessories(config.accessories_file) if config.accessories_file else []
    return AccessoryRegistry(primary, secondary, manufacturer=config.manufacturer)


def _respond(result):
    if result.success:
        return JSONResponse(result.payload)
    return JSONResponse({"error": result.message}, status_code=500)


def _directive_name(body):
    if not isinstance(body, dict):
        return None
    container = body.get("directive", body)
    header = container.get("header") if isinstance(container, dict) else None
    return header.get("name") if isinstance(header, dict) else None


def create_app(handler, otp_secret=None, otp_window_seconds=otp.DEFAULT_WINDOW_SECONDS, clock=time.time):
    app = FastAPI(title="Alexa Smart Home Bridge", version="1.0.0")

    def require_otp(token: str = Query(None, alias="otp")):
        if otp_secret is None:
            return
        if token is None or not otp.verify(otp_secret, token, clock=clock, window_seconds=otp_window_seconds):
            logger.warning("Rejected request with missing or invalid otp")
            raise HTTPException(status_code=401, detail="invalid otp")

    async def read_body(request):
        try:
            return await request.json()
        except ValueError:
            return None

    @app.get("/devices", dependencies=[Depends(require_otp)])
    async def get_devices(message_id: str = Query(None, alias="messageId")):
        return _respond(await handler.discover(message_id))

    @app.post("/control", dependencies=[Depends(require_otp)])
    async def control(request: Request):
        body = await read_body(request)
        if body is None:
            return _respond(EdgeResult.fail("Request failed: invalid JSON"))
        if _directive_name(body) == "ReportState":
            return _respond(EdgeResult.fail("Request failed: ReportState belongs on /report"))
        return _respond(await handler.handle(body))

    @app.post("/report", dependencies=[Depends(require_otp)])
    async def report(request: Request):
        body = await read_body(request)
        if _directive_name(body) != "ReportState":
            return _respond(EdgeResult.fail("Request failed: expected a ReportState directive"))
        return _respond(await handler.handle(body))

    return app


def main():
    import uvicorn

    config = ControllerConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if config.otp_secret is None:
        logger.warning("No OTP secret configured, requests are not authenticated")

    handler = EdgeHandler(create_engine(config.payload_version, build_registry(config)))
    app = create_app(handler, config.otp_secret, config.otp_window_seconds)
    logger.info(f"Controller listening on {config.host}:{config.port} (payload v{config.payload_version})")
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
