# alexa_response.py

"""Antwort-Umschläge für beide Payload-Versionen.

v3: {"event": {"header", "endpoint", "payload"}, "context": {"properties"}}
v2: {"header", "payload"}

Die messageId (und bei v3 das correlationToken) der Anfrage wird
unverändert zurückgegeben.
"""

import uuid


class AlexaResponse:
    """Payload v3 (Alexa.Discovery, Alexa.*Controller, Alexa.ReportState)."""

    def __init__(self, namespace="Alexa", name="Response", message_id=None,
                 correlation_token=None, endpoint=None, payload=None):
        self.context_properties = []
        self.payload_endpoints = []

        self.event = {
            "header": {
                "namespace": namespace,
                "name": name,
                "messageId": message_id if message_id is not None else str(uuid.uuid4()),
                "payloadVersion": "3"
            },
            "payload": payload if payload is not None else {}
        }

        if correlation_token is not None:
            self.event["header"]["correlationToken"] = correlation_token

        # Discover.Response hat keinen endpoint
        if endpoint is not None:
            self.event["endpoint"] = endpoint

    def add_context_property(self, **kwargs):
        self.context_properties.append(dict(kwargs))

    def set_payload_endpoints(self, endpoints):
        self.payload_endpoints = list(endpoints)
        self.event["payload"]["endpoints"] = self.payload_endpoints

    def get(self):
        response = {"event": self.event}
        if self.context_properties:
            response["context"] = {"properties": self.context_properties}
        return response


class ConnectedHomeResponse:
    """Payload v2 (Alexa.ConnectedHome.Discovery / .Control)."""

    def __init__(self, namespace, name, message_id=None, payload=None):
        self.header = {
            "namespace": namespace,
            "name": name,
            "payloadVersion": "2",
            "messageId": message_id if message_id is not None else str(uuid.uuid4())
        }
        self.payload = payload if payload is not None else {}

    def set_discovered_appliances(self, appliances):
        self.payload["discoveredAppliances"] = list(appliances)

    def get(self):
        return {"header": self.header, "payload": self.payload}
