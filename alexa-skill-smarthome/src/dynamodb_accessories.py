# dynamodb_accessories.py

import asyncio
import json
import logging
from decimal import Decimal

from accessory_registry import BRIGHTNESS, POWER, AccessoryKind
from bridge_errors import UnsupportedOperation

logger = logging.getLogger(__name__)


def _plain(value):
    """DynamoDB liefert Zahlen als Decimal."""
    if isinstance(value, Decimal):
        # Nachkommawerte bleiben Decimal, boto3 schreibt keine floats
        return int(value) if value % 1 == 0 else value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class DynamoDBAccessory:
    """Ein Geräte-Record aus der DynamoDB-Tabelle.

    Schreibzugriffe aktualisieren das `state`-Attribut und schicken den
    Befehl per MQTT (IoT Core) an die Hardware-Bridge.
    """

    def __init__(self, record, table, iot_client, topic="alexa"):
        record = _plain(record)
        self.table = table
        self.iot_client = iot_client
        self.topic = topic

        self.serial = record["device_id"]
        self.name = record.get("friendly_name") or record.get("device_name") or self.serial
        self.description = record.get("description")
        self.manufacturer = record.get("manufacturer_name")
        self.model = record.get("model_name")
        self.item_name = record.get("item_name", self.serial)

        caps = record.get("capabilities", [])
        cat = record.get("device_category", "SWITCH")
        self.categories = [cat] if isinstance(cat, str) else cat

        if "BrightnessController" in caps:
            self.kind = AccessoryKind.DIMMABLE_LIGHT
        elif "SWITCH" in self.categories:
            self.kind = AccessoryKind.SWITCH
        else:
            self.kind = AccessoryKind.GENERIC
        self.is_switch = self.kind is not AccessoryKind.DIMMABLE_LIGHT

        state = record.get("state", {})
        if isinstance(state, str):
            # alte Records speichern nur "ON"/"OFF"
            state = {"powerState": state}
        self.state = state

    @property
    def power(self):
        return self.state.get("powerState", "OFF") == "ON"

    @property
    def last_brightness(self):
        return int(self.state.get("brightness", 0))

    async def get(self, prop):
        if prop == POWER:
            return self.power
        if prop == BRIGHTNESS:
            return self.last_brightness
        raise UnsupportedOperation(f"{self.serial}: unknown property {prop}")

    async def set(self, prop, value):
        if prop == POWER:
            update = {"powerState": "ON" if value else "OFF"}
            namespace, method = "Alexa.PowerController", "TurnOn" if value else "TurnOff"
        elif prop == BRIGHTNESS:
            update = {"brightness": int(value)}
            namespace, method = "Alexa.BrightnessController", "SetBrightness"
        else:
            raise UnsupportedOperation(f"{self.serial}: unknown property {prop}")

        await asyncio.to_thread(self._publish, namespace, method, value)
        self.state.update(update)
        await asyncio.to_thread(self._update_db)

    def _publish(self, namespace, method, value):
        message = {
            "endpointId": self.serial,
            "openHABItemName": self.item_name,
            "nameSpace": namespace,
            "requestMethod": method,
            "payload": value,
        }
        logger.info("mqtt alexa message: %s", json.dumps(message))
        self.iot_client.publish(topic=self.topic, qos=1, payload=json.dumps(message))

    def _update_db(self):
        logger.info(f"[DB] Aktualisiere Status für {self.serial}...")
        self.table.update_item(
            Key={"device_id": self.serial},
            UpdateExpression="set #s = :s",
            ExpressionAttributeNames={"#s": "state"},
            ExpressionAttributeValues={":s": self.state},
        )


class DynamoDBAccessorySource:
    """Iterierbare Geräte-Quelle über eine DynamoDB-Tabelle.

    Jede Iteration liest die Tabelle neu, deaktivierte Geräte
    (`enabled: false`) werden übersprungen.
    """

    def __init__(self, table, iot_client, topic="alexa"):
        self.table = table
        self.iot_client = iot_client
        self.topic = topic

    @classmethod
    def from_table_name(cls, table_name, topic="alexa"):
        import boto3
        table = boto3.resource("dynamodb").Table(table_name)
        return cls(table, boto3.client("iot-data"), topic)

    def _scan(self):
        items = []
        kwargs = {}
        while True:
            res = self.table.scan(**kwargs)
            items.extend(res.get("Items", []))
            if "LastEvaluatedKey" not in res:
                return items
            kwargs["ExclusiveStartKey"] = res["LastEvaluatedKey"]

    def __iter__(self):
        for record in self._scan():
            if not record.get("enabled", True):
                continue
            yield DynamoDBAccessory(record, self.table, self.iot_client, self.topic)
