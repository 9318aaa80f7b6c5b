# directive_engine.py

"""Übersetzung zwischen Alexa-Direktiven und Accessory-Operationen.

Zwei getrennte Engines teilen sich nur die Registry:

* LegacyDirectiveEngine    - Smart Home API v2 (Appliances/Actions)
* CapabilityDirectiveEngine - Smart Home API v3 (Endpoints/Capabilities)

Welche Version gilt, wird einmal beim Start festgelegt (create_engine).
"""

import logging
from dataclasses import dataclass, field

from accessory_registry import clamp_brightness
from alexa_appliance import discovered_appliance
from alexa_device import AlexaDevice
from alexa_response import AlexaResponse, ConnectedHomeResponse
from bridge_errors import NotFound, UnsupportedOperation
from controllers import BrightnessController, PowerController, time_of_sample

logger = logging.getLogger(__name__)

V2 = "2"
V3 = "3"

# v2 Namespaces
CONNECTED_HOME_DISCOVERY = "Alexa.ConnectedHome.Discovery"
CONNECTED_HOME_CONTROL = "Alexa.ConnectedHome.Control"

# v3 Namespaces
ALEXA = "Alexa"
ALEXA_DISCOVERY = "Alexa.Discovery"
POWER_CONTROLLER = PowerController.namespace
BRIGHTNESS_CONTROLLER = BrightnessController.namespace

PERCENTAGE_STEP = 10


@dataclass
class Directive:
    namespace: str
    name: str
    protocol_version: str
    target_id: str = None
    message_id: str = None
    correlation_token: str = None
    parameters: dict = field(default_factory=dict)
    endpoint: dict = None

    @classmethod
    def from_v2(cls, request):
        header = request.get("header", {})
        payload = request.get("payload", {}) or {}
        appliance = payload.get("appliance") or {}
        return cls(
            namespace=header.get("namespace"),
            name=header.get("name"),
            protocol_version=V2,
            target_id=appliance.get("applianceId"),
            message_id=header.get("messageId"),
            parameters=payload,
        )

    @classmethod
    def from_v3(cls, request):
        directive = request.get("directive", {})
        header = directive.get("header", {})
        endpoint = directive.get("endpoint")
        return cls(
            namespace=header.get("namespace"),
            name=header.get("name"),
            protocol_version=V3,
            target_id=endpoint.get("endpointId") if endpoint else None,
            message_id=header.get("messageId"),
            correlation_token=header.get("correlationToken"),
            parameters=directive.get("payload", {}) or {},
            endpoint=endpoint,
        )

    def require_target(self):
        if not self.target_id:
            raise NotFound(f"{self.namespace}.{self.name}: directive has no target accessory")
        return self.target_id


class LegacyDirectiveEngine:
    """Smart Home API v2."""

    version = V2
    discovery_namespace = CONNECTED_HOME_DISCOVERY
    control_namespaces = (CONNECTED_HOME_CONTROL,)
    report_namespace = None

    def __init__(self, registry):
        self.registry = registry

    def parse(self, request):
        return Directive.from_v2(request)

    async def discover(self, directive):
        adr = ConnectedHomeResponse(
            namespace=CONNECTED_HOME_DISCOVERY,
            name="DiscoverAppliancesResponse",
            message_id=directive.message_id,
        )
        accessories = await self.registry.list_all()
        adr.set_discovered_appliances(discovered_appliance(a) for a in accessories)
        return adr.get()

    async def control(self, directive):
        accessory_id = directive.require_target()
        accessory = await self.registry.find_by_id(accessory_id)
        name = directive.name
        logger.info(f"v2 control {name} -> {accessory_id}")

        if directive.namespace != CONNECTED_HOME_CONTROL:
            raise NotFound(f"Unsupported namespace {directive.namespace}")

        if name == "TurnOnRequest":
            await self.registry.set_power(accessory, True)
        elif name == "TurnOffRequest":
            await self.registry.set_power(accessory, False)
        elif name == "SetPercentageRequest":
            value = directive.parameters.get("percentageState", {}).get("value")
            if value is None:
                raise UnsupportedOperation(f"{name}: missing percentageState.value")
            await self.registry.set_brightness(accessory, clamp_brightness(value))
        elif name in ("IncrementPercentageRequest", "DecrementPercentageRequest"):
            step = PERCENTAGE_STEP if name.startswith("Increment") else -PERCENTAGE_STEP
            await self.registry.adjust_brightness(accessory, step)
        else:
            raise NotFound(f"Unsupported directive {directive.namespace}.{name}")

        return ConnectedHomeResponse(
            namespace=CONNECTED_HOME_CONTROL,
            name=name.replace("Request", "Confirmation"),
            message_id=directive.message_id,
        ).get()

    async def report(self, directive):
        raise NotFound("ReportState is not part of payload version 2")


class CapabilityDirectiveEngine:
    """Smart Home API v3."""

    version = V3
    discovery_namespace = ALEXA_DISCOVERY
    control_namespaces = (POWER_CONTROLLER, BRIGHTNESS_CONTROLLER)
    report_namespace = ALEXA

    def __init__(self, registry):
        self.registry = registry

    def parse(self, request):
        return Directive.from_v3(request)

    async def discover(self, directive):
        adr = AlexaResponse(namespace=ALEXA_DISCOVERY, name="Discover.Response", message_id=directive.message_id)
        accessories = await self.registry.list_all()
        adr.set_payload_endpoints(AlexaDevice(a).get_discovery_payload() for a in accessories)
        return adr.get()

    async def read_state(self, accessory):
        state = {"power": await self.registry.get_power(accessory)}
        if accessory.is_dimmable:
            state["brightness"] = await self.registry.get_brightness(accessory)
        return state

    async def _respond(self, directive, name, accessory):
        device = AlexaDevice(accessory)
        state = await self.read_state(accessory)

        adr = AlexaResponse(
            namespace=ALEXA,
            name=name,
            message_id=directive.message_id,
            correlation_token=directive.correlation_token,
            endpoint=directive.endpoint,
        )
        sample_time = time_of_sample()
        for prop in device.get_all_properties(state, sample_time):
            adr.add_context_property(**prop)
        return adr.get()

    async def control(self, directive):
        accessory_id = directive.require_target()
        accessory = await self.registry.find_by_id(accessory_id)
        device = AlexaDevice(accessory)
        logger.info(f"v3 control {directive.namespace}.{directive.name} -> {accessory_id}")

        if directive.namespace == BRIGHTNESS_CONTROLLER and not device.supports(BRIGHTNESS_CONTROLLER):
            raise UnsupportedOperation(f"Accessory {accessory_id} has no brightness")

        controller = device.controller_for(directive.namespace)
        if controller is None:
            raise NotFound(f"Unsupported namespace {directive.namespace}")

        if directive.name == "AdjustBrightness":
            # relativ zum aktuellen Gerätewert, nicht zum Snapshot
            delta = int(directive.parameters.get("brightnessDelta", 0))
            await self.registry.adjust_brightness(accessory, delta)
            return await self._respond(directive, "Response", accessory)

        current = {"brightness": accessory.brightness, "power": accessory.power_state}
        update = controller.handle_directive(directive.name, directive.parameters, current)
        if not update:
            raise NotFound(f"Unsupported directive {directive.namespace}.{directive.name}")

        if "power" in update:
            await self.registry.set_power(accessory, update["power"])
        if "brightness" in update:
            await self.registry.set_brightness(accessory, update["brightness"])

        return await self._respond(directive, "Response", accessory)

    async def report(self, directive):
        if directive.namespace != ALEXA or directive.name != "ReportState":
            raise NotFound(f"Unsupported directive {directive.namespace}.{directive.name}")
        accessory = await self.registry.find_by_id(directive.require_target())
        return await self._respond(directive, "StateReport", accessory)


ENGINES = {
    V2: LegacyDirectiveEngine,
    V3: CapabilityDirectiveEngine,
}


def create_engine(version, registry):
    try:
        engine_class = ENGINES[str(version)]
    except KeyError:
        raise ValueError(f"Unsupported payload version {version!r}") from None
    return engine_class(registry)
