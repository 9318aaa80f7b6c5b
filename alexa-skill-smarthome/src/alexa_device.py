# alexa_device.py

from controllers import AlexaInterface, BrightnessController, EndpointHealth, PowerController


class AlexaDevice:
    """v3-Sicht auf ein Accessory: Endpunkt für Discovery und Properties für StateReports."""

    def __init__(self, accessory):
        self.accessory = accessory
        self.endpoint_id = accessory.id
        self.friendly_name = accessory.display_name
        self.description = accessory.description or accessory.display_name
        self.manufacturer_name = accessory.manufacturer
        self.display_categories = list(accessory.display_categories)

        # Reihenfolge = Reihenfolge in Discovery und StateReport
        self.controllers = [PowerController]
        if accessory.is_dimmable:
            self.controllers.append(BrightnessController)

    def get_discovery_capabilities(self):
        """Erstellt die Liste aller Capabilities für die Discovery."""
        # Jedes Smart Home Gerät braucht das Basis-Interface
        caps = [AlexaInterface.get_capability()]

        for ctrl in self.controllers:
            caps.append(ctrl.get_capability(retrievable=True))

        caps.append(EndpointHealth.get_capability())
        return caps

    def get_discovery_payload(self):
        """Erzeugt das Objekt für einen Endpunkt im Discovery-Payload."""
        return {
            "endpointId": self.endpoint_id,
            "friendlyName": self.friendly_name,
            "description": self.description,
            "manufacturerName": self.manufacturer_name,
            "displayCategories": self.display_categories,
            "capabilities": self.get_discovery_capabilities()
        }

    def supports(self, namespace):
        return any(c.namespace == namespace for c in self.controllers)

    def controller_for(self, namespace):
        return next((c for c in self.controllers if c.namespace == namespace), None)

    def get_all_properties(self, state, sample_time=None):
        """Properties für Response/StateReport: connectivity, powerState, ggf. brightness."""
        props = EndpointHealth.get_properties(state, sample_time)
        for controller in self.controllers:
            props.extend(controller.get_properties(state, sample_time))
        return props
