# controllers/power_controller.py

import logging
from .alexa_controller import AlexaController, context_property

# Logger konfigurieren
logger = logging.getLogger(__name__)

class PowerController(AlexaController):
    namespace = "Alexa.PowerController"

    @staticmethod
    def get_capability(retrievable=True):
        return {
            "type": "AlexaInterface",
            "interface": "Alexa.PowerController",
            "version": "3",
            "properties": {
                "supported": [{"name": "powerState"}],
                "retrievable": retrievable,
                "proactivelyReported": False
            }
        }

    @staticmethod
    def get_properties(state, sample_time=None):
        # state['power'] ist ein bool
        value = "ON" if state.get('power') else "OFF"
        return [context_property("Alexa.PowerController", "powerState", value, sample_time)]

    @staticmethod
    def handle_directive(name, payload, current_state=None):
        logger.info(f"PowerController: Handling '{name}'")

        if name not in ("TurnOn", "TurnOff"):
            logger.warning(f"PowerController: Directive '{name}' not supported.")
            return {}

        return {"power": name == "TurnOn"}
