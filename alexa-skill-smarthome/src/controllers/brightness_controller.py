# controllers/brightness_controller.py

import logging

from accessory_registry import clamp_brightness

from .alexa_controller import AlexaController, context_property

logger = logging.getLogger(__name__)


class BrightnessController(AlexaController):
    namespace = "Alexa.BrightnessController"

    @staticmethod
    def get_capability(retrievable=True):
        return {
            "type": "AlexaInterface",
            "interface": "Alexa.BrightnessController",
            "version": "3",
            "properties": {
                "supported": [{"name": "brightness"}],
                "retrievable": retrievable,
                "proactivelyReported": False
            }
        }

    @staticmethod
    def get_properties(state, sample_time=None):
        # Alexa erwartet einen Integer zwischen 0 und 100
        value = state.get('brightness')
        if value is None:
            return []
        try:
            formatted_value = clamp_brightness(value)
        except (ValueError, TypeError):
            formatted_value = 0

        return [context_property("Alexa.BrightnessController", "brightness", formatted_value, sample_time)]

    @staticmethod
    def handle_directive(name, payload, current_state=None):
        logger.info(f"BrightnessController: Handling directive '{name}' with payload: {payload}")

        try:
            # 1. Absolute Steuerung
            if name == "SetBrightness":
                return {"brightness": clamp_brightness(payload.get('brightness', 0))}

            # 2. Relative Steuerung (Delta)
            if name == "AdjustBrightness":
                current_val = (current_state or {}).get('brightness') or 0
                new_brightness = clamp_brightness(current_val + int(payload.get('brightnessDelta', 0)))
                logger.info(f"Brightness adjustment: {current_val}% -> {new_brightness}%")
                return {"brightness": new_brightness}
        except (ValueError, TypeError):
            logger.warning(f"BrightnessController: invalid payload {payload!r}")

        return {}
