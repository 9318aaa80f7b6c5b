# controllers/__init__.py

from .alexa_controller import AlexaController, AlexaInterface, context_property, time_of_sample
from .power_controller import PowerController
from .brightness_controller import BrightnessController
from .endpoint_health import EndpointHealth

__all__ = [
    'AlexaController',
    'AlexaInterface',
    'PowerController',
    'BrightnessController',
    'EndpointHealth',
    'context_property',
    'time_of_sample',
]
