# controllers/endpoint_health.py

from .alexa_controller import AlexaController, context_property


class EndpointHealth(AlexaController):
    namespace = "Alexa.EndpointHealth"

    @staticmethod
    def get_capability(retrievable=True):
        return {
            "type": "AlexaInterface",
            "interface": "Alexa.EndpointHealth",
            "version": "3",
            "properties": {
                "supported": [{"name": "connectivity"}],
                "retrievable": retrievable,
                "proactivelyReported": False
            }
        }

    @staticmethod
    def get_properties(state, sample_time=None):
        # Wer antwortet, ist erreichbar
        return [context_property("Alexa.EndpointHealth", "connectivity", {"value": "OK"}, sample_time)]
