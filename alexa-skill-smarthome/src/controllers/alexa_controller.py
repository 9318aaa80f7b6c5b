# controllers/alexa_controller.py

from abc import ABC, abstractmethod
from datetime import datetime, timezone


def time_of_sample(now=None):
    """ISO-8601 Zeitstempel in UTC mit Millisekunden, wie Alexa ihn erwartet."""
    now = now or datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


def context_property(namespace, name, value, sample_time=None):
    return {
        "namespace": namespace,
        "name": name,
        "value": value,
        "timeOfSample": sample_time or time_of_sample(),
        "uncertaintyInMilliseconds": 0
    }


class AlexaController(ABC):
    @property
    @abstractmethod
    def namespace(self):
        pass

    @staticmethod
    @abstractmethod
    def get_capability(retrievable=True):
        """Gibt das Discovery-JSON zurück."""
        pass

    @staticmethod
    def get_properties(state, sample_time=None):
        """Gibt die Liste der Properties für StateReports zurück."""
        return []

    @staticmethod
    def handle_directive(name, payload, current_state=None):
        """Übersetzt eine Direktive in neue Zustandswerte ({} = nicht unterstützt)."""
        return {}


class AlexaInterface(AlexaController):
    """Basis-Interface, das jeder Endpunkt melden muss."""
    namespace = "Alexa"

    @staticmethod
    def get_capability(retrievable=True):
        return {
            "type": "AlexaInterface",
            "interface": "Alexa",
            "version": "3"
        }
