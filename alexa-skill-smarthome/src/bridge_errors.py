# bridge_errors.py

"""Fehler-Taxonomie der Bridge.

Alle Fehler werden erst am Einstiegspunkt (HTTP-Route bzw. Lambda-Handler)
abgefangen und in eine generische Fehlerantwort umgewandelt. Nichts davon
wird lokal wiederholt.
"""


class BridgeError(Exception):
    """Basisklasse aller Bridge-Fehler."""


class ConfigurationError(BridgeError):
    """Pflicht-Konfiguration fehlt oder ist ungültig."""


class NetworkError(BridgeError):
    """Verbindungsfehler (DNS, refused, reset, timeout)."""


class TransportError(BridgeError):
    """Antwort mit Status ausserhalb von 200-299."""

    def __init__(self, status, reason=""):
        self.status = status
        self.reason = reason
        super().__init__(f"Failed to load page, status code: {status} {reason}".rstrip())


class DeviceUnavailable(BridgeError):
    """Das physische Gerät ist nicht erreichbar."""


class UnsupportedOperation(BridgeError):
    """Direktive ist gültig, passt aber nicht zum Gerätetyp."""


class NotFound(BridgeError):
    """Unbekannte Geräte-ID oder unbekannte Namespace/Name-Kombination."""


class RelayFailed(BridgeError):
    """Weiterleitung an den Controller ist fehlgeschlagen (Lambda-Fehlerantwort)."""
