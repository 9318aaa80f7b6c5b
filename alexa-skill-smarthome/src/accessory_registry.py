# accessory_registry.py

"""Lesende Sicht auf die Geräte der Laufzeitumgebung.

Zwei unabhängige Quellen (z.B. RadioRA-Lichter und konfigurierte
Zusatzgeräte) werden zu einer logischen Registry zusammengeführt.
Jede Quelle liefert Records mit `serial`, `name`, `is_switch` sowie den
asynchronen Methoden `get(property)` und `set(property, value)`.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field

from bridge_errors import BridgeError, DeviceUnavailable, NotFound, UnsupportedOperation

logger = logging.getLogger(__name__)

POWER = "power"
BRIGHTNESS = "brightness"


class AccessoryKind(enum.Enum):
    SWITCH = "Switch"
    DIMMABLE_LIGHT = "DimmableLight"
    GENERIC = "Generic"


def clamp_brightness(value):
    return max(0, min(100, int(value)))


@dataclass(frozen=True)
class Accessory:
    id: str
    display_name: str
    manufacturer: str
    model: str
    kind: AccessoryKind
    power_state: bool = False
    brightness: int = None
    description: str = None
    display_categories: tuple = field(default_factory=tuple)
    # Record der Quelle, über das get/set laufen
    record: object = field(default=None, compare=False, repr=False)

    @property
    def is_dimmable(self):
        return self.kind is AccessoryKind.DIMMABLE_LIGHT


def _kind_of(record):
    kind = getattr(record, "kind", None)
    if kind is not None:
        return AccessoryKind(kind)
    return AccessoryKind.SWITCH if getattr(record, "is_switch", False) else AccessoryKind.DIMMABLE_LIGHT


def _categories(record, kind):
    categories = getattr(record, "categories", None)
    if categories:
        return tuple(categories)
    if kind is AccessoryKind.DIMMABLE_LIGHT:
        return ("LIGHT",)
    return ("SWITCH",)


def snapshot(record, default_manufacturer="Lutron"):
    """Momentaufnahme eines Records als Accessory."""
    kind = _kind_of(record)
    brightness = None
    if kind is AccessoryKind.DIMMABLE_LIGHT:
        brightness = clamp_brightness(getattr(record, "last_brightness", 0) or 0)
    name = getattr(record, "name", None) or str(record.serial)
    return Accessory(
        id=str(record.serial),
        display_name=name,
        manufacturer=getattr(record, "manufacturer", None) or default_manufacturer,
        model=getattr(record, "model", None) or kind.value,
        kind=kind,
        power_state=bool(getattr(record, "power", False)),
        brightness=brightness,
        description=getattr(record, "description", None) or name,
        display_categories=_categories(record, kind),
        record=record,
    )


class StaticAccessory:
    """In-Memory-Record, z.B. für konfigurierte Geräte oder Tests."""

    def __init__(self, serial, name, is_switch=False, manufacturer=None, model=None,
                 kind=None, categories=None, description=None, power=False, brightness=0):
        self.serial = serial
        self.name = name
        self.is_switch = is_switch
        self.manufacturer = manufacturer
        self.model = model
        self.kind = kind
        self.categories = categories
        self.description = description
        self.power = power
        self.last_brightness = brightness

    async def get(self, prop):
        if prop == POWER:
            return self.power
        if prop == BRIGHTNESS:
            return self.last_brightness
        raise UnsupportedOperation(f"{self.serial}: unknown property {prop}")

    async def set(self, prop, value):
        if prop == POWER:
            self.power = bool(value)
        elif prop == BRIGHTNESS:
            self.last_brightness = value
            self.power = value > 0
        else:
            raise UnsupportedOperation(f"{self.serial}: unknown property {prop}")


class AccessoryRegistry:
    """Führt zwei Quellen zusammen: erst primary, dann secondary.

    Die Quellen werden bei jedem Aufruf neu gelesen (kein Cache), in einem
    Worker-Thread, da sie blockieren können (z.B. DynamoDB-Scan). Alle
    Operationen nehmen eine ID oder ein bereits aufgelöstes Accessory;
    mit dem Accessory entfällt das erneute Lesen der Quellen.
    Zugriffe auf dasselbe Gerät laufen über einen Lock pro Gerät
    nacheinander, auch Lesen-Ändern-Schreiben (adjust_brightness).
    """

    def __init__(self, primary, secondary=(), manufacturer="Lutron"):
        self.primary = primary
        self.secondary = secondary
        self.manufacturer = manufacturer
        self._locks = {}

    def _records(self):
        records = list(self.primary)
        records.extend(self.secondary)
        return records

    async def _load(self):
        return await asyncio.to_thread(self._records)

    async def list_all(self):
        return [snapshot(r, self.manufacturer) for r in await self._load()]

    async def find_by_id(self, accessory_id):
        # erster Treffer gewinnt
        for record in await self._load():
            if str(record.serial) == accessory_id:
                return snapshot(record, self.manufacturer)
        raise NotFound(f"No accessory with id {accessory_id}")

    async def _resolve(self, target):
        if isinstance(target, Accessory) and target.record is not None:
            return target
        return await self.find_by_id(target)

    def _lock(self, accessory_id):
        lock = self._locks.get(accessory_id)
        if lock is None:
            lock = self._locks[accessory_id] = asyncio.Lock()
        return lock

    async def _invoke(self, accessory, method, *args):
        try:
            return await getattr(accessory.record, method)(*args)
        except BridgeError:
            raise
        except Exception as e:
            logger.error(f"Accessory {accessory.id}: {method}{args} failed: {e!r}")
            raise DeviceUnavailable(f"Accessory {accessory.id} is unavailable: {e}") from e

    async def _call(self, accessory, method, *args):
        async with self._lock(accessory.id):
            return await self._invoke(accessory, method, *args)

    def _require_dimmable(self, accessory):
        if not accessory.is_dimmable:
            raise UnsupportedOperation(f"Accessory {accessory.id} ({accessory.kind.value}) has no brightness")

    async def set_power(self, target, on):
        accessory = await self._resolve(target)
        if getattr(accessory.record, "set_power", None) is not None:
            # Treiber mit eigener set_power-Methode (z.B. CEC)
            await self._call(accessory, "set_power", bool(on))
        else:
            await self._call(accessory, "set", POWER, bool(on))

    async def set_brightness(self, target, value):
        accessory = await self._resolve(target)
        self._require_dimmable(accessory)
        await self._call(accessory, "set", BRIGHTNESS, clamp_brightness(value))

    async def adjust_brightness(self, target, delta):
        """Helligkeit relativ ändern; Lesen und Schreiben unter demselben Lock."""
        accessory = await self._resolve(target)
        self._require_dimmable(accessory)
        async with self._lock(accessory.id):
            current = await self._invoke(accessory, "get", BRIGHTNESS)
            value = clamp_brightness((current or 0) + delta)
            await self._invoke(accessory, "set", BRIGHTNESS, value)
        return value

    async def get_power(self, target):
        accessory = await self._resolve(target)
        return bool(await self._call(accessory, "get", POWER))

    async def get_brightness(self, target):
        accessory = await self._resolve(target)
        self._require_dimmable(accessory)
        level = await self._call(accessory, "get", BRIGHTNESS)
        return clamp_brightness(level or 0)
