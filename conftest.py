import sys
import os
import pytest

# Pfade sofort setzen, nicht erst in einer Fixture!
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
paths = [
    os.path.join(BASE_DIR, 'alexa-skill-smarthome', 'src'),
]

for p in paths:
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture
def lights():
    from accessory_registry import StaticAccessory
    return [
        StaticAccessory("A1", "Wohnzimmer", is_switch=False, brightness=40),
        StaticAccessory("S1", "Flur", is_switch=True),
    ]


@pytest.fixture
def extras():
    from accessory_registry import StaticAccessory
    return [
        StaticAccessory("TV1", "Fernseher", kind="Generic", manufacturer="Sony", categories=["TV"]),
    ]


@pytest.fixture
def registry(lights, extras):
    from accessory_registry import AccessoryRegistry
    return AccessoryRegistry(lights, extras)
