# alexa_appliance.py

"""v2-Sicht auf ein Accessory (Alexa.ConnectedHome, payloadVersion 2)."""

POWER_ACTIONS = ["turnOn", "turnOff"]
PERCENTAGE_ACTIONS = ["setPercentage", "incrementPercentage", "decrementPercentage"]

APPLIANCE_VERSION = "1.0"


def appliance_actions(accessory):
    actions = list(POWER_ACTIONS)
    if accessory.is_dimmable:
        actions.extend(PERCENTAGE_ACTIONS)
    return actions


def discovered_appliance(accessory):
    return {
        "applianceId": accessory.id,
        "manufacturerName": accessory.manufacturer,
        "modelName": accessory.model,
        "version": APPLIANCE_VERSION,
        "friendlyName": accessory.display_name,
        "friendlyDescription": accessory.description or accessory.display_name,
        "isReachable": True,
        "actions": appliance_actions(accessory),
        "additionalApplianceDetails": {}
    }
