from __future__ import annotations

BLUEZ_SERVICE = "org.bluez"
ADAPTER_INTERFACE = "org.bluez.Adapter1"
DEVICE_INTERFACE = "org.bluez.Device1"
BATTERY_INTERFACE = "org.bluez.Battery1"
OBJECT_MANAGER_INTERFACE = "org.freedesktop.DBus.ObjectManager"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

DBUS_SERVICE = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"

UNKNOWN_OBJECT_ERROR = "org.freedesktop.DBus.Error.UnknownObject"
DOES_NOT_EXIST_ERROR = "org.bluez.Error.DoesNotExist"

# Device1 property name -> RawDeviceProps field
DEVICE_PROPERTY_FIELDS = {
    "Address": "address",
    "Alias": "alias",
    "RSSI": "rssi",
    "Connected": "connected",
    "Trusted": "trusted",
    "Bonded": "bonded",
    "Paired": "paired",
}
