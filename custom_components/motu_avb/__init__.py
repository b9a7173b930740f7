"""Set up the MOTU AVB integration."""

from __future__ import annotations

import contextlib
import logging
import sys
from pathlib import Path

_VENDOR_PATH = Path(__file__).resolve().parent / "vendor" / "motuavb"
if _VENDOR_PATH.exists() and str(_VENDOR_PATH) not in sys.path:
    sys.path.insert(0, str(_VENDOR_PATH))

from motu_avb_lib import DeviceType
from motu_avb_lib.errors import DecodeError, NotConnectedError, TransportError

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_PORT, Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import (
    CONF_DEVICE_NAME,
    CONF_DEVICE_TYPE,
    CONF_UID,
    DATA_COORDINATOR,
    DATA_HUB,
    DOMAIN,
)
from .coordinator import MotuAvbDataUpdateCoordinator
from .hub import MotuAvbHub

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [
    Platform.NUMBER,
    Platform.SENSOR,
    Platform.SWITCH,
]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a MOTU AVB interface from a config entry."""
    host = entry.data[CONF_HOST]
    port = entry.data[CONF_PORT]
    name = entry.data.get(CONF_DEVICE_NAME) or entry.title or host
    device_type = DeviceType.from_mdns(
        entry.data.get(CONF_DEVICE_TYPE, DeviceType.DEVICE.value)
    )
    hub = MotuAvbHub(hass, host, port, name, entry.data.get(CONF_UID), device_type)
    try:
        await hub.async_connect()
    except (TransportError, DecodeError, NotConnectedError, TimeoutError) as err:
        _LOGGER.debug("Failed to set up connection to %s:%s", host, port, exc_info=True)
        with contextlib.suppress(Exception):
            await hub.async_disconnect()
        raise ConfigEntryNotReady(
            f"Could not reach the datastore at {host}:{port}"
        ) from err

    coordinator = MotuAvbDataUpdateCoordinator(hass, hub, entry)
    await coordinator.async_start()
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        DATA_HUB: hub,
        DATA_COORDINATOR: coordinator,
    }
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a MOTU AVB config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    data = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if data is not None:
        coordinator: MotuAvbDataUpdateCoordinator | None = data.get(DATA_COORDINATOR)
        hub: MotuAvbHub | None = data.get(DATA_HUB)
        if coordinator is not None:
            await coordinator.async_stop()
        if hub is not None:
            await hub.async_disconnect()
    return unload_ok
