"""Diagnostics support for MOTU AVB."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
import enum
from types import MappingProxyType
from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_PORT
from homeassistant.core import HomeAssistant

from .const import CONF_UID, DATA_COORDINATOR, DATA_HUB, DOMAIN
from .coordinator import MotuAvbDataUpdateCoordinator
from .hub import MotuAvbHub

TO_REDACT = {CONF_HOST, "url"}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    hub: MotuAvbHub | None = data.get(DATA_HUB) if data else None
    coordinator: MotuAvbDataUpdateCoordinator | None = (
        data.get(DATA_COORDINATOR) if data else None
    )
    snapshot = coordinator.data if coordinator is not None else None
    device = hub.device if hub is not None else None

    return async_redact_data(
        {
            "entry_id": entry.entry_id,
            "host": entry.data.get(CONF_HOST),
            "port": entry.data.get(CONF_PORT),
            "uid": entry.data.get(CONF_UID),
            "device": hub.diagnostics() if hub is not None else None,
            "snapshot_available": snapshot is not None,
            "snapshot_meta": _to_jsonable(
                {
                    "version": getattr(snapshot, "version", None),
                    "connected": getattr(snapshot, "connected", None),
                    "external_updates": getattr(snapshot, "external_updates", None),
                }
            ),
            "banks": _to_jsonable(snapshot),
            "datastore": _to_jsonable(device.snapshot()) if device is not None else {},
        },
        TO_REDACT,
    )


def _to_jsonable(value: Any) -> Any:
    """Normalize snapshots to JSON-safe types."""
    if value is None:
        return None
    if is_dataclass(value):
        return {
            field.name: _to_jsonable(getattr(value, field.name))
            for field in fields(value)
        }
    if isinstance(value, MappingProxyType):
        return {str(key): _to_jsonable(val) for key, val in dict(value).items()}
    if isinstance(value, Mapping):
        return {str(key): _to_jsonable(val) for key, val in value.items()}
    if isinstance(value, list | tuple):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
