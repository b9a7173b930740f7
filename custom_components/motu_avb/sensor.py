"""Diagnostic sensors for the MOTU AVB integration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DATA_COORDINATOR, DATA_HUB, DOMAIN
from .coordinator import MotuAvbDataUpdateCoordinator, MotuSnapshot
from .entity import build_unique_id, device_info_for_entry, unique_base
from .hub import MotuAvbHub


@dataclass(frozen=True, slots=True, kw_only=True)
class MotuAvbSensorDescription(SensorEntityDescription):
    """Describe a MOTU AVB sensor."""

    key: str
    value_fn: Callable[[MotuAvbHub, MotuSnapshot | None], Any]


SENSORS: tuple[MotuAvbSensorDescription, ...] = (
    MotuAvbSensorDescription(
        key="connection",
        name="Connection",
        device_class=SensorDeviceClass.ENUM,
        options=["connected", "disconnected"],
        value_fn=lambda hub, snapshot: (
            "connected" if hub.is_connected else "disconnected"
        ),
    ),
    MotuAvbSensorDescription(
        key="external_updates",
        name="External changes",
        state_class=SensorStateClass.TOTAL_INCREASING,
        value_fn=lambda hub, snapshot: (
            snapshot.external_updates if snapshot is not None else None
        ),
    ),
    MotuAvbSensorDescription(
        key="paths",
        name="Datastore paths",
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=lambda hub, snapshot: snapshot.paths if snapshot is not None else None,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up MOTU AVB sensors from a config entry."""
    data = hass.data[DOMAIN][entry.entry_id]
    hub: MotuAvbHub = data[DATA_HUB]
    coordinator: MotuAvbDataUpdateCoordinator = data[DATA_COORDINATOR]
    async_add_entities(
        MotuAvbSensor(coordinator, hub, entry, description) for description in SENSORS
    )


class MotuAvbSensor(CoordinatorEntity[MotuAvbDataUpdateCoordinator], SensorEntity):
    """Representation of a MOTU AVB diagnostic sensor."""

    _attr_entity_category = EntityCategory.DIAGNOSTIC
    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: MotuAvbDataUpdateCoordinator,
        hub: MotuAvbHub,
        entry: ConfigEntry,
        description: MotuAvbSensorDescription,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        self._hub = hub
        self.entity_description = description
        self._attr_unique_id = build_unique_id(
            unique_base(entry), "device", description.key
        )
        self._attr_device_info = device_info_for_entry(hub, entry)

    @property
    def native_value(self) -> Any:
        """Return the current value."""
        return self.entity_description.value_fn(self._hub, self.coordinator.data)
