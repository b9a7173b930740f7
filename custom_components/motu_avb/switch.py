"""Switches for MOTU AVB channel pad, phase, phantom power and mute."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from motu_avb_lib.banks import F_MUTE, F_PAD, F_PHANTOM_POWER, F_PHASE

from homeassistant.components.switch import SwitchEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .const import DATA_COORDINATOR, DATA_HUB, DOMAIN
from .coordinator import MotuAvbDataUpdateCoordinator
from .entity import MotuChannelEntity, channel_key, iter_banks
from .hub import MotuAvbHub

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Flag:
    field_name: str
    label: str
    setter: str
    icon: str


FLAGS: tuple[_Flag, ...] = (
    _Flag(F_PAD, "Pad", "set_pad", "mdi:arrow-collapse-down"),
    _Flag(F_PHASE, "Phase invert", "set_phase", "mdi:sine-wave"),
    _Flag(F_PHANTOM_POWER, "48V", "set_phantom_power", "mdi:flash"),
    _Flag(F_MUTE, "Mute", "set_mute", "mdi:volume-off"),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up MOTU AVB switches from a config entry."""
    data = hass.data[DOMAIN][entry.entry_id]
    hub: MotuAvbHub = data[DATA_HUB]
    coordinator: MotuAvbDataUpdateCoordinator = data[DATA_COORDINATOR]
    known: set[str] = set()

    def _async_add_switches() -> None:
        entities: list[MotuChannelSwitch] = []
        for bank in iter_banks(coordinator.data):
            for channel in bank.channels.values():
                for flag in FLAGS:
                    if not channel.supports(flag.field_name):
                        continue
                    key = channel_key(bank, channel, flag.field_name)
                    if key in known:
                        continue
                    known.add(key)
                    entities.append(
                        MotuChannelSwitch(coordinator, hub, entry, bank, channel, flag)
                    )
        if entities:
            _LOGGER.debug("Adding %s channel switches", len(entities))
            async_add_entities(entities)

    _async_add_switches()
    entry.async_on_unload(coordinator.async_add_listener(_async_add_switches))


class MotuChannelSwitch(MotuChannelEntity, SwitchEntity):
    """A boolean channel control."""

    def __init__(self, coordinator, hub, entry, bank, channel, flag: _Flag) -> None:
        """Initialize the switch."""
        super().__init__(
            coordinator, hub, entry, bank, channel, "switch", flag.field_name, flag.label
        )
        self._flag = flag
        self._attr_icon = flag.icon

    @property
    def is_on(self) -> bool | None:
        """Return if the control is engaged."""
        channel = self.channel
        if channel is None:
            return None
        value = channel.value(self._flag.field_name)
        if isinstance(value, bool):
            return value
        if value in (0, 1):
            return bool(value)
        return None

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Engage the control."""
        await self._async_send(self._flag.setter, True)

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Release the control."""
        await self._async_send(self._flag.setter, False)
