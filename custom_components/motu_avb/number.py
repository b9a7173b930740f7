"""Number entities for MOTU AVB trim and mixer fader levels."""

from __future__ import annotations

import logging

from motu_avb_lib.banks import F_FADER, F_TRIM
from motu_avb_lib.const import DEFAULT_TRIM_RANGE, FADER_RANGE

from homeassistant.components.number import NumberEntity, NumberMode
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import SIGNAL_STRENGTH_DECIBELS
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .const import DATA_COORDINATOR, DATA_HUB, DOMAIN
from .coordinator import MotuAvbDataUpdateCoordinator
from .entity import MotuChannelEntity, channel_key, iter_banks
from .hub import MotuAvbHub

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up MOTU AVB number entities from a config entry."""
    data = hass.data[DOMAIN][entry.entry_id]
    hub: MotuAvbHub = data[DATA_HUB]
    coordinator: MotuAvbDataUpdateCoordinator = data[DATA_COORDINATOR]
    known: set[str] = set()

    def _async_add_numbers() -> None:
        entities: list[MotuChannelEntity] = []
        for bank in iter_banks(coordinator.data):
            for channel in bank.channels.values():
                if channel.trim is not None:
                    key = channel_key(bank, channel, F_TRIM)
                    if key not in known:
                        known.add(key)
                        entities.append(
                            MotuTrimNumber(coordinator, hub, entry, bank, channel)
                        )
                if channel.supports(F_FADER):
                    key = channel_key(bank, channel, F_FADER)
                    if key not in known:
                        known.add(key)
                        entities.append(
                            MotuFaderNumber(coordinator, hub, entry, bank, channel)
                        )
        if entities:
            _LOGGER.debug("Adding %s level entities", len(entities))
            async_add_entities(entities)

    _async_add_numbers()
    entry.async_on_unload(coordinator.async_add_listener(_async_add_numbers))


class MotuTrimNumber(MotuChannelEntity, NumberEntity):
    """Channel trim in whole dB within the range the device reports."""

    _attr_native_step = 1
    _attr_native_unit_of_measurement = SIGNAL_STRENGTH_DECIBELS
    _attr_mode = NumberMode.SLIDER
    _attr_icon = "mdi:knob"

    def __init__(self, coordinator, hub, entry, bank, channel) -> None:
        """Initialize the trim entity."""
        super().__init__(coordinator, hub, entry, bank, channel, "number", F_TRIM, "Trim")

    @property
    def native_min_value(self) -> float:
        channel = self.channel
        trim = channel.trim if channel is not None else None
        return trim.range[0] if trim is not None else DEFAULT_TRIM_RANGE[0]

    @property
    def native_max_value(self) -> float:
        channel = self.channel
        trim = channel.trim if channel is not None else None
        return trim.range[1] if trim is not None else DEFAULT_TRIM_RANGE[1]

    @property
    def native_value(self) -> float | None:
        """Return the current trim."""
        channel = self.channel
        if channel is None or channel.trim is None:
            return None
        return channel.trim.value

    async def async_set_native_value(self, value: float) -> None:
        """Set the trim, rounded to a whole dB."""
        await self._async_send("set_trim", int(round(value)))


class MotuFaderNumber(MotuChannelEntity, NumberEntity):
    """Mixer channel fader as a linear gain."""

    _attr_native_min_value = FADER_RANGE[0]
    _attr_native_max_value = FADER_RANGE[1]
    _attr_native_step = 0.01
    _attr_mode = NumberMode.SLIDER
    _attr_icon = "mdi:tune-vertical"

    def __init__(self, coordinator, hub, entry, bank, channel) -> None:
        """Initialize the fader entity."""
        super().__init__(
            coordinator, hub, entry, bank, channel, "number", F_FADER, "Fader"
        )

    @property
    def native_value(self) -> float | None:
        """Return the current fader level."""
        channel = self.channel
        return channel.fader if channel is not None else None

    async def async_set_native_value(self, value: float) -> None:
        """Move the fader."""
        await self._async_send("set_fader", float(value))
