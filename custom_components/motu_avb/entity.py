"""Shared entity helpers for the MOTU AVB integration."""

from __future__ import annotations

from collections.abc import Iterator
import logging

from motu_avb_lib import Channel, ChannelBank, ChannelBankType, ValidationError, WriteRequest

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import CONF_UID, DOMAIN, MANUFACTURER
from .coordinator import MotuAvbDataUpdateCoordinator, MotuSnapshot
from .hub import MotuAvbHub

_LOGGER = logging.getLogger(__name__)


def device_info_for_entry(hub: MotuAvbHub, entry: ConfigEntry) -> DeviceInfo:
    """Build device info for entities tied to a config entry."""
    uid = entry.data.get(CONF_UID)
    return DeviceInfo(
        identifiers={(DOMAIN, uid or entry.entry_id)},
        manufacturer=MANUFACTURER,
        name=hub.name or entry.title,
        sw_version=hub.api_version,
        serial_number=uid,
        configuration_url=f"http://{entry.data[CONF_HOST]}",
    )


def unique_base(entry: ConfigEntry) -> str:
    """Return the stable unique ID base for this config entry."""
    uid = entry.data.get(CONF_UID)
    if uid:
        return str(uid)
    if entry.unique_id:
        return entry.unique_id
    return entry.data[CONF_HOST]


def build_unique_id(base: str, domain: str, key: int | str) -> str:
    """Build a stable unique ID in <uid>:<domain>:<key> format."""
    return f"{base}:{domain}:{key}"


def get_bank(
    snapshot: MotuSnapshot | None, bank_type: ChannelBankType, bank_index: int
) -> ChannelBank | None:
    """Return a bank from the current snapshot."""
    if snapshot is None:
        return None
    if bank_type is ChannelBankType.MIXER:
        return snapshot.mixer if bank_index == 0 else None
    banks = (
        snapshot.input_banks
        if bank_type is ChannelBankType.INPUT
        else snapshot.output_banks
    )
    return banks.get(bank_index)


def get_channel(
    snapshot: MotuSnapshot | None,
    bank_type: ChannelBankType,
    bank_index: int,
    channel_index: int,
) -> Channel | None:
    """Return a channel from the current snapshot."""
    bank = get_bank(snapshot, bank_type, bank_index)
    if bank is None:
        return None
    return bank.channels.get(channel_index)


def iter_banks(snapshot: MotuSnapshot | None) -> Iterator[ChannelBank]:
    """Yield every bank in the snapshot, mixer last."""
    if snapshot is None:
        return
    yield from snapshot.input_banks.values()
    yield from snapshot.output_banks.values()
    if snapshot.mixer is not None:
        yield snapshot.mixer


def channel_key(bank: ChannelBank, channel: Channel, field_name: str) -> str:
    """Return a key unique to one field of one channel."""
    return f"{bank.bank_type.value}_{bank.index}_{channel.index}_{field_name}"


class MotuChannelEntity(CoordinatorEntity[MotuAvbDataUpdateCoordinator]):
    """Base for entities bound to one field of one channel."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: MotuAvbDataUpdateCoordinator,
        hub: MotuAvbHub,
        entry: ConfigEntry,
        bank: ChannelBank,
        channel: Channel,
        domain: str,
        field_name: str,
        label: str,
    ) -> None:
        """Initialize the channel entity."""
        super().__init__(coordinator)
        self._hub = hub
        self._bank_type = bank.bank_type
        self._bank_index = bank.index
        self._channel_index = channel.index
        self._field_name = field_name
        bank_label = bank.name or bank.bank_type.value.title()
        self._attr_name = f"{bank_label} {channel.display_name} {label}"
        self._attr_unique_id = build_unique_id(
            unique_base(entry), domain, channel_key(bank, channel, field_name)
        )
        self._attr_device_info = device_info_for_entry(hub, entry)
        self._missing_logged = False

    @property
    def channel(self) -> Channel | None:
        """Return the channel from the latest snapshot."""
        channel = get_channel(
            self.coordinator.data,
            self._bank_type,
            self._bank_index,
            self._channel_index,
        )
        if channel is None:
            self._log_missing()
        return channel

    @property
    def available(self) -> bool:
        """Return if the entity is available."""
        snapshot = self.coordinator.data
        return (
            snapshot is not None
            and snapshot.connected
            and self.channel is not None
        )

    async def _async_send(self, build: str, value: object) -> None:
        """Build a write with the named channel setter and send it."""
        channel = self.channel
        if channel is None:
            raise HomeAssistantError("Channel is no longer reported by the device.")
        try:
            request: WriteRequest = getattr(channel, build)(value)
        except ValidationError as err:
            raise HomeAssistantError(str(err)) from err
        await self._hub.async_set(request)

    def _log_missing(self) -> None:
        if self._missing_logged:
            return
        self._missing_logged = True
        _LOGGER.debug(
            "%s bank %s channel %s missing from snapshot",
            self._bank_type.value,
            self._bank_index,
            self._channel_index,
        )
